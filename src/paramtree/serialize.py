#########################################################################################
##
##                               SERIALIZATION CODEC
##                                 (serialize.py)
##
##         Converts parameter trees to and from nested mappings and TOML text.
##         Reading is strict: keys without a matching field are rejected.
##
#########################################################################################

# IMPORTS ===============================================================================

import ast
import re
import tomllib

from collections.abc import Mapping

import tomli_w

from .errors import LiteralParseError, SchemaMismatchError
from .params import param_fields


__all__ = [
    "convert_value",
    "to_dict",
    "serialize",
    "check_dict",
    "update_from_dict",
    "from_dict",
    "deserialize",
    "parse_literal",
    "save_parameters",
    "load_parameters",
]


# LITERAL GRAMMAR =======================================================================

_BOOLEANS = {"true": True, "false": False, "True": True, "False": False}

_INT_RE = re.compile(r"[+-]?\d+(?:_\d+)*")
_FLOAT_RE = re.compile(
    r"[+-]?(?:(?:\d+\.\d*|\.\d+|\d+)(?:[eE][+-]?\d+)?|inf|Inf|infinity|nan|NaN)"
)
_STRING_RE = re.compile(r"""'(?:[^'\\\n]|\\.)*'|"(?:[^"\\\n]|\\.)*\"""")


def parse_literal(text):
    """Parse *text* as a literal: integer, float, boolean or quoted string.

    This is a deliberately small grammar; arbitrary expressions are rejected
    so untrusted parameter files cannot execute code.

    Raises
    ------
    LiteralParseError
        If *text* is not one of the accepted literal forms.
    """
    s = text.strip()
    if s in _BOOLEANS:
        return _BOOLEANS[s]
    if _INT_RE.fullmatch(s):
        return int(s)
    if _FLOAT_RE.fullmatch(s):
        return float(s)
    if _STRING_RE.fullmatch(s):
        return ast.literal_eval(s)
    raise LiteralParseError(f"not a number, boolean or quoted string literal: {text!r}")


# WRITING ===============================================================================

def convert_value(value):
    """Default leaf conversion hook (identity)."""
    return value


def to_dict(tree, convert=convert_value):
    """Convert a parameter tree into a nested dict.

    Scalar fields become leaf entries (passed through *convert*), child fields
    become nested dicts under their field name.
    """
    out = {}
    for fld in param_fields(tree):
        value = getattr(tree, fld.name)
        out[fld.name] = to_dict(value, convert) if fld.is_child else convert(value)
    return out


def serialize(tree, convert=convert_value):
    """Render a parameter tree as TOML text.

    *convert* maps leaf values TOML cannot represent (``None``, numpy
    scalars, arrays, ...) to representable ones before rendering.
    """
    return tomli_w.dumps(to_dict(tree, convert))


# READING ===============================================================================

def check_dict(data, tree_type, path=""):
    """Validate a nested mapping against a tree type without building anything.

    Raises
    ------
    SchemaMismatchError
        A key has no matching field, or a table meets a scalar field (or the
        reverse).
    """
    fields = {fld.name: fld for fld in param_fields(tree_type)}
    for key, value in data.items():
        fld = fields.get(key)
        if fld is None:
            raise SchemaMismatchError(
                key, path, f"no such field on {getattr(tree_type, '__name__', tree_type)}"
            )
        key_path = f"{path}.{key}" if path else key
        if fld.is_child:
            if not isinstance(value, Mapping):
                raise SchemaMismatchError(key, path, "expected a table for a sub-tree field")
            check_dict(value, fld.type, key_path)
        elif isinstance(value, Mapping):
            raise SchemaMismatchError(key, path, "got a table for a scalar field")


def _read_scalar(fld, value, key_path):
    if isinstance(value, str) and not fld.textual:
        try:
            value = parse_literal(value)
        except LiteralParseError as err:
            raise LiteralParseError(f"field '{key_path}': {err}") from err
    return fld.scalar_kind.coerce(value)


def update_from_dict(tree, data, path=""):
    """Overlay the values of a nested mapping onto *tree* in place.

    Text values for fields whose annotation does not admit ``str`` are parsed
    with :func:`parse_literal`, which allows non-string defaults to be written
    as text. Integers are widened to float for ``float`` fields.
    """
    fields = {fld.name: fld for fld in param_fields(tree)}
    for key, value in data.items():
        fld = fields.get(key)
        if fld is None:
            raise SchemaMismatchError(key, path, f"no such field on {type(tree).__name__}")
        key_path = f"{path}.{key}" if path else key

        if fld.is_child:
            update_from_dict(getattr(tree, key), value, key_path)
        else:
            setattr(tree, key, _read_scalar(fld, value, key_path))
    return tree


def _build(tree_type, data, path):
    # fields without a default must be passed to the constructor
    required = {}
    for fld in param_fields(tree_type):
        if fld.has_default or fld.name not in data:
            continue
        key_path = f"{path}.{fld.name}" if path else fld.name
        value = data[fld.name]
        if fld.is_child:
            required[fld.name] = _build(fld.type, value, key_path)
        else:
            required[fld.name] = _read_scalar(fld, value, key_path)

    tree = tree_type(**required)
    rest = {key: value for key, value in data.items() if key not in required}
    return update_from_dict(tree, rest, path)


def from_dict(data, tree_type):
    """Build a tree of *tree_type* from its defaults overlaid with *data*.

    The mapping is validated in full before anything is constructed. Values
    for fields without a default are passed to the constructor, so a
    ``TypeError`` is raised only if *data* leaves one of them out.
    """
    check_dict(data, tree_type)
    return _build(tree_type, data, "")


def deserialize(text, tree_type):
    """Parse TOML *text* into a new tree of *tree_type*.

    Raises
    ------
    SchemaMismatchError
        The document contains a key with no matching field.
    """
    return from_dict(tomllib.loads(text), tree_type)


# FILES =================================================================================

def save_parameters(tree, filepath, convert=convert_value):
    """Write *tree* as a UTF-8 TOML file."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(serialize(tree, convert))


def load_parameters(filepath, tree_type):
    """Read a TOML file written by :func:`save_parameters` into a new tree."""
    with open(filepath, "r", encoding="utf-8") as f:
        return deserialize(f.read(), tree_type)
