#########################################################################################
##
##                              TYPED PARAMETER TREE
##                                   (params.py)
##
##         Base class for parameter tree types, the static field list of a tree
##         type (scalar leaves tagged by kind, child sub-trees) and a visitor
##         over that list.
##
#########################################################################################

# IMPORTS ===============================================================================

import copy
import dataclasses
import functools
import types
import typing

from dataclasses import MISSING, dataclass
from enum import Enum


__all__ = [
    "Params",
    "ScalarKind",
    "FieldKind",
    "ParamField",
    "param_fields",
    "is_params_type",
    "admits_str",
    "walk_fields",
]


# FIELD KINDS ===========================================================================

class ScalarKind(Enum):
    """Tag of a scalar leaf value."""

    FLOAT = "float"
    INT = "int"
    BOOL = "bool"
    STR = "str"
    OBJECT = "object"


    @classmethod
    def of(cls, tp):
        """Return the kind for an annotated type (``OBJECT`` for anything else)."""
        return _SCALAR_KINDS.get(tp, cls.OBJECT)


    def coerce(self, value):
        """Widen *value* to this kind where that is lossless (``int`` -> ``float``)."""
        if self is ScalarKind.FLOAT and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        return value


_SCALAR_KINDS = {
    float: ScalarKind.FLOAT,
    int: ScalarKind.INT,
    bool: ScalarKind.BOOL,
    str: ScalarKind.STR,
    }


class FieldKind(Enum):
    SCALAR = "scalar"
    CHILD = "child"


@dataclass(frozen=True)
class ParamField:
    """Static description of one field of a parameter tree type.

    Parameters
    ----------
    name : str
        Field name; matched by name against the model's parameters and children.
    type : type
        Resolved annotation of the field.
    kind : FieldKind
        ``SCALAR`` for leaves, ``CHILD`` for nested parameter trees.
    scalar_kind : ScalarKind or None
        Tag of the leaf value, ``None`` for child fields.
    default : object
        Declared default, ``dataclasses.MISSING`` if none.
    default_factory : callable
        Declared default factory, ``dataclasses.MISSING`` if none.
    textual : bool
        ``True`` if the annotation admits ``str`` values, so text read from a
        file is kept as text instead of being parsed as a literal.
    """

    name: str
    type: type
    kind: FieldKind
    scalar_kind: ScalarKind | None
    default: object = MISSING
    default_factory: object = MISSING
    textual: bool = False


    @property
    def is_child(self):
        return self.kind is FieldKind.CHILD


    @property
    def has_default(self):
        return self.default is not MISSING or self.default_factory is not MISSING


    def make_default(self):
        """Return a fresh default value (raises ``ValueError`` if there is none)."""
        if self.default_factory is not MISSING:
            return self.default_factory()
        if self.default is not MISSING:
            return copy.deepcopy(self.default)
        raise ValueError(f"field '{self.name}' has no default")


# BASE CLASS ============================================================================

class Params:
    """Base class for parameter tree types.

    Subclasses are keyword-only dataclasses whose scalar fields mirror a
    component's declared parameters and whose child fields are other
    ``Params`` subclasses, one per child component.

    Example
    -------
    .. code-block:: python

        @dataclass(kw_only=True)
        class ResistorParams(Params):
            R: float = 1.0

        @dataclass(kw_only=True)
        class RCModelParams(Params):
            resistor: ResistorParams = field(default_factory=ResistorParams)

        p = RCModelParams()
        p.resistor.R = 2.0
    """

    @classmethod
    def fields(cls):
        """Static field list of this tree type, see :func:`param_fields`."""
        return param_fields(cls)


    def copy(self):
        """Deep copy; child trees are never shared with the copy."""
        return copy.deepcopy(self)


    def leaves(self):
        """Mapping of dotted field path to scalar value, in declaration order."""
        out = {}
        walk_fields(self, lambda path, fld, value: out.__setitem__(path, value))
        return out


# INTROSPECTION =========================================================================

def is_params_type(tp):
    """``True`` if *tp* is a ``Params`` subclass."""
    return isinstance(tp, type) and issubclass(tp, Params)


def admits_str(tp):
    """``True`` if a value of annotated type *tp* may be a ``str``.

    Holds for ``str`` itself, ``Any``, ``object`` and unions with at least
    one such member (``str | None``, ``Optional[str]``).
    """
    if tp is str or tp is object or tp is typing.Any:
        return True
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        return any(admits_str(arg) for arg in typing.get_args(tp))
    return False


@functools.lru_cache(maxsize=None)
def _fields_of_type(tree_type):

    if not is_params_type(tree_type) or not dataclasses.is_dataclass(tree_type):
        raise TypeError(
            f"{tree_type!r} is not a parameter tree type; "
            "expected a dataclass deriving from Params"
        )

    hints = typing.get_type_hints(tree_type)

    out = []
    for fld in dataclasses.fields(tree_type):
        if not fld.init:
            continue
        tp = hints.get(fld.name, fld.type)
        if is_params_type(tp):
            kind, scalar_kind = FieldKind.CHILD, None
        else:
            kind, scalar_kind = FieldKind.SCALAR, ScalarKind.of(tp)
        out.append(
            ParamField(
                name=fld.name,
                type=tp,
                kind=kind,
                scalar_kind=scalar_kind,
                default=fld.default,
                default_factory=fld.default_factory,
                textual=kind is FieldKind.SCALAR and admits_str(tp),
            )
        )
    return tuple(out)


def param_fields(tree):
    """Return the ordered static field list of a tree type (or of a tree's type).

    Parameters
    ----------
    tree : type[Params] or Params
        Parameter tree type or value.

    Returns
    -------
    tuple[ParamField]
        One entry per init field, in declaration order.
    """
    return _fields_of_type(tree if isinstance(tree, type) else type(tree))


def walk_fields(tree, visitor, path=""):
    """Depth-first visit of every scalar leaf of *tree*.

    *visitor* is called as ``visitor(path, field, value)`` with the dotted path
    of the leaf, its :class:`ParamField` and its current value. When *tree* is a
    type, ``value`` is the declared default (``dataclasses.MISSING`` if none).
    """
    is_type = isinstance(tree, type)
    for fld in param_fields(tree):
        key = f"{path}.{fld.name}" if path else fld.name
        if fld.is_child:
            walk_fields(fld.type if is_type else getattr(tree, fld.name), visitor, key)
        else:
            visitor(key, fld, fld.default if is_type else getattr(tree, fld.name))
