#########################################################################################
##
##                                BINDING FLATTENER
##                                   (binding.py)
##
##         Walks a (system, parameter tree) pair in lock-step and produces the
##         ordered (slot, value) bindings consumed by the full-rebuild path.
##
#########################################################################################

# IMPORTS ===============================================================================

from collections.abc import Mapping
from typing import Any, NamedTuple

from .errors import SchemaMismatchError
from .params import Params, param_fields
from .system import Parameter, System


__all__ = [
    "Binding",
    "flatten",
    "binding_map",
    "as_lookup",
    "slot_key",
]


# BINDING ===============================================================================

class Binding(NamedTuple):
    """Fully-qualified model slot paired with a value."""

    slot: str
    value: Any


# FLATTENER =============================================================================

def flatten(system, tree, *, strict=False):
    """Flatten a parameter tree against a system into ordered bindings.

    Fields are visited in declaration order. Scalar fields emit one
    :class:`Binding` each, child fields recurse into the same-named child
    system.

    Tree fields without a same-named member on the system are skipped, so a
    tree may carry more than the model declares (e.g. catalog metadata). This
    is the lenient counterpart of :func:`~paramtree.serialize.deserialize`,
    which rejects unknown keys. Pass ``strict=True`` to reject them here too.

    Parameters
    ----------
    system : System
        Model instance the tree is bound to.
    tree : Params
        Parameter tree value.
    strict : bool
        Raise :class:`SchemaMismatchError` for tree fields the system lacks.

    Returns
    -------
    list[Binding]
    """
    bindings = []
    _flatten_into(system, tree, strict, bindings)
    return bindings


def _flatten_into(system, tree, strict, bindings):
    for fld in param_fields(tree):
        member = system.get(fld.name)

        if member is None:
            if strict:
                raise SchemaMismatchError(
                    fld.name, system.namespace,
                    f"system '{system.name}' ({system.component_type}) has no such member",
                )
            continue

        if fld.is_child:
            if not isinstance(member, System):
                raise SchemaMismatchError(
                    fld.name, system.namespace, "tree field is a sub-tree but model member is a parameter"
                )
            _flatten_into(member, getattr(tree, fld.name), strict, bindings)
        else:
            if not isinstance(member, Parameter):
                raise SchemaMismatchError(
                    fld.name, system.namespace, "tree field is a scalar but model member is a system"
                )
            bindings.append(Binding(member.path, getattr(tree, fld.name)))


def binding_map(system, tree, *, strict=False):
    """Same as :func:`flatten` but returned as a ``{slot: value}`` dict."""
    return dict(flatten(system, tree, strict=strict))


# LOOKUP NORMALIZATION ==================================================================

def slot_key(slot):
    """Return the dotted slot identity for a path string or a :class:`Parameter`."""
    if isinstance(slot, Parameter):
        return slot.path
    if isinstance(slot, str):
        return slot
    raise TypeError(
        f"slot must be a dotted path or a Parameter, got {type(slot).__name__}"
    )


def _is_model_pair(item):
    return (
        isinstance(item, tuple)
        and len(item) == 2
        and isinstance(item[0], System)
        and isinstance(item[1], Params)
    )


def as_lookup(bindings):
    """Normalize any accepted binding input into a ``{slot: value}`` dict.

    Accepted inputs are a mapping of slot to value, a ``(system, tree)`` pair,
    or an iterable mixing :class:`Binding` / ``(slot, value)`` tuples and
    ``(system, tree)`` pairs. Slots may be dotted paths or :class:`Parameter`
    objects. Later entries win over earlier ones.
    """
    if isinstance(bindings, Mapping):
        return {slot_key(k): v for k, v in bindings.items()}

    if _is_model_pair(bindings):
        return binding_map(*bindings)

    lookup = {}
    for item in bindings:
        if _is_model_pair(item):
            lookup.update(binding_map(*item))
        else:
            slot, value = item
            lookup[slot_key(slot)] = value
    return lookup
