#########################################################################################
##
##                                  SETTER CACHE
##                                    (cache.py)
##
##         Walks a (system, parameter tree type) pair once and compiles one slot
##         setter per reachable scalar field. The resulting cache is reused by
##         the update engine for every subsequent sparse update.
##
#########################################################################################

# IMPORTS ===============================================================================

import logging

from collections.abc import Sequence
from typing import NamedTuple

from .errors import SchemaMismatchError, StaleInstanceShapeError, UnresolvedSlotError
from .params import param_fields
from .problem import ParameterLayout, Setter, make_setter
from .system import Parameter, System


__all__ = [
    "CacheEntry",
    "SetterCache",
    "build_cache",
]


logger = logging.getLogger(__name__)


# CACHE =================================================================================

class CacheEntry(NamedTuple):
    slot: str
    setter: Setter


class SetterCache(Sequence):
    """Ordered, immutable sequence of ``(slot, setter)`` entries.

    Parameters
    ----------
    entries : iterable[CacheEntry]
        Cache entries in application order.
    layout : ParameterLayout
        Layout of the root instance the setters were compiled against.

    Notes
    -----
    A cache is read-only after construction and may be shared between callers
    as long as each call targets a distinct problem instance.
    """

    def __init__(self, entries, layout):
        self._entries = tuple(CacheEntry(*e) for e in entries)
        self.layout = layout


    def __getitem__(self, idx):
        return self._entries[idx]


    def __len__(self):
        return len(self._entries)


    @property
    def slots(self):
        """Slot paths in application order."""
        return tuple(e.slot for e in self._entries)


    def check(self, problem):
        """Verify that the cache can be applied to *problem*.

        Raises
        ------
        UnresolvedSlotError
            A cached slot does not exist on *problem*.
        StaleInstanceShapeError
            The problem's layout differs from the one the cache was built for.
        """
        if problem.layout.signature == self.layout.signature:
            return
        for entry in self._entries:
            if entry.slot not in problem.layout:
                raise UnresolvedSlotError(
                    entry.slot,
                    f"cached slot '{entry.slot}' does not exist on this problem; "
                    "the model structure changed, rebuild the setter cache",
                )
        raise StaleInstanceShapeError(
            "setter cache was built for a structurally different model; "
            "rebuild the setter cache"
        )


    def __repr__(self):
        return f"SetterCache({list(self.slots)})"


# BUILDER ===============================================================================

def build_cache(system, tree_type, *, parent=None, strict=False):
    """Build the setter cache for a system and a parameter tree type.

    The tree type's fields are walked in declaration order. Every scalar field
    with a same-named parameter on the system yields one setter; every child
    field with a same-named child system is recursed into. Setters always
    resolve their slot against the root (*parent*) layout, since slots are
    addressed globally once the model is laid out.

    Fields the system does not have are skipped, mirroring
    :func:`~paramtree.binding.flatten`. An empty cache is legal.

    Parameters
    ----------
    system : System
        Model instance to walk.
    tree_type : type[Params] or Params
        Parameter tree type (a tree value is accepted; its type is used).
    parent : System, optional
        Root system the setters resolve against. Defaults to *system*.
    strict : bool
        Raise :class:`SchemaMismatchError` for tree fields the system lacks.

    Returns
    -------
    SetterCache
    """
    layout = ParameterLayout(system if parent is None else parent)
    entries = []
    _collect(system, tree_type, layout, strict, entries)
    logger.debug("built setter cache for '%s' with %d setters", system.name, len(entries))
    return SetterCache(entries, layout)


def _collect(system, tree_type, layout, strict, entries):
    for fld in param_fields(tree_type):
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
            _collect(member, fld.type, layout, strict, entries)
        else:
            if not isinstance(member, Parameter):
                raise SchemaMismatchError(
                    fld.name, system.namespace, "tree field is a scalar but model member is a system"
                )
            setter = make_setter(layout, member.path)
            logger.debug("cached setter for '%s'", member.path)
            entries.append(CacheEntry(member.path, setter))
