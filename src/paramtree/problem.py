#########################################################################################
##
##                           NUMERIC INSTANCE COLLABORATOR
##                                   (problem.py)
##
##         Flat parameter layout of a root system, the ``Problem`` instance
##         holding slot values, and the slot setters that write into it.
##
#########################################################################################

# IMPORTS ===============================================================================

import copy
import logging

from typing import NamedTuple

import numpy as np

from .binding import as_lookup, slot_key
from .errors import MissingValueError, StaleInstanceShapeError, UnresolvedSlotError
from .system import System


__all__ = [
    "SlotRef",
    "ParameterLayout",
    "Problem",
    "Setter",
    "resolve_slot",
    "make_setter",
    "clone",
    "build_problem",
]


logger = logging.getLogger(__name__)

# dtypes float64 represents exactly; integers and everything else go to the object list
_NUMERIC_DTYPES = (float, bool, np.floating, np.bool_)


# LAYOUT ================================================================================

class SlotRef(NamedTuple):
    """Location of one parameter slot inside a :class:`Problem`."""

    slot: str
    numeric: bool
    index: int
    dtype: type


class ParameterLayout:
    """Flat slot layout of a root system.

    ``float`` and ``bool`` parameters are stored in one ``float64`` buffer,
    all other parameters in an object list. Integers go to the object list so
    values beyond 2**53 keep full precision. Slots are numbered in the
    depth-first order of :meth:`System.flat_parameters`.

    Parameters
    ----------
    system : System
        Root system whose parameters are laid out.

    Attributes
    ----------
    slots : tuple[str]
        Dotted slot paths in layout order.
    signature : int
        Hash of the structural shape; two layouts with equal signatures
        address the same slots at the same positions.
    """

    def __init__(self, system):
        refs = {}
        n_numeric = n_other = 0
        for par in system.flat_parameters():
            numeric = isinstance(par.dtype, type) and issubclass(par.dtype, _NUMERIC_DTYPES)
            if numeric:
                refs[par.path] = SlotRef(par.path, True, n_numeric, par.dtype)
                n_numeric += 1
            else:
                refs[par.path] = SlotRef(par.path, False, n_other, par.dtype)
                n_other += 1

        self._refs = refs
        self.slots = tuple(refs)
        self.n_numeric = n_numeric
        self.n_other = n_other
        self.shape = tuple((r.slot, r.numeric, r.index, r.dtype.__name__) for r in refs.values())
        self.signature = hash(self.shape)


    def __contains__(self, slot):
        return slot in self._refs


    def __len__(self):
        return len(self._refs)


    def __eq__(self, other):
        if not isinstance(other, ParameterLayout):
            return NotImplemented
        return self.shape == other.shape


    __hash__ = None


    def ref(self, slot):
        """Return the :class:`SlotRef` of *slot* or raise :class:`UnresolvedSlotError`."""
        try:
            return self._refs[slot]
        except KeyError:
            raise UnresolvedSlotError(slot) from None


# PROBLEM ===============================================================================

class _ParameterView:
    """Slot-indexed read/write view of a problem's parameter values."""

    def __init__(self, problem):
        self._problem = problem


    def __getitem__(self, slot):
        return self._problem.get(slot_key(slot))


    def __setitem__(self, slot, value):
        self._problem.set(slot_key(slot), value)


    def __iter__(self):
        return iter(self._problem.layout.slots)


    def __len__(self):
        return len(self._problem.layout)


    def to_dict(self):
        return {slot: self._problem.get(slot) for slot in self._problem.layout.slots}


class Problem:
    """Numeric instance built from a compiled system and an initial binding.

    Parameters
    ----------
    system : System
        Root system the problem was built from.
    numeric : numpy.ndarray
        ``float64`` buffer of numeric slot values, in layout order.
    other : list
        Values of non-numeric slots, in layout order.
    tspan : tuple[float, float], optional
        Time span carried along for the downstream solver.
    layout : ParameterLayout, optional
        Precomputed layout of *system*.

    Notes
    -----
    Concurrent updates of the same problem must be serialized by the caller.
    """

    def __init__(self, system, numeric, other, tspan=None, layout=None):
        self.system = system
        self.layout = layout if layout is not None else ParameterLayout(system)
        self.numeric = np.asarray(numeric, dtype=np.float64)
        self.other = list(other)
        self.tspan = tspan

        if self.numeric.shape != (self.layout.n_numeric,) or len(self.other) != self.layout.n_other:
            raise ValueError(
                f"Problem buffers do not match layout: got {self.numeric.shape[0]} numeric "
                f"and {len(self.other)} other values, expected {self.layout.n_numeric} "
                f"and {self.layout.n_other}"
            )


    @property
    def ps(self):
        """Read/write access by slot: ``problem.ps['resistor.R']``."""
        return _ParameterView(self)


    def get(self, slot):
        ref = self.layout.ref(slot)
        if ref.numeric:
            return ref.dtype(self.numeric[ref.index])
        return self.other[ref.index]


    def set(self, slot, value):
        _write(self, self.layout.ref(slot), value)


    def copy(self):
        """Independent copy sharing the (immutable) system and layout."""
        return clone(self)


    def __repr__(self):
        return (
            f"Problem(system={self.system.name!r}, "
            f"slots={len(self.layout)}, tspan={self.tspan})"
        )


def _write(problem, ref, value):
    if ref.numeric:
        problem.numeric[ref.index] = value
    else:
        problem.other[ref.index] = value


# SETTER ================================================================================

class Setter:
    """Compiled write handle for one slot of problems with a given layout.

    Calling ``setter(problem, value)`` writes *value* into the slot. The setter
    stays valid for every problem whose layout signature matches the one it
    was created for.
    """

    __slots__ = ("slot", "ref", "signature")

    def __init__(self, slot, ref, signature):
        self.slot = slot
        self.ref = ref
        self.signature = signature


    def __call__(self, problem, value):
        if problem.layout.signature != self.signature:
            raise StaleInstanceShapeError(
                f"setter for '{self.slot}' was built for a different parameter layout"
            )
        _write(problem, self.ref, value)


    def __repr__(self):
        return f"Setter({self.slot!r})"


# COLLABORATOR INTERFACE ================================================================

def _layout_of(root):
    if isinstance(root, Problem):
        return root.layout
    if isinstance(root, ParameterLayout):
        return root
    if isinstance(root, System):
        return ParameterLayout(root)
    raise TypeError(
        f"expected a System, Problem or ParameterLayout, got {type(root).__name__}"
    )


def resolve_slot(root, path):
    """Resolve a dotted path (or :class:`Parameter`) to its :class:`SlotRef` on *root*."""
    return _layout_of(root).ref(slot_key(path))


def make_setter(root, slot):
    """Create a :class:`Setter` writing *slot* on problems laid out like *root*."""
    layout = _layout_of(root)
    ref = slot if isinstance(slot, SlotRef) else layout.ref(slot_key(slot))
    return Setter(ref.slot, ref, layout.signature)


def clone(problem):
    """Deep-copy *problem*; the system and layout are shared, buffers are not."""
    memo = {
        id(problem.system): problem.system,
        id(problem.layout): problem.layout,
        }
    return copy.deepcopy(problem, memo)


def build_problem(system, bindings=(), *, tspan=None):
    """Build a new :class:`Problem` from declared defaults overlaid with *bindings*.

    Parameters
    ----------
    system : System
        Root system.
    bindings : object
        Anything accepted by :func:`~paramtree.binding.as_lookup`.
    tspan : tuple[float, float], optional
        Time span stored on the problem.

    Raises
    ------
    UnresolvedSlotError
        A binding names a slot the system does not have.
    MissingValueError
        A parameter has neither a default nor a binding.
    """
    layout = ParameterLayout(system)
    lookup = as_lookup(bindings)

    for slot in lookup:
        if slot not in layout:
            raise UnresolvedSlotError(slot, f"binding for unknown slot '{slot}'")

    numeric = np.empty(layout.n_numeric, dtype=np.float64)
    other = [None] * layout.n_other
    for par in system.flat_parameters():
        if par.path in lookup:
            value = lookup[par.path]
        elif par.has_default:
            value = par.default
        else:
            raise MissingValueError(par.path)
        ref = layout.ref(par.path)
        if ref.numeric:
            numeric[ref.index] = value
        else:
            other[ref.index] = value

    logger.debug(
        "built problem for '%s': %d slots, %d bound", system.name, len(layout), len(lookup)
    )
    return Problem(system, numeric, other, tspan=tspan, layout=layout)
