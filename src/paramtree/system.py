#########################################################################################
##
##                           MODEL DEFINITION COLLABORATOR
##                                   (system.py)
##
##         Declared scalar parameters, hierarchical systems built from named
##         child components, and the ``component`` decorator that records a
##         component's structural identity.
##
#########################################################################################

# IMPORTS ===============================================================================

import copy
import functools

from collections import OrderedDict
from dataclasses import MISSING


__all__ = [
    "MISSING",
    "Parameter",
    "System",
    "component",
    "declared_parameters",
    "declared_children",
]


# HELPERS ===============================================================================

def _rebase_path(path, old, new):
    """Replace the leading namespace *old* of a dotted *path* with *new*."""
    if old:
        path = "" if path == old else path[len(old) + 1:]
    return f"{new}.{path}" if path else new


# PARAMETER DECLARATION =================================================================

class Parameter:
    """Declared scalar parameter of a component.

    Parameters
    ----------
    name : str
        Parameter name, unique within its component.
    dtype : type
        Value type of the parameter (``float``, ``int``, ``bool`` or ``str``
        for the common cases).
    default : object, optional
        Declared default value. Omit for a parameter without default.
    description : str, optional
        Human-readable description.

    Attributes
    ----------
    path : str
        Fully-qualified dotted path relative to the root system, e.g.
        ``'resistor.R'``. Equals ``name`` until the owning system is nested.
    """

    def __init__(self, name, dtype=float, default=MISSING, description=""):
        if not isinstance(name, str) or not name.isidentifier():
            raise ValueError(f"Parameter name must be an identifier, got {name!r}")
        self.name = name
        self.dtype = dtype
        self.default = default
        self.description = description
        self.path = name


    @property
    def has_default(self):
        """``True`` if a default value was declared."""
        return self.default is not MISSING


    def _rebased(self, old, new):
        par = copy.copy(self)
        par.path = _rebase_path(self.path, old, new)
        return par


    def __eq__(self, other):
        if not isinstance(other, Parameter):
            return NotImplemented
        return (self.path, self.dtype) == (other.path, other.dtype)


    def __hash__(self):
        return hash(self.path)


    def __repr__(self):
        default = "" if not self.has_default else f", default={self.default!r}"
        return f"Parameter({self.path!r}, dtype={self.dtype.__name__}{default})"


# SYSTEM ================================================================================

class System:
    """Named node of a model hierarchy.

    A system owns an ordered set of declared :class:`Parameter` objects and an
    ordered mapping of named child systems. Children passed in are re-namespaced
    under their own name, so every parameter path is relative to the system
    acting as root.

    Parameters
    ----------
    name : str
        Instance name; this is the name the parent refers to the system by.
    parameters : list[Parameter], optional
        Declared scalar parameters, in declaration order.
    systems : list[System], optional
        Child systems, in declaration order.
    component_type : str, optional
        Structural identity of the system. Defaults to ``name``; set by the
        :func:`component` decorator to the factory name.

    Example
    -------
    .. code-block:: python

        rc = System("rc", systems=[
            System("resistor", [Parameter("R", default=1.0)]),
            ])

        rc.resistor.R.path     # 'resistor.R'
    """

    def __init__(self, name, parameters=(), systems=(), component_type=None):
        self.name = name
        self.component_type = component_type if component_type is not None else name
        self.module = None

        self._namespace = ""
        self._parameters = OrderedDict()
        self._systems = OrderedDict()

        for par in parameters:
            self._check_name(par.name)
            self._parameters[par.name] = copy.copy(par)

        for sub in systems:
            self._check_name(sub.name)
            self._systems[sub.name] = sub._rebased(sub._namespace, sub.name)


    def _check_name(self, name):
        if name in self._parameters or name in self._systems:
            raise ValueError(f"System '{self.name}' already declares a member '{name}'")


    def _rebased(self, old, new):
        """Return a copy with the *old* namespace prefix of every path replaced by *new*."""
        sys_ = copy.copy(self)
        sys_._namespace = _rebase_path(self._namespace, old, new)
        sys_._parameters = OrderedDict(
            (n, p._rebased(old, new)) for n, p in self._parameters.items()
            )
        sys_._systems = OrderedDict(
            (n, s._rebased(old, new)) for n, s in self._systems.items()
            )
        return sys_


    # ACCESS ----------------------------------------------------------------------------

    @property
    def namespace(self):
        """Dotted path of this system relative to the root (empty for the root)."""
        return self._namespace


    @property
    def parameters(self):
        """Declared parameters in declaration order."""
        return tuple(self._parameters.values())


    @property
    def systems(self):
        """Child systems in declaration order."""
        return tuple(self._systems.values())


    def get(self, name, default=None):
        """Return the parameter or child system called *name*, or *default*."""
        if name in self._parameters:
            return self._parameters[name]
        return self._systems.get(name, default)


    def __contains__(self, name):
        return name in self._parameters or name in self._systems


    def __getattr__(self, name):
        """Access parameters and child systems as attributes.

        Raises ``AttributeError`` if no member with that name exists.
        """
        if name.startswith("_"):
            raise AttributeError(name)
        member = self.get(name)
        if member is None:
            raise AttributeError(f"System '{self.name}' has no member '{name}'")
        return member


    def flat_parameters(self):
        """Return all parameters reachable from this system in depth-first order.

        Own parameters come first, then each child's parameters in child
        declaration order.

        Returns
        -------
        list[Parameter]
        """
        flat = list(self._parameters.values())
        for sub in self._systems.values():
            flat.extend(sub.flat_parameters())
        return flat


    def defaults(self):
        """Mapping of dotted path to declared default for all reachable parameters."""
        return {p.path: p.default for p in self.flat_parameters() if p.has_default}


    def __repr__(self):
        return (
            f"System(name={self.name!r}, type={self.component_type!r}, "
            f"parameters={list(self._parameters)}, systems={list(self._systems)})"
        )


# COMPONENT DECORATOR ===================================================================

def component(func):
    """Decorator that turns a system factory into a named component constructor.

    The wrapped factory must accept a ``name`` keyword and return a
    :class:`System`. The returned system's ``component_type`` is set to the
    factory name, which is what the schema reflector uses to find the matching
    parameter tree type (``<factory name>Params``).

    Example
    -------
    .. code-block:: python

        @component
        def Resistor(*, name):
            return System(name, [Parameter("R", default=1.0)])

        r = Resistor(name="r1")
        r.component_type       # 'Resistor'
    """

    @functools.wraps(func)
    def factory(*args, name=None, **kwargs):
        system = func(*args, name=func.__name__ if name is None else name, **kwargs)
        if not isinstance(system, System):
            raise TypeError(
                f"component '{func.__name__}' must return a System, "
                f"got {type(system).__name__}"
            )
        system.component_type = func.__name__
        system.module = func.__module__
        return system

    factory.component_type = func.__name__
    return factory


# COLLABORATOR INTERFACE ================================================================

def declared_parameters(system):
    """Ordered declared parameters of *system* (not including children)."""
    return system.parameters


def declared_children(system):
    """Ordered mapping from child name to child system."""
    return OrderedDict((sub.name, sub) for sub in system.systems)
