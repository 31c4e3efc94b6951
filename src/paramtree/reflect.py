#########################################################################################
##
##                                SCHEMA REFLECTOR
##                                  (reflect.py)
##
##         Emits the source text of a parameter tree type that mirrors a
##         component's declared parameters and child components. Used once per
##         model-authoring iteration, never at simulation time.
##
#########################################################################################

# IMPORTS ===============================================================================

import math
import sys
import warnings

import numpy as np

from .errors import MissingChildSchemaWarning
from .params import is_params_type
from .system import System


__all__ = [
    "generate_schema",
    "schema_name",
]


# HELPERS ===============================================================================

def schema_name(component_type):
    """Name of the parameter tree type for a component type: ``<type>Params``."""
    return f"{component_type}Params"


def _instantiate(model):
    if isinstance(model, System):
        return model
    if callable(model):
        system = model(name="temp")
        if not isinstance(system, System):
            raise TypeError(
                f"model constructor must return a System, got {type(system).__name__}"
            )
        return system
    raise TypeError(f"expected a component constructor or System, got {type(model).__name__}")


def _resolve_namespace(model, system, namespace):
    if namespace is None:
        if isinstance(model, System):
            module_name = system.module
        else:
            module_name = getattr(model, "__module__", None)
        module = sys.modules.get(module_name) if module_name else None
        return vars(module) if module is not None else {}
    if isinstance(namespace, dict):
        return namespace
    return vars(namespace)


def _format_default(value):
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and not math.isfinite(value):
        # bare inf/nan are not valid source
        return f"float('{value!r}')"
    return repr(value)


def _type_name(dtype):
    return getattr(dtype, "__name__", repr(dtype))


# GENERATOR =============================================================================

def generate_schema(model, globals=None, *, namespace=None, emit=print):
    """Generate the source of a parameter tree type matching *model*.

    Scalar fields are the model's declared parameters (followed by the
    parameters of *globals*, if given), with the declared default where one
    exists and a bare annotation otherwise. Child fields are added for every
    child component whose ``<ChildType>Params`` type already exists in
    *namespace*; children without one are skipped with a
    :class:`MissingChildSchemaWarning`, so schemas can be built bottom-up.

    Parameters
    ----------
    model : callable or System
        Component constructor (called with ``name='temp'``) or built system.
    globals : callable or System, optional
        Component whose parameters are appended at the root.
    namespace : module or dict, optional
        Where existing parameter tree types are looked up. Defaults to the
        module the model constructor is defined in.
    emit : callable, optional
        Receives the generated text; defaults to ``print``. Pass ``None`` to
        only return it.

    Returns
    -------
    str
        Source text of the generated class; it is not executed or registered.

    Example
    -------
    .. code-block:: python

        >>> generate_schema(Resistor)
        @dataclass(kw_only=True)
        class ResistorParams(Params):
            # parameters
            R: float = 1.0
    """
    system = _instantiate(model)
    scope = _resolve_namespace(model, system, namespace)

    pars = list(system.parameters)
    if globals is not None:
        pars.extend(_instantiate(globals).parameters)

    lines = []
    if pars:
        lines.append("# parameters")
    for par in pars:
        if par.has_default:
            lines.append(f"{par.name}: {_type_name(par.dtype)} = {_format_default(par.default)}")
        else:
            lines.append(f"{par.name}: {_type_name(par.dtype)}")

    children = []
    for sub in system.systems:
        child_type = schema_name(sub.component_type)
        if not is_params_type(scope.get(child_type)):
            warnings.warn(
                f"No parameter tree type '{child_type}' found for child "
                f"'{sub.name}' of '{system.component_type}'; field skipped. "
                f"Generate and define '{child_type}' first.",
                MissingChildSchemaWarning,
                stacklevel=2,
            )
            continue
        children.append(f"{sub.name}: {child_type} = field(default_factory={child_type})")

    if children:
        lines.append("# systems")
        lines.extend(children)

    body = "\n".join(f"    {line}" for line in lines) if lines else "    pass"
    text = (
        "@dataclass(kw_only=True)\n"
        f"class {schema_name(system.component_type)}(Params):\n"
        f"{body}\n"
    )

    if emit is not None:
        emit(text)
    return text
