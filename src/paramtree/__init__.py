import logging

from importlib import metadata

try:
    __version__ = metadata.version("paramtree")
except Exception:
    __version__ = "unknown"

from .errors import (
    ParamTreeError,
    SchemaMismatchError,
    MissingChildSchemaWarning,
    LiteralParseError,
    UnresolvedSlotError,
    StaleInstanceShapeError,
    MissingValueError,
)
from .system import Parameter, System, component, declared_parameters, declared_children
from .params import Params, ScalarKind, FieldKind, ParamField, param_fields, walk_fields
from .binding import Binding, flatten, binding_map, as_lookup
from .problem import Problem, Setter, resolve_slot, make_setter, clone, build_problem
from .cache import SetterCache, CacheEntry, build_cache
from .update import update, remake, rebuild
from .reflect import generate_schema
from .serialize import (
    serialize,
    deserialize,
    to_dict,
    from_dict,
    parse_literal,
    save_parameters,
    load_parameters,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())
