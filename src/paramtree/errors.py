#########################################################################################
##
##                              ERRORS AND WARNINGS
##                                  (errors.py)
##
##         Exception hierarchy shared by the reflector, the binding layer, the
##         setter cache, the update engine and the serialization codec.
##
#########################################################################################

# BASE ==================================================================================

class ParamTreeError(Exception):
    """Base class for all errors raised by ``paramtree``."""


# SCHEMA ERRORS =========================================================================

class SchemaMismatchError(ParamTreeError):
    """A parameter tree references a field the model (or document) does not match.

    Parameters
    ----------
    field : str
        Name of the offending field or key.
    path : str, optional
        Dotted path of the tree node the field was found on (empty for the root).
    reason : str, optional
        Human-readable explanation appended to the message.
    """

    def __init__(self, field, path="", reason="no matching field"):
        self.field = field
        self.path = path
        self.reason = reason
        where = f"'{path}.{field}'" if path else f"'{field}'"
        super().__init__(f"{where}: {reason}")


class MissingChildSchemaWarning(UserWarning):
    """The reflector found no parameter tree type for a declared child component."""


class LiteralParseError(ParamTreeError, ValueError):
    """Text could not be parsed by the restricted literal grammar."""


# INSTANCE ERRORS =======================================================================

class UnresolvedSlotError(ParamTreeError):
    """A slot identity does not exist on the numeric instance it is applied to.

    Usually means a setter cache is stale after a structural model change;
    rebuild the cache.
    """

    def __init__(self, slot, message=None):
        self.slot = slot
        super().__init__(message or f"slot '{slot}' does not exist on this instance")


class StaleInstanceShapeError(ParamTreeError):
    """A setter cache was built against a structurally different instance."""


class MissingValueError(ParamTreeError):
    """A parameter has neither a declared default nor a binding."""

    def __init__(self, slot):
        self.slot = slot
        super().__init__(f"no default and no binding for parameter '{slot}'")
