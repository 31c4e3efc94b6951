########################################################################################
##
##                                  TESTS FOR
##                                 'errors.py'
##
########################################################################################

# IMPORTS ==============================================================================

import pytest

from paramtree.errors import (
    LiteralParseError,
    MissingChildSchemaWarning,
    MissingValueError,
    ParamTreeError,
    SchemaMismatchError,
    StaleInstanceShapeError,
    UnresolvedSlotError,
)


# TESTS ================================================================================

class TestErrors:

    def test_hierarchy(self):
        for cls in [
            SchemaMismatchError,
            LiteralParseError,
            UnresolvedSlotError,
            StaleInstanceShapeError,
            MissingValueError,
        ]:
            assert issubclass(cls, ParamTreeError)
        assert issubclass(LiteralParseError, ValueError)
        assert issubclass(MissingChildSchemaWarning, UserWarning)

    def test_schema_mismatch_context(self):
        err = SchemaMismatchError("L", "stage1.resistor")
        assert err.field == "L"
        assert err.path == "stage1.resistor"
        assert "'stage1.resistor.L'" in str(err)

        root = SchemaMismatchError("gain", reason="bad")
        assert str(root) == "'gain': bad"

    def test_slot_errors(self):
        assert UnresolvedSlotError("resistor.R").slot == "resistor.R"
        assert "resistor.R" in str(UnresolvedSlotError("resistor.R"))
        assert str(UnresolvedSlotError("x", "custom")) == "custom"
        assert MissingValueError("probe.channels").slot == "probe.channels"

    def test_raise(self):
        with pytest.raises(ParamTreeError):
            raise StaleInstanceShapeError("stale")
