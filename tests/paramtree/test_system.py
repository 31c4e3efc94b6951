########################################################################################
##
##                                  TESTS FOR
##                                 'system.py'
##
########################################################################################

# IMPORTS ==============================================================================

import pytest

from paramtree.system import (
    MISSING,
    Parameter,
    System,
    component,
    declared_children,
    declared_parameters,
)

from tests.paramtree._circuits import FilterBank, RCModel, Resistor


# TESTS ================================================================================

class TestParameter:

    def test_init(self):
        p = Parameter("R", float, 1.0, "resistance")
        assert p.name == "R"
        assert p.path == "R"
        assert p.dtype is float
        assert p.default == 1.0
        assert p.has_default

    def test_no_default(self):
        p = Parameter("C")
        assert p.default is MISSING
        assert not p.has_default

    def test_invalid_name(self):
        for bad in ["", "1x", "a.b", 3]:
            with pytest.raises(ValueError):
                Parameter(bad)


class TestSystem:

    def test_namespacing(self):
        rc = RCModel(name="rc_model")
        assert rc.resistor.R.path == "resistor.R"
        assert rc.capacitor.C.path == "capacitor.C"
        assert rc.resistor.namespace == "resistor"
        assert rc.namespace == ""

    def test_nested_namespacing(self):
        bank = FilterBank(name="bank")
        assert bank.gain.path == "gain"
        assert bank.stage1.resistor.R.path == "stage1.resistor.R"
        assert bank.stage2.capacitor.C.path == "stage2.capacitor.C"
        assert bank.stage2.resistor.namespace == "stage2.resistor"

    def test_child_not_mutated_by_nesting(self):
        r = Resistor(name="resistor")
        System("outer", systems=[r])
        assert r.R.path == "R"

    def test_renesting_nested_child(self):
        bank = FilterBank(name="bank")
        outer = System("outer", systems=[bank.stage1, RCModel(name="rc")])
        assert outer.stage1.resistor.R.path == "stage1.resistor.R"
        assert outer.stage1.namespace == "stage1"
        assert outer.rc.capacitor.C.path == "rc.capacitor.C"

    def test_get_and_contains(self):
        rc = RCModel(name="rc_model")
        assert "resistor" in rc
        assert "missing" not in rc
        assert rc.get("missing") is None
        assert isinstance(rc.get("resistor"), System)
        assert isinstance(rc.resistor.get("R"), Parameter)

    def test_attribute_error(self):
        rc = RCModel(name="rc_model")
        with pytest.raises(AttributeError):
            rc.inductor

    def test_duplicate_members(self):
        with pytest.raises(ValueError):
            System("s", [Parameter("x"), Parameter("x")])
        with pytest.raises(ValueError):
            System("s", [Parameter("r")], systems=[Resistor(name="r")])

    def test_flat_parameters_order(self):
        bank = FilterBank(name="bank")
        paths = [p.path for p in bank.flat_parameters()]
        assert paths[0] == "gain"
        assert paths[1:5] == [
            "stage1.resistor.R",
            "stage1.capacitor.C",
            "stage1.source.V",
            "stage1.source.enabled",
        ]
        assert len(paths) == 9

    def test_defaults(self):
        rc = RCModel(name="rc_model")
        assert rc.defaults() == {
            "resistor.R": 1.0,
            "capacitor.C": 0.1,
            "source.V": 1.0,
            "source.enabled": True,
        }


class TestComponent:

    def test_component_type(self):
        r = Resistor(name="r1")
        assert r.name == "r1"
        assert r.component_type == "Resistor"
        assert Resistor.component_type == "Resistor"

    def test_identity_independent_of_name(self):
        rc = RCModel(name="rc_model")
        assert rc.resistor.component_type == "Resistor"
        assert Resistor(name="a").component_type == Resistor(name="b").component_type

    def test_default_name(self):
        assert Resistor().name == "Resistor"

    def test_factory_kwargs(self):
        r = Resistor(name="r", R=5.0)
        assert r.R.default == 5.0

    def test_must_return_system(self):

        @component
        def Broken(*, name):
            return 42

        with pytest.raises(TypeError):
            Broken(name="b")


class TestCollaboratorInterface:

    def test_declared_parameters(self):
        r = Resistor(name="r")
        assert [p.name for p in declared_parameters(r)] == ["R"]

    def test_declared_children(self):
        rc = RCModel(name="rc_model")
        children = declared_children(rc)
        assert list(children) == ["resistor", "capacitor", "source", "ground"]
        assert children["ground"].component_type == "Ground"
