########################################################################################
##
##                                  TESTS FOR
##                                 'problem.py'
##
########################################################################################

# IMPORTS ==============================================================================

import numpy as np
import pytest

from paramtree.errors import MissingValueError, StaleInstanceShapeError, UnresolvedSlotError
from paramtree.problem import (
    ParameterLayout,
    Problem,
    build_problem,
    clone,
    make_setter,
    resolve_slot,
)
from paramtree.system import System

from tests.paramtree._circuits import FilterBank, Probe, RCModel, RCModelParams


# FIXTURES =============================================================================

@pytest.fixture
def rc():
    return RCModel(name="rc_model")


@pytest.fixture
def prob(rc):
    return build_problem(rc, (rc, RCModelParams()), tspan=(0.0, 10.0))


# TESTS ================================================================================

class TestParameterLayout:

    def test_slots(self, rc):
        layout = ParameterLayout(rc)
        assert layout.slots == ("resistor.R", "capacitor.C", "source.V", "source.enabled")
        assert layout.n_numeric == 4
        assert layout.n_other == 0
        assert "resistor.R" in layout
        assert len(layout) == 4

    def test_non_numeric(self):
        layout = ParameterLayout(Probe(name="p"))
        assert layout.ref("label").numeric is False
        assert layout.ref("channels").numeric is False
        assert layout.n_numeric == 0
        assert layout.n_other == 2

    def test_signature(self, rc):
        assert ParameterLayout(rc).signature == ParameterLayout(RCModel(name="other")).signature
        assert ParameterLayout(rc) == ParameterLayout(RCModel(name="other"))
        assert ParameterLayout(rc).signature != ParameterLayout(FilterBank(name="b")).signature

    def test_unresolved(self, rc):
        with pytest.raises(UnresolvedSlotError) as exc:
            ParameterLayout(rc).ref("inductor.L")
        assert exc.value.slot == "inductor.L"


class TestBuildProblem:

    def test_defaults(self, rc):
        prob = build_problem(rc)
        assert prob.ps["resistor.R"] == 1.0
        assert prob.ps["capacitor.C"] == 0.1
        assert prob.ps["source.enabled"] is True
        assert prob.numeric.dtype == np.float64

    def test_bindings(self, rc):
        p = RCModelParams()
        p.resistor.R = 1.5
        prob = build_problem(rc, (rc, p))
        assert prob.ps[rc.resistor.R] == 1.5

    def test_unknown_slot(self, rc):
        with pytest.raises(UnresolvedSlotError):
            build_problem(rc, {"inductor.L": 1.0})

    def test_missing_value(self):
        probe = Probe(name="p")
        with pytest.raises(MissingValueError):
            build_problem(probe)
        prob = build_problem(probe, {"channels": 3})
        assert prob.ps["channels"] == 3
        assert prob.ps["label"] == "probe"

    def test_large_int_exact(self):
        big = 2**53 + 1
        prob = build_problem(Probe(name="p"), {"channels": big})
        assert prob.ps["channels"] == big
        assert type(prob.ps["channels"]) is int

        prob.ps["channels"] = 2**63 + 7
        assert clone(prob).ps["channels"] == 2**63 + 7

    def test_tspan(self, prob):
        assert prob.tspan == (0.0, 10.0)

    def test_buffer_mismatch(self, rc):
        with pytest.raises(ValueError):
            Problem(rc, np.zeros(2), [])


class TestParameterView:

    def test_set_and_get(self, prob, rc):
        prob.ps[rc.capacitor.C] = 0.3
        assert prob.ps["capacitor.C"] == 0.3

    def test_to_dict(self, prob):
        assert prob.ps.to_dict() == {
            "resistor.R": 1.0,
            "capacitor.C": 0.1,
            "source.V": 1.0,
            "source.enabled": True,
        }
        assert list(prob.ps) == list(prob.layout.slots)
        assert len(prob.ps) == 4


class TestSetter:

    def test_resolve_slot(self, prob, rc):
        ref = resolve_slot(prob, rc.resistor.R)
        assert ref.slot == "resistor.R"
        assert ref.index == 0
        assert resolve_slot(rc, "capacitor.C").index == 1

    def test_write(self, prob):
        setter = make_setter(prob, "resistor.R")
        setter(prob, 7.0)
        assert prob.ps["resistor.R"] == 7.0

    def test_setter_reusable_across_instances(self, rc, prob):
        setter = make_setter(rc, "source.V")
        other = build_problem(RCModel(name="again"))
        setter(prob, 2.0)
        setter(other, 3.0)
        assert prob.ps["source.V"] == 2.0
        assert other.ps["source.V"] == 3.0

    def test_stale_shape(self, prob):
        setter = make_setter(FilterBank(name="b"), "gain")
        with pytest.raises(StaleInstanceShapeError):
            setter(prob, 1.0)

    def test_unknown_slot(self, prob):
        with pytest.raises(UnresolvedSlotError):
            make_setter(prob, "nope")


class TestClone:

    def test_independent(self, prob):
        other = clone(prob)
        other.ps["resistor.R"] = 3.0
        assert prob.ps["resistor.R"] == 1.0
        assert other is not prob
        assert other.numeric is not prob.numeric

    def test_shares_structure(self, prob):
        other = prob.copy()
        assert other.system is prob.system
        assert other.layout is prob.layout
        assert other.tspan == prob.tspan

    def test_other_buffer_copied(self):
        prob = build_problem(Probe(name="p"), {"channels": 1})
        other = clone(prob)
        other.ps["label"] = "scope"
        assert prob.ps["label"] == "probe"

    def test_empty_system(self):
        prob = build_problem(System("empty"))
        assert len(clone(prob).ps) == 0
