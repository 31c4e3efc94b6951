########################################################################################
##
##                     END-TO-END TESTS ON AN RC CIRCUIT MODEL
##
##      Parameter tree with defaults -> problem -> slow remake, fast in-place
##      update and fast copy update through a setter cache.
##
########################################################################################

# IMPORTS ==============================================================================

import pytest

from paramtree import (
    build_cache,
    build_problem,
    deserialize,
    generate_schema,
    remake,
    serialize,
    update,
)

from tests.paramtree._circuits import RCModel, RCModelParams


# TESTS ================================================================================

class TestRCCircuit:

    @pytest.fixture
    def setup(self):
        rc_model = RCModel(name="rc_model")
        rc_model_params = RCModelParams()
        prob = build_problem(rc_model, (rc_model, rc_model_params), tspan=(0.0, 10.0))
        return rc_model, rc_model_params, prob

    def test_slow_remake(self, setup):
        rc_model, rc_model_params, prob = setup

        rc_model_params.resistor.R = 1.5
        prob_new = remake(prob, None, (rc_model, rc_model_params))
        assert prob_new.ps[rc_model.resistor.R] == 1.5
        assert prob.ps[rc_model.resistor.R] == 1.0

    def test_fast_update_then_remake(self, setup):
        rc_model, rc_model_params, prob = setup
        setters = build_cache(rc_model, RCModelParams)

        # mutate prob in place
        rc_model_params.resistor.R = 2.0
        update(prob, setters, (rc_model, rc_model_params))
        assert prob.ps[rc_model.resistor.R] == 2.0

        # copy prob
        rc_model_params.resistor.R = 3.0
        prob_new = remake(prob, setters, (rc_model, rc_model_params))
        assert prob.ps[rc_model.resistor.R] == 2.0
        assert prob_new.ps[rc_model.resistor.R] == 3.0

    def test_cache_reused_many_times(self, setup):
        rc_model, rc_model_params, prob = setup
        setters = build_cache(rc_model, RCModelParams)
        for r in [0.1, 0.2, 0.3, 0.4]:
            rc_model_params.resistor.R = r
            update(prob, setters, (rc_model, rc_model_params))
            assert prob.ps["resistor.R"] == r
        assert prob.ps["capacitor.C"] == 0.1

    def test_saved_parameters_drive_update(self, setup):
        rc_model, rc_model_params, prob = setup
        setters = build_cache(rc_model, RCModelParams)

        rc_model_params.capacitor.C = 0.47
        loaded = deserialize(serialize(rc_model_params), RCModelParams)
        update(prob, setters, (rc_model, loaded))
        assert prob.ps["capacitor.C"] == 0.47

    def test_schema_matches_hand_written_tree(self):
        with pytest.warns(UserWarning):
            text = generate_schema(RCModel, emit=None)
        assert "class RCModelParams(Params):" in text
        for name in ["resistor", "capacitor", "source"]:
            assert f"    {name}: " in text
