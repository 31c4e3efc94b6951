#########################################################################################
##
##                        paramtree Example: RC Circuit Sweep
##
##  Builds a small RC circuit model, generates its parameter tree type, and
##  drives a numeric problem through a resistance sweep using a setter cache.
##
##  The time constant of the circuit is
##
##      tau = R * C
##
##  and is recomputed from the live problem after every update.
##
#########################################################################################

# IMPORTS ===============================================================================

import logging
import tempfile

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from paramtree import (
    Parameter, Params, System, component,
    build_problem, build_cache, update, remake,
    generate_schema, save_parameters, load_parameters,
)


# MODEL DEFINITION ======================================================================

@component
def Resistor(*, name, R=1.0):
    return System(name, [Parameter("R", float, R, "resistance [Ohm]")])


@component
def Capacitor(*, name, C=1.0):
    return System(name, [Parameter("C", float, C, "capacitance [F]")])


@component
def VoltageSource(*, name):
    return System(name, [Parameter("V", float, 1.0, "source voltage [V]")])


@component
def RCModel(*, name):
    return System(
        name,
        systems=[
            Resistor(name="resistor"),
            Capacitor(name="capacitor", C=0.1),
            VoltageSource(name="source"),
        ],
    )


# PARAMETER TREES =======================================================================
#
# These are what 'generate_schema' prints for the components above, pasted in.

@dataclass(kw_only=True)
class ResistorParams(Params):
    # parameters
    R: float = 1.0


@dataclass(kw_only=True)
class CapacitorParams(Params):
    # parameters
    C: float = 0.1


@dataclass(kw_only=True)
class VoltageSourceParams(Params):
    # parameters
    V: float = 1.0


@dataclass(kw_only=True)
class RCModelParams(Params):
    # systems
    resistor: ResistorParams = field(default_factory=ResistorParams)
    capacitor: CapacitorParams = field(default_factory=CapacitorParams)
    source: VoltageSourceParams = field(default_factory=VoltageSourceParams)


def time_constant(prob):
    return prob.ps["resistor.R"] * prob.ps["capacitor.C"]


# RUN ===================================================================================

if __name__ == '__main__':

    logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    # schema text for the top-level model
    generate_schema(RCModel)

    rc_model = RCModel(name="rc_model")
    rc_params = RCModelParams()

    prob = build_problem(rc_model, (rc_model, rc_params), tspan=(0.0, 10.0))
    print(prob)

    # build the setter cache once, reuse for the whole sweep
    setters = build_cache(rc_model, RCModelParams)

    for R in np.linspace(0.5, 2.0, 4):
        rc_params.resistor.R = float(R)
        update(prob, setters, (rc_model, rc_params))
        print(f"R = {R:.2f} Ohm  ->  tau = {time_constant(prob):.3f} s")

    # independent copy with a different capacitance
    rc_params.capacitor.C = 0.47
    prob_new = remake(prob, setters, (rc_model, rc_params))
    print(f"original tau = {time_constant(prob):.3f} s, remade tau = {time_constant(prob_new):.3f} s")

    # parameter sets round-trip through TOML files
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "rc_params.toml"
        save_parameters(rc_params, path)
        print(path.read_text())

        loaded = load_parameters(path, RCModelParams)
        assert loaded == rc_params
