import math

import pytest

from physiosim.simulation.context import DebugToggles, DynamicsContext
from physiosim.simulation.derivatives import compute_derivatives, molar_concentration, occupancy, signal_targets
from physiosim.simulation.interventions import CAFFEINE, get_intervention
from physiosim.simulation.pharmacology import (
    ActiveIntervention,
    Molecule,
    PDEffect,
    PharmacologyDef,
    PKSpec,
    RateEffect,
)
from physiosim.simulation.pkpd import build_compartments, central_key, gut_key
from physiosim.simulation.state import create_initial_state


def _context(**toggles) -> DynamicsContext:
    return DynamicsContext(minute_of_day=600.0, circadian_minute=600.0, asleep=False, debug=DebugToggles(**toggles))


def _coffee():
    instance = ActiveIntervention(
        id="coffee", key="caffeine", start=0.0, duration=5.0, intensity=1.0, pharmacology=CAFFEINE, dose=100.0
    )
    return instance, build_compartments([instance])


def test_derivatives_cover_every_section():
    state = create_initial_state()
    rates = compute_derivatives(state, _context(), {})
    assert set(rates.signals) == set(state.signals)
    assert set(rates.auxiliary) == set(state.auxiliary)
    assert set(rates.receptors) == {key for key in state.receptors if key.endswith("_density")}
    assert all(math.isfinite(value) for value in rates.signals.values())


def test_inputs_are_not_mutated():
    state = create_initial_state()
    before = state.copy()
    compute_derivatives(state, _context(), {})
    assert state == before


def test_non_finite_rates_become_zero():
    state = create_initial_state()
    state.signals["dopamine"] = float("nan")
    rates = compute_derivatives(state, _context(), {})
    assert rates.signals["dopamine"] == 0.0
    assert all(math.isfinite(value) for value in rates.signals.values())


def test_caffeine_disinhibits_dopamine():
    instance, compartments = _coffee()
    state = create_initial_state()
    baseline = compute_derivatives(state, _context(), compartments)
    state.pk[central_key("coffee")] = 2.0
    dosed = compute_derivatives(state, _context(), compartments)
    assert dosed.signals["dopamine"] > baseline.signals["dopamine"]
    # A2a is occupied, so its density is pushed down
    assert dosed.receptors["Adenosine_A2a_density"] < baseline.receptors["Adenosine_A2a_density"]


def test_dosing_window_feeds_the_gut():
    instance, compartments = _coffee()
    rates = compute_derivatives(create_initial_state(), _context(), compartments, [instance])
    assert rates.pk[gut_key("coffee")] > 0.0
    silent = compute_derivatives(create_initial_state(), _context(), compartments, [])
    assert silent.pk[gut_key("coffee")] == 0.0


def test_debug_toggles_isolate_subsystems():
    instance, compartments = _coffee()
    state = create_initial_state()
    state.pk[central_key("coffee")] = 2.0
    rates = compute_derivatives(
        state,
        _context(enable_homeostasis=False, enable_receptors=False, enable_interventions=False),
        compartments,
        [instance],
    )
    assert rates.auxiliary == {}
    assert rates.receptors == {}
    assert rates.pk == {}
    reference = compute_derivatives(
        state, _context(enable_homeostasis=False, enable_receptors=False), compartments, [instance]
    )
    assert reference.signals["dopamine"] > rates.signals["dopamine"]


def test_molar_conversion():
    effect = PDEffect("Adenosine_A2a", "antagonist", ki=45000.0, unit="nM")
    assert molar_concentration(1.0, effect, 194.19) == pytest.approx(1e6 / 194.19)
    assert molar_concentration(1.0, PDEffect("x", unit="uM"), 100.0) == pytest.approx(10.0)
    assert molar_concentration(1.0, effect, None) == 1.0


def test_signal_targets_include_direct_signals():
    assert ("dopamine", 1) in signal_targets("dopamine")
    assert ("dopamine", -1) in signal_targets("A2A")
    assert signal_targets("no-such-target") == ()


def test_rate_effects_force_signals_while_dosing():
    agent = PharmacologyDef(
        molecule=Molecule("stressor"),
        pk=PKSpec(model="activity-dependent"),
        rates=(RateEffect("cortisol", 1.5),),
    )
    instance = ActiveIntervention(
        id="stress", key="custom", start=0.0, duration=30.0, intensity=0.5, pharmacology=agent
    )
    compartments = build_compartments([instance])
    state = create_initial_state()
    idle = compute_derivatives(state, _context(), compartments, [])
    active = compute_derivatives(state, _context(), compartments, [instance])
    assert active.signals["cortisol"] - idle.signals["cortisol"] == pytest.approx(0.75)


def _dosed(agent: PharmacologyDef, item_id: str, concentration: float):
    instance = ActiveIntervention(
        id=item_id, key="custom", start=0.0, duration=5.0, intensity=1.0, pharmacology=agent, dose=10.0
    )
    compartments = build_compartments([instance])
    state = create_initial_state()
    state.pk[central_key(item_id)] = concentration
    return state, compartments


def test_antagonist_brake_scales_with_the_signal():
    blocker = PharmacologyDef(
        molecule=Molecule("blocker"),
        pk=PKSpec(half_life_min=120.0),
        pd=(PDEffect("D2", "antagonist", ec50=1.0, gain=50.0),),
    )
    state, compartments = _dosed(blocker, "blocker", 5.0)

    brakes = {}
    for level in (0.0, 1.0, 150.0):
        state.signals["dopamine"] = level
        free = compute_derivatives(state, _context(), {})
        blocked = compute_derivatives(state, _context(), compartments)
        brakes[level] = free.signals["dopamine"] - blocked.signals["dopamine"]

    # an empty signal cannot be pushed below zero
    assert brakes[0.0] == pytest.approx(0.0, abs=1e-12)
    assert 0.0 < brakes[1.0] < brakes[150.0]
    # x/(x+20) saturates: 150 nM is close to the full brake, 1 nM is not
    assert brakes[1.0] < 0.1 * brakes[150.0]


def test_transporter_blocker_lowers_transporter_activity():
    definition = get_intervention("methylphenidate")
    assert definition is not None
    (agent,) = definition.resolve({})
    state, compartments = _dosed(agent, "mph", 0.05)

    idle = compute_derivatives(state, _context(), {})
    rates = compute_derivatives(state, _context(), compartments)
    assert idle.auxiliary["DAT"] == pytest.approx(0.0, abs=1e-12)
    assert rates.auxiliary["DAT"] < 0.0
    assert rates.auxiliary["NET"] < 0.0
    # transporters never reach signals directly
    assert rates.signals["dopamine"] == pytest.approx(idle.signals["dopamine"])


def test_hill_slope_override_steepens_occupancy():
    shallow = PDEffect("Adenosine_A2a", "antagonist", ki=45000.0, unit="nM")
    steep = PDEffect("Adenosine_A2a", "antagonist", ki=45000.0, unit="nM", hill_n=2.0)
    assert shallow.slope == pytest.approx(1.2)
    assert steep.slope == 2.0
    _, compartments = _coffee()
    compartment = compartments["coffee"]
    low = occupancy(0.5, steep, compartment) / occupancy(0.5, shallow, compartment)
    high = occupancy(2.0, steep, compartment) / occupancy(2.0, shallow, compartment)
    assert low < high < 1.0
