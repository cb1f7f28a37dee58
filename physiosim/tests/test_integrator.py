import math

import pytest

from physiosim.simulation.definitions import SIGNAL_DEFINITIONS
from physiosim.simulation.integrator import clamp_state, rk4_step, substeps
from physiosim.simulation.state import SimulationState


def _decay(state: SimulationState, t: float) -> SimulationState:
    return SimulationState(signals={key: -value for key, value in state.signals.items()})


def _integrate(dt: float, horizon: float = 1.0) -> float:
    state = SimulationState(signals={"x": 1.0})
    t = 0.0
    for start, width in substeps(0.0, horizon, dt):
        state = rk4_step(state, start, width, _decay)
        t = start + width
    assert t == pytest.approx(horizon)
    return state.signals["x"]


def test_rk4_is_fourth_order():
    exact = math.exp(-1.0)
    coarse = abs(_integrate(0.1) - exact)
    fine = abs(_integrate(0.05) - exact)
    assert coarse < 1e-6
    assert 14.0 < coarse / fine < 18.0


def test_rk4_leaves_input_state_untouched():
    state = SimulationState(signals={"x": 2.0}, pk={"drug_central": 1.0})
    result = rk4_step(state, 0.0, 0.5, _decay)
    assert state.signals == {"x": 2.0}
    assert result.signals["x"] < 2.0
    assert result.pk == {"drug_central": 1.0}


def test_zero_step_returns_copy():
    state = SimulationState(signals={"x": 1.0})
    copied = rk4_step(state, 0.0, 0.0, _decay)
    assert copied == state
    assert copied is not state
    copied.signals["x"] = 5.0
    assert state.signals["x"] == 1.0


def test_substeps_split_evenly():
    steps = list(substeps(10.0, 2.5, 1.0))
    assert len(steps) == 3
    assert [width for _, width in steps] == pytest.approx([2.5 / 3] * 3)
    assert steps[0][0] == 10.0
    assert list(substeps(0.0, 1.0, 1.0)) == [(0.0, 1.0)]
    assert list(substeps(0.0, 0.0)) == []


def test_clamp_state_respects_declared_bounds():
    key, definition = next(iter(SIGNAL_DEFINITIONS.items()))
    state = SimulationState(
        signals={key: definition.minimum - 10.0, "unlisted": -3.0},
        auxiliary={"pool": 5.0, "other": -1.0},
    )
    clamp_state(state)
    assert state.signals[key] == definition.minimum
    assert state.signals["unlisted"] == 0.0
    assert state.auxiliary == {"pool": 2.0, "other": 0.0}


def test_clamp_state_can_skip_signals():
    state = SimulationState(signals={"unlisted": -3.0}, auxiliary={"pool": 3.0})
    clamp_state(state, clamp_signals=False)
    assert state.signals["unlisted"] == -3.0
    assert state.auxiliary["pool"] == 2.0
