import math

import pytest

from physiosim.simulation._kinetics import (
    gaussian_phase,
    hill,
    operational_response,
    sigmoid_phase,
    window_phase,
)
from physiosim.simulation.terms import Constant, Dynamics, Gaussian, SleepState, Window, evaluate_setpoint


def test_hill_half_occupancy_at_potency():
    assert hill(5.0, 5.0) == pytest.approx(0.5)
    assert hill(0.0, 5.0) == 0.0
    assert hill(-1.0, 5.0) == 0.0
    assert hill(1e6, 1.0) == 1.0
    assert 0.0 < hill(1.0, 5.0) < hill(2.0, 5.0) < 0.5


def test_operational_response_saturates_below_one():
    assert operational_response(0.0, 10.0) == 0.0
    assert operational_response(1.0, 10.0) == pytest.approx(10.0 / 12.0)
    assert operational_response(1.0, 1.0) == pytest.approx(1.0 / 3.0)


def test_window_reaches_half_at_edges_and_wraps_midnight():
    start, end = 7.5 * 60.0, 22.0 * 60.0
    assert window_phase(start, start, end) == pytest.approx(0.5)
    assert window_phase(end, start, end) == pytest.approx(0.5)
    assert window_phase(12 * 60.0, start, end) == pytest.approx(1.0)
    assert window_phase(3 * 60.0, start, end) == pytest.approx(0.0)

    overnight_start, overnight_end = 22.0 * 60.0, 7.0 * 60.0
    assert window_phase(2 * 60.0, overnight_start, overnight_end) == pytest.approx(1.0)
    assert window_phase(14 * 60.0, overnight_start, overnight_end) == pytest.approx(0.0)


def test_gaussian_and_sigmoid_shapes():
    assert gaussian_phase(1.0, 1.0, 5.0) == pytest.approx(1.0)
    assert gaussian_phase(1.0 + math.pi, 1.0, 5.0) < 1e-3
    assert sigmoid_phase(600.0, 600.0) == pytest.approx(0.5)
    assert sigmoid_phase(700.0, 600.0) == pytest.approx(1.0)
    assert sigmoid_phase(500.0, 600.0) == pytest.approx(0.0)


def test_setpoint_sums_shapes():
    shapes = (Constant(10.0), Window(7.5, 22.0, 5.0), SleepState(asleep=-2.0))
    assert evaluate_setpoint(shapes, 12 * 60.0, asleep=False) == pytest.approx(15.0)
    assert evaluate_setpoint(shapes, 3 * 60.0, asleep=True) == pytest.approx(8.0)
    peak = Gaussian(8.0, 3.0, 4.0)
    assert peak.evaluate(8 * 60.0, False) == pytest.approx(4.0)


def test_dynamics_rejects_non_positive_tau():
    with pytest.raises(ValueError):
        Dynamics(setpoint=(Constant(1.0),), tau=0.0)
