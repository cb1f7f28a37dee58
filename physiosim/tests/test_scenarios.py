"""End-to-end behaviour of representative daily schedules."""

import numpy as np
import pytest

from physiosim.simulation import ScheduledItem, SimulationRequest
from physiosim.simulation.context import circadian_minute


def test_caffeine_raises_dopamine_transiently(engine, caffeine_item):
    grid = np.arange(0.0, 601.0, 1.0)
    dosed = engine.run(SimulationRequest(grid=grid, items=[caffeine_item]))
    control = engine.run(SimulationRequest(grid=grid))
    delta = dosed.series["dopamine"] - control.series["dopamine"]

    peak = int(np.argmax(delta))
    assert delta[peak] > 0.0
    assert 30.0 <= grid[peak] <= 90.0
    # one-minute grid: index == minute
    assert np.all(np.diff(delta[peak:481]) <= 1e-9)
    assert delta[480] < 0.25 * delta[peak]
    assert dosed.final_state["pk"]["coffee_central"] > 0.0


def test_sleep_suppresses_arousal_and_releases_melatonin(engine, sleep_item):
    grid = np.arange(0.0, 181.0, 1.0)
    response = engine.run(SimulationRequest(grid=grid, items=[sleep_item]))
    window = slice(60, 121)

    assert np.all(np.diff(response.series["cortisol"][window]) <= 1e-9)
    assert np.all(np.diff(response.series["orexin"][window]) <= 1e-9)
    melatonin = response.series["melatonin"]
    assert melatonin[90] > melatonin[60]
    assert melatonin[120] > melatonin[90]


def test_wake_item_shifts_the_circadian_clock(engine):
    assert circadian_minute(600.0, 600.0) == 480.0
    assert circadian_minute(480.0) == 480.0
    assert circadian_minute(0.0, 600.0) == pytest.approx(1320.0)

    baseline = engine.run(SimulationRequest(grid=np.arange(0.0, 601.0, 10.0)))
    shifted = engine.run(
        SimulationRequest(
            grid=np.arange(120.0, 721.0, 10.0),
            items=[ScheduledItem("alarm", "wake", 600.0, 1.0)],
        )
    )
    for key, expected in baseline.series.items():
        scale = max(float(np.max(np.abs(expected))), 1e-9)
        np.testing.assert_allclose(shifted.series[key], expected, rtol=1e-6, atol=1e-9 * scale)


def test_unperturbed_day_is_close_to_periodic(engine):
    grid = np.arange(0.0, 1441.0, 10.0)
    response = engine.run(SimulationRequest(grid=grid))
    for key, values in response.series.items():
        scale = max(float(np.max(np.abs(values))), 1e-9)
        assert abs(values[-1] - values[0]) <= 0.05 * scale, key
