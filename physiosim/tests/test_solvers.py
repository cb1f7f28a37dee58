import numpy as np
import pytest

from physiosim.config import ConfigurationError, SolverConfig
from physiosim.simulation import (
    InvalidRequestError,
    ScheduledItem,
    SimulationEngine,
    SimulationOptions,
    SimulationRequest,
)
from physiosim.simulation.definitions import SIGNAL_DEFINITIONS
from physiosim.simulation.pharmacology import Molecule, PDEffect, PharmacologyDef, PKSpec


def _scenario(caffeine_item, sleep_item) -> SimulationRequest:
    return SimulationRequest(
        grid=np.arange(0.0, 241.0, 5.0),
        items=[
            caffeine_item,
            sleep_item,
            ScheduledItem("snack", "meal", 30.0, 15.0, params={"carbs": 40, "fat": 10}),
            ScheduledItem("drink", "alcohol", 20.0, 30.0, params={"drinks": 1}),
        ],
        options=SimulationOptions(conditions={"adhd": None}),
    )


def _assert_close(actual: np.ndarray, expected: np.ndarray) -> None:
    scale = max(float(np.max(np.abs(expected))), 1e-9)
    np.testing.assert_allclose(actual, expected, rtol=1e-3, atol=1e-3 * scale)


def test_backends_agree(short_warmup, caffeine_item, sleep_item):
    request = _scenario(caffeine_item, sleep_item)
    engine = SimulationEngine(short_warmup)
    reference = engine.run(request, backend="reference")
    vectorized = engine.run(request, backend="vectorized")

    assert reference.backend == "reference"
    assert vectorized.backend == "vectorized"
    assert set(reference.series) == set(vectorized.series) == set(SIGNAL_DEFINITIONS)
    for key, expected in reference.series.items():
        _assert_close(vectorized.series[key], expected)
    for key, expected in reference.auxiliary_series.items():
        _assert_close(vectorized.auxiliary_series[key], expected)
    for key, value in reference.final_state["pk"].items():
        assert vectorized.final_state["pk"][key] == pytest.approx(value, rel=1e-3, abs=1e-6)


def test_backends_agree_on_antagonist_brakes(short_warmup):
    blocker = PharmacologyDef(
        molecule=Molecule("blocker"),
        pk=PKSpec(half_life_min=120.0, absorption_rate=0.05),
        pd=(PDEffect("D2", "antagonist", ec50=1.0, gain=50.0),),
    )
    request = SimulationRequest(
        grid=np.arange(0.0, 241.0, 5.0),
        items=[
            ScheduledItem("pill", "methylphenidate", 0.0, 5.0, params={"mg": 20}),
            ScheduledItem("block", "custom", 10.0, 5.0, params={"mg": 200}, pharmacology=(blocker,)),
        ],
    )
    engine = SimulationEngine(short_warmup)
    reference = engine.run(request, backend="reference")
    vectorized = engine.run(request, backend="vectorized")

    for key in ("dopamine", "norepi"):
        _assert_close(vectorized.series[key], reference.series[key])
    for key in ("DAT", "NET"):
        _assert_close(vectorized.auxiliary_series[key], reference.auxiliary_series[key])
    # the transporter blocker pulls DAT activity below where it started
    assert reference.auxiliary_series["DAT"][-1] < reference.auxiliary_series["DAT"][0]
    assert np.all(reference.series["dopamine"] >= 0.0)


def test_runs_are_deterministic(caffeine_item, sleep_item):
    engine = SimulationEngine(SolverConfig(warmup_minutes=120.0))
    request = _scenario(caffeine_item, sleep_item)
    first = engine.run(request)
    second = engine.run(request)
    for key in first.series:
        np.testing.assert_array_equal(first.series[key], second.series[key])


def test_series_stay_within_declared_bounds(caffeine_item, sleep_item):
    engine = SimulationEngine(SolverConfig(warmup_minutes=120.0))
    response = engine.run(_scenario(caffeine_item, sleep_item))
    for key, values in response.series.items():
        definition = SIGNAL_DEFINITIONS[key]
        assert values.shape == response.timepoints.shape
        assert np.all(np.isfinite(values))
        assert np.all(values >= definition.minimum)
        assert np.all(values <= definition.maximum)
    for values in response.auxiliary_series.values():
        assert np.all((values >= 0.0) & (values <= 2.0))


def test_aliases_share_series_arrays(engine):
    response = engine.run(SimulationRequest(grid=[0.0, 10.0]))
    assert response.aliases
    for alias, values in response.aliases.items():
        assert any(values is series for series in (*response.series.values(), *response.auxiliary_series.values()))
    payload = response.to_dict()
    assert payload["timepoints"] == [0.0, 10.0]
    assert set(payload["aliases"]) == set(response.aliases)


def test_signal_allowlist_limits_series(engine):
    request = SimulationRequest(grid=[0.0, 10.0], options=SimulationOptions(signals=("dopamine", "cortisol")))
    response = engine.run(request)
    assert set(response.series) == {"dopamine", "cortisol"}


def test_snapshot_seeds_first_sample():
    engine = SimulationEngine(SolverConfig(warmup_minutes=120.0))
    snapshot = {"signals": {"dopamine": 25.0}}
    response = engine.run(SimulationRequest(grid=[0.0, 1.0], options=SimulationOptions(snapshot=snapshot)))
    assert response.series["dopamine"][0] == 25.0
    assert response.final_state["signals"]["dopamine"] != 25.0


def test_dosing_reaches_final_pk_state(engine, caffeine_item):
    response = engine.run(SimulationRequest(grid=[0.0, 60.0], items=[caffeine_item]))
    assert response.final_state["pk"]["coffee_central"] > 0.0


@pytest.mark.parametrize(
    "grid",
    [[], [0.0, 10.0, 10.0], [10.0, 0.0], [0.0, float("nan")], ["a", "b"], [[0.0, 1.0]]],
)
def test_invalid_grids_are_rejected(engine, grid):
    with pytest.raises(InvalidRequestError):
        engine.run(SimulationRequest(grid=grid))


def test_unknown_backend_is_a_configuration_error(engine):
    with pytest.raises(ConfigurationError):
        engine.run(SimulationRequest(grid=[0.0, 1.0]), backend="gpu")
