import numpy as np
import pytest

from physiosim.simulation.conditions import ConditionAdjustments, build_condition_adjustments
from physiosim.simulation.context import DebugToggles, Physiology, SubjectProfile
from physiosim.simulation.interventions import INTERVENTIONS
from physiosim.simulation.pharmacology import ActiveIntervention, Molecule, PDEffect, PharmacologyDef, PKSpec
from physiosim.simulation.solvers.schedule import (
    ActiveSweep,
    ScheduledItem,
    detect_wake_minute,
    expand_instances,
    prepare_run,
    resolve_item,
    sleep_windows,
)


def _window(start: float, duration: float, id: str = "w") -> ActiveIntervention:
    return ActiveIntervention(
        id=id,
        key="x",
        start=start,
        duration=duration,
        intensity=1.0,
        pharmacology=PharmacologyDef(molecule=Molecule("x"), pk=PKSpec()),
    )


def _prepare(grid, items, **kwargs):
    defaults = dict(
        adjustments=ConditionAdjustments(),
        subject=SubjectProfile(),
        physiology=Physiology(),
        debug=DebugToggles(),
    )
    defaults.update(kwargs)
    return prepare_run(np.asarray(grid, dtype=float), items, INTERVENTIONS, **defaults)


def test_wake_detection_prefers_first_relevant_item():
    assert detect_wake_minute([]) == 480.0
    assert detect_wake_minute([ScheduledItem("w", "wake", 600.0, 1.0)]) == 600.0
    assert detect_wake_minute([ScheduledItem("n", "sleep", 1380.0, 480.0)]) == 420.0
    items = [
        ScheduledItem("c", "caffeine", 0.0, 5.0),
        ScheduledItem("n", "sleep", 60.0, 480.0),
        ScheduledItem("w", "wake", 900.0, 1.0),
    ]
    assert detect_wake_minute(items) == 540.0


def test_sweep_tracks_open_windows():
    sweep = ActiveSweep([_window(10.0, 5.0, "b"), _window(0.0, 20.0, "a")])
    assert [w.id for w in sweep.advance(-1.0)] == []
    assert [w.id for w in sweep.advance(0.0)] == ["a"]
    assert [w.id for w in sweep.advance(12.0)] == ["a", "b"]
    assert [w.id for w in sweep.advance(15.0)] == ["a"]
    assert sweep.advance(20.0) == ()


def test_sweep_rejects_time_travel():
    sweep = ActiveSweep([_window(0.0, 1.0)])
    sweep.advance(5.0)
    with pytest.raises(ValueError):
        sweep.advance(4.0)


def test_multi_agent_items_get_indexed_compartments():
    meal = ScheduledItem("lunch", "meal", 720.0, 20.0, params={"carbs": 60, "fat": 20, "protein": 30})
    instances = expand_instances([meal], INTERVENTIONS, [0])
    assert [instance.id for instance in instances] == ["lunch_0", "lunch_1", "lunch_2"]
    assert instances[0].dose == pytest.approx(60000.0)


def test_items_repeat_on_every_day_offset():
    coffee = ScheduledItem("coffee", "caffeine", 480.0, 0.0, params={"mg": 80})
    instances = expand_instances([coffee], INTERVENTIONS, [-1, 0, 1])
    assert [instance.start for instance in instances] == [-960.0, 480.0, 1920.0]
    assert {instance.id for instance in instances} == {"coffee"}
    assert all(instance.duration == 1.0 for instance in instances)
    assert all(instance.dose == 80.0 for instance in instances)


def test_unknown_items_and_targets_are_logged(caplog):
    inline = PharmacologyDef(
        molecule=Molecule("mystery"), pk=PKSpec(), pd=(PDEffect("NotAReceptor", ec50=1.0),)
    )
    with caplog.at_level("DEBUG", logger="physiosim.simulation.solvers.schedule"):
        assert resolve_item(ScheduledItem("x", "no-such-thing", 0.0, 1.0), INTERVENTIONS) == ()
        assert resolve_item(ScheduledItem("y", "custom", 0.0, 1.0, pharmacology=(inline,)), INTERVENTIONS) == (inline,)
    assert "no-such-thing" in caplog.text
    assert "NotAReceptor" in caplog.text


def test_sleep_windows_are_zero_dose():
    items = [ScheduledItem("night", "sleep", 60.0, 480.0), ScheduledItem("coffee", "caffeine", 0.0, 5.0)]
    windows = sleep_windows(items, [-1, 0])
    assert [window.start for window in windows] == [-1380.0, 60.0]
    assert all(window.dose == 0.0 for window in windows)


def test_prepare_run_day_coverage_and_warmup():
    items = [ScheduledItem("coffee", "caffeine", 480.0, 5.0)]
    plan = _prepare([0.0, 720.0, 1440.0], items, warmup_minutes=1440.0)
    # the horizon plus one step reaches into the second day
    assert [instance.start for instance in plan.instances] == [-960.0, 480.0, 1920.0]
    assert list(plan.compartments) == ["coffee"]
    assert plan.warmup_start == -1440.0
    assert plan.origin == -1440.0
    assert plan.horizon == 1440.0


def test_prepare_run_with_snapshot_skips_warmup():
    plan = _prepare([0.0, 1.0], [], snapshot={"signals": {"dopamine": 7.0}})
    assert plan.warmup_start is None
    assert plan.origin == 0.0
    assert plan.initial_state.signals["dopamine"] == 7.0


def test_prepare_run_honours_toggles_and_signal_filter():
    items = [ScheduledItem("coffee", "caffeine", 0.0, 5.0), ScheduledItem("w", "wake", 600.0, 1.0)]
    plan = _prepare(
        [0.0, 1.0],
        items,
        adjustments=build_condition_adjustments({"adhd": None}),
        debug=DebugToggles(enable_interventions=False, enable_conditions=False),
        signals=["dopamine", "not-a-signal"],
        warmup_minutes=0.0,
    )
    assert plan.instances == ()
    assert plan.wake_minute == 480.0
    assert plan.adjustments.is_empty
    assert plan.signals == ("dopamine",)
    assert plan.warmup_start is None
