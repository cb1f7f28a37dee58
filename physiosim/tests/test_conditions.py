import logging

import pytest

from physiosim.engine.registry import RECEPTOR_DENSITY_GAIN
from physiosim.simulation.conditions import (
    CONDITIONS,
    ConditionAdjustments,
    ConditionDef,
    ReceptorModifier,
    SignalModifier,
    build_condition_adjustments,
)


def test_library_lists_every_condition():
    assert set(CONDITIONS) >= {"adhd", "autism", "depression", "anxiety", "pots", "mcas", "insomnia", "pcos"}
    for condition in CONDITIONS.values():
        assert 0.0 <= condition.default <= 1.0


def test_severity_is_clamped():
    assert build_condition_adjustments({"adhd": 3.0}) == build_condition_adjustments({"adhd": 1.0})
    assert build_condition_adjustments({"adhd": -1.0}).amplitude == build_condition_adjustments({"adhd": 0.0}).amplitude


def test_missing_severity_uses_condition_default():
    default = CONDITIONS["depression"].default
    assert build_condition_adjustments({"depression": None}) == build_condition_adjustments({"depression": default})


def test_conditions_combine_additively():
    first = build_condition_adjustments({"adhd": 0.7})
    second = build_condition_adjustments({"anxiety": 0.4})
    combined = build_condition_adjustments({"adhd": 0.7, "anxiety": 0.4})

    for field_name in ("amplitude", "phase_shift", "receptor_density", "receptor_sensitivity", "transporter_activity"):
        left = getattr(first, field_name)
        right = getattr(second, field_name)
        merged = getattr(combined, field_name)
        assert set(merged) == set(left) | set(right)
        for key, value in merged.items():
            assert value == pytest.approx(left.get(key, 0.0) + right.get(key, 0.0))


def test_unknown_condition_is_ignored_with_warning(caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="physiosim.simulation.conditions"):
        adjustments = build_condition_adjustments({"not_a_condition": 0.5})
    assert adjustments.is_empty
    assert "not_a_condition" in caplog.text


def test_direct_amplitude_is_suppressed_only_for_mechanistic_signals():
    library = {
        "custom": ConditionDef(
            key="custom",
            label="Custom",
            receptors=(ReceptorModifier("D2", density=-0.2),),
            signals=(
                SignalModifier("dopamine", amplitude=0.5),
                SignalModifier("serotonin", amplitude=0.3, phase_shift_min=30.0),
            ),
        )
    }

    adjustments = build_condition_adjustments({"custom": 0.5}, library=library)

    expected_dopamine = -0.2 * 0.5 * RECEPTOR_DENSITY_GAIN["D2"]["dopamine"]
    assert adjustments.amplitude["dopamine"] == pytest.approx(expected_dopamine)
    assert adjustments.amplitude["serotonin"] == pytest.approx(0.15)
    assert adjustments.phase_shift["serotonin"] == pytest.approx(15.0)
    assert adjustments.receptor_density["D2"] == pytest.approx(-0.1)


def test_adjustments_from_option_maps():
    adjustments = ConditionAdjustments.from_maps(
        baselines={"dopamine": {"amplitude": 0.2, "phase_shift_min": 0.0}},
        couplings={"cortisol": {"orexin": 0.1, "gaba": 0.0}},
        enzyme_activity={"MAO_A": -0.3},
    )
    assert adjustments.amplitude == {"dopamine": 0.2}
    assert adjustments.phase_shift == {}
    assert [(delta.source, delta.gain) for delta in adjustments.couplings["cortisol"]] == [("orexin", 0.1)]
    assert adjustments.activity_delta("MAO_A") == pytest.approx(-0.3)
    assert adjustments.activity_delta("DAT") == 0.0
