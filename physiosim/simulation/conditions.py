"""Condition library and the adjustment builder.

A condition is described mechanistically (receptor density/sensitivity,
transporter and enzyme activity) and, for effects the mechanistic layer does
not cover, through direct signal modifiers: circadian phase shifts, extra
couplings and amplitude gains.  :func:`build_condition_adjustments` folds any
number of enabled conditions into one additive :class:`ConditionAdjustments`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Tuple

from ..engine.registry import (
    ENZYMES,
    RECEPTOR_DENSITY_GAIN,
    RECEPTOR_SENSITIVITY_GAIN,
    TRANSPORTERS,
)
from ._kinetics import clamp

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReceptorModifier:
    receptor: str
    density: float = 0.0
    sensitivity: float = 0.0


@dataclass(frozen=True)
class ActivityModifier:
    """Transporter or enzyme activity delta relative to 1.0 at full severity."""

    key: str
    activity: float


@dataclass(frozen=True)
class SignalModifier:
    signal: str
    amplitude: float | None = None
    phase_shift_min: float | None = None
    couplings: Tuple[Tuple[str, float], ...] = ()


@dataclass(frozen=True)
class ConditionDef:
    key: str
    label: str
    param: str = "severity"
    default: float = 0.5
    receptors: Tuple[ReceptorModifier, ...] = ()
    activities: Tuple[ActivityModifier, ...] = ()
    signals: Tuple[SignalModifier, ...] = ()

    @property
    def is_mechanistic(self) -> bool:
        return bool(self.receptors or self.activities)


@dataclass(frozen=True)
class CouplingDelta:
    """Extra linear coupling ``source -> target``; ``gain`` is a steady-state gain."""

    source: str
    gain: float


def _merge_sums(*tables: Mapping[str, float]) -> Dict[str, float]:
    merged: Dict[str, float] = {}
    for table in tables:
        for key, value in table.items():
            merged[key] = merged.get(key, 0.0) + value
    return merged


@dataclass(frozen=True)
class ConditionAdjustments:
    """Additive aggregate of every enabled condition."""

    amplitude: Mapping[str, float] = field(default_factory=dict)
    phase_shift: Mapping[str, float] = field(default_factory=dict)
    couplings: Mapping[str, Tuple[CouplingDelta, ...]] = field(default_factory=dict)
    receptor_density: Mapping[str, float] = field(default_factory=dict)
    receptor_sensitivity: Mapping[str, float] = field(default_factory=dict)
    transporter_activity: Mapping[str, float] = field(default_factory=dict)
    enzyme_activity: Mapping[str, float] = field(default_factory=dict)

    def merge(self, other: "ConditionAdjustments") -> "ConditionAdjustments":
        couplings: Dict[str, Tuple[CouplingDelta, ...]] = dict(self.couplings)
        for target, extras in other.couplings.items():
            couplings[target] = couplings.get(target, ()) + tuple(extras)
        return ConditionAdjustments(
            amplitude=_merge_sums(self.amplitude, other.amplitude),
            phase_shift=_merge_sums(self.phase_shift, other.phase_shift),
            couplings=couplings,
            receptor_density=_merge_sums(self.receptor_density, other.receptor_density),
            receptor_sensitivity=_merge_sums(self.receptor_sensitivity, other.receptor_sensitivity),
            transporter_activity=_merge_sums(self.transporter_activity, other.transporter_activity),
            enzyme_activity=_merge_sums(self.enzyme_activity, other.enzyme_activity),
        )

    def activity_delta(self, key: str) -> float:
        return self.transporter_activity.get(key, 0.0) + self.enzyme_activity.get(key, 0.0)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.amplitude,
                self.phase_shift,
                self.couplings,
                self.receptor_density,
                self.receptor_sensitivity,
                self.transporter_activity,
                self.enzyme_activity,
            )
        )

    @classmethod
    def from_maps(
        cls,
        baselines: Mapping[str, Mapping[str, float]] | None = None,
        couplings: Mapping[str, Mapping[str, float]] | None = None,
        receptor_density: Mapping[str, float] | None = None,
        receptor_sensitivity: Mapping[str, float] | None = None,
        transporter_activity: Mapping[str, float] | None = None,
        enzyme_activity: Mapping[str, float] | None = None,
    ) -> "ConditionAdjustments":
        """Build adjustments from caller-supplied option maps.

        ``baselines`` maps a signal to ``{"amplitude": .., "phase_shift_min": ..}``
        and ``couplings`` maps a target signal to ``{source: gain}``.
        """

        amplitude: Dict[str, float] = {}
        phase: Dict[str, float] = {}
        for signal, entry in (baselines or {}).items():
            if entry.get("amplitude"):
                amplitude[signal] = float(entry["amplitude"])
            if entry.get("phase_shift_min"):
                phase[signal] = float(entry["phase_shift_min"])
        extras = {
            target: tuple(CouplingDelta(source, float(gain)) for source, gain in sources.items() if gain)
            for target, sources in (couplings or {}).items()
        }
        return cls(
            amplitude=amplitude,
            phase_shift=phase,
            couplings={target: deltas for target, deltas in extras.items() if deltas},
            receptor_density=dict(receptor_density or {}),
            receptor_sensitivity=dict(receptor_sensitivity or {}),
            transporter_activity=dict(transporter_activity or {}),
            enzyme_activity=dict(enzyme_activity or {}),
        )


def _condition(key, label, *, param="severity", default=0.5, receptors=(), activities=(), signals=()) -> ConditionDef:
    return ConditionDef(
        key=key,
        label=label,
        param=param,
        default=default,
        receptors=tuple(receptors),
        activities=tuple(activities),
        signals=tuple(signals),
    )


R = ReceptorModifier
A = ActivityModifier
S = SignalModifier

CONDITIONS: Mapping[str, ConditionDef] = {
    condition.key: condition
    for condition in (
        _condition(
            "adhd",
            "ADHD",
            default=0.6,
            activities=(A("DAT", 0.4), A("NET", 0.25)),
            receptors=(R("D2", density=-0.15), R("Alpha2", sensitivity=-0.2)),
            signals=(
                S("dopamine", amplitude=-0.2),
                S("norepi", amplitude=-0.12),
                S("melatonin", phase_shift_min=30.0),
                S("cortisol", couplings=(("orexin", 0.15), ("gaba", -0.1))),
                S("orexin", couplings=(("ghrelin", 0.1), ("dopamine", 0.08))),
            ),
        ),
        _condition(
            "autism",
            "Autism spectrum",
            param="eibalance",
            receptors=(
                R("GABA_A", density=-0.25),
                R("GABA_B", density=-0.1),
                R("NMDA", sensitivity=0.15),
                R("OXTR", density=-0.3),
                R("5HT2A", density=0.1),
            ),
            activities=(A("SERT", -0.2), A("GAT1", 0.15)),
            signals=(
                S("gaba", amplitude=-0.15),
                S("glutamate", amplitude=0.12),
                S("oxytocin", amplitude=-0.15),
                S("vagal", amplitude=-0.1, couplings=(("oxytocin", -0.2),)),
                S("serotonin", amplitude=0.1),
                S("sensoryLoad", amplitude=0.2),
            ),
        ),
        _condition(
            "depression",
            "Depression",
            receptors=(
                R("5HT1A", sensitivity=0.3),
                R("5HT2A", density=0.15),
                R("D2", density=-0.1),
                R("Beta1", density=0.1),
            ),
            activities=(A("SERT", 0.2), A("NET", 0.15)),
            signals=(
                S("serotonin", amplitude=-0.25),
                S("dopamine", amplitude=-0.15),
                S("norepi", amplitude=-0.1),
                S("cortisol", amplitude=0.2),
                S("bdnf", amplitude=-0.3),
                S("melatonin", amplitude=-0.15, phase_shift_min=45.0),
            ),
        ),
        _condition(
            "anxiety",
            "Generalized anxiety",
            param="reactivity",
            receptors=(
                R("GABA_A", density=-0.2),
                R("5HT1A", density=-0.15),
                R("Alpha1", sensitivity=0.2),
                R("Beta1", sensitivity=0.15),
            ),
            activities=(A("MAO_A", -0.1),),
            signals=(
                S("gaba", amplitude=-0.15),
                S("norepi", amplitude=0.15),
                S("adrenaline", amplitude=0.1),
                S("cortisol", amplitude=0.1, couplings=(("norepi", 0.2), ("adrenaline", 0.15))),
                S("vagal", amplitude=-0.15),
            ),
        ),
        _condition(
            "pots",
            "POTS",
            receptors=(
                R("Alpha1", sensitivity=0.25),
                R("Beta1", sensitivity=0.2),
                R("Alpha2", density=-0.15),
            ),
            activities=(A("NET", -0.3),),
            signals=(
                S("norepi", amplitude=0.25),
                S("adrenaline", amplitude=0.15),
                S("vagal", amplitude=-0.25),
                S("hrv", amplitude=-0.2),
                S("bloodPressure", amplitude=-0.1),
                S("cortisol", amplitude=0.1, couplings=(("norepi", 0.15),)),
                S("energy", amplitude=-0.2, couplings=(("bloodPressure", 0.15), ("vagal", 0.1))),
            ),
        ),
        _condition(
            "mcas",
            "Mast cell activation",
            param="activation",
            receptors=(R("H1", sensitivity=0.3), R("H3", density=-0.2)),
            activities=(A("DAO", -0.35),),
            signals=(
                S("histamine", amplitude=0.35),
                S("inflammation", amplitude=0.25),
                S("cortisol", amplitude=0.15),
                S("vagal", amplitude=-0.1),
                S("sensoryLoad", amplitude=0.2),
                S("gaba", amplitude=-0.1, couplings=(("histamine", -0.15),)),
                S("energy", amplitude=-0.15, couplings=(("inflammation", -0.2), ("histamine", -0.1))),
            ),
        ),
        _condition(
            "insomnia",
            "Insomnia",
            receptors=(
                R("OX2R", sensitivity=0.25),
                R("OX1R", sensitivity=0.15),
                R("GABA_A", density=-0.15),
                R("MT1", density=-0.2),
                R("MT2", density=-0.15),
            ),
            activities=(A("GAT1", 0.15),),
            signals=(
                S("orexin", amplitude=0.2),
                S("melatonin", amplitude=-0.25, phase_shift_min=45.0),
                S("gaba", amplitude=-0.15),
                S("cortisol", amplitude=0.1, phase_shift_min=-30.0),
                S("norepi", amplitude=0.1),
                S("histamine", amplitude=0.1, couplings=(("orexin", 0.15),)),
                S("glutamate", amplitude=0.1, couplings=(("gaba", -0.1),)),
            ),
        ),
        _condition(
            "pcos",
            "PCOS",
            receptors=(R("D2", density=-0.1),),
            signals=(
                S("insulin", amplitude=0.25),
                S("testosterone", amplitude=0.3),
                S("dheas", amplitude=0.2),
                S("shbg", amplitude=-0.25),
                S("lh", amplitude=0.2),
                S("fsh", amplitude=-0.1),
                S("estrogen", amplitude=-0.1),
                S("progesterone", amplitude=-0.2),
                S("cortisol", amplitude=0.1),
                S("inflammation", amplitude=0.15),
                S("glucose", amplitude=0.1, couplings=(("insulin", -0.2),)),
                S("energy", couplings=(("glucose", 0.15), ("insulin", -0.1))),
            ),
        ),
    )
}


def _mechanistic(condition: ConditionDef, severity: float) -> ConditionAdjustments:
    amplitude: Dict[str, float] = {}
    density: Dict[str, float] = {}
    sensitivity: Dict[str, float] = {}
    transporters: Dict[str, float] = {}
    enzymes: Dict[str, float] = {}

    for modifier in condition.receptors:
        for delta, deltas, gains in (
            (modifier.density * severity, density, RECEPTOR_DENSITY_GAIN),
            (modifier.sensitivity * severity, sensitivity, RECEPTOR_SENSITIVITY_GAIN),
        ):
            if delta == 0.0:
                continue
            deltas[modifier.receptor] = deltas.get(modifier.receptor, 0.0) + delta
            for signal, gain in gains.get(modifier.receptor, {}).items():
                amplitude[signal] = amplitude.get(signal, 0.0) + delta * gain

    for modifier in condition.activities:
        delta = modifier.activity * severity
        if modifier.key in TRANSPORTERS:
            transporters[modifier.key] = transporters.get(modifier.key, 0.0) + delta
        elif modifier.key in ENZYMES:
            enzymes[modifier.key] = enzymes.get(modifier.key, 0.0) + delta
        else:
            LOGGER.debug("Condition %s references unknown activity target %s", condition.key, modifier.key)

    return ConditionAdjustments(
        amplitude=amplitude,
        receptor_density=density,
        receptor_sensitivity=sensitivity,
        transporter_activity=transporters,
        enzyme_activity=enzymes,
    )


def _legacy(condition: ConditionDef, severity: float, covered: Iterable[str]) -> ConditionAdjustments:
    covered = set(covered)
    amplitude: Dict[str, float] = {}
    phase: Dict[str, float] = {}
    couplings: Dict[str, Tuple[CouplingDelta, ...]] = {}
    for modifier in condition.signals:
        if modifier.amplitude is not None and modifier.signal not in covered:
            amplitude[modifier.signal] = amplitude.get(modifier.signal, 0.0) + modifier.amplitude * severity
        if modifier.phase_shift_min is not None:
            phase[modifier.signal] = phase.get(modifier.signal, 0.0) + modifier.phase_shift_min * severity
        extras = tuple(CouplingDelta(source, gain * severity) for source, gain in modifier.couplings if gain)
        if extras:
            couplings[modifier.signal] = couplings.get(modifier.signal, ()) + extras
    return ConditionAdjustments(amplitude=amplitude, phase_shift=phase, couplings=couplings)


def build_condition_adjustments(
    enabled: Mapping[str, float | None],
    library: Mapping[str, ConditionDef] | None = None,
) -> ConditionAdjustments:
    """Fold enabled conditions into one additive adjustment set.

    Parameters
    ----------
    enabled:
        Condition key to severity.  ``None`` selects the condition's default
        severity; values are clamped to ``[0, 1]``.
    library:
        Condition table, defaults to :data:`CONDITIONS`.

    Notes
    -----
    A direct amplitude modifier is dropped for any signal whose amplitude the
    same condition already derives from its receptor modifiers.  Phase shifts
    and coupling deltas are always applied.
    """

    library = CONDITIONS if library is None else library
    result = ConditionAdjustments()
    for key, severity in enabled.items():
        condition = library.get(key)
        if condition is None:
            LOGGER.warning("Ignoring unknown condition '%s'", key)
            continue
        level = clamp(float(condition.default if severity is None else severity), 0.0, 1.0)
        mechanistic = _mechanistic(condition, level)
        covered = [signal for signal, value in mechanistic.amplitude.items() if value != 0.0]
        result = result.merge(mechanistic).merge(_legacy(condition, level, covered))
    return result


__all__ = [
    "ActivityModifier",
    "CONDITIONS",
    "ConditionAdjustments",
    "ConditionDef",
    "CouplingDelta",
    "ReceptorModifier",
    "SignalModifier",
    "build_condition_adjustments",
]
