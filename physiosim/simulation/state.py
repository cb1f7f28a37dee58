"""Simulation state container, initialiser and snapshot codec."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping

from ..engine.registry import TRACKED_RECEPTORS
from .conditions import ConditionAdjustments
from .definitions import AUXILIARY_DEFINITIONS, SIGNAL_DEFINITIONS

LOGGER = logging.getLogger(__name__)

SECTIONS = ("signals", "auxiliary", "receptors", "pk", "accumulators")


@dataclass(slots=True)
class SimulationState:
    """Named floats grouped by section.

    Arithmetic helpers always return a new instance; stage states of the
    integrator are never produced by mutating the state they derive from.
    """

    signals: Dict[str, float] = field(default_factory=dict)
    auxiliary: Dict[str, float] = field(default_factory=dict)
    receptors: Dict[str, float] = field(default_factory=dict)
    pk: Dict[str, float] = field(default_factory=dict)
    accumulators: Dict[str, float] = field(default_factory=dict)

    def section(self, name: str) -> Dict[str, float]:
        if name not in SECTIONS:
            raise KeyError(name)
        return getattr(self, name)

    def copy(self) -> "SimulationState":
        return SimulationState(*(dict(getattr(self, name)) for name in SECTIONS))


def _combine(base: Mapping[str, float], other: Mapping[str, float], scale: float) -> Dict[str, float]:
    merged = dict(base)
    for key, value in other.items():
        merged[key] = merged.get(key, 0.0) + value * scale
    return merged


def add_states(base: SimulationState, delta: SimulationState, scale: float = 1.0) -> SimulationState:
    """Return ``base + scale * delta`` section by section."""

    return SimulationState(*(_combine(getattr(base, name), getattr(delta, name), scale) for name in SECTIONS))


def receptor_keys(adjustments: ConditionAdjustments) -> Iterable[str]:
    keys = list(TRACKED_RECEPTORS)
    for key in (*adjustments.receptor_density, *adjustments.receptor_sensitivity):
        if key not in keys:
            keys.append(key)
    return keys


def create_initial_state(adjustments: ConditionAdjustments | None = None) -> SimulationState:
    """Fresh state at every definition's initial value.

    Condition deltas are folded in so that a run starts at the perturbed
    receptor densities and enzyme activities instead of relaxing into them.
    """

    adjustments = adjustments or ConditionAdjustments()
    state = SimulationState()
    for key, definition in SIGNAL_DEFINITIONS.items():
        state.signals[key] = definition.initial
    for key, definition in AUXILIARY_DEFINITIONS.items():
        state.auxiliary[key] = definition.initial + adjustments.activity_delta(key)
    for key in receptor_keys(adjustments):
        state.receptors[f"{key}_density"] = 1.0 + adjustments.receptor_density.get(key, 0.0)
        state.receptors[f"{key}_sensitivity"] = 1.0 + adjustments.receptor_sensitivity.get(key, 0.0)
    return state


def to_snapshot(state: SimulationState) -> Dict[str, Dict[str, float]]:
    return {name: {key: float(value) for key, value in getattr(state, name).items()} for name in SECTIONS}


def from_snapshot(
    snapshot: Mapping[str, Mapping[str, float]],
    adjustments: ConditionAdjustments | None = None,
) -> SimulationState:
    """Rebuild a state from a persisted snapshot.

    Keys missing from the snapshot take their initial value, unknown keys are
    carried over untouched so snapshots stay forward compatible.
    """

    state = create_initial_state(adjustments)
    for name in SECTIONS:
        section = state.section(name)
        for key, value in (snapshot.get(name) or {}).items():
            try:
                section[key] = float(value)
            except (TypeError, ValueError):
                LOGGER.debug("Dropping non-numeric snapshot entry %s.%s=%r", name, key, value)
    unknown = set(snapshot) - set(SECTIONS)
    if unknown:
        LOGGER.debug("Ignoring unknown snapshot sections: %s", sorted(unknown))
    return state


__all__ = [
    "SECTIONS",
    "SimulationState",
    "add_states",
    "create_initial_state",
    "from_snapshot",
    "to_snapshot",
]
