"""Run preparation shared by both solver backends.

Everything here is computed once per run: resolved dosing instances, the
compartment table, circadian alignment and the warm-up window.  The solvers
only differ in how they integrate the resulting :class:`RunPlan`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ...engine.registry import canonical_target_name, is_enzyme, is_receptor, is_transporter
from .._kinetics import MINUTES_PER_DAY
from ..conditions import ConditionAdjustments
from ..context import STANDARD_WAKE_MINUTE, DebugToggles, Physiology, SubjectProfile
from ..definitions import AUXILIARY_DEFINITIONS, SIGNAL_DEFINITIONS
from ..interventions import InterventionDef, get_intervention
from ..pharmacology import ActiveIntervention, Molecule, PharmacologyDef, PKSpec, dose_of
from ..pkpd import Compartment, build_compartments
from ..state import SimulationState, create_initial_state, from_snapshot

LOGGER = logging.getLogger(__name__)

WAKE_KEY = "wake"
SLEEP_KEY = "sleep"

_SLEEP_MOLECULE = Molecule("sleep")
_SLEEP_PK = PKSpec(model="activity-dependent")


@dataclass(frozen=True)
class ScheduledItem:
    """One entry of the caller's daily schedule (minutes from the run origin)."""

    id: str
    key: str
    start: float
    duration: float
    intensity: float = 1.0
    params: Mapping[str, Any] = field(default_factory=dict)
    pharmacology: Optional[Tuple[PharmacologyDef, ...]] = None


def detect_wake_minute(items: Sequence[ScheduledItem]) -> float:
    """Minute of day the subject wakes, from the first wake or sleep item."""

    for item in items:
        if item.key == WAKE_KEY:
            return item.start % MINUTES_PER_DAY
        if item.key == SLEEP_KEY:
            return (item.start + item.duration) % MINUTES_PER_DAY
    return STANDARD_WAKE_MINUTE


def _known_target(target: str) -> bool:
    key = canonical_target_name(target)
    return (
        is_receptor(key)
        or is_transporter(key)
        or is_enzyme(key)
        or key in SIGNAL_DEFINITIONS
        or key in AUXILIARY_DEFINITIONS
    )


def resolve_item(item: ScheduledItem, table: Mapping[str, InterventionDef]) -> Tuple[PharmacologyDef, ...]:
    if item.pharmacology is not None:
        agents = tuple(item.pharmacology)
    else:
        definition = get_intervention(item.key, table)
        if definition is None:
            LOGGER.debug("Skipping item %s: unknown intervention '%s'", item.id, item.key)
            return ()
        agents = definition.resolve(item.params)
    for agent in agents:
        for effect in agent.pd:
            if not _known_target(effect.target):
                LOGGER.debug("Item %s: target '%s' is not modelled and has no effect", item.id, effect.target)
    return agents


def expand_instances(
    items: Sequence[ScheduledItem],
    table: Mapping[str, InterventionDef],
    day_offsets: Sequence[int],
) -> List[ActiveIntervention]:
    """Repeat every item on each day offset; multi-agent items get one compartment per agent."""

    resolved = [(item, resolve_item(item, table)) for item in items]
    instances: List[ActiveIntervention] = []
    for day in day_offsets:
        shift = day * MINUTES_PER_DAY
        for item, agents in resolved:
            for index, agent in enumerate(agents):
                instances.append(
                    ActiveIntervention(
                        id=item.id if len(agents) == 1 else f"{item.id}_{index}",
                        key=item.key,
                        start=item.start + shift,
                        duration=max(1.0, float(item.duration)),
                        intensity=float(item.intensity),
                        pharmacology=agent,
                        dose=dose_of(agent, item.params),
                        params=item.params,
                    )
                )
    instances.sort(key=lambda instance: instance.start)
    return instances


def sleep_windows(items: Sequence[ScheduledItem], day_offsets: Sequence[int]) -> List[ActiveIntervention]:
    """Sleep periods as zero-dose instances so the same sweep can track them."""

    windows = [
        ActiveIntervention(
            id=item.id,
            key=item.key,
            start=item.start + day * MINUTES_PER_DAY,
            duration=max(0.0, float(item.duration)),
            intensity=1.0,
            pharmacology=PharmacologyDef(molecule=_SLEEP_MOLECULE, pk=_SLEEP_PK),
            dose=0.0,
        )
        for day in day_offsets
        for item in items
        if item.key == SLEEP_KEY
    ]
    windows.sort(key=lambda window: window.start)
    return windows


class ActiveSweep:
    """Incrementally maintained set of windows covering a moving time.

    Windows are sorted by start once; each :meth:`advance` call admits the
    windows whose start has been passed and retires the ones that have
    ended.  Query times must be non-decreasing.
    """

    def __init__(self, windows: Sequence[ActiveIntervention]) -> None:
        self._windows = sorted(windows, key=lambda window: window.start)
        self._next = 0
        self._open: List[ActiveIntervention] = []
        self._last = -math.inf

    def advance(self, t: float) -> Tuple[ActiveIntervention, ...]:
        if t < self._last:
            raise ValueError("sweep queries must be non-decreasing")
        self._last = t
        while self._next < len(self._windows) and self._windows[self._next].start <= t:
            self._open.append(self._windows[self._next])
            self._next += 1
        self._open = [window for window in self._open if window.end > t]
        return tuple(self._open)


@dataclass(frozen=True)
class RunPlan:
    grid: npt.NDArray[np.float64]
    instances: Tuple[ActiveIntervention, ...]
    sleep: Tuple[ActiveIntervention, ...]
    compartments: Mapping[str, Compartment]
    wake_minute: float
    warmup_start: Optional[float]
    initial_state: SimulationState
    signals: Tuple[str, ...]
    adjustments: ConditionAdjustments
    subject: SubjectProfile
    physiology: Physiology
    debug: DebugToggles
    max_substep: float = 1.0

    @property
    def origin(self) -> float:
        """Earliest time the solvers integrate from."""

        return self.warmup_start if self.warmup_start is not None else float(self.grid[0])

    @property
    def horizon(self) -> float:
        return float(self.grid[-1])


def prepare_run(
    grid: Sequence[float],
    items: Sequence[ScheduledItem],
    table: Mapping[str, InterventionDef],
    *,
    adjustments: ConditionAdjustments,
    subject: SubjectProfile,
    physiology: Physiology,
    debug: DebugToggles,
    signals: Sequence[str] | None = None,
    snapshot: Mapping[str, Mapping[str, float]] | None = None,
    warmup_minutes: float = MINUTES_PER_DAY,
    max_substep: float = 1.0,
) -> RunPlan:
    """Resolve the schedule and everything else that is fixed for one run."""

    times = np.asarray(grid, dtype=float)
    if not debug.enable_conditions:
        adjustments = ConditionAdjustments()

    if debug.enable_interventions and items:
        step = float(times[1] - times[0]) if times.size > 1 else 1.0
        days = max(1, math.ceil((float(times[-1]) + step) / MINUTES_PER_DAY))
        offsets = list(range(-1, days))
        instances = expand_instances(items, table, offsets)
        sleep = sleep_windows(items, offsets)
        wake = detect_wake_minute(items)
    else:
        instances, sleep, wake = [], [], STANDARD_WAKE_MINUTE

    compartments = build_compartments(instances, subject, physiology)
    if snapshot is not None:
        initial = from_snapshot(snapshot, adjustments)
        warmup_start = None
    else:
        initial = create_initial_state(adjustments)
        warmup_start = float(times[0]) - warmup_minutes if warmup_minutes > 0 else None

    requested = tuple(key for key in (signals or SIGNAL_DEFINITIONS) if key in SIGNAL_DEFINITIONS)
    LOGGER.debug(
        "Prepared run: %d grid points, %d instances, %d compartments, wake at %.0f",
        times.size,
        len(instances),
        len(compartments),
        wake,
    )
    return RunPlan(
        grid=times,
        instances=tuple(instances),
        sleep=tuple(sleep),
        compartments=compartments,
        wake_minute=wake,
        warmup_start=warmup_start,
        initial_state=initial,
        signals=requested,
        adjustments=adjustments,
        subject=subject,
        physiology=physiology,
        debug=debug,
        max_substep=max_substep,
    )


@dataclass
class SolverResult:
    series: Dict[str, npt.NDArray[np.float64]]
    auxiliary_series: Dict[str, npt.NDArray[np.float64]]
    final_state: SimulationState


__all__ = [
    "ActiveSweep",
    "RunPlan",
    "ScheduledItem",
    "SolverResult",
    "detect_wake_minute",
    "expand_instances",
    "prepare_run",
    "resolve_item",
    "sleep_windows",
]
