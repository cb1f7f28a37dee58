"""High level simulation orchestration layer."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from ..config import ConfigurationError, SolverConfig
from .conditions import ConditionAdjustments, build_condition_adjustments
from .context import DebugToggles, Physiology, SubjectProfile, derive_physiology
from .definitions import ALIASES
from .interventions import INTERVENTIONS, InterventionDef
from .solvers import SOLVERS, ScheduledItem, prepare_run
from .state import to_snapshot

LOGGER = logging.getLogger(__name__)

Snapshot = Mapping[str, Mapping[str, float]]


class SimulationError(Exception):
    """Base error raised by the simulation engine."""


class InvalidRequestError(SimulationError):
    """The request cannot be simulated (for example an unsorted time grid)."""


@dataclass(frozen=True)
class SimulationOptions:
    """Everything besides the grid and the schedule that shapes a run.

    ``conditions`` maps condition keys to severities (``None`` for the
    condition default) and is expanded through
    :func:`~physiosim.simulation.conditions.build_condition_adjustments`.  The
    explicit maps are added on top of it.
    """

    subject: SubjectProfile = field(default_factory=SubjectProfile)
    physiology: Physiology = field(default_factory=Physiology)
    signals: Optional[Tuple[str, ...]] = None
    conditions: Mapping[str, Optional[float]] = field(default_factory=dict)
    baselines: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    couplings: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    receptor_density: Mapping[str, float] = field(default_factory=dict)
    receptor_sensitivity: Mapping[str, float] = field(default_factory=dict)
    transporter_activity: Mapping[str, float] = field(default_factory=dict)
    enzyme_activity: Mapping[str, float] = field(default_factory=dict)
    snapshot: Optional[Snapshot] = None
    debug: DebugToggles = field(default_factory=DebugToggles)

    def adjustments(self) -> ConditionAdjustments:
        explicit = ConditionAdjustments.from_maps(
            baselines=self.baselines,
            couplings=self.couplings,
            receptor_density=self.receptor_density,
            receptor_sensitivity=self.receptor_sensitivity,
            transporter_activity=self.transporter_activity,
            enzyme_activity=self.enzyme_activity,
        )
        return build_condition_adjustments(self.conditions).merge(explicit)


@dataclass(frozen=True)
class SimulationRequest:
    """Input payload for :class:`SimulationEngine`."""

    grid: Sequence[float]
    items: Sequence[ScheduledItem] = ()
    interventions: Mapping[str, InterventionDef] = field(default_factory=lambda: INTERVENTIONS)
    options: SimulationOptions = field(default_factory=SimulationOptions)


@dataclass
class SimulationResponse:
    """Structured result returned by :class:`SimulationEngine`.

    Series are ``float64`` arrays aligned to ``timepoints``.  ``aliases``
    point at the same arrays under the display names used by front ends.
    """

    timepoints: npt.NDArray[np.float64]
    series: Dict[str, npt.NDArray[np.float64]]
    auxiliary_series: Dict[str, npt.NDArray[np.float64]]
    final_state: Dict[str, Dict[str, float]]
    aliases: Dict[str, npt.NDArray[np.float64]]
    backend: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timepoints": self.timepoints.tolist(),
            "series": {key: values.tolist() for key, values in self.series.items()},
            "auxiliary_series": {key: values.tolist() for key, values in self.auxiliary_series.items()},
            "final_state": self.final_state,
            "aliases": {key: values.tolist() for key, values in self.aliases.items()},
            "backend": self.backend,
        }


def validate_grid(grid: Sequence[float]) -> npt.NDArray[np.float64]:
    try:
        times = np.asarray(grid, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"time grid must be numeric: {exc}") from exc
    if times.ndim != 1 or times.size == 0:
        raise InvalidRequestError("time grid must be a non-empty one-dimensional sequence")
    if not np.all(np.isfinite(times)):
        raise InvalidRequestError("time grid contains non-finite values")
    if times.size > 1 and np.any(np.diff(times) <= 0.0):
        raise InvalidRequestError("time grid must be strictly ascending")
    return times


def _aliases(
    series: Mapping[str, npt.NDArray[np.float64]],
    auxiliary: Mapping[str, npt.NDArray[np.float64]],
) -> Dict[str, npt.NDArray[np.float64]]:
    sections = {"signals": series, "auxiliary": auxiliary}
    resolved: Dict[str, npt.NDArray[np.float64]] = {}
    for alias, (section, key) in ALIASES.items():
        values = sections[section].get(key)
        if values is not None:
            resolved[alias] = values
    return resolved


class SimulationEngine:
    """Validate requests, prepare the run and dispatch to a solver backend."""

    def __init__(self, config: SolverConfig | None = None) -> None:
        self.config = config or SolverConfig()

    def run(self, request: SimulationRequest, backend: str | None = None) -> SimulationResponse:
        name = (backend or self.config.backend).strip().lower()
        solver = SOLVERS.get(name)
        if solver is None:
            raise ConfigurationError(f"Unknown solver backend '{name}'")
        grid = validate_grid(request.grid)
        options = request.options

        plan = prepare_run(
            grid,
            request.items,
            request.interventions,
            adjustments=options.adjustments(),
            subject=options.subject,
            physiology=derive_physiology(options.subject, options.physiology),
            debug=options.debug,
            signals=options.signals,
            snapshot=options.snapshot,
            warmup_minutes=self.config.warmup_minutes,
            max_substep=self.config.max_substep,
        )
        LOGGER.debug("Running %d-point simulation on the %s backend", grid.size, name)
        result = solver(plan)
        return SimulationResponse(
            timepoints=grid,
            series=result.series,
            auxiliary_series=result.auxiliary_series,
            final_state=to_snapshot(result.final_state),
            aliases=_aliases(result.series, result.auxiliary_series),
            backend=name,
        )


def run_simulation(request: SimulationRequest, backend: str | None = None) -> SimulationResponse:
    """Convenience wrapper using the environment's :class:`SolverConfig`."""

    return SimulationEngine(SolverConfig.from_env()).run(request, backend=backend)


__all__ = [
    "InvalidRequestError",
    "ScheduledItem",
    "SimulationEngine",
    "SimulationError",
    "SimulationOptions",
    "SimulationRequest",
    "SimulationResponse",
    "run_simulation",
    "validate_grid",
]
