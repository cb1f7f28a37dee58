"""Dictionary-state solver driving :func:`compute_derivatives` directly.

Slow, but every stage goes through the same code path a reader would trace
by hand, which makes it the yardstick for the vectorized backend.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, List, Sequence

import numpy as np

from .._kinetics import MINUTES_PER_DAY
from ..context import DynamicsContext, circadian_minute
from ..derivatives import compute_derivatives
from ..definitions import AUXILIARY_DEFINITIONS
from ..integrator import clamp_state, rk4_step, substeps
from ..pharmacology import ActiveIntervention
from ..state import SimulationState
from .schedule import ActiveSweep, RunPlan, SolverResult

LOGGER = logging.getLogger(__name__)


class ReferenceSolver:
    """Integrate a :class:`RunPlan` one RK4 sub-step at a time."""

    name = "reference"

    def __init__(self, plan: RunPlan) -> None:
        self.plan = plan
        self._dosing = ActiveSweep(plan.instances)
        self._sleep = ActiveSweep(plan.sleep)

    def _context(self, t: float, asleep: bool) -> DynamicsContext:
        plan = self.plan
        return DynamicsContext(
            minute_of_day=t % MINUTES_PER_DAY,
            circadian_minute=circadian_minute(t, plan.wake_minute),
            asleep=asleep,
            subject=plan.subject,
            physiology=plan.physiology,
            adjustments=plan.adjustments,
            debug=plan.debug,
        )

    def _step(self, state: SimulationState, t: float, dt: float) -> SimulationState:
        midpoint = t + 0.5 * dt
        dosing: Sequence[ActiveIntervention] = self._dosing.advance(midpoint)
        asleep = bool(self._sleep.advance(midpoint))
        compartments = self.plan.compartments

        def derivative(current: SimulationState, time: float) -> SimulationState:
            return compute_derivatives(current, self._context(time, asleep), compartments, dosing)

        advanced = rk4_step(state, t, dt, derivative)
        return clamp_state(advanced, clamp_signals=self.plan.debug.enable_baselines)

    def warm_up(self, state: SimulationState) -> SimulationState:
        plan = self.plan
        if plan.warmup_start is None:
            return state
        t0 = plan.warmup_start
        end = float(plan.grid[0])
        for index in range(int(math.ceil(end - t0 - 1e-9))):
            start = t0 + index
            state = self._step(state, start, min(1.0, end - start))
        LOGGER.debug("Warm-up finished after %.0f minutes", end - t0)
        return state

    def solve(self) -> SolverResult:
        plan = self.plan
        grid = plan.grid
        state = self.warm_up(plan.initial_state.copy())

        signal_rows: Dict[str, List[float]] = {key: [] for key in plan.signals}
        auxiliary_rows: Dict[str, List[float]] = {key: [] for key in AUXILIARY_DEFINITIONS}
        previous = float(grid[0])
        for t in grid:
            t = float(t)
            for start, width in substeps(previous, t - previous, plan.max_substep):
                state = self._step(state, start, width)
            previous = t
            for key, row in signal_rows.items():
                row.append(state.signals.get(key, 0.0))
            for key, row in auxiliary_rows.items():
                row.append(state.auxiliary.get(key, 0.0))

        return SolverResult(
            series={key: np.asarray(row, dtype=np.float64) for key, row in signal_rows.items()},
            auxiliary_series={key: np.asarray(row, dtype=np.float64) for key, row in auxiliary_rows.items()},
            final_state=state,
        )


def solve_reference(plan: RunPlan) -> SolverResult:
    return ReferenceSolver(plan).solve()


__all__ = ["ReferenceSolver", "solve_reference"]
