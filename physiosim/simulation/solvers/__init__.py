"""Solver backends.

Both backends consume the same :class:`~.schedule.RunPlan` and return a
:class:`~.schedule.SolverResult`; they are interchangeable up to floating
point round-off.
"""

from __future__ import annotations

from typing import Callable, Dict

from .reference import ReferenceSolver, solve_reference
from .schedule import ActiveSweep, RunPlan, ScheduledItem, SolverResult, prepare_run
from .vectorized import VectorizedSolver, solve_vectorized

SOLVERS: Dict[str, Callable[[RunPlan], SolverResult]] = {
    "reference": solve_reference,
    "vectorized": solve_vectorized,
}

__all__ = [
    "ActiveSweep",
    "ReferenceSolver",
    "RunPlan",
    "SOLVERS",
    "ScheduledItem",
    "SolverResult",
    "VectorizedSolver",
    "prepare_run",
    "solve_reference",
    "solve_vectorized",
]
