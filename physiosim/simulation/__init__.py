"""Physiological simulation core.

The :mod:`physiosim.simulation` package turns a daily schedule of
interventions into time series for every modelled signal.  Definitions,
conditions and pharmacology are declarative tables; two interchangeable
solver backends (:mod:`.solvers.reference` and :mod:`.solvers.vectorized`)
integrate them, and :class:`SimulationEngine` validates requests and picks
the backend.
"""

from .conditions import CONDITIONS, ConditionAdjustments, build_condition_adjustments
from .context import DebugToggles, Physiology, SubjectProfile, derive_physiology
from .engine import (
    InvalidRequestError,
    ScheduledItem,
    SimulationEngine,
    SimulationError,
    SimulationOptions,
    SimulationRequest,
    SimulationResponse,
    run_simulation,
)
from .interventions import INTERVENTIONS, InterventionDef, get_intervention
from .pkpd import PKProfile, simulate_pk_profile
from .state import SimulationState, create_initial_state, from_snapshot, to_snapshot

__all__ = [
    "CONDITIONS",
    "ConditionAdjustments",
    "DebugToggles",
    "INTERVENTIONS",
    "InterventionDef",
    "InvalidRequestError",
    "PKProfile",
    "Physiology",
    "ScheduledItem",
    "SimulationEngine",
    "SimulationError",
    "SimulationOptions",
    "SimulationRequest",
    "SimulationResponse",
    "SimulationState",
    "SubjectProfile",
    "build_condition_adjustments",
    "create_initial_state",
    "derive_physiology",
    "from_snapshot",
    "get_intervention",
    "run_simulation",
    "simulate_pk_profile",
    "to_snapshot",
]
