"""FastAPI router wiring the simulation engine and its catalogues."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from fastapi import APIRouter, Depends, HTTPException, status

from ..config import ConfigurationError, SolverConfig, TelemetryConfig
from ..simulation.conditions import CONDITIONS, ConditionDef
from ..simulation.definitions import ALIASES, AUXILIARY_DEFINITIONS, SIGNAL_DEFINITIONS
from ..simulation.engine import (
    InvalidRequestError,
    SimulationEngine,
    SimulationError,
    SimulationOptions,
    SimulationRequest,
)
from ..simulation.interventions import INTERVENTIONS, InterventionDef, get_intervention
from ..simulation.pharmacology import ComputedPharmacology, dose_of
from ..simulation.pkpd import simulate_pk_profile
from ..telemetry import TelemetryManager
from . import schemas

LOGGER = logging.getLogger(__name__)


@dataclass
class ServiceRegistry:
    """Container bundling service layer dependencies for the API."""

    simulation_engine: SimulationEngine = field(default_factory=lambda: SimulationEngine(SolverConfig.from_env()))
    interventions: Mapping[str, InterventionDef] = field(default_factory=lambda: INTERVENTIONS)
    conditions: Mapping[str, ConditionDef] = field(default_factory=lambda: CONDITIONS)
    telemetry: TelemetryManager = field(default_factory=lambda: TelemetryManager(TelemetryConfig()))

    def configure(
        self,
        *,
        simulation_engine: SimulationEngine | None = None,
        interventions: Mapping[str, InterventionDef] | None = None,
        conditions: Mapping[str, ConditionDef] | None = None,
        telemetry: TelemetryManager | None = None,
    ) -> None:
        if simulation_engine is not None:
            self.simulation_engine = simulation_engine
        if interventions is not None:
            self.interventions = interventions
        if conditions is not None:
            self.conditions = conditions
        if telemetry is not None:
            self.telemetry = telemetry


services = ServiceRegistry()


def configure_services(
    *,
    simulation_engine: SimulationEngine | None = None,
    interventions: Mapping[str, InterventionDef] | None = None,
    conditions: Mapping[str, ConditionDef] | None = None,
    telemetry: TelemetryManager | None = None,
) -> None:
    """Configure the shared service registry used by API routes."""

    services.configure(
        simulation_engine=simulation_engine,
        interventions=interventions,
        conditions=conditions,
        telemetry=telemetry,
    )


def get_services() -> ServiceRegistry:
    return services


def _http_error(status_code: int, code: str, message: str, *, context: Dict[str, object] | None = None) -> HTTPException:
    payload = schemas.ErrorPayload(code=code, message=message, context=context or {})
    return HTTPException(status_code=status_code, detail=payload.model_dump())


router = APIRouter()


@router.get("/health")
def health() -> dict[str, str]:
    """Liveness probe used by uptime monitors."""

    return {"status": "ok"}


@router.post("/simulate", response_model=schemas.SimulationResponse)
def run_simulation(
    request: schemas.SimulationRequest,
    svc: ServiceRegistry = Depends(get_services),
) -> schemas.SimulationResponse:
    options: SimulationOptions = request.options.to_domain()
    unknown = [key for key in options.conditions if key not in svc.conditions]
    if unknown:
        LOGGER.info("Request enabled unknown conditions: %s", ", ".join(sorted(unknown)))
    engine_request = SimulationRequest(
        grid=request.grid,
        items=[item.to_domain() for item in request.items],
        interventions=svc.interventions,
        options=options,
    )
    try:
        with svc.telemetry.track_run(
            "simulate", grid_points=len(request.grid), items=len(request.items)
        ) as details:
            result = svc.simulation_engine.run(engine_request, backend=request.backend)
            details["backend"] = result.backend
    except InvalidRequestError as exc:
        raise _http_error(status.HTTP_422_UNPROCESSABLE_ENTITY, "invalid_request", str(exc)) from exc
    except ConfigurationError as exc:
        raise _http_error(status.HTTP_400_BAD_REQUEST, "invalid_backend", str(exc)) from exc
    except SimulationError as exc:
        raise _http_error(status.HTTP_500_INTERNAL_SERVER_ERROR, "simulation_failed", str(exc)) from exc
    return schemas.SimulationResponse(**result.to_dict())


@router.get("/signals", response_model=schemas.SignalCatalogue)
def list_signals() -> schemas.SignalCatalogue:
    return schemas.SignalCatalogue(
        signals=[schemas.SignalDescriptor.from_domain(definition) for definition in SIGNAL_DEFINITIONS.values()],
        auxiliary=[
            schemas.AuxiliaryDescriptor(key=definition.key, label=definition.label, initial=definition.initial)
            for definition in AUXILIARY_DEFINITIONS.values()
        ],
        aliases=dict(ALIASES),
    )


@router.get("/conditions", response_model=List[schemas.ConditionDescriptor])
def list_conditions(svc: ServiceRegistry = Depends(get_services)) -> List[schemas.ConditionDescriptor]:
    return [
        schemas.ConditionDescriptor(
            key=condition.key,
            label=condition.label,
            param=condition.param,
            default=condition.default,
            mechanistic=condition.is_mechanistic,
        )
        for condition in svc.conditions.values()
    ]


@router.get("/interventions", response_model=List[schemas.InterventionDescriptor])
def list_interventions(svc: ServiceRegistry = Depends(get_services)) -> List[schemas.InterventionDescriptor]:
    return [
        schemas.InterventionDescriptor(
            key=definition.key,
            label=definition.label,
            category=definition.category,
            default_duration=definition.default_duration,
            description=definition.description,
            parametric=isinstance(definition.resolver, ComputedPharmacology),
        )
        for definition in svc.interventions.values()
    ]


@router.post("/pk/profile", response_model=schemas.PKProfileResponse)
def pk_profile(
    request: schemas.PKProfileRequest,
    svc: ServiceRegistry = Depends(get_services),
) -> schemas.PKProfileResponse:
    if request.pharmacology is not None:
        agents = (request.pharmacology.to_domain(),)
    elif request.intervention is not None:
        definition = get_intervention(request.intervention, svc.interventions)
        if definition is None:
            raise _http_error(
                status.HTTP_404_NOT_FOUND,
                "intervention_not_found",
                f"Intervention '{request.intervention}' is not in the library.",
                context={"intervention": request.intervention},
            )
        agents = definition.resolve(request.params)
    else:
        raise _http_error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "missing_pharmacology",
            "Provide either an intervention key or an inline pharmacology definition.",
        )
    if request.agent >= len(agents):
        raise _http_error(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            "agent_out_of_range",
            f"Intervention resolves to {len(agents)} agent(s).",
            context={"agent": request.agent, "available": len(agents)},
        )
    agent = agents[request.agent]
    dose = request.dose if request.dose is not None else dose_of(agent, request.params)
    try:
        with svc.telemetry.track_run("pk_profile", model=agent.pk.model, horizon=request.horizon):
            profile = simulate_pk_profile(
                agent,
                dose=dose,
                duration=request.duration,
                horizon=request.horizon,
                intensity=request.intensity,
                subject=request.subject.to_domain(),
                physiology=request.physiology.to_domain(),
            )
    except RuntimeError as exc:
        LOGGER.warning("PK integration failed for %s: %s", agent.molecule.name, exc)
        raise _http_error(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "pk_integration_failed",
            str(exc),
            context={"model": agent.pk.model},
        ) from exc
    return schemas.PKProfileResponse(
        name=agent.molecule.name,
        model=agent.pk.model,
        timepoints=profile.timepoints.tolist(),
        central=profile.central.tolist(),
        gut=profile.gut.tolist() if profile.gut is not None else None,
        peripheral=profile.peripheral.tolist() if profile.peripheral is not None else None,
        summary=profile.summary,
    )


api_router = router


__all__ = ["ServiceRegistry", "api_router", "configure_services", "get_services", "router"]
