"""FastAPI application entrypoint for the physiology simulator."""

from __future__ import annotations

import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router, configure_services
from .config import DEFAULT_TELEMETRY_CONFIG, SolverConfig
from .simulation import SimulationEngine
from .telemetry import configure_telemetry


API_DESCRIPTION = """
The physiosim API integrates a coupled model of neurotransmitters, hormones
and metabolic signals over a daily schedule of interventions.  The service
exposes endpoints to:

* run a simulation over a time grid (`/simulate`)
* list the modelled signals and auxiliary pools (`/signals`)
* list the condition and intervention libraries (`/conditions`, `/interventions`)
* compute a standalone concentration-time curve (`/pk/profile`)

Use the OpenAPI schema for complete request/response examples.
"""


telemetry = configure_telemetry(DEFAULT_TELEMETRY_CONFIG)


app = FastAPI(title="physiosim API", description=API_DESCRIPTION)
telemetry.instrument_app(app)


origins = [origin for origin in os.environ.get("CORS_ORIGINS", "*").split(",") if origin]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


simulation_engine = SimulationEngine(SolverConfig.from_env())
configure_services(simulation_engine=simulation_engine, telemetry=telemetry)

app.include_router(api_router)


__all__ = ["app"]
