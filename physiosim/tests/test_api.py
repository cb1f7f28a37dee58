"""Integration tests for the FastAPI routes using httpx."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from physiosim.api import routes
from physiosim.api.routes import ServiceRegistry, get_services
from physiosim.config import SolverConfig
from physiosim.main import app
from physiosim.simulation import SimulationEngine
from physiosim.simulation.definitions import SIGNAL_DEFINITIONS

pytestmark = pytest.mark.anyio("asyncio")


@pytest.fixture()
def anyio_backend() -> str:  # pragma: no cover - restrict to asyncio for anyio plugin
    return "asyncio"


@pytest.fixture()
async def test_client():
    registry = ServiceRegistry(simulation_engine=SimulationEngine(SolverConfig(warmup_minutes=60.0)))
    app.dependency_overrides[get_services] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


async def test_health(test_client: AsyncClient) -> None:
    response = await test_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_signal_catalogue(test_client: AsyncClient) -> None:
    response = await test_client.get("/signals")
    assert response.status_code == 200
    data = response.json()
    assert {entry["key"] for entry in data["signals"]} == set(SIGNAL_DEFINITIONS)
    assert data["auxiliary"]
    assert all(len(target) == 2 for target in data["aliases"].values())


async def test_condition_and_intervention_libraries(test_client: AsyncClient) -> None:
    conditions = (await test_client.get("/conditions")).json()
    assert "adhd" in {entry["key"] for entry in conditions}

    interventions = (await test_client.get("/interventions")).json()
    by_key = {entry["key"]: entry for entry in interventions}
    assert by_key["meal"]["parametric"] is True
    assert by_key["caffeine"]["parametric"] is False


async def test_simulate_returns_aligned_series(test_client: AsyncClient) -> None:
    payload = {
        "grid": [0, 15, 30, 45, 60],
        "items": [{"id": "coffee", "key": "caffeine", "start": 0, "duration": 5, "params": {"mg": 100}}],
        "options": {"signals": ["dopamine", "cortisol"], "conditions": {"adhd": None}},
    }
    response = await test_client.post("/simulate", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["timepoints"] == [0, 15, 30, 45, 60]
    assert set(data["series"]) == {"dopamine", "cortisol"}
    assert all(len(values) == 5 for values in data["series"].values())
    assert data["backend"] == "vectorized"
    assert data["final_state"]["pk"]["coffee_central"] > 0.0


async def test_simulate_rejects_unsorted_grid(test_client: AsyncClient) -> None:
    response = await test_client.post("/simulate", json={"grid": [0, 10, 5]})
    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "invalid_request"


async def test_simulate_rejects_unknown_debug_toggle(test_client: AsyncClient) -> None:
    response = await test_client.post("/simulate", json={"grid": [0, 1], "options": {"debug": {"enable_magic": False}}})
    assert response.status_code == 422


async def test_pk_profile_for_library_intervention(test_client: AsyncClient) -> None:
    response = await test_client.post("/pk/profile", json={"intervention": "caffeine", "dose": 100, "horizon": 600})
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Caffeine"
    assert len(data["timepoints"]) == 601
    assert data["summary"]["volume_l"] == pytest.approx(49.0)
    assert data["summary"]["cmax"] > 0.0
    assert data["peripheral"] is None


async def test_pk_profile_for_inline_pharmacology(test_client: AsyncClient) -> None:
    payload = {
        "pharmacology": {
            "name": "custom",
            "pk": {"model": "two-compartment", "half_life_min": 90, "k12": 0.02, "k21": 0.01},
            "pd": [{"target": "D2", "mechanism": "Antagonist", "ki": 2.0}],
        },
        "dose": 10,
        "horizon": 120,
    }
    response = await test_client.post("/pk/profile", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["model"] == "two-compartment"
    assert data["peripheral"] is not None


async def test_pk_profile_errors(test_client: AsyncClient) -> None:
    missing = await test_client.post("/pk/profile", json={"intervention": "nope"})
    assert missing.status_code == 404
    assert missing.json()["detail"]["code"] == "intervention_not_found"

    empty = await test_client.post("/pk/profile", json={})
    assert empty.status_code == 422
    assert empty.json()["detail"]["code"] == "missing_pharmacology"

    out_of_range = await test_client.post("/pk/profile", json={"intervention": "caffeine", "agent": 3})
    assert out_of_range.status_code == 422
    assert out_of_range.json()["detail"]["context"] == {"agent": 3, "available": 1}


async def test_pk_profile_integration_failure_uses_error_envelope(
    test_client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing_profile(*args, **kwargs):
        raise RuntimeError("PK integration failed: step size too small")

    monkeypatch.setattr(routes, "simulate_pk_profile", failing_profile)
    response = await test_client.post("/pk/profile", json={"intervention": "caffeine", "horizon": 60})
    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail["code"] == "pk_integration_failed"
    assert "step size" in detail["message"]
    assert detail["context"] == {"model": "one-compartment"}
