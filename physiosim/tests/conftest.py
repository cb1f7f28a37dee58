import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from physiosim.config import SolverConfig
from physiosim.simulation import ScheduledItem, SimulationEngine


@pytest.fixture()
def short_warmup() -> SolverConfig:
    """Solver settings that keep reference-backend runs quick."""

    return SolverConfig(backend="reference", warmup_minutes=120.0)


@pytest.fixture()
def engine() -> SimulationEngine:
    return SimulationEngine(SolverConfig(backend="vectorized"))


@pytest.fixture()
def caffeine_item() -> ScheduledItem:
    return ScheduledItem(id="coffee", key="caffeine", start=0.0, duration=5.0, params={"mg": 100})


@pytest.fixture()
def sleep_item() -> ScheduledItem:
    # 23:00 bedtime relative to a run that starts at 22:00
    return ScheduledItem(id="night", key="sleep", start=60.0, duration=480.0)
