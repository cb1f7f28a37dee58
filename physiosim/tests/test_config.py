import pytest

from physiosim.config import ConfigurationError, SolverConfig, TelemetryConfig


def test_solver_config_defaults() -> None:
    config = SolverConfig.from_env({})

    assert config.backend == "vectorized"
    assert config.warmup_minutes == 1440.0
    assert config.max_substep == 1.0


def test_solver_config_reads_prefixed_environment() -> None:
    env = {
        "PHYSIOSIM_SOLVER": " Reference ",
        "PHYSIOSIM_WARMUP_MINUTES": "0",
        "PHYSIOSIM_MAX_SUBSTEP": "0.5",
    }

    config = SolverConfig.from_env(env)

    assert config.backend == "reference"
    assert config.warmup_minutes == 0.0
    assert config.max_substep == 0.5


def test_solver_config_ignores_unparseable_numbers() -> None:
    env = {"PHYSIOSIM_WARMUP_MINUTES": "soon", "PHYSIOSIM_MAX_SUBSTEP": "-2"}

    config = SolverConfig.from_env(env)

    assert config.warmup_minutes == 1440.0
    assert config.max_substep == 1.0


def test_solver_config_rejects_unknown_backend() -> None:
    with pytest.raises(ConfigurationError):
        SolverConfig.from_env({"PHYSIOSIM_SOLVER": "cuda"})
    with pytest.raises(ConfigurationError):
        SolverConfig(max_substep=0.0)
    with pytest.raises(ConfigurationError):
        SolverConfig(warmup_minutes=-1.0)


def test_telemetry_config_disabled_by_default() -> None:
    config = TelemetryConfig.from_env({})

    assert not config.enabled
    assert config.service_name == "physiosim-api"
    assert config.sampling_ratio == 0.1


def test_telemetry_config_enabled_by_endpoint() -> None:
    env = {
        "OTEL_EXPORTER_OTLP_ENDPOINT": "https://collector.example/v1",
        "OTEL_SERVICE_NAME": "sim-worker",
        "OTEL_SAMPLING_RATIO": "7",
        "OTEL_CAPTURE_METRICS": "false",
    }

    config = TelemetryConfig.from_env(env)

    assert config.enabled
    assert config.service_name == "sim-worker"
    # ratios are clamped into [0, 1]
    assert config.sampling_ratio == 1.0
    assert not config.capture_metrics
    assert config.capture_traces


def test_solver_config_reads_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PHYSIOSIM_SOLVER", "reference")
    monkeypatch.delenv("PHYSIOSIM_WARMUP_MINUTES", raising=False)

    config = SolverConfig.from_env()

    assert config.backend == "reference"
    assert config.warmup_minutes == 1440.0
