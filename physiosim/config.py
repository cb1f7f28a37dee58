"""Configuration helpers for the simulation service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

import os

SOLVER_BACKENDS = ("reference", "vectorized")


class ConfigurationError(ValueError):
    """Raised when a configuration value cannot be honoured."""


def _parse_positive(raw: str | None, default: float, *, allow_zero: bool = False) -> float:
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = float(raw)
    except (TypeError, ValueError):
        return default
    if parsed < 0.0 or (parsed == 0.0 and not allow_zero):
        return default
    return parsed


@dataclass(slots=True)
class SolverConfig:
    """Which solver backend runs a simulation and how it steps.

    ``warmup_minutes`` is the length of the pre-roll used to settle the
    state onto its daily rhythm before the first grid point; ``0`` disables
    it.  ``max_substep`` bounds the RK4 step in minutes.
    """

    backend: str = "vectorized"
    warmup_minutes: float = 1440.0
    max_substep: float = 1.0

    def __post_init__(self) -> None:
        self.backend = (self.backend or "vectorized").strip().lower()
        if self.backend not in SOLVER_BACKENDS:
            raise ConfigurationError(
                f"Unknown solver backend '{self.backend}'. Expected one of: {', '.join(SOLVER_BACKENDS)}"
            )
        if self.max_substep <= 0.0:
            raise ConfigurationError("max_substep must be positive")
        if self.warmup_minutes < 0.0:
            raise ConfigurationError("warmup_minutes cannot be negative")

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "PHYSIOSIM_",
    ) -> "SolverConfig":
        """Create a configuration object from environment variables."""

        env = env if env is not None else os.environ
        return cls(
            backend=env.get(f"{prefix}SOLVER", "vectorized"),
            warmup_minutes=_parse_positive(env.get(f"{prefix}WARMUP_MINUTES"), 1440.0, allow_zero=True),
            max_substep=_parse_positive(env.get(f"{prefix}MAX_SUBSTEP"), 1.0),
        )


@dataclass(slots=True)
class TelemetryConfig:
    """Runtime configuration for OpenTelemetry exporters."""

    enabled: bool = False
    service_name: str = "physiosim-api"
    environment: str = "development"
    exporter_endpoint: Optional[str] = None
    sampling_ratio: float = 0.1
    capture_metrics: bool = True
    capture_traces: bool = True

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        prefix: str = "OTEL_",
    ) -> "TelemetryConfig":
        """Construct a configuration object from environment variables."""

        env = env if env is not None else os.environ
        enabled_raw = env.get(f"{prefix}ENABLED") or env.get("ENABLE_TELEMETRY")
        enabled = False
        if enabled_raw is not None:
            enabled = str(enabled_raw).strip().lower() not in {"0", "false", "no"}
        endpoint = env.get(f"{prefix}EXPORTER_OTLP_ENDPOINT")
        service_name = env.get(f"{prefix}SERVICE_NAME") or env.get("SERVICE_NAME") or "physiosim-api"
        environment_name = env.get(f"{prefix}ENVIRONMENT") or env.get("DEPLOYMENT_ENV", "development")

        def _parse_ratio(raw: str | None, default: float) -> float:
            if raw is None:
                return default
            try:
                parsed = float(raw)
            except (TypeError, ValueError):
                return default
            return min(max(parsed, 0.0), 1.0)

        sampling_ratio = _parse_ratio(env.get(f"{prefix}SAMPLING_RATIO") or env.get("OTEL_TRACES_SAMPLER_ARG"), 0.1)
        capture_metrics = env.get(f"{prefix}CAPTURE_METRICS", "1").lower() not in {"0", "false", "no"}
        capture_traces = env.get(f"{prefix}CAPTURE_TRACES", "1").lower() not in {"0", "false", "no"}

        return cls(
            enabled=enabled or bool(endpoint),
            service_name=service_name,
            environment=environment_name,
            exporter_endpoint=endpoint,
            sampling_ratio=sampling_ratio,
            capture_metrics=capture_metrics,
            capture_traces=capture_traces,
        )


DEFAULT_TELEMETRY_CONFIG = TelemetryConfig.from_env()


__all__ = [
    "ConfigurationError",
    "DEFAULT_TELEMETRY_CONFIG",
    "SOLVER_BACKENDS",
    "SolverConfig",
    "TelemetryConfig",
]
