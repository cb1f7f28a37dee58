"""OpenTelemetry wiring for simulation runs.

Telemetry is optional: without the ``telemetry`` extra, or with
``OTEL_ENABLED`` unset, every hook below is a no-op and the API behaves the
same.  When enabled, each simulation and PK profile request produces a span
carrying the backend, grid size and schedule size, and two instruments
record run counts and wall-clock durations.
"""

from __future__ import annotations

import contextlib
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

from .config import TelemetryConfig

LOGGER = logging.getLogger(__name__)

if TYPE_CHECKING:  # pragma: no cover - typing only
    from fastapi import FastAPI

TRACER_NAME = "physiosim.simulation"
RUN_COUNTER = "physiosim.runs"
RUN_DURATION = "physiosim.run.duration"


@dataclass
class TelemetryManager:
    """Own the tracer/meter providers and the run instruments."""

    config: TelemetryConfig
    _shutdown_hooks: List[Callable[[], None]] = field(default_factory=list)
    _instrument_fastapi: Optional[Callable[["FastAPI"], None]] = None
    _tracer: Any = None
    _runs: Any = None
    _durations: Any = None

    @property
    def enabled(self) -> bool:
        return self._tracer is not None or self._runs is not None

    def configure(self) -> None:
        if not self.config.enabled:
            LOGGER.debug("Telemetry disabled by configuration")
            return
        if not (self.config.capture_traces or self.config.capture_metrics):
            LOGGER.debug("Telemetry enabled without traces or metrics; nothing to export")
            return
        try:
            from opentelemetry import metrics, trace
            from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
            from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
            from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
            from opentelemetry.sdk.metrics import MeterProvider
            from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
            from opentelemetry.sdk.resources import Resource
            from opentelemetry.sdk.trace import TracerProvider
            from opentelemetry.sdk.trace.export import BatchSpanProcessor
            from opentelemetry.sdk.trace.sampling import TraceIdRatioBased
        except ImportError:
            LOGGER.warning("OpenTelemetry SDK not installed; simulation telemetry disabled")
            return

        resource = Resource.create(
            {"service.name": self.config.service_name, "deployment.environment": self.config.environment}
        )
        endpoint = self.config.exporter_endpoint

        if self.config.capture_traces:
            provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(self.config.sampling_ratio))
            try:
                provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
            except Exception as exc:  # pragma: no cover - exporter wiring
                LOGGER.warning("Failed to initialise OTLP span exporter: %s", exc)
            else:
                trace.set_tracer_provider(provider)
                self._tracer = trace.get_tracer(TRACER_NAME)
                self._shutdown_hooks.append(provider.shutdown)
                LOGGER.info("Simulation tracing exported to %s", endpoint)

        if self.config.capture_metrics:
            try:
                reader = PeriodicExportingMetricReader(OTLPMetricExporter(endpoint=endpoint))
            except Exception as exc:  # pragma: no cover - exporter wiring
                LOGGER.warning("Failed to initialise OTLP metric exporter: %s", exc)
            else:
                meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
                metrics.set_meter_provider(meter_provider)
                meter = metrics.get_meter(TRACER_NAME)
                self._runs = meter.create_counter(RUN_COUNTER, unit="1", description="Completed simulation runs")
                self._durations = meter.create_histogram(
                    RUN_DURATION, unit="s", description="Wall-clock time spent in a solver"
                )
                self._shutdown_hooks.append(meter_provider.shutdown)
                LOGGER.info("Simulation metrics exported to %s", endpoint)

        self._instrument_fastapi = FastAPIInstrumentor().instrument_app

    def instrument_app(self, app: "FastAPI") -> None:
        if self._instrument_fastapi is None:
            return
        try:
            self._instrument_fastapi(app)
        except Exception as exc:  # pragma: no cover - instrumentation failure
            LOGGER.warning("FastAPI instrumentation failed: %s", exc)

    @contextlib.contextmanager
    def track_run(self, kind: str, **attributes: Any) -> Iterator[Dict[str, Any]]:
        """Time one solver invocation and attach ``attributes`` to its span.

        The yielded dict can be extended inside the block (for example with
        the backend that actually ran); its contents are recorded on exit.
        """

        details: Dict[str, Any] = dict(attributes)
        started = time.perf_counter()
        span_scope = (
            self._tracer.start_as_current_span(f"physiosim.{kind}")
            if self._tracer is not None
            else contextlib.nullcontext()
        )
        with span_scope as span:
            yield details
            elapsed = time.perf_counter() - started
            labels = {"kind": kind, **{key: value for key, value in details.items() if isinstance(value, str)}}
            if span is not None:
                for key, value in details.items():
                    span.set_attribute(f"physiosim.{key}", value)
            if self._runs is not None:
                self._runs.add(1, labels)
                self._durations.record(elapsed, labels)
            LOGGER.debug("%s finished in %.3fs (%s)", kind, elapsed, details)

    def shutdown(self) -> None:
        for hook in reversed(self._shutdown_hooks):
            try:
                hook()
            except Exception as exc:  # pragma: no cover - best effort cleanup
                LOGGER.debug("Telemetry shutdown hook failed: %s", exc)
        self._shutdown_hooks.clear()


def configure_telemetry(config: TelemetryConfig) -> TelemetryManager:
    manager = TelemetryManager(config=config)
    manager.configure()
    return manager


__all__ = ["RUN_COUNTER", "RUN_DURATION", "TelemetryManager", "configure_telemetry"]
