"""OpenTelemetry providers, auto-instrumentation and JSON logging setup.

Exporters send OTLP over HTTP to ``OTEL_EXPORTER_OTLP_ENDPOINT``. Under
``ENVIRONMENT=test`` the SDK providers are installed without exporters so
spans and metrics are recorded locally and never leave the process.
"""

import logging
import os
from typing import Any

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.botocore import BotocoreInstrumentor
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from pythonjsonlogger import jsonlogger

logger = logging.getLogger(__name__)

SERVICE_NAME = "ordering-svc"
DEFAULT_OTLP_ENDPOINT = "http://localhost:4318"
METRIC_EXPORT_INTERVAL_MS = 60_000


def get_service_resource() -> Resource:
    """Describe this service for every span and metric it emits."""
    return Resource.create(
        {
            "service.name": os.getenv("OTEL_SERVICE_NAME", SERVICE_NAME),
            "service.version": "1.0.0",
            "deployment.environment": os.getenv("ENVIRONMENT", "development"),
        }
    )


def _exporting_providers(resource: Resource) -> tuple[TracerProvider, MeterProvider]:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", DEFAULT_OTLP_ENDPOINT).rstrip("/")

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces"))
    )

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=f"{endpoint}/v1/metrics"),
        export_interval_millis=METRIC_EXPORT_INTERVAL_MS,
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])

    logger.info(f"Exporting traces and metrics to {endpoint}")
    return tracer_provider, meter_provider


def setup_observability(app: Any = None, enable_exporters: bool = True) -> None:
    """Install OpenTelemetry providers and instrument outbound calls.

    httpx (catalog API) and botocore (DynamoDB orders table) are
    instrumented globally; the FastAPI app is instrumented when given.

    Args:
        app: FastAPI application to instrument
        enable_exporters: Send telemetry to the OTLP collector; always off
            when ENVIRONMENT is "test"
    """
    resource = get_service_resource()

    if enable_exporters and os.getenv("ENVIRONMENT", "development") != "test":
        tracer_provider, meter_provider = _exporting_providers(resource)
    else:
        tracer_provider = TracerProvider(resource=resource)
        meter_provider = MeterProvider(resource=resource)

    trace.set_tracer_provider(tracer_provider)
    metrics.set_meter_provider(meter_provider)

    HTTPXClientInstrumentor().instrument()
    BotocoreInstrumentor().instrument()

    if app is not None:
        FastAPIInstrumentor.instrument_app(app)

    logger.info("Observability configured for ordering service")


def configure_logging(log_level: str = "INFO") -> None:
    """Send structured JSON logs to stderr through the root logger.

    ``LOG_LEVEL`` in the environment overrides the argument. Unknown level
    names fall back to INFO.
    """
    level_name = os.getenv("LOG_LEVEL", log_level).upper()

    handler = logging.StreamHandler()
    handler.setFormatter(
        jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            rename_fields={"levelname": "level", "name": "logger"},
            timestamp=True,
        )
    )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))

    logger.info(f"JSON logging enabled at {level_name}")
