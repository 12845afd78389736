"""Tracing for the assistant: HTTP requests, MongoDB commands and model calls.

``OBSERVABILITY`` selects the provider:

- ``"logfire"`` — Pydantic Logfire (``LOGFIRE_TOKEN``; spans stay local without one)
- ``"otel"``    — OpenTelemetry SDK exporting over OTLP/HTTP
- ``"off"``     — nothing is instrumented (default)

Model calls are traced by the agent itself (``create_agent(instrument=...)``)
once a provider is active.  Providers are optional installs
(``pip install .[observability]``).
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI
from loguru import logger

from municipal_assistant import __version__
from municipal_assistant.config import Settings

# Liveness probes would otherwise dominate the trace volume
_EXCLUDED_URLS = "/health"


def _enable_logfire(app: FastAPI, settings: Settings) -> None:
    import logfire

    logfire.configure(
        service_name=settings.otel_service_name,
        service_version=__version__,
        send_to_logfire="if-token-present",
        console=False,
    )
    logfire.instrument_fastapi(app, excluded_urls=_EXCLUDED_URLS)
    logfire.instrument_pymongo()


def _enable_otel(app: FastAPI, settings: Settings) -> None:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.instrumentation.pymongo import PymongoInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import (
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "service.version": __version__,
                "service.namespace": "municipal-services",
            }
        )
    )
    endpoint = settings.otel_exporter_otlp_endpoint.rstrip("/")
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=f"{endpoint}/v1/traces")))
    if settings.otel_console_exporter:
        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))
    trace.set_tracer_provider(provider)

    FastAPIInstrumentor.instrument_app(app, excluded_urls=_EXCLUDED_URLS)
    PymongoInstrumentor().instrument()


_PROVIDERS: dict[str, Callable[[FastAPI, Settings], None]] = {
    "logfire": _enable_logfire,
    "otel": _enable_otel,
}


def is_observability_active(settings: Settings) -> bool:
    return settings.observability.lower() in _PROVIDERS


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Instrument *app* with the configured provider; no-op when off."""
    mode = settings.observability.lower()
    if mode == "off":
        return

    enable = _PROVIDERS.get(mode)
    if enable is None:
        logger.warning("Unknown OBSERVABILITY mode '{}', tracing stays off", mode)
        return

    enable(app, settings)
    logger.info(
        "Tracing enabled | provider={} | service={} | endpoint={}",
        mode,
        settings.otel_service_name,
        settings.otel_exporter_otlp_endpoint if mode == "otel" else "logfire",
    )
