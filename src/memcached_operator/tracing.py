"""OpenTelemetry spans around reconcile passes and their steps."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from . import __version__
from .config import OperatorConfig, get_config

logger = logging.getLogger(__name__)

# Set once tracing is enabled; spans are skipped while None
_tracer: Tracer | None = None


def initialize_tracing(cfg: OperatorConfig | None = None) -> None:
    """Install an OTLP exporting tracer provider if tracing is enabled.

    Args:
        cfg: Operator configuration (defaults to the process configuration)
    """
    global _tracer

    cfg = cfg or get_config()
    if not cfg.traces_enabled:
        logger.debug("Tracing disabled")
        return

    try:
        provider = TracerProvider(
            resource=Resource.create({
                "service.name": cfg.service_name,
                "service.version": __version__,
            })
        )
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=cfg.otlp_endpoint)))
        trace.set_tracer_provider(provider)
        _tracer = trace.get_tracer(cfg.service_name)
    except Exception as e:
        logger.warning(f"Failed to initialize tracing: {e}")
        return
    logger.info(f"Exporting traces to {cfg.otlp_endpoint}")


def get_tracer() -> Tracer | None:
    return _tracer


@contextmanager
def trace_span(
    name: str,
    kind: str | None = None,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span | None]:
    """Run a block inside a span named ``name``.

    Exceptions escaping the block are recorded on the span and re-raised.
    Yields None when tracing is off.
    """
    tracer = get_tracer()
    if tracer is None:
        yield None
        return

    attrs = dict(attributes or {})
    if kind:
        attrs["resource.kind"] = kind

    with tracer.start_as_current_span(name, attributes=attrs) as span:
        try:
            yield span
        except Exception as e:
            if span.is_recording():
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attribute(key: str, value: Any) -> None:
    """Set an attribute on the current span, if one is recording."""
    span = trace.get_current_span()
    if span.is_recording():
        span.set_attribute(key, value)
