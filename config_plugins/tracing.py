"""
OpenTelemetry Tracing
=====================
Spans for mod pipeline runs.

``compile_mods`` calls :func:`init_tracing` once per run. Every base-mod stage
then opens a span through :func:`stage_span`, so a compiled run shows up as a
tree of nested stages. With ``ENABLE_TRACING`` off the global no-op tracer is
used and spans cost nothing.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, Optional

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource, SERVICE_NAME

from config_plugins.config import TRACING

_provider: Optional[TracerProvider] = None
_tracer: Optional[trace.Tracer] = None


def _shutdown_provider() -> None:
    """Flush pending stage spans on interpreter exit."""
    if _provider is not None:
        try:
            _provider.shutdown()
        except Exception:
            pass  # Best effort at exit


def setup_tracing(service_name: str = TRACING.SERVICE_NAME) -> trace.Tracer:
    """Install an OTLP-exporting tracer provider and return a tracer for it."""
    global _provider

    _provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    _provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=TRACING.OTLP_ENDPOINT)))
    trace.set_tracer_provider(_provider)
    atexit.register(_shutdown_provider)

    return trace.get_tracer(service_name)


def init_tracing() -> trace.Tracer:
    """Set up tracing on first use when ``TRACING.ENABLED``; later calls reuse it."""
    global _tracer
    if _tracer is None:
        _tracer = setup_tracing() if TRACING.ENABLED else trace.get_tracer(TRACING.SERVICE_NAME)
    return _tracer


def set_span_attributes(span: Any, attributes: Mapping[str, Any]) -> None:
    """Set scalar attributes on ``span``; ``None`` values are skipped, others are stringified."""
    setter = getattr(span, "set_attribute", None)
    if not callable(setter):
        return

    for key, value in attributes.items():
        if value is None:
            continue
        if isinstance(value, (bool, int, float)):
            setter(key, value)
        else:
            setter(key, str(value)[:2048])


@contextmanager
def stage_span(method_name: str, platform: str, mod_name: str) -> Iterator[Any]:
    """Open a span for one base-mod run, tagged with its platform and mod."""
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(method_name) as span:
        set_span_attributes(span, {"mod.platform": platform, "mod.name": mod_name})
        yield span
