"""Tracer provider setup for frontier runs.

Tracing is opt-in: until :func:`init_tracing` installs a provider, the
OpenTelemetry API hands out no-op tracers and ``trace_step`` costs nothing.
The global provider can only be installed once per process, so later calls
only move the output file.
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.trace import Status, StatusCode

from frontier.tracing.exporters import StreamingFileSpanExporter
from frontier.version import __version__


TRACER_NAME = "frontier"

_exporter: StreamingFileSpanExporter | None = None
_setup_lock = threading.Lock()


def init_tracing(
    *,
    service_name: str = "frontier",
    output_path: Path | str = "traces.jsonl",
) -> None:
    """Export every finished span to ``output_path`` as JSON lines."""
    global _exporter

    with _setup_lock:
        if _exporter is None:
            _exporter = StreamingFileSpanExporter(output_path)
            provider = TracerProvider(
                resource=Resource.create({"service.name": service_name, "service.version": __version__})
            )
            provider.add_span_processor(SimpleSpanProcessor(_exporter))
            trace.set_tracer_provider(provider)
            return

    set_trace_output_path(output_path)


def set_trace_output_path(output_path: Path | str) -> None:
    """Send spans to a fresh file at ``output_path``."""
    if _exporter is None:
        init_tracing(output_path=output_path)
        return
    _exporter.output_path = Path(output_path)
    _exporter.truncate()


def get_tracer(name: str = TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name, __version__)


def clear_traces() -> None:
    """Empty the current trace file, if tracing was initialized."""
    if _exporter is not None:
        _exporter.truncate()


@contextmanager
def trace_step(name: str, attributes: dict[str, Any] | None = None) -> Iterator[trace.Span]:
    """Trace a step inside a test; it nests under the test's own span.

    An exception escaping the block marks the step as failed and propagates.
    """
    with get_tracer().start_as_current_span(
        name, attributes=attributes, record_exception=False, set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
