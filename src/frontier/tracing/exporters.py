"""JSONL span exporter.

One line per finished span, appended as soon as the span ends so a crashed
run still leaves the spans of every completed test on disk.
"""

import json
import logging
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult


logger = logging.getLogger(__name__)


def _hex(value: int, width: int) -> str:
    return format(value, f"0{width}x")


def _plain(attributes: Mapping[str, Any] | None) -> dict[str, Any]:
    # BoundedAttributes keeps sequences as tuples
    return {key: list(value) if isinstance(value, tuple) else value for key, value in (attributes or {}).items()}


def span_record(span: ReadableSpan) -> dict[str, Any]:
    """Flatten a finished span into the record written to the trace file."""
    start, end = span.start_time or 0, span.end_time or 0
    return {
        "trace_id": _hex(span.context.trace_id, 32),
        "span_id": _hex(span.context.span_id, 16),
        "parent_span_id": _hex(span.parent.span_id, 16) if span.parent else None,
        "name": span.name,
        "start_ns": start,
        "end_ns": end,
        "duration_ms": round((end - start) / 1e6, 3),
        "status": span.status.status_code.name,
        "status_message": span.status.description,
        "attributes": _plain(span.attributes),
        "events": [
            {"name": event.name, "time_ns": event.timestamp, "attributes": _plain(event.attributes)}
            for event in span.events
        ],
    }


class StreamingFileSpanExporter(SpanExporter):
    """Appends span records to ``output_path``; the file is truncated on creation."""

    def __init__(self, output_path: Path | str) -> None:
        self._lock = threading.Lock()
        self.output_path = Path(output_path)
        self.truncate()

    def truncate(self) -> None:
        with self._lock:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_text("", encoding="utf-8")

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        lines = "".join(json.dumps(span_record(span), default=str) + "\n" for span in spans)
        try:
            with self._lock, self.output_path.open("a", encoding="utf-8") as f:
                f.write(lines)
        except OSError as e:
            logger.error("Could not write %d span(s) to %s: %s", len(spans), self.output_path, e)
            return SpanExportResult.FAILURE
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        pass
