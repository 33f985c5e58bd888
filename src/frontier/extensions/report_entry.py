"""Publish key/value report entries for a test.

    @report_entry("Once upon a midnight dreary")
    @report_entry("While I pondered weak and weary", key="Crow2")
    def frontier_raven(): ...

Each annotation is published as its own entry on the test result.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from frontier.annotations.base import Annotation, Policy, annotate
from frontier.annotations.locator import AnnotationFamily, DirectiveKind
from frontier.errors import ConfigurationError


T = TypeVar("T")


@dataclass(frozen=True)
class ReportEntry(Annotation):
    value: str
    key: str = "value"


@dataclass(frozen=True)
class PublishedEntry:
    """A single entry attached to a test result."""

    key: str
    value: str

    def as_dict(self) -> dict[str, str]:
        return {self.key: self.value}


def _translate(annotation: ReportEntry) -> tuple[DirectiveKind, PublishedEntry]:
    if not annotation.key.strip() or not annotation.value.strip():
        msg = f"Report entries can't have blank key or value: {annotation.key}, {annotation.value}"
        raise ConfigurationError(msg)
    return DirectiveKind.PUBLISH_REPORT_ENTRY, PublishedEntry(annotation.key, annotation.value)


REPORT_ENTRY_FAMILY: AnnotationFamily[ReportEntry] = AnnotationFamily(
    name="report_entry",
    annotation_type=ReportEntry,
    translate=_translate,
    policy=Policy.STOP_AT_FIRST,
)


def report_entry(value: str, *, key: str = "value") -> Callable[[T], T]:
    """Publish ``key: value`` when the decorated test runs."""
    return annotate(ReportEntry(value=value, key=key))
