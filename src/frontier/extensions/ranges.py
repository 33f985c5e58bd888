"""Numeric range argument sources.

A range source feeds the test's first parameter that is not already covered
by ``@parametrize``::

    @int_range(0, 10, step=2, closed=True)
    def frontier_even(value): ...
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import validate_call

from frontier.annotations.base import Annotation, Policy, annotate
from frontier.annotations.locator import AnnotationFamily, DirectiveKind, locate
from frontier.annotations.scopes import context_for
from frontier.errors import ConfigurationError


T = TypeVar("T")


@dataclass(frozen=True)
class RangeSource(Annotation):
    """A half-open (or closed) arithmetic progression of numbers."""

    repeatable = False

    start: float
    end: float
    step: float
    closed: bool = False

    def validate(self) -> None:
        if self.step == 0:
            raise ConfigurationError("Illegal range. The step cannot be zero.")
        if self.start == self.end and not self.closed:
            raise ConfigurationError("Illegal range. Equal from and to will produce an empty range.")
        if (self.start < self.end and self.step < 0) or (self.start > self.end and self.step > 0):
            msg = f"Illegal range. There's no way to get from {self.start} to {self.end} with a step of {self.step}."
            raise ConfigurationError(msg)

    def _in_range(self, value: float) -> bool:
        if self.step > 0:
            return value <= self.end if self.closed else value < self.end
        return value >= self.end if self.closed else value > self.end

    def values(self) -> Iterator[Any]:
        i = 0
        while True:
            value = self.start + i * self.step
            if not self._in_range(value):
                return
            yield value
            i += 1


@dataclass(frozen=True)
class IntRange(RangeSource):
    start: int
    end: int
    step: int = 1
    closed: bool = False

    def values(self) -> Iterator[int]:
        stop = self.end + (1 if self.step > 0 else -1) if self.closed else self.end
        yield from range(self.start, stop, self.step)


@dataclass(frozen=True)
class FloatRange(RangeSource):
    start: float
    end: float
    step: float = 1.0
    closed: bool = False

    def validate(self) -> None:
        for label, number in (("from", self.start), ("to", self.end), ("step", self.step)):
            if not math.isfinite(number):
                msg = f"Illegal range. The '{label}' value must be finite, got {number}."
                raise ConfigurationError(msg)
        super().validate()


def _translate(annotation: RangeSource) -> tuple[DirectiveKind, tuple[Any, ...]]:
    annotation.validate()
    return DirectiveKind.GENERATE_ARGUMENTS, tuple(annotation.values())


RANGE_FAMILY: AnnotationFamily[RangeSource] = AnnotationFamily(
    name="range_source",
    annotation_type=RangeSource,
    translate=_translate,
    policy=Policy.STOP_AT_FIRST,
    repeatable=False,
)


@validate_call
def int_range(start: int, end: int, step: int = 1, closed: bool = False) -> Callable[[T], T]:
    """Feed ``start, start + step, ...`` up to ``end`` (included when ``closed``)."""
    return annotate(IntRange(start=start, end=end, step=step, closed=closed))


@validate_call
def float_range(start: float, end: float, step: float = 1.0, closed: bool = False) -> Callable[[T], T]:
    """Float counterpart of :func:`int_range`."""
    return annotate(FloatRange(start=start, end=end, step=step, closed=closed))


def range_values(fn: Callable[..., Any]) -> tuple[Any, ...] | None:
    """Values generated by the range source on ``fn``, or None without one."""
    directives = locate(context_for(fn), RANGE_FAMILY)
    if not directives:
        return None
    return directives[0].payload
