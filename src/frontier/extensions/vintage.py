"""Compatibility shim for legacy-style test declarations.

``@vintage_test(expected=ValueError)`` passes only if the test raises a
``ValueError`` (or a subclass). ``@vintage_test(timeout=50)`` fails the test
if it ran longer than 50 milliseconds. The timeout is checked after the test
finishes; it does not interrupt it.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from frontier.annotations.base import Annotation, Policy, annotate
from frontier.annotations.locator import AnnotationFamily, DirectiveKind, locate
from frontier.annotations.scopes import context_for
from frontier.errors import ConfigurationError


T = TypeVar("T")

EXPECTED_EXCEPTION_WAS_NOT_THROWN = "Expected exception {} was not thrown."
TEST_RAN_TOO_LONG = "Test {} was supposed to run no longer than {} ms but ran {} ms."


@dataclass(frozen=True)
class VintageTest(Annotation):
    repeatable = False

    expected: type[BaseException] | None = None
    timeout: int = 0


def _translate(annotation: VintageTest) -> tuple[DirectiveKind, VintageTest]:
    if annotation.expected is not None and not (
        isinstance(annotation.expected, type) and issubclass(annotation.expected, Exception)
    ):
        msg = f"VintageTest expected must be an exception type, got {annotation.expected!r}"
        raise ConfigurationError(msg)
    if annotation.timeout < 0:
        msg = f"VintageTest timeout must not be negative, got {annotation.timeout}"
        raise ConfigurationError(msg)
    return DirectiveKind.WRAP_INVOCATION, annotation


VINTAGE_FAMILY: AnnotationFamily[VintageTest] = AnnotationFamily(
    name="vintage",
    annotation_type=VintageTest,
    translate=_translate,
    policy=Policy.STOP_AT_FIRST,
    repeatable=False,
)


def vintage_test(expected: type[Exception] | None = None, timeout: int = 0) -> Callable[[T], T]:
    """Declare a legacy-style test with an expected exception and/or timeout in ms."""
    return annotate(VintageTest(expected=expected, timeout=timeout))


def vintage_settings(fn: Callable[..., object]) -> VintageTest | None:
    """The shim annotation directly on ``fn``, if any."""
    directives = locate(context_for(fn), VINTAGE_FAMILY)
    return directives[0].payload if directives else None


def evaluate(
    settings: VintageTest,
    test_name: str,
    error: BaseException | None,
    duration_ms: float,
) -> BaseException | None:
    """Translate a finished invocation into its legacy outcome.

    Returns the error the test should be reported with, or None if it passed.
    """
    if settings.expected is not None:
        if error is None:
            return AssertionError(EXPECTED_EXCEPTION_WAS_NOT_THROWN.format(settings.expected.__name__))
        if isinstance(error, settings.expected):
            error = None
        else:
            return error
    elif error is not None:
        return error

    if settings.timeout and duration_ms > settings.timeout:
        return AssertionError(TEST_RAN_TOO_LONG.format(test_name, settings.timeout, int(duration_ms)))
    return None
