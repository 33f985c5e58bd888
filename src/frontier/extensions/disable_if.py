"""Disable parameterized invocations based on argument content.

Matching is done on ``str(argument)``: ``contains`` is a case-sensitive
substring test, ``matches`` a full regular-expression match. Tests that are
not parameterized are never affected.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from frontier.annotations.base import Annotation, Policy, annotate
from frontier.annotations.locator import AnnotationFamily, DirectiveKind
from frontier.errors import ConfigurationError


T = TypeVar("T")


class Selector(Enum):
    """Which arguments a filter is evaluated against."""

    SINGLE = "single"
    ANY = "any"
    ALL = "all"


@dataclass(frozen=True)
class DisableIfAnnotation(Annotation):
    contains: tuple[str, ...] = ()
    matches: tuple[str, ...] = ()


@dataclass(frozen=True)
class DisableIfParameter(DisableIfAnnotation):
    index: int | None = None
    name: str | None = None


@dataclass(frozen=True)
class DisableIfAnyParameter(DisableIfAnnotation):
    pass


@dataclass(frozen=True)
class DisableIfAllParameters(DisableIfAnnotation):
    pass


@dataclass(frozen=True)
class ArgumentFilter:
    """Target selector plus content predicate for one filter directive."""

    selector: Selector
    contains: tuple[str, ...]
    patterns: tuple[re.Pattern[str], ...]
    index: int | None = None
    name: str | None = None

    def match(self, argument: Any) -> str | None:
        """Return a description of the first match for ``argument``, or None."""
        text = str(argument)
        for needle in self.contains:
            if needle in text:
                return f"contains '{needle}'"
        for pattern in self.patterns:
            if pattern.fullmatch(text):
                return f"matches '{pattern.pattern}'"
        return None


_SELECTORS: dict[type[DisableIfAnnotation], Selector] = {
    DisableIfParameter: Selector.SINGLE,
    DisableIfAnyParameter: Selector.ANY,
    DisableIfAllParameters: Selector.ALL,
}


def _translate(annotation: DisableIfAnnotation) -> tuple[DirectiveKind, ArgumentFilter]:
    name = annotation.display_name
    if bool(annotation.contains) == bool(annotation.matches):
        msg = f"{name} requires that either `contains` or `matches` is set."
        raise ConfigurationError(msg)

    index: int | None = None
    target_name: str | None = None
    if isinstance(annotation, DisableIfParameter):
        if annotation.index is not None and annotation.name:
            msg = f"Using both name and index parameter targeting in a single @{name} is not permitted."
            raise ConfigurationError(msg)
        if annotation.index is not None and annotation.index < 0:
            msg = f"Annotation has invalid index [{annotation.index}], should be zero or greater"
            raise ConfigurationError(msg)
        index = annotation.index
        target_name = annotation.name or None

    try:
        patterns = tuple(re.compile(expr) for expr in annotation.matches)
    except re.error as e:
        msg = f"{name} has an invalid `matches` expression: {e}"
        raise ConfigurationError(msg) from e

    return DirectiveKind.FILTER_BY_ARGUMENT_CONTENT, ArgumentFilter(
        selector=_SELECTORS[type(annotation)],
        contains=tuple(annotation.contains),
        patterns=patterns,
        index=index,
        name=target_name,
    )


DISABLE_IF_FAMILY: AnnotationFamily[DisableIfAnnotation] = AnnotationFamily(
    name="disable_if",
    annotation_type=DisableIfAnnotation,
    translate=_translate,
    policy=Policy.ACCUMULATE,
)


def _as_tuple(values: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(values, str):
        return (values,)
    return tuple(values)


def disable_if_parameter(
    *,
    index: int | None = None,
    name: str | None = None,
    contains: str | Sequence[str] = (),
    matches: str | Sequence[str] = (),
) -> Callable[[T], T]:
    """Disable invocations whose targeted argument matches.

    The argument is chosen by ``index`` or ``name``; with neither, the first
    argument is used.

    Example:
        @disable_if_parameter(index=1, contains="her")
        @parametrize("line,line2", REQUIESCAT)
        def frontier_poem(line, line2): ...
    """
    return annotate(
        DisableIfParameter(contains=_as_tuple(contains), matches=_as_tuple(matches), index=index, name=name)
    )


def disable_if_any_parameter(
    *,
    contains: str | Sequence[str] = (),
    matches: str | Sequence[str] = (),
) -> Callable[[T], T]:
    """Disable invocations where at least one argument matches."""
    return annotate(DisableIfAnyParameter(contains=_as_tuple(contains), matches=_as_tuple(matches)))


def disable_if_all_parameters(
    *,
    contains: str | Sequence[str] = (),
    matches: str | Sequence[str] = (),
) -> Callable[[T], T]:
    """Disable invocations where every argument matches."""
    return annotate(DisableIfAllParameters(contains=_as_tuple(contains), matches=_as_tuple(matches)))
