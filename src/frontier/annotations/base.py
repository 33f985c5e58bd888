"""Annotation objects and the sources that expose them.

Annotations are frozen dataclasses attached to test functions and classes by
decorators. A decorator records them on the target's own ``__dict__`` under
``__frontier_annotations__`` so that only *directly present* annotations are
visible on a given scope: a subclass does not see its base class's list.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Protocol, TypeVar


ANNOTATIONS_ATTR = "__frontier_annotations__"

A = TypeVar("A", bound="Annotation")
T = TypeVar("T")


class Policy(str, Enum):
    """How far outward the locator walks once a scope yields a match."""

    STOP_AT_FIRST = "stop_at_first"
    ACCUMULATE = "accumulate"


@dataclass(frozen=True)
class Annotation:
    """Base class for every declarative annotation."""

    repeatable: ClassVar[bool] = True

    @property
    def display_name(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class Repeated(Annotation):
    """Container holding several instances of a repeatable annotation.

    Sources flatten containers, so the locator never distinguishes
    ``@annotate(Repeated((a, b)))`` from ``@annotate(a)`` + ``@annotate(b)``.
    """

    annotations: tuple[Annotation, ...] = ()


def annotate(*annotations: Annotation) -> Callable[[T], T]:
    """Attach annotations to a test function or class.

    Stacked decorators keep declaration order (top to bottom)::

        @annotate(ReportEntry("first"))
        @annotate(ReportEntry("second"))
        def frontier_sample(): ...
    """

    def decorator(target: T) -> T:
        own: list[Annotation] = list(vars(target).get(ANNOTATIONS_ATTR, ()))
        # decorators apply bottom-up; prepend to keep source order
        setattr(target, ANNOTATIONS_ATTR, [*annotations, *own])
        return target

    return decorator


def _flatten(annotations: Iterable[Annotation]) -> list[Annotation]:
    flat: list[Annotation] = []
    for annotation in annotations:
        if isinstance(annotation, Repeated):
            flat.extend(_flatten(annotation.annotations))
        else:
            flat.append(annotation)
    return flat


class AnnotationSource(Protocol):
    """Capability exposing the annotations directly present on one scope."""

    def instances_of(self, kind: type[A]) -> list[A]:
        """Return every directly-present instance of ``kind``, in declaration order."""
        ...


class AttributeAnnotationSource:
    """Reads annotations recorded by :func:`annotate` on a function or class."""

    def __init__(self, target: Any) -> None:
        self._target = target

    def instances_of(self, kind: type[A]) -> list[A]:
        try:
            own = vars(self._target).get(ANNOTATIONS_ATTR, ())
        except TypeError:
            # objects without __dict__ carry no annotations
            return []
        return [annotation for annotation in _flatten(own) if isinstance(annotation, kind)]


class StaticAnnotationSource:
    """Source over a fixed list of annotations, for adapters and tests."""

    def __init__(self, annotations: Iterable[Annotation] = ()) -> None:
        self._annotations = _flatten(annotations)

    def instances_of(self, kind: type[A]) -> list[A]:
        return [annotation for annotation in self._annotations if isinstance(annotation, kind)]
