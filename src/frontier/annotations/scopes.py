"""Lexical scope chains for test units."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from frontier.annotations.base import AnnotationSource, AttributeAnnotationSource


@dataclass(frozen=True)
class Scope:
    """One declaration level (test function, its class, an enclosing class).

    Attributes
    ----------
    name
        Qualified display name of the declaration.
    level
        0 for the unit itself, increasing outward.
    source
        Annotations directly present at this level.
    parent
        Enclosing scope, or None at the outermost level.
    """

    name: str
    level: int
    source: AnnotationSource
    parent: Scope | None = None


class ResolutionContext:
    """Read-only, innermost-first chain of scopes for a single test unit."""

    def __init__(self, innermost: Scope) -> None:
        self._innermost = innermost

    @property
    def innermost(self) -> Scope:
        return self._innermost

    @property
    def name(self) -> str:
        return self._innermost.name

    def __iter__(self) -> Iterator[Scope]:
        scope: Scope | None = self._innermost
        while scope is not None:
            yield scope
            scope = scope.parent

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        chain = " -> ".join(scope.name for scope in self)
        return f"ResolutionContext({chain})"

    @classmethod
    def from_sources(cls, sources: Sequence[tuple[str, AnnotationSource]]) -> ResolutionContext:
        """Build a chain from ``(name, source)`` pairs ordered innermost-first."""
        if not sources:
            msg = "A resolution context needs at least one scope"
            raise ValueError(msg)
        parent: Scope | None = None
        for level in range(len(sources) - 1, -1, -1):
            name, source = sources[level]
            parent = Scope(name=name, level=level, source=source, parent=parent)
        assert parent is not None
        return cls(parent)


def _display_name(target: Any) -> str:
    return getattr(target, "__qualname__", None) or getattr(target, "__name__", repr(target))


def context_for(target: Any, enclosing: Sequence[type] = ()) -> ResolutionContext:
    """Build the resolution context of ``target`` nested inside ``enclosing``.

    Args:
        target: Test function or class carrying annotations.
        enclosing: Lexically enclosing classes, innermost first.
    """
    chain = [target, *enclosing]
    return ResolutionContext.from_sources([(_display_name(t), AttributeAnnotationSource(t)) for t in chain])
