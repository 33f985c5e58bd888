"""External key/value stores mutated by scoped state directives."""

from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping
from enum import Enum
from typing import Protocol


class _Unset(Enum):
    UNSET = "unset"

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset.UNSET
"""Sentinel for a key that is absent from its store."""

StoredValue = str | _Unset


class ExternalKeyValueStore(Protocol):
    """A process-wide resource addressed by string keys.

    ``domain`` names the resource; every store over the same domain shares
    one serialization lock.
    """

    domain: str

    def get(self, key: str) -> StoredValue:
        """Return the current value, or UNSET."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def unset(self, key: str) -> None:
        ...


class EnvironmentStore:
    """The real process environment."""

    domain = "environment"

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def get(self, key: str) -> StoredValue:
        return self._environ.get(key, UNSET)

    def set(self, key: str, value: str) -> None:
        self._environ[key] = value

    def unset(self, key: str) -> None:
        self._environ.pop(key, None)


class InMemoryStore:
    """Dictionary-backed store, used in place of the environment by tests."""

    def __init__(self, initial: Mapping[str, str] | None = None, *, domain: str = "memory") -> None:
        self.domain = domain
        self.values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> StoredValue:
        return self.values.get(key, UNSET)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value

    def unset(self, key: str) -> None:
        self.values.pop(key, None)
