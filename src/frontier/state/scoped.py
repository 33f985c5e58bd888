"""Scoped mutation of external state with guaranteed restoration."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass

from frontier.errors import ConflictError, RestorationError
from frontier.state.stores import UNSET, EnvironmentStore, ExternalKeyValueStore, StoredValue


logger = logging.getLogger(__name__)

_domain_locks: dict[str, threading.RLock] = {}
_domain_locks_guard = threading.Lock()


def domain_lock(domain: str) -> threading.RLock:
    """Return the lock shared by every store over ``domain``."""
    with _domain_locks_guard:
        lock = _domain_locks.get(domain)
        if lock is None:
            lock = _domain_locks[domain] = threading.RLock()
        return lock


@dataclass
class SavedEntry:
    """Restoration record for one externally mutated key."""

    unit_id: str
    key: str
    prior_value: StoredValue
    applied_value: StoredValue
    depth: int


class ScopedStateStore:
    """Table of saved original values, one live slot per key and unit.

    ``apply`` and ``restore_all`` are the only mutation points, so every write
    to the backing store is paired with its restoration.
    """

    def __init__(self, backend: ExternalKeyValueStore) -> None:
        self._backend = backend
        self._lock = domain_lock(backend.domain)
        self._entries: dict[str, list[SavedEntry]] = {}
        self._depth = itertools.count()

    @property
    def backend(self) -> ExternalKeyValueStore:
        return self._backend

    def apply(self, unit_id: str, key: str, new_value: str | None) -> SavedEntry:
        """Save the current value of ``key`` and write ``new_value``.

        ``None`` unsets the key. Raises ConflictError if ``key`` already has
        a live entry for ``unit_id``; the first value is left in place.
        """
        with self._lock:
            live = self._entries.setdefault(unit_id, [])
            if any(entry.key == key for entry in live):
                raise ConflictError(key)

            prior = self._backend.get(key)
            if new_value is None:
                self._backend.unset(key)
                applied: StoredValue = UNSET
            else:
                self._backend.set(key, new_value)
                applied = new_value

            entry = SavedEntry(
                unit_id=unit_id,
                key=key,
                prior_value=prior,
                applied_value=applied,
                depth=next(self._depth),
            )
            live.append(entry)
            logger.debug("[%s] %s: %r -> %r", self._backend.domain, key, prior, applied)
            return entry

    def restore_all(self, unit_id: str) -> None:
        """Restore every live entry of ``unit_id``, last applied first.

        A failure on one key does not stop the others from being restored;
        failures are raised together as RestorationError at the end.
        """
        with self._lock:
            entries = self._entries.pop(unit_id, [])
            failures: list[tuple[str, str]] = []

            for entry in sorted(entries, key=lambda e: e.depth, reverse=True):
                current = self._backend.get(entry.key)
                if current != entry.applied_value:
                    logger.warning(
                        "[%s] %s changed outside its scope (expected %r, found %r); restoring anyway",
                        self._backend.domain,
                        entry.key,
                        entry.applied_value,
                        current,
                    )
                    failures.append((entry.key, f"expected {entry.applied_value!r}, found {current!r}"))
                try:
                    self._write(entry.key, entry.prior_value)
                except Exception as e:  # noqa: BLE001 - collected and raised below
                    logger.error("[%s] Could not restore %s: %s", self._backend.domain, entry.key, e)
                    failures.append((entry.key, str(e)))
                else:
                    logger.debug("[%s] %s restored to %r", self._backend.domain, entry.key, entry.prior_value)

        if failures:
            raise RestorationError(failures)

    def live_keys(self, unit_id: str) -> list[str]:
        """Keys with unrestored entries for ``unit_id``, in application order."""
        with self._lock:
            return [entry.key for entry in self._entries.get(unit_id, [])]

    def _write(self, key: str, value: StoredValue) -> None:
        if value is UNSET:
            self._backend.unset(key)
        else:
            self._backend.set(key, value)


_environment_state: ScopedStateStore | None = None
_environment_state_guard = threading.Lock()


def environment_state() -> ScopedStateStore:
    """Process-wide store over the real environment."""
    global _environment_state
    with _environment_state_guard:
        if _environment_state is None:
            _environment_state = ScopedStateStore(EnvironmentStore())
        return _environment_state
