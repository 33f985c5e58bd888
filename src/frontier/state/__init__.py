"""Scoped external state."""

from .stores import UNSET, EnvironmentStore, ExternalKeyValueStore, InMemoryStore
from .scoped import SavedEntry, ScopedStateStore, domain_lock, environment_state


__all__ = [
    "UNSET",
    "EnvironmentStore",
    "ExternalKeyValueStore",
    "InMemoryStore",
    "SavedEntry",
    "ScopedStateStore",
    "domain_lock",
    "environment_state",
]
