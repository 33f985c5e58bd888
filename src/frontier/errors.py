"""Error taxonomy for annotation resolution and scoped state."""

from __future__ import annotations

from collections.abc import Sequence


class FrontierError(Exception):
    """Base class for every error raised by frontier extensions."""


class ConfigurationError(FrontierError):
    """An annotation's own attributes are invalid.

    Raised before any external state is touched.
    """


class ConflictError(FrontierError):
    """Two directives within one unit target the same external key."""

    def __init__(self, key: str, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"Conflicting directives for key '{key}' within a single test unit")


class ResolutionError(FrontierError):
    """A named argument target cannot be matched against the unit's parameters."""


class RestorationError(FrontierError):
    """One or more saved entries could not be restored cleanly.

    Raised only after every other entry has been restored.
    """

    def __init__(self, failures: Sequence[tuple[str, str]]) -> None:
        self.failures = list(failures)
        details = "; ".join(f"{key}: {reason}" for key, reason in self.failures)
        noun = "entry" if len(self.failures) == 1 else "entries"
        super().__init__(f"Failed to restore {len(self.failures)} {noun}: {details}")
