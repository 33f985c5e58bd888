"""Runtime configuration."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from frontier.annotations.base import Policy


class FrontierSettings(BaseSettings):
    """Settings for the runner and the annotation families.

    Loads from environment variables with the ``FRONTIER_`` prefix:
        FRONTIER_CONCURRENCY, FRONTIER_TIMEOUT, FRONTIER_MAXFAIL,
        FRONTIER_ENABLE_TRACING, FRONTIER_TRACE_OUTPUT, FRONTIER_POLICY_OVERRIDES

    ``policy_overrides`` is a JSON object mapping a family name to a policy,
    e.g. ``FRONTIER_POLICY_OVERRIDES='{"environment": "accumulate"}'``.
    """

    concurrency: int = Field(default=1, ge=0, description="0 = unlimited (capped), 1 = sequential")
    timeout: float | None = Field(default=None, gt=0, description="Per-test timeout in seconds")
    maxfail: int | None = Field(default=None, ge=1)
    enable_tracing: bool = False
    trace_output: Path = Path("traces.jsonl")
    policy_overrides: dict[str, Policy] = Field(default_factory=dict)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="FRONTIER_",
    )


@lru_cache(maxsize=1)
def get_settings() -> FrontierSettings:
    """Return the process-wide settings, loaded once."""
    return FrontierSettings()


def reset_settings() -> None:
    """Drop the cached settings so the next call reloads from the environment."""
    get_settings.cache_clear()
