"""Host test engine for frontier tests.

Provides discovery, parametrization and a runner that drives the
lifecycle binder around every test unit.
"""

from .discovery import TestItem, collect
from .models import RunResult, TestResult, TestStatus
from .outcomes import AbortTest, FailTest, Outcome, SkipTest, abort, fail, skip
from .parametrize import parametrize
from .runner import Runner, run


__all__ = [
    "AbortTest",
    "FailTest",
    "Outcome",
    "RunResult",
    "Runner",
    "SkipTest",
    "TestItem",
    "TestResult",
    "TestStatus",
    "abort",
    "collect",
    "fail",
    "parametrize",
    "run",
    "skip",
]
