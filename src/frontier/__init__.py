"""Frontier - declarative extensions for tests."""

from .annotations import Annotation, Policy, Repeated, annotate, context_for, locate
from .binder import Abort, ApplyToken, Continue, LifecycleBinder
from .errors import ConfigurationError, ConflictError, FrontierError, ResolutionError, RestorationError
from .extensions import (
    clear_environment_variable,
    disable_if_all_parameters,
    disable_if_any_parameter,
    disable_if_parameter,
    float_range,
    int_range,
    report_entry,
    set_environment_variable,
    vintage_test,
)
from .state import ScopedStateStore, environment_state
from .testing import Runner, abort, collect, fail, parametrize, skip
from .tracing import init_tracing, trace_step
from .version import __version__


__all__ = [
    # Resolution
    "Annotation",
    "Policy",
    "Repeated",
    "annotate",
    "context_for",
    "locate",
    # Lifecycle
    "Abort",
    "ApplyToken",
    "Continue",
    "LifecycleBinder",
    "ScopedStateStore",
    "environment_state",
    # Extensions
    "clear_environment_variable",
    "disable_if_all_parameters",
    "disable_if_any_parameter",
    "disable_if_parameter",
    "float_range",
    "int_range",
    "report_entry",
    "set_environment_variable",
    "vintage_test",
    # Errors
    "ConfigurationError",
    "ConflictError",
    "FrontierError",
    "ResolutionError",
    "RestorationError",
    # Engine
    "Runner",
    "abort",
    "collect",
    "fail",
    "parametrize",
    "skip",
    # Tracing
    "init_tracing",
    "trace_step",
    "__version__",
]
