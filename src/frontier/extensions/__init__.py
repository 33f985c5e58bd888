"""Declarative test extensions built on annotation resolution."""

from .disable_if import (
    DISABLE_IF_FAMILY,
    ArgumentFilter,
    DisableIfAllParameters,
    DisableIfAnyParameter,
    DisableIfParameter,
    Selector,
    disable_if_all_parameters,
    disable_if_any_parameter,
    disable_if_parameter,
)
from .environment import (
    ENVIRONMENT_FAMILY,
    ClearEnvironmentVariable,
    SetEnvironmentVariable,
    clear_environment_variable,
    set_environment_variable,
)
from .ranges import RANGE_FAMILY, FloatRange, IntRange, float_range, int_range, range_values
from .report_entry import REPORT_ENTRY_FAMILY, PublishedEntry, ReportEntry, report_entry
from .vintage import VINTAGE_FAMILY, VintageTest, vintage_settings, vintage_test


__all__ = [
    "DISABLE_IF_FAMILY",
    "ENVIRONMENT_FAMILY",
    "RANGE_FAMILY",
    "REPORT_ENTRY_FAMILY",
    "VINTAGE_FAMILY",
    "ArgumentFilter",
    "ClearEnvironmentVariable",
    "DisableIfAllParameters",
    "DisableIfAnyParameter",
    "DisableIfParameter",
    "FloatRange",
    "IntRange",
    "PublishedEntry",
    "ReportEntry",
    "Selector",
    "SetEnvironmentVariable",
    "VintageTest",
    "clear_environment_variable",
    "disable_if_all_parameters",
    "disable_if_any_parameter",
    "disable_if_parameter",
    "float_range",
    "int_range",
    "range_values",
    "report_entry",
    "set_environment_variable",
    "vintage_settings",
    "vintage_test",
]
