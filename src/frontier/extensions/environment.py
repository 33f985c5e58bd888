"""Set or clear environment variables for the duration of a test unit.

Both decorators are repeatable and work on test functions and classes::

    @set_environment_variable("API_URL", "http://localhost")
    class FrontierClient:
        @clear_environment_variable("HTTP_PROXY")
        @set_environment_variable("API_URL", "http://staging")
        def frontier_fetch(self): ...

A class-level variable stays set for every test in the class; a method-level
one overrides it for that method only and is restored afterwards.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from frontier.annotations.base import Annotation, Policy, annotate
from frontier.annotations.locator import AnnotationFamily, DirectiveKind, KeyValue
from frontier.errors import ConfigurationError


T = TypeVar("T")

ENVIRONMENT_RESOURCE = "environment"


@dataclass(frozen=True)
class EnvironmentVariableAnnotation(Annotation):
    key: str


@dataclass(frozen=True)
class SetEnvironmentVariable(EnvironmentVariableAnnotation):
    value: str


@dataclass(frozen=True)
class ClearEnvironmentVariable(EnvironmentVariableAnnotation):
    pass


def _translate(annotation: EnvironmentVariableAnnotation) -> tuple[DirectiveKind, KeyValue]:
    if not annotation.key or not annotation.key.strip():
        msg = f"{annotation.display_name} requires a non-blank key."
        raise ConfigurationError(msg)
    if "=" in annotation.key or "\0" in annotation.key:
        msg = f"{annotation.display_name} key '{annotation.key}' is not a valid environment variable name."
        raise ConfigurationError(msg)
    if isinstance(annotation, SetEnvironmentVariable):
        if "\0" in annotation.value:
            msg = f"{annotation.display_name} value for '{annotation.key}' contains a null byte."
            raise ConfigurationError(msg)
        return DirectiveKind.SET_EXTERNAL_VALUE, KeyValue(annotation.key, annotation.value)
    return DirectiveKind.CLEAR_EXTERNAL_VALUE, KeyValue(annotation.key, None)


ENVIRONMENT_FAMILY: AnnotationFamily[EnvironmentVariableAnnotation] = AnnotationFamily(
    name="environment",
    annotation_type=EnvironmentVariableAnnotation,
    translate=_translate,
    policy=Policy.STOP_AT_FIRST,
    resource=ENVIRONMENT_RESOURCE,
)


def set_environment_variable(key: str, value: str) -> Callable[[T], T]:
    """Set ``key`` to ``value`` while the decorated test or class runs."""
    return annotate(SetEnvironmentVariable(key=key, value=value))


def clear_environment_variable(key: str) -> Callable[[T], T]:
    """Remove ``key`` from the environment while the decorated test or class runs."""
    return annotate(ClearEnvironmentVariable(key=key))

