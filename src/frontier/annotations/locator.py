"""Hierarchical annotation resolution.

The locator walks a unit's :class:`ResolutionContext` from the innermost
scope outward and turns every matching annotation into a :class:`Directive`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from frontier import config
from frontier.annotations.base import Annotation, Policy
from frontier.annotations.scopes import ResolutionContext, Scope
from frontier.errors import ConfigurationError


logger = logging.getLogger(__name__)

A = TypeVar("A", bound=Annotation)


class DirectiveKind(Enum):
    """What a resolved directive asks the binder to do."""

    SET_EXTERNAL_VALUE = "set_external_value"
    CLEAR_EXTERNAL_VALUE = "clear_external_value"
    FILTER_BY_ARGUMENT_CONTENT = "filter_by_argument_content"
    GENERATE_ARGUMENTS = "generate_arguments"
    PUBLISH_REPORT_ENTRY = "publish_report_entry"
    WRAP_INVOCATION = "wrap_invocation"

    @property
    def mutates_state(self) -> bool:
        return self in {DirectiveKind.SET_EXTERNAL_VALUE, DirectiveKind.CLEAR_EXTERNAL_VALUE}


@dataclass(frozen=True)
class KeyValue:
    """Payload of a state mutation; ``value is None`` clears the key."""

    key: str
    value: str | None


@dataclass(frozen=True)
class Directive:
    """A resolved instruction derived from one annotation instance."""

    kind: DirectiveKind
    scope_level: int
    payload: Any
    annotation: Annotation
    scope_name: str = ""


@dataclass(frozen=True)
class AnnotationFamily(Generic[A]):
    """Declares how one kind of annotation is located and translated.

    Attributes
    ----------
    name
        Family identifier, also the key for policy overrides in settings.
    annotation_type
        Base annotation class; subclasses match too.
    translate
        Validates one annotation and returns ``(kind, payload)``. Raises
        ConfigurationError for self-contradictory attributes.
    policy
        Default resolution policy for the family.
    resource
        Name of the shared resource the family mutates, if any. The runner
        serializes units holding directives of such families.
    repeatable
        Whether a scope may carry more than one matching annotation.
    """

    name: str
    annotation_type: type[A]
    translate: Callable[[A], tuple[DirectiveKind, Any]]
    policy: Policy = Policy.ACCUMULATE
    resource: str | None = None
    repeatable: bool = True

    def effective_policy(self) -> Policy:
        """Configured override for this family, else its default."""
        return config.get_settings().policy_overrides.get(self.name, self.policy)


class AnnotationLocator:
    """Collects directives for a family across a unit's enclosing scopes."""

    def locate(
        self,
        context: ResolutionContext,
        family: AnnotationFamily[Any],
        policy: Policy | None = None,
    ) -> list[Directive]:
        """Return the family's directives, innermost scope first.

        An empty list is a normal result: most units carry no annotation of a
        given family.
        """
        policy = policy or family.effective_policy()
        found: list[tuple[Scope, Annotation]] = []

        for scope in context:
            matches = scope.source.instances_of(family.annotation_type)
            if not matches:
                continue
            self._check_repetition(family, scope, matches)
            found.extend((scope, annotation) for annotation in matches)
            if policy is Policy.STOP_AT_FIRST:
                break

        directives = [self._translate(family, scope, annotation) for scope, annotation in found]
        logger.debug(
            "Located %d %s directive(s) for %s (%s)",
            len(directives),
            family.name,
            context.name,
            policy.value,
        )
        return directives

    @staticmethod
    def _check_repetition(family: AnnotationFamily[Any], scope: Scope, matches: list[Any]) -> None:
        if family.repeatable or len(matches) < 2:
            return
        kinds = {type(match) for match in matches}
        if len(kinds) == 1:
            msg = f"{kinds.pop().__name__} should not be repeated on {scope.name}."
        else:
            msg = f"Expected exactly one annotation to provide {family.name}, found {len(matches)}."
        raise ConfigurationError(msg)

    @staticmethod
    def _translate(family: AnnotationFamily[Any], scope: Scope, annotation: Annotation) -> Directive:
        kind, payload = family.translate(annotation)
        return Directive(
            kind=kind,
            scope_level=scope.level,
            payload=payload,
            annotation=annotation,
            scope_name=scope.name,
        )


_default_locator = AnnotationLocator()


def locate(
    context: ResolutionContext,
    family: AnnotationFamily[Any],
    policy: Policy | None = None,
) -> list[Directive]:
    """Locate with the shared default locator."""
    return _default_locator.locate(context, family, policy)
