"""Binds resolved directives to a test unit's lifecycle.

The host runner drives three hooks per unit:

- ``before_unit`` resolves state-mutation directives and applies them,
  outermost scope first;
- ``filter_invocation`` decides whether a parameterized invocation runs;
- ``after_unit`` restores everything ``before_unit`` applied, last applied
  first. The runner calls it from a ``finally`` block.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

from frontier.annotations.locator import AnnotationFamily, AnnotationLocator, Directive
from frontier.annotations.scopes import ResolutionContext
from frontier.errors import ConfigurationError, ConflictError, ResolutionError, RestorationError
from frontier.extensions.disable_if import DISABLE_IF_FAMILY, ArgumentFilter, Selector
from frontier.extensions.environment import ENVIRONMENT_FAMILY
from frontier.extensions.report_entry import REPORT_ENTRY_FAMILY, PublishedEntry
from frontier.state.scoped import ScopedStateStore, environment_state


logger = logging.getLogger(__name__)


@dataclass
class ApplyToken:
    """Handle returned by ``before_unit``; teardown must receive it."""

    unit_id: str
    unit_name: str
    stores: list[ScopedStateStore] = field(default_factory=list)
    directives: list[Directive] = field(default_factory=list)

    @property
    def applied(self) -> bool:
        return bool(self.stores)


@dataclass(frozen=True)
class Continue:
    """Run the invocation."""

    aborted = False


@dataclass(frozen=True)
class Abort:
    """Skip the invocation as aborted (not failed)."""

    reason: str
    aborted = True


FilterDecision = Continue | Abort


class LifecycleBinder:
    """Applies, filters and restores on behalf of the host runner.

    Args:
        mutation_families: Families whose directives mutate external state.
        filter_families: Families whose directives filter invocations.
        stores: Scoped state stores keyed by resource/domain name.
        locator: Annotation locator to use.
    """

    def __init__(
        self,
        *,
        mutation_families: Sequence[AnnotationFamily[Any]] | None = None,
        filter_families: Sequence[AnnotationFamily[Any]] | None = None,
        stores: Mapping[str, ScopedStateStore] | None = None,
        locator: AnnotationLocator | None = None,
    ) -> None:
        self._mutation_families = list(mutation_families or [ENVIRONMENT_FAMILY])
        self._filter_families = list(filter_families or [DISABLE_IF_FAMILY])
        if stores is None:
            env = environment_state()
            stores = {env.backend.domain: env}
        self._stores = dict(stores)
        self._locator = locator or AnnotationLocator()

        for family in self._mutation_families:
            if family.resource not in self._stores:
                msg = f"No state store registered for resource '{family.resource}' of family '{family.name}'"
                raise ValueError(msg)

    @property
    def mutation_families(self) -> list[AnnotationFamily[Any]]:
        return list(self._mutation_families)

    def resources(self, context: ResolutionContext) -> set[str]:
        """Resources the unit would mutate, for the runner's resource locks."""
        return {
            family.resource
            for family in self._mutation_families
            if family.resource and self._locator.locate(context, family)
        }

    def before_unit(self, context: ResolutionContext, unit_id: str | None = None) -> ApplyToken:
        """Resolve and apply every state mutation for the unit.

        Conflicts and invalid annotations are reported before anything is
        applied. If an apply fails midway, what was applied is restored
        before the error propagates.
        """
        token = ApplyToken(unit_id=unit_id or uuid4().hex, unit_name=context.name)

        pending: list[tuple[ScopedStateStore, Directive]] = []
        seen: dict[tuple[str, str], Directive] = {}
        for family in self._mutation_families:
            store = self._stores[family.resource]
            for directive in self._locator.locate(context, family):
                key = directive.payload.key
                previous = seen.get((store.backend.domain, key))
                if previous is not None:
                    msg = (
                        f"{directive.annotation.display_name} on {directive.scope_name} and "
                        f"{previous.annotation.display_name} on {previous.scope_name} both target '{key}'"
                    )
                    raise ConflictError(key, msg)
                seen[(store.backend.domain, key)] = directive
                pending.append((store, directive))

        # outermost first, so the innermost value is the one in effect
        pending.sort(key=lambda item: item[1].scope_level, reverse=True)

        try:
            for store, directive in pending:
                if store not in token.stores:
                    token.stores.append(store)
                store.apply(token.unit_id, directive.payload.key, directive.payload.value)
                token.directives.append(directive)
        except BaseException:
            try:
                self._restore(token)
            except RestorationError:
                logger.exception("Restoration after a failed setup of %s also failed", token.unit_name)
            raise

        if token.directives:
            logger.debug("Applied %d directive(s) for %s", len(token.directives), token.unit_name)
        return token

    def after_unit(self, token: ApplyToken) -> None:
        """Restore everything applied for ``token``; always runs to completion."""
        self._restore(token)

    def _restore(self, token: ApplyToken) -> None:
        failures: list[tuple[str, str]] = []
        for store in reversed(token.stores):
            try:
                store.restore_all(token.unit_id)
            except RestorationError as e:
                failures.extend(e.failures)
        token.stores.clear()
        if failures:
            raise RestorationError(failures)

    def filter_invocation(
        self,
        context: ResolutionContext,
        parameters: Sequence[str],
        arguments: Sequence[Any],
    ) -> FilterDecision:
        """Decide whether an invocation with ``arguments`` should run.

        Args:
            context: Resolution context of the unit.
            parameters: Declared parameter names, in signature order.
            arguments: Actual argument values, aligned with ``parameters``.
        """
        directives: list[Directive] = []
        for family in self._filter_families:
            directives.extend(self._locator.locate(context, family))
        if not directives:
            return Continue()

        if not parameters:
            msg = f"Can't disable based on arguments, because method {context.name} had no parameters."
            raise ConfigurationError(msg)

        for directive in directives:
            reason = self._evaluate(directive, parameters, arguments)
            if reason is not None:
                logger.debug("Aborting %s: %s", context.name, reason)
                return Abort(reason)
        return Continue()

    @staticmethod
    def _evaluate(directive: Directive, parameters: Sequence[str], arguments: Sequence[Any]) -> str | None:
        flt: ArgumentFilter = directive.payload
        source = directive.annotation.display_name

        if flt.selector is Selector.SINGLE:
            if flt.name:
                if flt.name not in parameters:
                    msg = f"Could not resolve parameter named {flt.name}"
                    raise ResolutionError(msg)
                index = list(parameters).index(flt.name)
            else:
                index = flt.index or 0
            if index >= len(arguments):
                msg = f"Annotation has invalid index [{index}], should be less than {len(arguments)}"
                raise ConfigurationError(msg)
            match = flt.match(arguments[index])
            if match is None:
                return None
            label = parameters[index] if index < len(parameters) else str(index)
            return f"{source} disabled this invocation: argument '{label}' {match}"

        if flt.selector is Selector.ANY:
            for label, argument in zip(parameters, arguments):
                match = flt.match(argument)
                if match is not None:
                    return f"{source} disabled this invocation: argument '{label}' {match}"
            return None

        if arguments and all(flt.match(argument) is not None for argument in arguments):
            return f"{source} disabled this invocation: every argument matched"
        return None

    def report_entries(self, context: ResolutionContext) -> list[PublishedEntry]:
        """Entries to publish for the unit, validated."""
        return [directive.payload for directive in self._locator.locate(context, REPORT_ENTRY_FAMILY)]
