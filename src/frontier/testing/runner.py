"""Test runner for executing discovered tests."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterator
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass
from itertools import groupby
from pathlib import Path

from rich.console import Console

from frontier.annotations.scopes import context_for
from frontier.binder import Abort, ApplyToken, LifecycleBinder
from frontier.config import FrontierSettings, get_settings
from frontier.errors import FrontierError, RestorationError
from frontier.extensions.report_entry import PublishedEntry
from frontier.extensions.vintage import evaluate, vintage_settings
from frontier.testing.discovery import TestItem, collect
from frontier.testing.models import RunResult, TestResult, TestStatus
from frontier.testing.outcomes import AbortTest, FailTest, Outcome, SkipTest
from frontier.testing.tracer import TestTracer
from frontier.tracing import clear_traces, init_tracing


logger = logging.getLogger(__name__)


@dataclass
class _ClassUnit:
    """A class scope that is currently entered."""

    cls: type
    token: ApplyToken | None = None
    error: Exception | None = None


@dataclass
class _RunState:
    failures: int = 0
    stop: bool = False


class Runner:
    """Executes discovered tests with their declarative extensions.

    Class scopes are entered before the first of their tests runs and left
    after the last one, so class-level state stays in effect for the whole
    class while method-level state is applied per test.

    Examples:
        # Sequential execution (default)
        runner = Runner()
        result = await runner.run(path="tests/")

        # Concurrent execution with 5 workers
        runner = Runner(concurrency=5)
        result = await runner.run(path="tests/")
    """

    DEFAULT_MAX_CONCURRENCY = 10

    def __init__(
        self,
        console: Console | None = None,
        *,
        maxfail: int | None = None,
        verbosity: int = 0,
        concurrency: int = 1,
        timeout: float | None = None,
        enable_tracing: bool = False,
        trace_output: Path | str | None = None,
        binder: LifecycleBinder | None = None,
    ) -> None:
        self.console = console or Console()
        self.maxfail = maxfail if maxfail and maxfail > 0 else None
        self.verbosity = verbosity
        self.timeout = timeout  # Per-test timeout in seconds
        # 0 = unlimited (capped at DEFAULT_MAX_CONCURRENCY), 1 = sequential, >1 = concurrent
        self.concurrency = concurrency if concurrency > 0 else self.DEFAULT_MAX_CONCURRENCY
        self.enable_tracing = enable_tracing
        self.trace_output = Path(trace_output) if trace_output else Path("traces.jsonl")
        self.binder = binder or LifecycleBinder()
        self.tracer = TestTracer(enabled=enable_tracing)
        self._resource_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(cls, settings: FrontierSettings | None = None, **overrides: object) -> Runner:
        """Build a runner from ``FRONTIER_*`` settings; keyword overrides win."""
        settings = settings or get_settings()
        kwargs: dict[str, object] = {
            "maxfail": settings.maxfail,
            "concurrency": settings.concurrency,
            "timeout": settings.timeout,
            "enable_tracing": settings.enable_tracing,
            "trace_output": settings.trace_output,
        }
        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**kwargs)  # type: ignore[arg-type]

    async def run(self, items: list[TestItem] | None = None, path: str | None = None) -> RunResult:
        """Run tests and return results.

        Args:
            items: Pre-collected test items, or None to discover.
            path: Path to discover tests from if items not provided.
        """
        run_result = RunResult()

        if self.enable_tracing:
            init_tracing(output_path=self.trace_output)
            clear_traces()

        if items is None:
            items = collect(path)

        if not items:
            self.console.print("[yellow]No tests found.[/yellow]")
            return run_result

        self.console.print(f"[bold]Collected {len(items)} tests[/bold]\n")
        start = time.perf_counter()

        stack: list[_ClassUnit] = []
        state = _RunState()
        try:
            for chain, batch in self._batches(items):
                self._enter_classes(stack, chain)
                for result in await self._run_batch(batch, stack, state):
                    run_result.results.append(result)
                    self._print_result(result)
                if state.stop:
                    run_result.stopped_early = True
                    self.console.print(f"[red]Stopping early after {self.maxfail} failure(s).[/red]")
                    break
        finally:
            self._leave_classes(stack, 0)

        run_result.total_duration_ms = (time.perf_counter() - start) * 1000
        self._print_summary(run_result)

        if self.enable_tracing and self.trace_output.exists():
            self.console.print(
                f"[dim]Tracing written to {self.trace_output} ({self.trace_output.stat().st_size} bytes)[/dim]"
            )

        return run_result

    @staticmethod
    def _batches(items: list[TestItem]) -> Iterator[tuple[tuple[type, ...], list[TestItem]]]:
        """Contiguous runs of items sharing a class chain (outermost first)."""
        for enclosing, group in groupby(items, key=lambda item: item.enclosing):
            yield tuple(reversed(enclosing)), list(group)

    def _enter_classes(self, stack: list[_ClassUnit], chain: tuple[type, ...]) -> None:
        common = 0
        while common < min(len(stack), len(chain)) and stack[common].cls is chain[common]:
            common += 1
        self._leave_classes(stack, common)

        for depth in range(len(stack), len(chain)):
            cls = chain[depth]
            inherited = stack[-1].error if stack else None
            if inherited is not None:
                stack.append(_ClassUnit(cls, error=inherited))
                continue
            context = context_for(cls, tuple(reversed(chain[:depth])))
            try:
                stack.append(_ClassUnit(cls, token=self.binder.before_unit(context)))
            except FrontierError as e:
                logger.debug("Setup of class %s failed: %s", cls.__qualname__, e)
                stack.append(_ClassUnit(cls, error=e))

    def _leave_classes(self, stack: list[_ClassUnit], depth: int) -> None:
        while len(stack) > depth:
            unit = stack.pop()
            if unit.token is None:
                continue
            try:
                self.binder.after_unit(unit.token)
            except RestorationError as e:
                logger.error("Teardown of class %s: %s", unit.cls.__qualname__, e)
                self.console.print(f"[yellow]! {unit.cls.__qualname__}: {e}[/yellow]")

    async def _run_batch(self, batch: list[TestItem], stack: list[_ClassUnit], state: _RunState) -> list[TestResult]:
        class_error = stack[-1].error if stack else None
        if class_error is not None:
            return [TestResult(item=item, status=TestStatus.ERROR, duration_ms=0, error=class_error) for item in batch]
        if self.concurrency == 1:
            return await self._run_sequential(batch, state)
        return await self._run_concurrent(batch, state)

    def _count(self, result: TestResult, state: _RunState) -> None:
        if result.status.is_failure:
            state.failures += 1
            if self.maxfail and state.failures >= self.maxfail:
                state.stop = True

    async def _run_sequential(self, items: list[TestItem], state: _RunState) -> list[TestResult]:
        """Run tests sequentially."""
        results: list[TestResult] = []
        for item in items:
            result = await self._run_with_timeout(item)
            results.append(result)
            self._count(result, state)
            if state.stop:
                break
        return results

    async def _run_concurrent(self, items: list[TestItem], state: _RunState) -> list[TestResult]:
        """Run tests concurrently with semaphore control."""
        semaphore = asyncio.Semaphore(self.concurrency)

        async def run_one(item: TestItem) -> TestResult | None:
            if state.stop:
                return None
            async with semaphore:
                if state.stop:
                    return None
                result = await self._run_with_timeout(item)
                self._count(result, state)
                return result

        gathered = await asyncio.gather(*[run_one(item) for item in items])
        # gather keeps input order, so output stays deterministic
        return [result for result in gathered if result is not None]

    async def _run_with_timeout(self, item: TestItem) -> TestResult:
        start = time.perf_counter()
        try:
            if self.timeout:
                return await asyncio.wait_for(self._run_test(item), timeout=self.timeout)
            return await self._run_test(item)
        except TimeoutError:
            duration = (time.perf_counter() - start) * 1000
            return TestResult(
                item=item,
                status=TestStatus.ERROR,
                duration_ms=duration,
                error=TimeoutError(f"Test timed out after {self.timeout}s"),
            )

    async def _run_test(self, item: TestItem) -> TestResult:
        """Execute a single test unit, traced when enabled."""
        with self.tracer.span(item) as span:
            result = await self._run_unit(item)
            self.tracer.record(span, result)
            result.trace_id = self.tracer.get_trace_id(span)
        return result

    async def _run_unit(self, item: TestItem) -> TestResult:
        start = time.perf_counter()

        def elapsed() -> float:
            return (time.perf_counter() - start) * 1000

        if item.collection_error is not None:
            return TestResult(item=item, status=TestStatus.ERROR, duration_ms=elapsed(), error=item.collection_error)

        context = item.context()
        try:
            if item.is_parametrized:
                decision = self.binder.filter_invocation(context, item.params, item.arguments())
                if isinstance(decision, Abort):
                    return TestResult(
                        item=item,
                        status=TestStatus.ABORTED,
                        duration_ms=elapsed(),
                        error=AbortTest(decision.reason),
                    )
            entries = self.binder.report_entries(context)
            legacy = vintage_settings(item.fn)
            resources = self.binder.resources(context) if self.concurrency > 1 else set()
        except FrontierError as e:
            return TestResult(item=item, status=TestStatus.ERROR, duration_ms=elapsed(), error=e)

        restore_error: RestorationError | None = None
        async with self._hold(resources):
            try:
                token = self.binder.before_unit(context)
            except FrontierError as e:
                return TestResult(item=item, status=TestStatus.ERROR, duration_ms=elapsed(), error=e)
            try:
                body_start = time.perf_counter()
                error = await self._invoke(item)
                body_ms = (time.perf_counter() - body_start) * 1000
            finally:
                try:
                    self.binder.after_unit(token)
                except RestorationError as e:
                    restore_error = e

        if legacy is not None and not isinstance(error, Outcome):
            error = evaluate(legacy, f"{item.name}()", error, body_ms)

        if restore_error is not None:
            if error is None:
                error = restore_error
            else:
                logger.error("%s: %s", item.full_name, restore_error)

        return TestResult(
            item=item,
            status=self._classify(error),
            duration_ms=elapsed(),
            error=error,
            report_entries=entries,
        )

    @asynccontextmanager
    async def _hold(self, resources: set[str]) -> AsyncIterator[None]:
        """Serialize units that declare the same shared resource."""
        async with AsyncExitStack() as stack:
            for name in sorted(resources):
                lock = self._resource_locks.setdefault(name, asyncio.Lock())
                await stack.enter_async_context(lock)
            yield

    @staticmethod
    async def _invoke(item: TestItem) -> BaseException | None:
        """Run the test body; return what it raised, if anything."""
        kwargs = dict(item.param_values or {})
        try:
            args: tuple[object, ...] = (item.enclosing[0](),) if item.enclosing else ()
            if item.is_async:
                await item.fn(*args, **kwargs)
            else:
                item.fn(*args, **kwargs)
        except (Outcome, Exception) as e:
            return e
        return None

    @staticmethod
    def _classify(error: BaseException | None) -> TestStatus:
        if error is None:
            return TestStatus.PASSED
        if isinstance(error, SkipTest):
            return TestStatus.SKIPPED
        if isinstance(error, AbortTest):
            return TestStatus.ABORTED
        if isinstance(error, (FailTest, AssertionError)):
            return TestStatus.FAILED
        return TestStatus.ERROR

    def _print_result(self, result: TestResult) -> None:
        if self.verbosity < 0 and not result.status.is_failure:
            return

        mark, style = _MARKS[result.status]
        line = f"  [{style}]{mark}[/{style}] {result.item.full_name}"
        if result.status in {TestStatus.SKIPPED, TestStatus.ABORTED}:
            reason = str(result.error or "") or result.status.value
            self.console.print(f"{line} [dim]{result.status.value} ({reason})[/dim]")
        else:
            self.console.print(f"{line} [dim]({result.duration_ms:.1f}ms)[/dim]")
            if result.status is TestStatus.FAILED and result.error:
                self.console.print(f"    [{style}]{result.error}[/{style}]")
            elif result.status is TestStatus.ERROR and result.error:
                self.console.print(f"    [{style}]{type(result.error).__name__}: {result.error}[/{style}]")

        if self.verbosity > 0:
            for entry in result.report_entries:
                self._print_entry(entry)

    def _print_entry(self, entry: PublishedEntry) -> None:
        self.console.print(f"    [cyan]{entry.key}[/cyan] = {entry.value}")

    def _print_summary(self, run_result: RunResult) -> None:
        counts = run_result.counts()
        parts = [
            f"[{_MARKS[status][1]}]{counts[status]} {label}[/{_MARKS[status][1]}]"
            for status, label in _SUMMARY_LABELS
            if counts[status]
        ]
        summary = ", ".join(parts) or "[dim]0 tests[/dim]"
        self.console.print()
        self.console.print(f"[bold]{summary}[/bold] in {run_result.total_duration_ms:.0f}ms")
        if run_result.stopped_early:
            self.console.print("[yellow]Run terminated early due to maxfail limit.[/yellow]")


_MARKS: dict[TestStatus, tuple[str, str]] = {
    TestStatus.PASSED: ("✓", "green"),
    TestStatus.FAILED: ("✗", "red"),
    TestStatus.ERROR: ("!", "yellow"),
    TestStatus.SKIPPED: ("-", "yellow"),
    TestStatus.ABORTED: ("~", "blue"),
}

_SUMMARY_LABELS = (
    (TestStatus.PASSED, "passed"),
    (TestStatus.FAILED, "failed"),
    (TestStatus.ERROR, "errors"),
    (TestStatus.SKIPPED, "skipped"),
    (TestStatus.ABORTED, "aborted"),
)


def run(path: str | None = None) -> RunResult:
    """Collect and run the tests under ``path`` with the current settings."""
    return asyncio.run(Runner.from_settings().run(path=path))
