"""Command-line interface for Frontier."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler

from .config import get_settings, reset_settings
from .testing.runner import Runner
from .version import __version__


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif verbosity < 0:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger = logging.getLogger("frontier")
    logger.setLevel(level)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))


@click.group()
@click.version_option(__version__, prog_name="frontier")
def main() -> None:
    """Frontier - run tests with declarative extensions."""


@main.command()
@click.argument("path", required=False, type=click.Path(exists=True, path_type=Path))
@click.option("--concurrency", "-n", type=int, default=None,
              help="Tests to run at once (1 = sequential, 0 = default maximum)")
@click.option("--maxfail", type=int, default=None,
              help="Stop after this many failures")
@click.option("--timeout", type=float, default=None,
              help="Per-test timeout in seconds")
@click.option("--verbose", "-v", count=True,
              help="More output; repeat for debug logging")
@click.option("--quiet", "-q", is_flag=True,
              help="Only report failures")
@click.option("--trace/--no-trace", "enable_tracing", default=None,
              help="Record an OpenTelemetry span per test")
@click.option("--trace-output", type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Where to write trace spans (JSONL)")
def run(path: Optional[Path],
        concurrency: Optional[int],
        maxfail: Optional[int],
        timeout: Optional[float],
        verbose: int,
        quiet: bool,
        enable_tracing: Optional[bool],
        trace_output: Optional[Path]) -> None:
    """
    Discover and run frontier_* tests under PATH (default: current directory).

    \b
    # Run everything under ./tests, four at a time
    frontier run tests/ -n 4
    """
    load_dotenv(Path.cwd() / ".env")
    reset_settings()
    verbosity = -1 if quiet else verbose
    _configure_logging(verbosity)

    runner = Runner.from_settings(
        get_settings(),
        console=Console(),
        verbosity=verbosity,
        concurrency=concurrency,
        maxfail=maxfail,
        timeout=timeout,
        enable_tracing=enable_tracing,
        trace_output=trace_output,
    )
    result = asyncio.run(runner.run(path=str(path) if path else None))
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
