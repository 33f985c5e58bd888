"""Example frontier tests demonstrating report entries and legacy declarations."""

import time

import frontier


@frontier.report_entry("Once upon a midnight dreary", key="Crow1")
@frontier.report_entry("Nevermore")
def frontier_raven():
    """Run with -v to see the published entries."""
    with frontier.trace_step("quoth", {"speaker": "raven"}):
        pass


@frontier.vintage_test(expected=ZeroDivisionError)
def frontier_expects_exception():
    1 / 0


@frontier.vintage_test(timeout=500)
def frontier_finishes_in_time():
    time.sleep(0.01)


def frontier_assumption():
    """Aborted rather than failed when the assumption does not hold."""
    if time.time() < 0:
        frontier.abort("clock is before the epoch")
