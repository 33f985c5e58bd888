"""Example frontier tests demonstrating argument sources and filters."""

import frontier


REQUIESCAT = [
    ("Tread lightly, she is near", "Under the snow,"),
    ("Speak gently, she can hear", "the daisies grow."),
    ("All her bright golden hair", "Tarnished with rust,"),
    ("She that was young and fair", "Fallen to dust."),
]


@frontier.disable_if_any_parameter(contains="She")
@frontier.parametrize("line,line2", REQUIESCAT)
def frontier_any_argument(line, line2):
    """The last invocation is aborted: its first line contains 'She'."""
    assert "She" not in line


@frontier.disable_if_parameter(name="line2", matches=".*dust.*")
@frontier.parametrize("line,line2", REQUIESCAT)
def frontier_named_argument(line, line2):
    assert "dust" not in line2


@frontier.int_range(0, 10, step=2, closed=True)
def frontier_even(value):
    assert value % 2 == 0


@frontier.float_range(0.0, 1.0, step=0.25)
def frontier_fraction(value):
    assert 0.0 <= value < 1.0
