"""Example frontier tests demonstrating scoped environment variables."""

import os

import frontier


@frontier.set_environment_variable("POEM", "The Raven")
def frontier_function_level():
    """The variable is set while the test runs and removed afterwards."""
    assert os.environ["POEM"] == "The Raven"


@frontier.clear_environment_variable("HTTP_PROXY")
def frontier_cleared():
    assert "HTTP_PROXY" not in os.environ


@frontier.set_environment_variable("POET", "Poe")
class FrontierAnthology:
    """Class-level variables stay set for every test in the class."""

    def frontier_inherits_class_value(self):
        assert os.environ["POET"] == "Poe"

    @frontier.set_environment_variable("POET", "Wilde")
    def frontier_overrides_for_one_test(self):
        assert os.environ["POET"] == "Wilde"

    class Sonnets:
        def frontier_nested_class_sees_outer_value(self):
            assert os.environ["POET"] == "Poe"
