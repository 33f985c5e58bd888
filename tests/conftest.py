import pytest

from frontier.config import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are cached per process; reload them around every test."""
    reset_settings()
    yield
    reset_settings()
