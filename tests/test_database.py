"""Engine configuration read from settings."""

from idea_tracker.config import settings
from idea_tracker.database import engine


def test_engine_echo_follows_debug_setting():
    assert engine.echo is settings.DEBUG
    assert settings.DEBUG is False
