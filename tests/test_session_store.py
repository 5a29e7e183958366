"""Tests for the session-state helpers that outlive a rerun."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from data import session_store


@pytest.fixture
def state(monkeypatch):
    fake = {}
    monkeypatch.setattr(session_store.st, "session_state", fake)
    return fake


class TestFlash:
    def test_message_survives_until_popped_once(self, state):
        session_store.set_flash("Ana assigned at 50%. 50% remaining.")

        # A rerun starts a new script run against the same session state
        assert session_store.pop_flash() == ("success", "Ana assigned at 50%. 50% remaining.")
        assert session_store.pop_flash() is None

    def test_latest_message_wins(self, state):
        session_store.set_flash("first")
        session_store.set_flash("Ana removed.", level="info")
        assert session_store.pop_flash() == ("info", "Ana removed.")

    def test_nothing_pending(self, state):
        assert session_store.pop_flash() is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
