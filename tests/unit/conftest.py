"""Shared fixtures for the optik_arcade unit tests."""

import pytest


# ── Constants ───────────────────────────────────────────────────────────────

WALLET = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
OTHER_WALLET = "So" + "1" * 40 + "2"


# ── Helpers ─────────────────────────────────────────────────────────────────

class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class GameOverRecorder:
    """Collects on_game_over calls."""

    def __init__(self):
        self.calls = []

    def __call__(self, score, duration_seconds):
        self.calls.append((score, duration_seconds))


# ── Fixtures ────────────────────────────────────────────────────────────────

@pytest.fixture
def wallet():
    return WALLET


@pytest.fixture
def other_wallet():
    return OTHER_WALLET


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recorder():
    return GameOverRecorder()
