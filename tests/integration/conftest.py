"""
Shared fixtures for optik_arcade integration tests.

Provides:
 - StorageManager over in-memory SQLite (migrated and seeded)
 - RewardLedger / LeaderboardService sharing one manually advanced clock
 - Helpers for building Stripe-style webhook events
"""

import pytest
import pytest_asyncio

from optik_arcade.leaderboard import LeaderboardService
from optik_arcade.ledger import RewardLedger
from optik_arcade.price import StaticPriceSource
from optik_arcade.storage import StorageManager


# ── Constants ─────────────────────────────────────────────────────────────

WALLET_A = "9xQeWvG816bUx9EPjHmaT23yvVM2ZWbrrpZb9PusVFin"
WALLET_B = "So" + "1" * 40 + "2"
WALLET_C = "7" * 44

# 2023-11-14 22:13:20 UTC
START_TS = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = START_TS):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


# ── Message factories ─────────────────────────────────────────────────────

def make_checkout_event(session_id: str, wallet: str, optik_amount=None,
                        amount_total: int = 999, event_type: str = "checkout.session.completed") -> dict:
    metadata = {"walletAddress": wallet}
    if optik_amount is not None:
        metadata["optikAmount"] = str(optik_amount)
    return {
        "id": f"evt_{session_id}",
        "type": event_type,
        "data": {
            "object": {
                "id": session_id,
                "amount_total": amount_total,
                "currency": "usd",
                "metadata": metadata,
            }
        },
    }


# ── Fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    return FakeClock()


@pytest_asyncio.fixture
async def storage():
    sm = StorageManager(":memory:")
    await sm.initialize()
    yield sm
    await sm.close()


@pytest_asyncio.fixture
async def ledger(storage, clock):
    return RewardLedger(storage, prices=StaticPriceSource(), clock=clock)


@pytest_asyncio.fixture
async def board(storage, clock):
    return LeaderboardService(storage, clock=clock)
