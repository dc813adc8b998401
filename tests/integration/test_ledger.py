"""
test_ledger.py - Reward ledger integration tests.

Runs RewardLedger against real repos on in-memory SQLite:
 - session recording and reward crediting
 - per-game daily cap, including concurrent submissions
 - claim flow, double-claim protection under concurrency
 - expiry, purchase dedup, achievement claims
 - rollback when a write fails mid-transaction
"""

import asyncio

import pytest

from optik_arcade.errors import (
    DuplicateSourceEventError,
    NothingToClaimError,
    PersistenceError,
    ValidationError,
)
from optik_arcade.ledger import DAY_SEC, achievement_source_id
from optik_arcade.rewards import MAX_SESSION_VALUE

from .conftest import WALLET_A, WALLET_B

pytestmark = pytest.mark.asyncio


async def _play(ledger, game_id="flappy", score=10, duration=30, wallet=WALLET_A):
    return await ledger.record_session(wallet, game_id, score, duration)


# ── Recording sessions ────────────────────────────────────────────────────

class TestRecordSession:

    async def test_flappy_scenario(self, ledger):
        first = await _play(ledger, score=10)
        second = await _play(ledger, score=5)
        assert first["optik_earned"] == 20.0
        assert second["optik_earned"] == 10.0

        pending = await ledger.get_pending_rewards(WALLET_A)
        assert [r["amount"] for r in pending] == [20.0, 10.0]
        assert {r["source"] for r in pending} == {"game_session"}

        claim = await ledger.claim_rewards(WALLET_A)
        assert claim["amount"] == 30.0
        assert claim["rewards_claimed"] == 2
        assert claim["transaction_signature"].startswith("mock_tx_")

        with pytest.raises(NothingToClaimError):
            await ledger.claim_rewards(WALLET_A)

    async def test_session_row_persisted(self, ledger, storage, clock):
        result = await _play(ledger, game_id="snake", score=120, duration=45)
        session = await storage.sessions.get(result["session_id"])
        assert session["wallet_address"] == WALLET_A
        assert session["game_id"] == "snake"
        assert session["score"] == 120
        assert session["duration_seconds"] == 45
        assert session["optik_earned"] == 12.0
        assert session["created_at"] == clock.now

    async def test_pending_reward_links_session(self, ledger, storage):
        result = await _play(ledger)
        reward = await storage.rewards.get_by_source("game_session", result["session_id"])
        assert reward["amount"] == 20.0
        assert reward["claimed"] is False

    async def test_zero_score_records_without_reward(self, ledger, storage):
        result = await _play(ledger, score=0)
        assert result["optik_earned"] == 0.0
        assert await storage.sessions.count() == 1
        assert await storage.rewards.count() == 0
        assert await ledger.get_pending_rewards(WALLET_A) == []

    @pytest.mark.parametrize("wallet,game_id,score,duration", [
        ("", "flappy", 10, 10),
        ("not-a-wallet", "flappy", 10, 10),
        (WALLET_A, "tetris", 10, 10),
        (WALLET_A, "flappy", -1, 10),
        (WALLET_A, "flappy", 10, -1),
    ])
    async def test_invalid_input_writes_nothing(self, ledger, storage, wallet, game_id, score, duration):
        with pytest.raises(ValidationError):
            await ledger.record_session(wallet, game_id, score, duration)
        assert await storage.sessions.count() == 0
        assert await storage.rewards.count() == 0

    async def test_first_game_unlocks_achievement(self, ledger, storage):
        first = await _play(ledger)
        second = await _play(ledger)
        assert [a["id"] for a in first["unlocked_achievements"]] == [1]
        assert second["unlocked_achievements"] == []
        unlocked = await storage.achievements.list_unlocked(WALLET_A)
        assert [u["achievement_id"] for u in unlocked] == [1]

    async def test_unlock_does_not_credit(self, ledger):
        await _play(ledger, score=10)
        pending = await ledger.get_pending_rewards(WALLET_A)
        assert sum(r["amount"] for r in pending) == 20.0


class TestScoreBounds:

    async def test_oversized_score_rejected(self, ledger, storage):
        with pytest.raises(ValidationError):
            await _play(ledger, score=2**62)
        with pytest.raises(ValidationError):
            await _play(ledger, score=MAX_SESSION_VALUE + 1)
        assert await storage.sessions.count() == 0

    async def test_max_scores_keep_wallet_usable(self, ledger, storage):
        for _ in range(3):
            await _play(ledger, score=MAX_SESSION_VALUE)
        result = await _play(ledger, game_id="snake", score=1)
        assert result["optik_earned"] == 0.1

        totals = await storage.sessions.wallet_totals(WALLET_A)
        assert totals["total_score"] == 3 * MAX_SESSION_VALUE + 1
        rows = await storage.sessions.leaderboard()
        assert rows[0]["total_score"] == 3 * MAX_SESSION_VALUE + 1
        assert rows[0]["highest_score"] == MAX_SESSION_VALUE


# ── Daily cap ─────────────────────────────────────────────────────────────

class TestDailyCap:

    async def test_clamped_then_zero(self, ledger):
        assert (await _play(ledger, score=400))["optik_earned"] == 800.0
        assert (await _play(ledger, score=400))["optik_earned"] == 200.0
        assert (await _play(ledger, score=400))["optik_earned"] == 0.0

    async def test_cap_is_per_game(self, ledger):
        await _play(ledger, score=500)
        assert (await _play(ledger, game_id="snake", score=100))["optik_earned"] == 10.0

    async def test_cap_is_per_wallet(self, ledger):
        await _play(ledger, score=500)
        assert (await _play(ledger, score=10, wallet=WALLET_B))["optik_earned"] == 20.0

    async def test_cap_resets_next_utc_day(self, ledger, clock):
        await _play(ledger, score=500)
        assert (await _play(ledger, score=10))["optik_earned"] == 0.0
        clock.advance(DAY_SEC)
        assert (await _play(ledger, score=10))["optik_earned"] == 20.0

    async def test_concurrent_submissions_respect_cap(self, ledger, storage):
        results = await asyncio.gather(*[_play(ledger, score=200) for _ in range(10)])
        earned = [r["optik_earned"] for r in results]
        assert sum(earned) == 1000.0
        assert sorted(earned, reverse=True)[:3] == [400.0, 400.0, 200.0]
        assert await storage.sessions.count() == 10
        assert await storage.rewards.count() == 3


# ── Claims ────────────────────────────────────────────────────────────────

class TestClaims:

    async def test_nothing_to_claim(self, ledger):
        with pytest.raises(NothingToClaimError):
            await ledger.claim_rewards(WALLET_A)

    async def test_claim_invalid_wallet(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.claim_rewards("nope")

    async def test_claim_history_row(self, ledger, storage, clock):
        await _play(ledger, score=10)
        await _play(ledger, score=5)
        claim = await ledger.claim_rewards(WALLET_A)

        stored = await storage.claims.get(claim["claim_id"])
        assert stored["amount"] == 30.0
        assert stored["rewards_claimed"] == 2
        assert stored["status"] == "completed"
        assert stored["transaction_signature"] == claim["transaction_signature"]

        rows = await storage.rewards.list_for_claim(claim["claim_id"])
        assert len(rows) == 2
        assert all(r["claimed"] and r["claimed_at"] == clock.now for r in rows)

    async def test_claim_only_own_wallet(self, ledger):
        await _play(ledger, score=10)
        await _play(ledger, score=3, wallet=WALLET_B)
        claim = await ledger.claim_rewards(WALLET_B)
        assert claim["amount"] == 6.0
        assert len(await ledger.get_pending_rewards(WALLET_A)) == 1

    async def test_new_rewards_after_claim(self, ledger):
        await _play(ledger, score=10)
        await ledger.claim_rewards(WALLET_A)
        await _play(ledger, score=1)
        claim = await ledger.claim_rewards(WALLET_A)
        assert claim["amount"] == 2.0
        assert claim["rewards_claimed"] == 1

    async def test_concurrent_claims_pay_once(self, ledger, storage):
        await _play(ledger, score=10)
        await _play(ledger, score=5)
        results = await asyncio.gather(
            *[ledger.claim_rewards(WALLET_A) for _ in range(8)], return_exceptions=True
        )
        successes = [r for r in results if isinstance(r, dict)]
        failures = [r for r in results if isinstance(r, NothingToClaimError)]
        assert len(successes) == 1
        assert len(failures) == 7
        assert successes[0]["amount"] == 30.0
        assert await storage.claims.total_claimed(WALLET_A) == 30.0

    async def test_claim_sum_matches_pending(self, ledger):
        for score in (1, 7, 13, 29):
            await _play(ledger, game_id="snake", score=score)
        pending = await ledger.get_pending_rewards(WALLET_A)
        expected = round(sum(r["amount"] for r in pending), 4)
        claim = await ledger.claim_rewards(WALLET_A)
        assert claim["amount"] == expected
        assert claim["rewards_claimed"] == len(pending)


# ── Expiry ────────────────────────────────────────────────────────────────

class TestExpiry:

    async def test_claimable_until_expiry(self, ledger, clock):
        await _play(ledger)
        clock.advance(30 * DAY_SEC)
        assert len(await ledger.get_pending_rewards(WALLET_A)) == 1

    async def test_expired_rewards_not_claimable(self, ledger, clock):
        await _play(ledger)
        clock.advance(30 * DAY_SEC + 1)
        assert await ledger.get_pending_rewards(WALLET_A) == []
        with pytest.raises(NothingToClaimError):
            await ledger.claim_rewards(WALLET_A)

    async def test_custom_ttl(self, storage, clock):
        from optik_arcade.ledger import RewardLedger
        short = RewardLedger(storage, reward_ttl_sec=60, clock=clock)
        await short.record_session(WALLET_A, "flappy", 10, 10)
        clock.advance(61)
        assert await short.get_pending_rewards(WALLET_A) == []


# ── Pending reward primitive ──────────────────────────────────────────────

class TestAddPendingReward:

    async def test_insert(self, ledger, clock):
        reward = await ledger.add_pending_reward(WALLET_A, 12.34567, "achievement", "manual-1")
        assert reward["amount"] == 12.3457
        assert reward["expires_at"] == clock.now + 30 * DAY_SEC

    async def test_duplicate_source(self, ledger, storage):
        await ledger.add_pending_reward(WALLET_A, 5, "purchase", "cs_1")
        with pytest.raises(DuplicateSourceEventError):
            await ledger.add_pending_reward(WALLET_A, 5, "purchase", "cs_1")
        assert await storage.rewards.count() == 1

    @pytest.mark.parametrize("amount,source,source_id", [
        (0, "purchase", "x"),
        (-1, "purchase", "x"),
        (5, "airdrop", "x"),
        (5, "purchase", ""),
    ])
    async def test_invalid(self, ledger, amount, source, source_id):
        with pytest.raises(ValidationError):
            await ledger.add_pending_reward(WALLET_A, amount, source, source_id)


# ── Purchases ─────────────────────────────────────────────────────────────

class TestPurchases:

    async def test_credit_explicit_amount(self, ledger, storage):
        result = await ledger.credit_purchase(WALLET_A, "cs_test_1", optik_amount=500, amount_cents=999)
        assert result["status"] == "credited"
        assert result["reward"]["amount"] == 500.0
        assert result["reward"]["source"] == "purchase"
        audit = await storage.purchases.get("cs_test_1")
        assert audit["wallet_address"] == WALLET_A
        assert audit["amount_cents"] == 999

    async def test_credit_converted_from_usd(self, ledger):
        result = await ledger.credit_purchase(WALLET_A, "cs_test_2", amount_cents=999)
        assert result["reward"]["amount"] == 199.8

    async def test_duplicate_delivery_single_row(self, ledger, storage):
        first = await ledger.credit_purchase(WALLET_A, "cs_dup", optik_amount=100)
        second = await ledger.credit_purchase(WALLET_A, "cs_dup", optik_amount=100)
        assert first["status"] == "credited"
        assert second["status"] == "duplicate"
        assert second["reward"]["id"] == first["reward"]["id"]
        assert await storage.rewards.count(source="purchase") == 1

    async def test_concurrent_duplicate_deliveries(self, ledger, storage):
        results = await asyncio.gather(
            *[ledger.credit_purchase(WALLET_A, "cs_race", optik_amount=100) for _ in range(5)]
        )
        assert [r["status"] for r in results].count("credited") == 1
        assert await storage.rewards.count(source="purchase") == 1

    async def test_purchase_reward_lasts_a_year(self, ledger, clock):
        await ledger.credit_purchase(WALLET_A, "cs_long", optik_amount=100)
        clock.advance(100 * DAY_SEC)
        pending = await ledger.get_pending_rewards(WALLET_A)
        assert [r["source"] for r in pending] == ["purchase"]

    async def test_purchase_claimable_with_game_rewards(self, ledger):
        await _play(ledger, score=10)
        await ledger.credit_purchase(WALLET_A, "cs_mix", optik_amount=100)
        claim = await ledger.claim_rewards(WALLET_A)
        assert claim["amount"] == 120.0
        assert claim["rewards_claimed"] == 2

    async def test_purchase_without_amount_rejected(self, ledger):
        with pytest.raises(ValidationError):
            await ledger.credit_purchase(WALLET_A, "cs_empty")

    async def test_purchase_invalid_wallet(self, ledger, storage):
        with pytest.raises(ValidationError):
            await ledger.credit_purchase("0xabc", "cs_bad", optik_amount=10)
        assert await storage.rewards.count() == 0


# ── Achievements ──────────────────────────────────────────────────────────

class TestAchievementClaims:

    async def test_claim_unlocked(self, ledger, storage):
        await _play(ledger)
        result = await ledger.claim_achievement(WALLET_A, 1)
        assert result["amount"] == 10.0
        assert result["source_id"] == achievement_source_id(WALLET_A, 1)
        reward = await storage.rewards.get_by_source("achievement", result["source_id"])
        assert reward["amount"] == 10.0
        unlocked = await storage.achievements.get_unlocked(WALLET_A, 1)
        assert unlocked["claimed"] is True

    async def test_claim_twice(self, ledger):
        await _play(ledger)
        await ledger.claim_achievement(WALLET_A, 1)
        with pytest.raises(NothingToClaimError):
            await ledger.claim_achievement(WALLET_A, 1)

    async def test_locked(self, ledger):
        await _play(ledger)
        with pytest.raises(ValidationError, match="not unlocked"):
            await ledger.claim_achievement(WALLET_A, 2)

    async def test_unknown(self, ledger):
        with pytest.raises(ValidationError, match="Unknown achievement"):
            await ledger.claim_achievement(WALLET_A, 999)

    async def test_achievement_reward_claimed_with_rest(self, ledger):
        await _play(ledger, score=10)
        await ledger.claim_achievement(WALLET_A, 1)
        claim = await ledger.claim_rewards(WALLET_A)
        assert claim["amount"] == 30.0
        assert claim["rewards_claimed"] == 2


# ── Atomicity ─────────────────────────────────────────────────────────────

class TestRollback:

    async def test_failed_session_write_rolls_back(self, ledger, storage, monkeypatch):
        async def broken_record(*args, **kwargs):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(storage.daily_stats, "record", broken_record)
        with pytest.raises(PersistenceError):
            await _play(ledger)
        assert await storage.sessions.count() == 0
        assert await storage.rewards.count() == 0

    async def test_failed_claim_update_rolls_back(self, ledger, storage, monkeypatch):
        await _play(ledger)

        async def lost_update(*args, **kwargs):
            return 0

        monkeypatch.setattr(storage.rewards, "mark_claimed", lost_update)
        with pytest.raises(PersistenceError):
            await ledger.claim_rewards(WALLET_A)
        assert await storage.claims.list_for_wallet(WALLET_A) == []
        assert len(await ledger.get_pending_rewards(WALLET_A)) == 1

    async def test_storage_usable_after_rollback(self, ledger, storage, monkeypatch):
        async def broken_record(*args, **kwargs):
            raise RuntimeError("disk I/O error")

        monkeypatch.setattr(storage.daily_stats, "record", broken_record)
        with pytest.raises(PersistenceError):
            await _play(ledger)
        monkeypatch.undo()
        assert (await _play(ledger))["optik_earned"] == 20.0


# ── Read isolation ────────────────────────────────────────────────────────

class TestReadIsolation:

    async def _open_write(self, storage, clock, entered, fail):
        async with storage.transaction():
            await storage.rewards.insert(WALLET_A, 50.0, "purchase", "cs_inflight",
                                         expires_at=clock() + DAY_SEC, created_at=clock())
            entered.set()
            await asyncio.sleep(0.05)
            if fail:
                raise RuntimeError("payment provider timeout")

    async def test_reader_never_sees_rolled_back_rows(self, ledger, storage, clock):
        entered = asyncio.Event()
        writer = asyncio.create_task(self._open_write(storage, clock, entered, fail=True))
        await entered.wait()

        assert await ledger.get_pending_rewards(WALLET_A) == []
        with pytest.raises(RuntimeError):
            await writer
        assert await storage.rewards.count() == 0

    async def test_reader_waits_for_commit(self, ledger, storage, clock):
        entered = asyncio.Event()
        writer = asyncio.create_task(self._open_write(storage, clock, entered, fail=False))
        await entered.wait()

        pending = await ledger.get_pending_rewards(WALLET_A)
        assert [(r["source_id"], r["amount"]) for r in pending] == [("cs_inflight", 50.0)]
        await writer

    async def test_leaderboard_reads_committed_state(self, board, storage, clock):
        entered = asyncio.Event()

        async def failing_session():
            async with storage.transaction():
                await storage.sessions.insert("s_inflight", WALLET_A, "snake", 100, 30, 10.0, clock())
                entered.set()
                await asyncio.sleep(0.05)
                raise RuntimeError("disk I/O error")

        writer = asyncio.create_task(failing_session())
        await entered.wait()
        assert await board.get_leaderboard() == []
        assert await board.get_history(WALLET_A) == []
        with pytest.raises(RuntimeError):
            await writer
