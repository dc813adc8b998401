"""
ledger.py - Session and claim ledger.

Records finished game sessions, turns them into pending OPTIK rewards and
pays pending rewards out on claim. Every write runs in a single IMMEDIATE
transaction via StorageManager.transaction(), so:

 - the daily-cap read and the session write cannot interleave with another
   submission for the same database (no joint cap overshoot);
 - a claim selects and flips its rows as one unit (at-most-once payout);
 - crediting is keyed on the unique (source, source_id) index, so replayed
   webhook deliveries collapse into one row.

Claims produce a simulated transaction signature; no tokens move on-chain.
"""

import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from optik_arcade.errors import (
    ArcadeError,
    DuplicateSourceEventError,
    NothingToClaimError,
    PersistenceError,
    ValidationError,
)
from optik_arcade.price import PriceSource, StaticPriceSource, usd_to_optik
from optik_arcade.rewards import (
    DEFAULT_RATES,
    GameRate,
    calculate_reward,
    format_optik,
    round_amount,
    validate_session,
)
from optik_arcade.storage import day_key
from optik_arcade.wallet import require_wallet_address, short_address

if TYPE_CHECKING:
    from optik_arcade.storage import StorageManager

logger = logging.getLogger("ledger")

SOURCE_GAME_SESSION = "game_session"
SOURCE_PURCHASE = "purchase"
SOURCE_ACHIEVEMENT = "achievement"
REWARD_SOURCES = (SOURCE_GAME_SESSION, SOURCE_PURCHASE, SOURCE_ACHIEVEMENT)

DAY_SEC = 86400
DEFAULT_REWARD_TTL = 30 * DAY_SEC
PURCHASE_REWARD_TTL = 365 * DAY_SEC


def simulated_signature(claim_id: str, now: float) -> str:
    return f"mock_tx_{int(now * 1000)}_{claim_id[:8]}"


def achievement_source_id(wallet_address: str, achievement_id: int) -> str:
    return f"{wallet_address}:{achievement_id}"


class RewardLedger:
    """Server-side owner of sessions, pending rewards and claims."""

    def __init__(
        self,
        storage: "StorageManager",
        rates: Optional[Dict[str, GameRate]] = None,
        prices: Optional[PriceSource] = None,
        reward_ttl_sec: float = DEFAULT_REWARD_TTL,
        purchase_ttl_sec: float = PURCHASE_REWARD_TTL,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self.rates = rates if rates is not None else dict(DEFAULT_RATES)
        self.prices = prices or StaticPriceSource()
        self.reward_ttl_sec = reward_ttl_sec
        self.purchase_ttl_sec = purchase_ttl_sec
        self._clock = clock

    @asynccontextmanager
    async def _atomic(self, action: str):
        try:
            async with self._storage.transaction() as db:
                yield db
        except ArcadeError:
            raise
        except Exception as e:
            logger.exception("%s failed; transaction rolled back", action)
            raise PersistenceError(f"{action} failed: {e}") from e

    # -------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------

    async def record_session(
        self, wallet_address: str, game_id: str, score: int, duration_seconds: int
    ) -> dict:
        """Record one finished session and credit its reward.

        The reward is computed here from the stored daily total; callers
        cannot supply an amount.
        """
        wallet = require_wallet_address(wallet_address)
        validate_session(game_id, score, duration_seconds, self.rates)
        session_id = uuid.uuid4().hex

        async with self._atomic(f"Recording {game_id} session for {wallet}"):
            now = self._clock()
            day = day_key(now)
            daily_earned = await self._storage.daily_stats.get_earned(wallet, game_id, day)
            optik_earned = calculate_reward(game_id, score, duration_seconds, daily_earned, self.rates)

            await self._storage.sessions.insert(
                session_id, wallet, game_id, score, duration_seconds, optik_earned, now,
            )
            if optik_earned > 0:
                await self._storage.rewards.insert(
                    wallet, optik_earned, SOURCE_GAME_SESSION, session_id,
                    expires_at=now + self.reward_ttl_sec, created_at=now,
                )
            await self._storage.daily_stats.record(wallet, game_id, day, optik_earned, score)
            unlocked = await self._unlock_achievements(wallet, now)

        logger.info(
            "Session %s: wallet=%s game=%s score=%d duration=%ds earned=%.4f (daily %.4f/%.4f)",
            session_id, short_address(wallet), game_id, score, duration_seconds, optik_earned,
            daily_earned + optik_earned, self.rates[game_id].max_daily_reward,
        )
        for ach in unlocked:
            logger.info("Wallet %s unlocked achievement %d (%s)", short_address(wallet), ach["id"], ach["name"])
        return {
            "session_id": session_id,
            "optik_earned": optik_earned,
            "unlocked_achievements": unlocked,
        }

    async def _unlock_achievements(self, wallet: str, now: float) -> List[dict]:
        totals = await self._storage.sessions.wallet_totals(wallet)
        unlocked = []
        for ach in await self._storage.achievements.list_catalog():
            if totals.get(ach["requirement_type"], 0) < ach["requirement_value"]:
                continue
            if await self._storage.achievements.unlock(wallet, ach["id"], now):
                unlocked.append(ach)
        return unlocked

    # -------------------------------------------------------------------
    # Pending rewards
    # -------------------------------------------------------------------

    async def get_pending_rewards(self, wallet_address: str) -> List[dict]:
        wallet = require_wallet_address(wallet_address)
        async with self._storage.read():
            return await self._storage.rewards.list_claimable(wallet, now=self._clock())

    async def add_pending_reward(
        self,
        wallet_address: str,
        amount: float,
        source: str,
        source_id: str,
        expires_at: Optional[float] = None,
    ) -> dict:
        """Insert one pending reward.

        Raises DuplicateSourceEventError if (source, source_id) was already
        credited; nothing is written in that case.
        """
        wallet = require_wallet_address(wallet_address)
        if source not in REWARD_SOURCES:
            raise ValidationError(f"Unknown reward source: {source!r}")
        if not source_id:
            raise ValidationError("source_id required")
        if amount is None or amount <= 0:
            raise ValidationError("Reward amount must be positive")

        async with self._atomic(f"Crediting {source} {source_id}"):
            now = self._clock()
            reward = await self._storage.rewards.insert(
                wallet, round_amount(amount), source, source_id,
                expires_at=expires_at if expires_at is not None else now + self.reward_ttl_sec,
                created_at=now,
            )
        logger.info("Credited %.4f OPTIK to %s (%s %s)", reward["amount"], short_address(wallet), source, source_id)
        return reward

    # -------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------

    async def claim_rewards(self, wallet_address: str) -> dict:
        """Pay out every eligible pending reward for the wallet.

        Raises NothingToClaimError when no row is eligible, including a
        replay of a claim that already succeeded.
        """
        wallet = require_wallet_address(wallet_address)

        async with self._atomic(f"Claim for {wallet}"):
            now = self._clock()
            pending = await self._storage.rewards.list_claimable(wallet, now=now)
            if not pending:
                raise NothingToClaimError(wallet)

            reward_ids = [r["id"] for r in pending]
            total = round_amount(sum(r["amount"] for r in pending))
            claim_id = uuid.uuid4().hex
            signature = simulated_signature(claim_id, now)

            claim = await self._storage.claims.insert(
                claim_id, wallet, total, len(reward_ids), signature, created_at=now,
            )
            updated = await self._storage.rewards.mark_claimed(reward_ids, claim_id, now)
            if updated != len(reward_ids):
                raise PersistenceError(
                    f"Claim {claim_id}: expected {len(reward_ids)} rows, updated {updated}"
                )

        logger.info("Claim %s: wallet=%s amount=%s OPTIK rewards=%d tx=%s",
                    claim_id, short_address(wallet), format_optik(total), len(reward_ids), signature)
        return {
            "claim_id": claim["claim_id"],
            "amount": claim["amount"],
            "rewards_claimed": claim["rewards_claimed"],
            "transaction_signature": claim["transaction_signature"],
        }

    async def claim_achievement(self, wallet_address: str, achievement_id: int) -> dict:
        """Move an unlocked achievement's reward into pending rewards."""
        wallet = require_wallet_address(wallet_address)
        source_id = achievement_source_id(wallet, achievement_id)

        async with self._atomic(f"Achievement {achievement_id} claim for {wallet}"):
            achievement = await self._storage.achievements.get(achievement_id)
            if achievement is None or not achievement["is_active"]:
                raise ValidationError(f"Unknown achievement: {achievement_id}")
            unlocked = await self._storage.achievements.get_unlocked(wallet, achievement_id)
            if unlocked is None:
                raise ValidationError(f"Achievement {achievement_id} not unlocked")
            if not await self._storage.achievements.mark_claimed(wallet, achievement_id):
                raise NothingToClaimError(wallet, "Achievement reward already claimed")

            amount = achievement["reward_optik"]
            if amount > 0:
                now = self._clock()
                try:
                    await self._storage.rewards.insert(
                        wallet, amount, SOURCE_ACHIEVEMENT, source_id,
                        expires_at=now + self.reward_ttl_sec, created_at=now,
                    )
                except DuplicateSourceEventError:
                    raise NothingToClaimError(wallet, "Achievement reward already claimed")

        logger.info("Achievement %d reward %.4f queued for %s", achievement_id, amount, short_address(wallet))
        return {"achievement_id": achievement_id, "amount": amount, "source_id": source_id}

    # -------------------------------------------------------------------
    # Purchases
    # -------------------------------------------------------------------

    async def credit_purchase(
        self,
        wallet_address: str,
        external_id: str,
        optik_amount: Optional[float] = None,
        amount_cents: int = 0,
        currency: str = "usd",
    ) -> dict:
        """Credit a confirmed payment once, however often it is delivered.

        Without an explicit OPTIK amount the paid USD total is converted at
        the current OPTIK price.
        """
        wallet = require_wallet_address(wallet_address)
        if not external_id:
            raise ValidationError("Payment id required")
        if optik_amount is None:
            if amount_cents <= 0:
                raise ValidationError("Payment carries neither an OPTIK amount nor a total")
            optik_amount = await asyncio.to_thread(usd_to_optik, amount_cents / 100, self.prices)
        optik_amount = round_amount(optik_amount)
        if optik_amount <= 0:
            raise ValidationError("OPTIK amount must be positive")

        try:
            async with self._atomic(f"Crediting purchase {external_id}"):
                now = self._clock()
                reward = await self._storage.rewards.insert(
                    wallet, optik_amount, SOURCE_PURCHASE, external_id,
                    expires_at=now + self.purchase_ttl_sec, created_at=now,
                )
                await self._storage.purchases.insert(
                    external_id, wallet, amount_cents, currency, optik_amount, now,
                )
        except DuplicateSourceEventError:
            logger.info("Purchase %s already credited; ignoring redelivery", external_id)
            async with self._storage.read():
                existing = await self._storage.rewards.get_by_source(SOURCE_PURCHASE, external_id)
            return {"status": "duplicate", "reward": existing}

        logger.info("Purchase %s: credited %s OPTIK to %s", external_id, format_optik(optik_amount), short_address(wallet))
        return {"status": "credited", "reward": reward}
