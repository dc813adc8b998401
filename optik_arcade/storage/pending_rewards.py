import time
from typing import List, Optional, Sequence

import aiosqlite

from optik_arcade.errors import DuplicateSourceEventError

_COLS = ("id, wallet_address, amount, source, source_id, claimed, claimed_at, "
         "claim_id, expires_at, created_at")


def _row_to_reward(row) -> dict:
    return {
        "id": row[0],
        "wallet_address": row[1],
        "amount": round(row[2], 4),
        "source": row[3],
        "source_id": row[4],
        "claimed": bool(row[5]),
        "claimed_at": row[6],
        "claim_id": row[7],
        "expires_at": row[8],
        "created_at": row[9],
    }


class PendingRewardRepo:
    """Operations on pending_rewards.

    Writes never commit; the caller owns the transaction. The unique
    (source, source_id) index is what makes crediting idempotent.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(
        self,
        wallet_address: str,
        amount: float,
        source: str,
        source_id: str,
        expires_at: float,
        created_at: Optional[float] = None,
    ) -> dict:
        now = created_at if created_at is not None else time.time()
        try:
            cursor = await self._db.execute(
                "INSERT INTO pending_rewards "
                "(wallet_address, amount, source, source_id, claimed, expires_at, created_at) "
                "VALUES (?, ?, ?, ?, 0, ?, ?)",
                (wallet_address, amount, source, source_id, expires_at, now),
            )
        except aiosqlite.IntegrityError as e:
            if "UNIQUE" in str(e):
                raise DuplicateSourceEventError(source, source_id) from e
            raise
        return {
            "id": cursor.lastrowid,
            "wallet_address": wallet_address,
            "amount": round(amount, 4),
            "source": source,
            "source_id": source_id,
            "claimed": False,
            "claimed_at": None,
            "claim_id": None,
            "expires_at": expires_at,
            "created_at": now,
        }

    async def get_by_source(self, source: str, source_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLS} FROM pending_rewards WHERE source = ? AND source_id = ?",
            (source, source_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_reward(row)

    async def list_claimable(self, wallet_address: str, now: Optional[float] = None) -> List[dict]:
        """Unclaimed rows whose expiry has not passed."""
        now = now if now is not None else time.time()
        results = []
        async with self._db.execute(
            f"SELECT {_COLS} FROM pending_rewards "
            "WHERE wallet_address = ? AND claimed = 0 AND expires_at >= ? "
            "ORDER BY created_at, id",
            (wallet_address, now),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_reward(row))
        return results

    async def mark_claimed(self, reward_ids: Sequence[int], claim_id: str, claimed_at: float) -> int:
        """Flip still-unclaimed rows to claimed; returns how many changed."""
        if not reward_ids:
            return 0
        placeholders = ", ".join("?" for _ in reward_ids)
        cursor = await self._db.execute(
            f"UPDATE pending_rewards SET claimed = 1, claimed_at = ?, claim_id = ? "
            f"WHERE claimed = 0 AND id IN ({placeholders})",
            (claimed_at, claim_id, *reward_ids),
        )
        return cursor.rowcount

    async def list_for_claim(self, claim_id: str) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLS} FROM pending_rewards WHERE claim_id = ? ORDER BY id",
            (claim_id,),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_reward(row))
        return results

    async def count(self, source: Optional[str] = None) -> int:
        if source:
            async with self._db.execute(
                "SELECT COUNT(*) FROM pending_rewards WHERE source = ?", (source,)
            ) as cursor:
                row = await cursor.fetchone()
        else:
            async with self._db.execute("SELECT COUNT(*) FROM pending_rewards") as cursor:
                row = await cursor.fetchone()
        return row[0] if row else 0
