from typing import List, Optional

import aiosqlite

_COLS = ("claim_id, wallet_address, amount, rewards_claimed, transaction_signature, "
         "status, created_at")


def _row_to_claim(row) -> dict:
    return {
        "claim_id": row[0],
        "wallet_address": row[1],
        "amount": round(row[2], 4),
        "rewards_claimed": row[3],
        "transaction_signature": row[4],
        "status": row[5],
        "created_at": row[6],
    }


class ClaimRepo:
    """Claim history. ``insert`` runs inside the claim transaction."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(
        self,
        claim_id: str,
        wallet_address: str,
        amount: float,
        rewards_claimed: int,
        transaction_signature: str,
        created_at: float,
        status: str = "completed",
    ) -> dict:
        await self._db.execute(
            f"INSERT INTO reward_claims ({_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (claim_id, wallet_address, amount, rewards_claimed, transaction_signature, status, created_at),
        )
        return {
            "claim_id": claim_id,
            "wallet_address": wallet_address,
            "amount": round(amount, 4),
            "rewards_claimed": rewards_claimed,
            "transaction_signature": transaction_signature,
            "status": status,
            "created_at": created_at,
        }

    async def get(self, claim_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLS} FROM reward_claims WHERE claim_id = ?", (claim_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_claim(row)

    async def list_for_wallet(self, wallet_address: str, limit: int = 50) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLS} FROM reward_claims WHERE wallet_address = ? "
            "ORDER BY created_at DESC LIMIT ?",
            (wallet_address, limit),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_claim(row))
        return results

    async def total_claimed(self, wallet_address: str) -> float:
        async with self._db.execute(
            "SELECT COALESCE(SUM(amount), 0.0) FROM reward_claims "
            "WHERE wallet_address = ? AND status = 'completed'",
            (wallet_address,),
        ) as cursor:
            row = await cursor.fetchone()
        return round(row[0], 4)
