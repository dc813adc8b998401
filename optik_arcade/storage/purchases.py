from typing import Optional

import aiosqlite


class PurchaseRepo:
    """Audit trail for confirmed external payments."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(
        self,
        external_id: str,
        wallet_address: str,
        amount_cents: int,
        currency: str,
        optik_amount: float,
        created_at: float,
    ):
        """Caller commits. Re-deliveries are ignored by the primary key."""
        await self._db.execute(
            "INSERT OR IGNORE INTO purchases "
            "(external_id, wallet_address, amount_cents, currency, optik_amount, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (external_id, wallet_address, amount_cents, currency, optik_amount, created_at),
        )

    async def get(self, external_id: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT external_id, wallet_address, amount_cents, currency, optik_amount, created_at "
            "FROM purchases WHERE external_id = ?",
            (external_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return {
            "external_id": row[0],
            "wallet_address": row[1],
            "amount_cents": row[2],
            "currency": row[3],
            "optik_amount": round(row[4], 4),
            "created_at": row[5],
        }
