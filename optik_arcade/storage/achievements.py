from typing import List, Optional

import aiosqlite

_CATALOG_COLS = ("id, name, description, icon, requirement_type, requirement_value, "
                 "reward_optik, is_active")


def _row_to_achievement(row) -> dict:
    return {
        "id": row[0],
        "name": row[1],
        "description": row[2],
        "icon": row[3],
        "requirement_type": row[4],
        "requirement_value": row[5],
        "reward_optik": round(row[6], 4),
        "is_active": bool(row[7]),
    }


class AchievementRepo:
    """Achievement catalog plus per-wallet unlock rows."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def list_catalog(self, active_only: bool = True) -> List[dict]:
        query = f"SELECT {_CATALOG_COLS} FROM achievements"
        if active_only:
            query += " WHERE is_active = 1"
        query += " ORDER BY id"
        results = []
        async with self._db.execute(query) as cursor:
            async for row in cursor:
                results.append(_row_to_achievement(row))
        return results

    async def get(self, achievement_id: int) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_CATALOG_COLS} FROM achievements WHERE id = ?", (achievement_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_achievement(row)

    async def list_unlocked(self, wallet_address: str) -> List[dict]:
        results = []
        async with self._db.execute(
            "SELECT achievement_id, unlocked_at, claimed FROM user_achievements "
            "WHERE wallet_address = ? ORDER BY unlocked_at, achievement_id",
            (wallet_address,),
        ) as cursor:
            async for row in cursor:
                results.append({
                    "achievement_id": row[0],
                    "unlocked_at": row[1],
                    "claimed": bool(row[2]),
                })
        return results

    async def get_unlocked(self, wallet_address: str, achievement_id: int) -> Optional[dict]:
        async with self._db.execute(
            "SELECT achievement_id, unlocked_at, claimed FROM user_achievements "
            "WHERE wallet_address = ? AND achievement_id = ?",
            (wallet_address, achievement_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return {"achievement_id": row[0], "unlocked_at": row[1], "claimed": bool(row[2])}

    async def unlock(self, wallet_address: str, achievement_id: int, unlocked_at: float) -> bool:
        """Record an unlock; False if it was already unlocked. Caller commits."""
        cursor = await self._db.execute(
            "INSERT OR IGNORE INTO user_achievements (wallet_address, achievement_id, unlocked_at, claimed) "
            "VALUES (?, ?, ?, 0)",
            (wallet_address, achievement_id, unlocked_at),
        )
        return cursor.rowcount == 1

    async def mark_claimed(self, wallet_address: str, achievement_id: int) -> bool:
        """Flip an unclaimed unlock to claimed. Caller commits."""
        cursor = await self._db.execute(
            "UPDATE user_achievements SET claimed = 1 "
            "WHERE wallet_address = ? AND achievement_id = ? AND claimed = 0",
            (wallet_address, achievement_id),
        )
        return cursor.rowcount == 1
