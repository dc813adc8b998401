import time
from datetime import datetime, timezone
from typing import List, Optional

import aiosqlite


def day_key(ts: Optional[float] = None) -> str:
    """UTC calendar day for a timestamp, e.g. ``2024-05-01``."""
    ts = ts if ts is not None else time.time()
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


class DailyStatRepo:
    """Per wallet/game/day aggregates backing the daily reward cap."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def get_earned(self, wallet_address: str, game_id: str, day: str) -> float:
        async with self._db.execute(
            "SELECT total_optik_earned FROM daily_stats "
            "WHERE wallet_address = ? AND game_id = ? AND day = ?",
            (wallet_address, game_id, day),
        ) as cursor:
            row = await cursor.fetchone()
        return round(row[0], 4) if row else 0.0

    async def record(self, wallet_address: str, game_id: str, day: str,
                     optik_earned: float, score: int):
        """Add one session to the day's aggregate. Caller commits."""
        now = time.time()
        await self._db.execute(
            "INSERT INTO daily_stats "
            "(wallet_address, game_id, day, total_optik_earned, games_played, best_score, updated_at) "
            "VALUES (?, ?, ?, ?, 1, ?, ?) "
            "ON CONFLICT(wallet_address, game_id, day) DO UPDATE SET "
            "total_optik_earned = total_optik_earned + excluded.total_optik_earned, "
            "games_played = games_played + 1, "
            "best_score = MAX(best_score, excluded.best_score), "
            "updated_at = excluded.updated_at",
            (wallet_address, game_id, day, optik_earned, score, now),
        )

    async def get(self, wallet_address: str, game_id: str, day: str) -> dict:
        async with self._db.execute(
            "SELECT total_optik_earned, games_played, best_score FROM daily_stats "
            "WHERE wallet_address = ? AND game_id = ? AND day = ?",
            (wallet_address, game_id, day),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return {"total_optik_earned": 0.0, "games_played": 0, "best_score": 0}
        return {
            "total_optik_earned": round(row[0], 4),
            "games_played": row[1],
            "best_score": row[2],
        }

    async def list_for_day(self, wallet_address: str, day: str) -> List[dict]:
        results = []
        async with self._db.execute(
            "SELECT game_id, total_optik_earned, games_played, best_score FROM daily_stats "
            "WHERE wallet_address = ? AND day = ? ORDER BY game_id",
            (wallet_address, day),
        ) as cursor:
            async for row in cursor:
                results.append({
                    "game_id": row[0],
                    "total_optik_earned": round(row[1], 4),
                    "games_played": row[2],
                    "best_score": row[3],
                })
        return results
