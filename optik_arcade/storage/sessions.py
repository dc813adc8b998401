from typing import List, Optional

import aiosqlite

_COLS = "session_id, wallet_address, game_id, score, duration_seconds, optik_earned, created_at"


def _row_to_session(row) -> dict:
    return {
        "session_id": row[0],
        "wallet_address": row[1],
        "game_id": row[2],
        "score": row[3],
        "duration_seconds": row[4],
        "optik_earned": round(row[5], 4),
        "created_at": row[6],
    }


class GameSessionRepo:
    """Append-only access to the game_sessions table.

    ``insert`` does not commit: it runs inside the ledger's transaction.
    """

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def insert(
        self,
        session_id: str,
        wallet_address: str,
        game_id: str,
        score: int,
        duration_seconds: int,
        optik_earned: float,
        created_at: float,
    ) -> dict:
        await self._db.execute(
            f"INSERT INTO game_sessions ({_COLS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (session_id, wallet_address, game_id, score, duration_seconds, optik_earned, created_at),
        )
        return {
            "session_id": session_id,
            "wallet_address": wallet_address,
            "game_id": game_id,
            "score": score,
            "duration_seconds": duration_seconds,
            "optik_earned": round(optik_earned, 4),
            "created_at": created_at,
        }

    async def get(self, session_id: str) -> Optional[dict]:
        async with self._db.execute(
            f"SELECT {_COLS} FROM game_sessions WHERE session_id = ?",
            (session_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return _row_to_session(row)

    async def list_for_wallet(self, wallet_address: str, limit: int = 10, offset: int = 0) -> List[dict]:
        results = []
        async with self._db.execute(
            f"SELECT {_COLS} FROM game_sessions WHERE wallet_address = ? "
            "ORDER BY created_at DESC, rowid DESC LIMIT ? OFFSET ?",
            (wallet_address, limit, offset),
        ) as cursor:
            async for row in cursor:
                results.append(_row_to_session(row))
        return results

    async def count(self, wallet_address: Optional[str] = None) -> int:
        if wallet_address:
            async with self._db.execute(
                "SELECT COUNT(*) FROM game_sessions WHERE wallet_address = ?", (wallet_address,)
            ) as cursor:
                row = await cursor.fetchone()
        else:
            async with self._db.execute("SELECT COUNT(*) FROM game_sessions") as cursor:
                row = await cursor.fetchone()
        return row[0] if row else 0

    async def wallet_totals(self, wallet_address: str) -> dict:
        """Lifetime stats used for achievement thresholds."""
        async with self._db.execute(
            "SELECT COUNT(*), COALESCE(SUM(score), 0), COALESCE(MAX(score), 0), "
            "COALESCE(SUM(optik_earned), 0.0) FROM game_sessions WHERE wallet_address = ?",
            (wallet_address,),
        ) as cursor:
            row = await cursor.fetchone()
        return {
            "games_played": row[0],
            "total_score": row[1],
            "best_score": row[2],
            "total_optik_earned": round(row[3], 4),
        }

    async def leaderboard(self, limit: int = 50, game_id: Optional[str] = None) -> List[dict]:
        """Wallets ranked by lifetime OPTIK earned, then total score."""
        query = (
            "SELECT s.wallet_address, SUM(s.score), SUM(s.optik_earned), COUNT(*), MAX(s.score), "
            "(SELECT COUNT(*) FROM user_achievements ua WHERE ua.wallet_address = s.wallet_address) "
            "FROM game_sessions s"
        )
        params: tuple = ()
        if game_id:
            query += " WHERE s.game_id = ?"
            params = (game_id,)
        query += (
            " GROUP BY s.wallet_address "
            "ORDER BY SUM(s.optik_earned) DESC, SUM(s.score) DESC, s.wallet_address "
            "LIMIT ?"
        )
        params += (limit,)
        results = []
        async with self._db.execute(query, params) as cursor:
            async for row in cursor:
                results.append({
                    "wallet_address": row[0],
                    "total_score": row[1],
                    "total_optik_earned": round(row[2], 4),
                    "games_played": row[3],
                    "highest_score": row[4],
                    "achievements_unlocked": row[5],
                })
        return results
