"""
leaderboard.py - Read-side aggregation.

Daily stats, achievement progress, session history and the arcade
leaderboard. Never writes.
"""

import logging
import time
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from optik_arcade.rewards import DEFAULT_RATES, GameRate, get_rate
from optik_arcade.storage import day_key
from optik_arcade.wallet import require_wallet_address

if TYPE_CHECKING:
    from optik_arcade.storage import StorageManager

logger = logging.getLogger("leaderboard")

MAX_LEADERBOARD = 200
MAX_HISTORY = 100


def achievement_progress(current_value: float, requirement_value: float) -> float:
    """Percent towards a requirement, capped at 100."""
    if requirement_value <= 0:
        return 100.0
    return round(min(100.0, current_value / requirement_value * 100), 2)


class LeaderboardService:
    def __init__(
        self,
        storage: "StorageManager",
        rates: Optional[Dict[str, GameRate]] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._storage = storage
        self.rates = rates if rates is not None else dict(DEFAULT_RATES)
        self._clock = clock

    def list_games(self) -> List[dict]:
        return [r.to_dict() for r in sorted(self.rates.values(), key=lambda r: r.name)]

    async def get_daily_stats(self, wallet_address: str, game_id: Optional[str] = None) -> dict:
        wallet = require_wallet_address(wallet_address)
        day = day_key(self._clock())

        if game_id:
            rate = get_rate(game_id, self.rates)
            async with self._storage.read():
                stats = await self._storage.daily_stats.get(wallet, game_id, day)
            return {
                "totalOptikEarned": stats["total_optik_earned"],
                "gamesPlayed": stats["games_played"],
                "bestScore": stats["best_score"],
                "remainingDaily": round(max(0.0, rate.max_daily_reward - stats["total_optik_earned"]), 4),
            }

        async with self._storage.read():
            rows = await self._storage.daily_stats.list_for_day(wallet, day)
        return {
            "totalDailyEarned": round(sum(r["total_optik_earned"] for r in rows), 4),
            # distinct games played today
            "gamesPlayed": len(rows),
        }

    async def get_achievements(self, wallet_address: str) -> List[dict]:
        wallet = require_wallet_address(wallet_address)
        async with self._storage.read():
            catalog = await self._storage.achievements.list_catalog()
            unlocked = {u["achievement_id"]: u for u in await self._storage.achievements.list_unlocked(wallet)}
            totals = await self._storage.sessions.wallet_totals(wallet)

        result = []
        for ach in catalog:
            ua = unlocked.get(ach["id"])
            result.append({
                "id": ach["id"],
                "name": ach["name"],
                "description": ach["description"],
                "icon": ach["icon"],
                "requirementType": ach["requirement_type"],
                "requirementValue": ach["requirement_value"],
                "rewardOptik": ach["reward_optik"],
                "progress": achievement_progress(
                    totals.get(ach["requirement_type"], 0), ach["requirement_value"]
                ),
                "unlocked": ua is not None,
                "unlockedAt": ua["unlocked_at"] if ua else None,
                "claimed": ua["claimed"] if ua else False,
            })
        return result

    async def get_history(self, wallet_address: str, limit: int = 10) -> List[dict]:
        wallet = require_wallet_address(wallet_address)
        limit = max(1, min(limit, MAX_HISTORY))
        async with self._storage.read():
            sessions = await self._storage.sessions.list_for_wallet(wallet, limit=limit)
        return [
            {
                "id": s["session_id"],
                "gameId": s["game_id"],
                "gameName": self.rates[s["game_id"]].name if s["game_id"] in self.rates else s["game_id"],
                "score": s["score"],
                "durationSeconds": s["duration_seconds"],
                "optikEarned": s["optik_earned"],
                "createdAt": s["created_at"],
            }
            for s in sessions
        ]

    async def get_leaderboard(self, limit: int = 50, game_id: Optional[str] = None) -> List[dict]:
        if game_id:
            get_rate(game_id, self.rates)
        limit = max(1, min(limit, MAX_LEADERBOARD))
        async with self._storage.read():
            rows = await self._storage.sessions.leaderboard(limit=limit, game_id=game_id)
        return [
            {
                "rank": i,
                "walletAddress": row["wallet_address"],
                "username": f"Player{row['wallet_address'][:6]}",
                "totalScore": row["total_score"],
                "totalOptikEarned": row["total_optik_earned"],
                "gamesPlayed": row["games_played"],
                "achievementsUnlocked": row["achievements_unlocked"],
                "highestScore": row["highest_score"],
            }
            for i, row in enumerate(rows, start=1)
        ]
