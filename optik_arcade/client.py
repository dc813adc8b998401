"""
client.py - Blocking HTTP client for the arcade reward API.

Used by game front-ends and scripts to report finished sessions and manage
rewards. ``reporter`` returns an ``on_game_over`` callback that submits the
session for a given wallet/game, so an engine can be wired up directly:

    client = ArcadeClient("http://localhost:8080")
    game = SnakeGame(on_game_over=client.reporter(wallet, "snake"))
"""

import logging
from typing import Callable, Optional

import requests

from optik_arcade.errors import NothingToClaimError, ValidationError

logger = logging.getLogger("client")

REQUEST_TIMEOUT = 10


class ArcadeClientError(Exception):
    """Non-success response from the reward API."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"HTTP {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


class ArcadeClient:
    def __init__(self, base_url: str = "http://localhost:8080",
                 session: Optional[requests.Session] = None, timeout: float = REQUEST_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> dict:
        resp = self.session.request(method, self.base_url + path, timeout=self.timeout, **kwargs)
        if resp.status_code >= 400:
            try:
                detail = resp.json().get("detail", resp.text)
            except ValueError:
                detail = resp.text
            if resp.status_code == 400:
                raise ValidationError(detail)
            raise ArcadeClientError(resp.status_code, detail)
        return resp.json()

    def submit_score(self, wallet: str, game_id: str, score: int, duration_seconds: int = 0) -> dict:
        return self._request("POST", "/api/arcade/submit-score", json={
            "walletAddress": wallet,
            "gameId": game_id,
            "score": score,
            "durationSeconds": duration_seconds,
        })

    def get_pending_rewards(self, wallet: str) -> dict:
        return self._request("GET", "/api/arcade/pending-rewards", params={"wallet": wallet})

    def claim_rewards(self, wallet: str) -> dict:
        try:
            return self._request("POST", "/api/arcade/claim-rewards", json={"walletAddress": wallet})
        except ArcadeClientError as e:
            if e.status_code == 409:
                raise NothingToClaimError(wallet, e.detail) from None
            raise

    def claim_achievement(self, wallet: str, achievement_id: int) -> dict:
        try:
            return self._request("POST", "/api/arcade/achievements/claim",
                                 json={"walletAddress": wallet, "achievementId": achievement_id})
        except ArcadeClientError as e:
            if e.status_code == 409:
                raise NothingToClaimError(wallet, e.detail) from None
            raise

    def get_daily_stats(self, wallet: str, game_id: Optional[str] = None) -> dict:
        params = {"wallet": wallet}
        if game_id is not None:
            params["gameId"] = game_id
        return self._request("GET", "/api/arcade/daily-stats", params=params)["stats"]

    def get_achievements(self, wallet: str) -> list:
        return self._request("GET", "/api/arcade/achievements", params={"wallet": wallet})["achievements"]

    def get_leaderboard(self, limit: int = 50, game_id: Optional[str] = None) -> list:
        params = {"limit": limit}
        if game_id is not None:
            params["gameId"] = game_id
        return self._request("GET", "/api/arcade/leaderboard", params=params)["leaderboard"]

    def get_history(self, wallet: str, limit: int = 10) -> list:
        return self._request("GET", "/api/arcade/history", params={"wallet": wallet, "limit": limit})["sessions"]

    def get_games(self) -> list:
        return self._request("GET", "/api/arcade/games")["games"]

    def reporter(self, wallet: str, game_id: str) -> Callable[[int, int], None]:
        """Build an ``on_game_over`` callback that submits the session."""
        def report(score: int, duration_seconds: int):
            try:
                result = self.submit_score(wallet, game_id, score, duration_seconds)
                logger.info("Submitted %s score %d: +%s OPTIK", game_id, score, result.get("optikEarned"))
            except (requests.exceptions.RequestException, ArcadeClientError, ValidationError) as e:
                logger.error("Failed to submit %s score %d: %s", game_id, score, e)
        return report

    def close(self):
        self.session.close()
