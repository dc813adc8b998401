"""
base.py - Shared session lifecycle for the arcade game engines.

Every engine is a small state machine:
  IDLE -> PLAYING -> GAME_OVER -> PLAYING (restart)
  any  -> IDLE (reset, no report)

Engines only report the raw score and duration through ``on_game_over``;
converting scores to OPTIK happens server-side in the reward calculator.
"""

import asyncio
import enum
import logging
import math
import random
import time
from typing import Callable, Optional

logger = logging.getLogger("games")

GameOverCallback = Callable[[int, int], None]


class GameState(enum.Enum):
    IDLE = "IDLE"
    PLAYING = "PLAYING"
    GAME_OVER = "GAME_OVER"


class GameEngine:
    """Base class for tick-driven game sessions.

    Subclasses implement ``_reset_session`` (fresh per-session state) and
    ``_step`` (one simulation tick) and call ``_finish`` when the session ends.
    """

    game_id = ""
    tick_interval = 0.1  # seconds

    def __init__(
        self,
        on_game_over: Optional[GameOverCallback] = None,
        clock: Callable[[], float] = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.on_game_over = on_game_over
        self._clock = clock
        self._rng = rng if rng is not None else random.Random()
        self._state = GameState.IDLE
        self.score = 0
        self.high_score = 0
        self.started_at = 0.0
        self.last_duration = 0
        self._reported = False

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state == GameState.PLAYING

    def start(self) -> bool:
        """Begin a new session. Ignored while a session is already running."""
        if self._state == GameState.PLAYING:
            return False
        self.score = 0
        self.started_at = self._clock()
        self._reported = False
        self._reset_session()
        self._state = GameState.PLAYING
        logger.debug("%s session started", self.game_id)
        return True

    def reset(self):
        """Return to IDLE without reporting the current session."""
        self._state = GameState.IDLE
        self.score = 0
        self._reported = True

    def abort(self):
        """End a running session early; the score is still reported."""
        if self._state == GameState.PLAYING:
            self._finish()

    def tick(self):
        if self._state != GameState.PLAYING:
            return
        self._step()

    def elapsed_seconds(self) -> int:
        return max(0, math.floor(self._clock() - self.started_at))

    async def run(self, interval: Optional[float] = None):
        """Drive ``tick`` until the session leaves PLAYING."""
        while self._state == GameState.PLAYING:
            self.tick()
            await asyncio.sleep(self.tick_interval if interval is None else interval)

    def _finish(self):
        if self._state != GameState.PLAYING:
            return
        self._state = GameState.GAME_OVER
        self.high_score = max(self.high_score, self.score)
        self.last_duration = self.elapsed_seconds()
        if self._reported:
            return
        self._reported = True
        logger.info("%s game over: score=%d duration=%ds", self.game_id, self.score, self.last_duration)
        if self.on_game_over is not None:
            self.on_game_over(self.score, self.last_duration)

    # Subclass hooks

    def _reset_session(self):
        raise NotImplementedError

    def _step(self):
        raise NotImplementedError
