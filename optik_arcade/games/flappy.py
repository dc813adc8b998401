"""
flappy.py - Flappy-style side scroller.

The bird falls under gravity and flaps upward; pipes scroll in from the
right with a fixed-height gap. One point per pipe cleared. Touching a pipe
or leaving the field ends the run.
"""

from dataclasses import dataclass
from typing import List

from optik_arcade.games.base import GameEngine

GAME_WIDTH = 600
GAME_HEIGHT = 500
BIRD_X = 100
BIRD_SIZE = 40
BIRD_START_Y = 250
GRAVITY = 0.6
FLAP_VELOCITY = -10
PIPE_WIDTH = 80
PIPE_GAP = 180
PIPE_SPEED = 3
PIPE_SPACING = 300
FIRST_GAP_Y = 200
GAP_MARGIN = 50


@dataclass
class Pipe:
    x: float
    gap_y: float
    passed: bool = False


class FlappyGame(GameEngine):
    game_id = "flappy"
    tick_interval = 1 / 60

    def _reset_session(self):
        self.bird_y: float = BIRD_START_Y
        self.velocity: float = 0.0
        self.pipes: List[Pipe] = [Pipe(x=GAME_WIDTH, gap_y=FIRST_GAP_Y)]

    def flap(self) -> bool:
        if not self.is_playing:
            return False
        self.velocity = FLAP_VELOCITY
        return True

    def _random_gap_y(self) -> float:
        return self._rng.random() * (GAME_HEIGHT - PIPE_GAP - 2 * GAP_MARGIN) + GAP_MARGIN

    def _collides(self, pipe: Pipe) -> bool:
        overlaps_x = BIRD_X + BIRD_SIZE > pipe.x and BIRD_X < pipe.x + PIPE_WIDTH
        outside_gap = self.bird_y < pipe.gap_y or self.bird_y + BIRD_SIZE > pipe.gap_y + PIPE_GAP
        return overlaps_x and outside_gap

    def _step(self):
        new_y = self.bird_y + self.velocity
        if new_y < 0 or new_y > GAME_HEIGHT - BIRD_SIZE:
            self._finish()
            return
        self.bird_y = new_y
        self.velocity += GRAVITY

        for pipe in self.pipes:
            pipe.x -= PIPE_SPEED
        self.pipes = [p for p in self.pipes if p.x > -PIPE_WIDTH]
        if not self.pipes or self.pipes[-1].x < GAME_WIDTH - PIPE_SPACING:
            self.pipes.append(Pipe(x=GAME_WIDTH, gap_y=self._random_gap_y()))

        for pipe in self.pipes:
            if not pipe.passed and pipe.x + PIPE_WIDTH < BIRD_X:
                pipe.passed = True
                self.score += 1
            if self._collides(pipe):
                self._finish()
                return
