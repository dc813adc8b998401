"""Snake on a 20x20 grid. Each food is worth 10 points and speeds the game up."""

from typing import List, Tuple

from optik_arcade.games.base import GameEngine

GRID_SIZE = 20
START_POSITION = (10, 10)
INITIAL_INTERVAL = 0.150
MIN_INTERVAL = 0.050
SPEEDUP = 0.98
FOOD_POINTS = 10

UP = (0, -1)
DOWN = (0, 1)
LEFT = (-1, 0)
RIGHT = (1, 0)

Point = Tuple[int, int]


class SnakeGame(GameEngine):
    game_id = "snake"
    tick_interval = INITIAL_INTERVAL

    def _reset_session(self):
        self.snake: List[Point] = [START_POSITION]
        self.direction: Point = RIGHT
        self._heading: Point = RIGHT
        self.tick_interval = INITIAL_INTERVAL
        self.food = self._place_food()

    def _place_food(self) -> Point:
        free = [(x, y) for x in range(GRID_SIZE) for y in range(GRID_SIZE) if (x, y) not in self.snake]
        return self._rng.choice(free)

    def turn(self, direction: Point) -> bool:
        """Queue a direction change. Reversing onto the body is ignored."""
        if not self.is_playing or direction not in (UP, DOWN, LEFT, RIGHT):
            return False
        dx, dy = self._heading
        if (direction[0], direction[1]) == (-dx, -dy):
            return False
        self.direction = direction
        return True

    def _step(self):
        head_x, head_y = self.snake[0]
        new_head = (head_x + self.direction[0], head_y + self.direction[1])
        self._heading = self.direction

        if not (0 <= new_head[0] < GRID_SIZE and 0 <= new_head[1] < GRID_SIZE):
            self._finish()
            return
        if new_head in self.snake:
            self._finish()
            return

        self.snake.insert(0, new_head)
        if new_head == self.food:
            self.score += FOOD_POINTS
            self.tick_interval = max(MIN_INTERVAL, self.tick_interval * SPEEDUP)
            if len(self.snake) < GRID_SIZE * GRID_SIZE:
                self.food = self._place_food()
        else:
            self.snake.pop()
