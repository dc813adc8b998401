"""Arcade game engines. Each reports (score, duration_seconds) once per session."""

from optik_arcade.games.base import GameEngine, GameState
from optik_arcade.games.flappy import FlappyGame
from optik_arcade.games.game2048 import Game2048
from optik_arcade.games.snake import SnakeGame
from optik_arcade.games.tap import TapGame

ENGINES = {
    SnakeGame.game_id: SnakeGame,
    FlappyGame.game_id: FlappyGame,
    Game2048.game_id: Game2048,
    TapGame.game_id: TapGame,
}


def create_game(game_id, **kwargs) -> GameEngine:
    try:
        cls = ENGINES[str(game_id)]
    except KeyError:
        raise ValueError(f"Unknown game: {game_id}") from None
    return cls(**kwargs)


__all__ = [
    "ENGINES",
    "FlappyGame",
    "Game2048",
    "GameEngine",
    "GameState",
    "SnakeGame",
    "TapGame",
    "create_game",
]
