#!/usr/bin/env python3
"""
mock_players.py - Simulated arcade players.

Spawns N bot players that play the arcade games against the real engines
(on a simulated clock, so a session finishes instantly), submit each result
to the reward server and claim their pending rewards every few rounds.

Usage:
    python scripts/mock_players.py --players 5 --rounds 20 --server http://localhost:8080
"""

import argparse
import logging
import random
from dataclasses import dataclass, field

import requests

from optik_arcade.client import ArcadeClient
from optik_arcade.errors import NothingToClaimError
from optik_arcade.games import FlappyGame, Game2048, SnakeGame, TapGame
from optik_arcade.games import snake as snake_rules
from optik_arcade.games.flappy import BIRD_SIZE, BIRD_X, PIPE_GAP, PIPE_WIDTH
from optik_arcade.games.game2048 import DIRECTIONS
from optik_arcade.rewards import format_optik

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("players")

BASE58 = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
MAX_TICKS = 20_000


def make_wallet(rng: random.Random) -> str:
    return "".join(rng.choice(BASE58) for _ in range(44))


class SimClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@dataclass
class SimPlayer:
    wallet: str
    skill: float
    sessions: int = 0
    claimed: float = 0.0
    scores: list = field(default_factory=list)


# ── Bots ──────────────────────────────────────────────────────────────────

def play_snake(game: SnakeGame, clock: SimClock, rng: random.Random, skill: float):
    ticks = 0
    while game.is_playing and ticks < MAX_TICKS:
        head_x, head_y = game.snake[0]
        food_x, food_y = game.food
        if rng.random() < skill:
            if food_x != head_x:
                game.turn(snake_rules.RIGHT if food_x > head_x else snake_rules.LEFT)
            elif food_y != head_y:
                game.turn(snake_rules.DOWN if food_y > head_y else snake_rules.UP)
        else:
            game.turn(rng.choice([snake_rules.UP, snake_rules.DOWN, snake_rules.LEFT, snake_rules.RIGHT]))
        game.tick()
        ticks += 1
        clock.now += game.tick_interval


def play_flappy(game: FlappyGame, clock: SimClock, rng: random.Random, skill: float):
    ticks = 0
    while game.is_playing and ticks < MAX_TICKS:
        ahead = [p for p in game.pipes if p.x + PIPE_WIDTH >= BIRD_X]
        target = ahead[0].gap_y + PIPE_GAP / 2 if ahead else 250
        if game.bird_y + BIRD_SIZE / 2 > target and game.velocity > 0 and rng.random() < skill:
            game.flap()
        game.tick()
        ticks += 1
        clock.now += game.tick_interval


def play_2048(game: Game2048, clock: SimClock, rng: random.Random, skill: float):
    moves = 0
    while game.is_playing and moves < MAX_TICKS:
        preferred = ["down", "left", "right", "up"] if rng.random() < skill else list(DIRECTIONS)
        if rng.random() >= skill:
            rng.shuffle(preferred)
        for direction in preferred:
            if game.move(direction):
                break
        else:
            game.abort()
        moves += 1
        clock.now += 0.5


def play_tap(game: TapGame, clock: SimClock, rng: random.Random, skill: float):
    for _ in range(int(600 * skill) + 60):
        for _ in range(rng.randint(1, 4)):
            game.tap()
        if game.balance > game.upgrade_cost("tap_power") * 2:
            game.buy_upgrade("tap_power")
        game.tick()
        clock.now += game.tick_interval
    game.end_session()


BOTS = {
    "snake": (SnakeGame, play_snake),
    "flappy": (FlappyGame, play_flappy),
    "2048": (Game2048, play_2048),
    "tap": (TapGame, play_tap),
}


# ── Simulation ────────────────────────────────────────────────────────────

class PlayerSimulator:
    def __init__(self, n_players: int, rounds: int, server_url: str, claim_every: int, seed: int):
        self.rng = random.Random(seed)
        self.rounds = rounds
        self.claim_every = claim_every
        self.client = ArcadeClient(server_url)
        self.players = [
            SimPlayer(wallet=make_wallet(self.rng), skill=self.rng.uniform(0.3, 0.95))
            for _ in range(n_players)
        ]

    def play_round(self, player: SimPlayer):
        game_id = self.rng.choice(sorted(BOTS))
        engine_cls, bot = BOTS[game_id]
        clock = SimClock()
        game = engine_cls(
            on_game_over=self.client.reporter(player.wallet, game_id),
            clock=clock,
            rng=random.Random(self.rng.random()),
        )
        game.start()
        bot(game, clock, self.rng, player.skill)
        game.abort()
        player.sessions += 1
        player.scores.append((game_id, game.score))

    def claim(self, player: SimPlayer):
        try:
            result = self.client.claim_rewards(player.wallet)
        except NothingToClaimError:
            logger.info("%s... nothing to claim", player.wallet[:8])
            return
        player.claimed += result["amount"]
        logger.info("%s... claimed %.4f OPTIK (%d rewards) tx=%s", player.wallet[:8],
                    result["amount"], result["rewardsClaimed"], result["transactionSignature"])

    def run(self):
        games = self.client.get_games()
        logger.info("Server offers %d games: %s", len(games), ", ".join(g["id"] for g in games))
        for rnd in range(1, self.rounds + 1):
            for player in self.players:
                self.play_round(player)
                if rnd % self.claim_every == 0:
                    self.claim(player)
            logger.info("Round %d/%d complete", rnd, self.rounds)

        for entry in self.client.get_leaderboard(limit=len(self.players)):
            logger.info("#%d %s  %s OPTIK  %d games  best %d", entry["rank"], entry["username"],
                        format_optik(entry["totalOptikEarned"]), entry["gamesPlayed"], entry["highestScore"])
        self.client.close()


def main():
    parser = argparse.ArgumentParser(description="Simulated arcade players")
    parser.add_argument("--players", type=int, default=5, help="Number of simulated players")
    parser.add_argument("--rounds", type=int, default=20, help="Games played per player")
    parser.add_argument("--server", default="http://localhost:8080", help="Reward server base URL")
    parser.add_argument("--claim-every", type=int, default=5, help="Claim rewards every N rounds")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for reproducible runs")
    args = parser.parse_args()

    sim = PlayerSimulator(args.players, args.rounds, args.server, max(1, args.claim_every), args.seed)
    try:
        sim.run()
    except requests.exceptions.ConnectionError as e:
        logger.error("Cannot reach reward server at %s: %s", args.server, e)
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
