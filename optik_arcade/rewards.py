"""
rewards.py - Reward calculator.

Maps a finished game session (game_id, score, duration) to an OPTIK amount
using the centralized per-game rate table, clamped to what is left of the
wallet's daily allowance for that game.

The daily total passed in must come from the ledger's own storage, read in
the same transaction that records the session.
"""

import json
import logging
from dataclasses import asdict, dataclass
from typing import Dict, Optional

from optik_arcade.errors import ValidationError

logger = logging.getLogger("rewards")

AMOUNT_PRECISION = 4  # decimal places kept for OPTIK amounts
# Upper bound for score and duration; keeps lifetime SUM(score) inside SQLite INTEGER
MAX_SESSION_VALUE = 2**31 - 1


@dataclass(frozen=True)
class GameRate:
    """Reward parameters for one game."""

    game_id: str
    name: str
    reward_per_score: float
    max_daily_reward: float
    description: str = ""
    difficulty: str = "easy"

    def to_dict(self) -> dict:
        return {
            "id": self.game_id,
            "name": self.name,
            "description": self.description,
            "rewardPerScore": self.reward_per_score,
            "maxDailyReward": self.max_daily_reward,
            "difficulty": self.difficulty,
        }


DEFAULT_RATES: Dict[str, GameRate] = {
    "snake": GameRate(
        "snake", "Snake", reward_per_score=0.1, max_daily_reward=500.0,
        description="Eat food, grow longer, avoid the walls.", difficulty="medium",
    ),
    "flappy": GameRate(
        "flappy", "Flappy OptiK", reward_per_score=2.0, max_daily_reward=1000.0,
        description="Navigate through pipes and earn OPTIK for every obstacle you pass!",
        difficulty="hard",
    ),
    "2048": GameRate(
        "2048", "2048 Crypto", reward_per_score=0.1, max_daily_reward=1000.0,
        description="Merge tiles to reach 2048 and beyond. Higher scores = more OPTIK!",
        difficulty="medium",
    ),
    "tap": GameRate(
        "tap", "OptiK Miner", reward_per_score=0.01, max_daily_reward=250.0,
        description="Tap to mine OPTIK! Upgrade your mining power and earn passive income.",
        difficulty="easy",
    ),
}


def round_amount(value: float) -> float:
    return round(float(value), AMOUNT_PRECISION)


def load_rates(path: Optional[str] = None) -> Dict[str, GameRate]:
    """Load the rate table from a JSON file, or return the defaults.

    The file maps game ids to objects with at least ``reward_per_score`` and
    ``max_daily_reward``; other GameRate fields fall back to the defaults
    for known games.
    """
    if not path:
        return dict(DEFAULT_RATES)
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, dict) or not raw:
        raise ValueError(f"Rate file {path} must be a non-empty JSON object")

    rates: Dict[str, GameRate] = {}
    for game_id, entry in raw.items():
        base = DEFAULT_RATES.get(game_id)
        fields = asdict(base) if base else {"game_id": game_id, "name": game_id}
        fields.update(entry)
        fields["game_id"] = game_id
        rate = GameRate(**fields)
        if rate.reward_per_score < 0 or rate.max_daily_reward < 0:
            raise ValueError(f"Rates for {game_id} must be non-negative")
        rates[game_id] = rate
    logger.info("Loaded reward rates for %d games from %s", len(rates), path)
    return rates


def get_rate(game_id, rates: Dict[str, GameRate]) -> GameRate:
    rate = rates.get(game_id) if isinstance(game_id, str) else None
    if rate is None:
        raise ValidationError(f"Unknown game: {game_id!r}")
    return rate


def _require_non_negative_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer")
    if value < 0:
        raise ValidationError(f"{name} must be non-negative")
    if value > MAX_SESSION_VALUE:
        raise ValidationError(f"{name} must be at most {MAX_SESSION_VALUE}")
    return value


def validate_session(game_id, score, duration_seconds, rates: Dict[str, GameRate]) -> GameRate:
    """Check a session's inputs; returns the game's rate entry."""
    rate = get_rate(game_id, rates)
    _require_non_negative_int("score", score)
    _require_non_negative_int("durationSeconds", duration_seconds)
    return rate


def remaining_daily_cap(rate: GameRate, daily_earned: float) -> float:
    return max(0.0, rate.max_daily_reward - daily_earned)


def calculate_reward(
    game_id: str,
    score: int,
    duration_seconds: int,
    daily_earned: float,
    rates: Dict[str, GameRate] = DEFAULT_RATES,
) -> float:
    """OPTIK earned for one session.

    ``min(score * reward_per_score, max(0, max_daily - daily_earned))``.
    Duration is validated but does not scale the reward.
    """
    rate = validate_session(game_id, score, duration_seconds, rates)
    if daily_earned < 0:
        raise ValidationError("daily_earned must be non-negative")
    potential = score * rate.reward_per_score
    return round_amount(min(potential, remaining_daily_cap(rate, daily_earned)))


def potential_earnings(score: float, reward_per_score: float, daily_earned: float, max_daily: float) -> float:
    """Display helper: what a score would pay given today's earnings."""
    potential = score * reward_per_score
    remaining = max(0.0, max_daily - daily_earned)
    return round_amount(min(potential, remaining))


def format_optik(amount: float) -> str:
    if amount >= 1_000_000:
        return f"{amount / 1_000_000:.2f}M"
    if amount >= 1000:
        return f"{amount / 1000:.2f}K"
    return f"{amount:.2f}"
