"""
OPTIK Arcade - Reward Service Package

Arcade mini-game engines plus the server-side ledger that turns finished
game sessions and purchases into claimable OPTIK rewards.
"""

__version__ = "0.1.0"

__all__ = [
    "client",
    "errors",
    "games",
    "leaderboard",
    "ledger",
    "price",
    "rewards",
    "server",
    "storage",
    "wallet",
    "webhook",
]
