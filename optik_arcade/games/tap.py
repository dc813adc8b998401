"""
tap.py - Tap-to-Earn idle clicker.

Taps spend energy and build a combo that raises the payout multiplier.
Energy refills every 100 ms tick, auto-mining pays once per second, and
the balance buys upgrades. ``end_session`` reports floor(balance).
"""

import math
from typing import Dict

from optik_arcade.games.base import GameEngine

MAX_ENERGY = 1000
ENERGY_PER_UPGRADE = 100
COMBO_TIMEOUT = 2.0  # seconds without a tap before the combo resets
TICKS_PER_SECOND = 10

# (combo threshold, multiplier), checked highest first
COMBO_MULTIPLIERS = ((50, 3.0), (25, 2.0), (10, 1.5))

# base * growth ** level, floored
UPGRADE_COSTS = {
    "tap_power": (50, 1.5),
    "energy_max": (100, 1.6),
    "recharge": (75, 1.4),
    "auto_earn": (200, 2.0),
}
INITIAL_LEVELS = {"tap_power": 1, "energy_max": 1, "recharge": 1, "auto_earn": 0}


def combo_multiplier(combo: int) -> float:
    for threshold, multiplier in COMBO_MULTIPLIERS:
        if combo > threshold:
            return multiplier
    return 1.0


class TapGame(GameEngine):
    game_id = "tap"
    tick_interval = 1 / TICKS_PER_SECOND

    def _reset_session(self):
        self.balance = 0.0
        self.energy = float(MAX_ENERGY)
        self.max_energy = MAX_ENERGY
        self.tap_power = 1
        self.multiplier = 1.0
        self.combo = 0
        self.peak_combo = 0
        self.total_taps = 0
        self.auto_earn_rate = 0
        self.levels: Dict[str, int] = dict(INITIAL_LEVELS)
        self._ticks = 0
        self._last_tap_at = self._clock()

    @property
    def recharge_rate(self) -> float:
        return 1 + self.levels["recharge"] * 0.5

    def upgrade_cost(self, kind: str) -> int:
        base, growth = UPGRADE_COSTS[kind]
        return math.floor(base * growth ** self.levels[kind])

    def tap(self) -> float:
        """Spend energy for a payout. Returns the amount earned (0 if ignored)."""
        if not self.is_playing or self.energy < self.tap_power:
            return 0.0
        earned = (self.tap_power + self.combo // 10) * self.multiplier
        self.balance += earned
        self.energy -= self.tap_power
        # multiplier follows the combo reached before this tap
        self.multiplier = max(self.multiplier, combo_multiplier(self.combo))
        self.combo += 1
        self.total_taps += 1
        self.peak_combo = max(self.peak_combo, self.combo)
        self._last_tap_at = self._clock()
        self.score = math.floor(self.balance)
        return earned

    def buy_upgrade(self, kind: str) -> bool:
        if not self.is_playing or kind not in UPGRADE_COSTS:
            return False
        cost = self.upgrade_cost(kind)
        if self.balance < cost:
            return False
        self.balance -= cost
        self.levels[kind] += 1
        if kind == "tap_power":
            self.tap_power += 1
        elif kind == "energy_max":
            self.max_energy += ENERGY_PER_UPGRADE
            self.energy += ENERGY_PER_UPGRADE
        elif kind == "auto_earn":
            self.auto_earn_rate += 1
        self.score = math.floor(self.balance)
        return True

    def end_session(self):
        if self.is_playing:
            self.score = math.floor(self.balance)
        self._finish()

    def _step(self):
        self._ticks += 1
        self.energy = min(self.energy + self.recharge_rate, self.max_energy)
        if self.auto_earn_rate and self._ticks % TICKS_PER_SECOND == 0:
            self.balance += self.auto_earn_rate
        if self.combo and self._clock() - self._last_tap_at >= COMBO_TIMEOUT:
            self.combo = 0
            self.multiplier = 1.0
        self.score = math.floor(self.balance)
