from ._schema import SCHEMA_VERSION, SCHEMA_SQL, ACHIEVEMENT_CATALOG
from .sessions import GameSessionRepo
from .pending_rewards import PendingRewardRepo
from .claims import ClaimRepo
from .daily_stats import DailyStatRepo, day_key
from .achievements import AchievementRepo
from .purchases import PurchaseRepo
from .manager import StorageManager

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "ACHIEVEMENT_CATALOG",
    "GameSessionRepo",
    "PendingRewardRepo",
    "ClaimRepo",
    "DailyStatRepo",
    "day_key",
    "AchievementRepo",
    "PurchaseRepo",
    "StorageManager",
]
