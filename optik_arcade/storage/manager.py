import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import aiosqlite

from ._schema import SCHEMA_VERSION
from ._migrate import run_migrations
from .achievements import AchievementRepo
from .claims import ClaimRepo
from .daily_stats import DailyStatRepo
from .pending_rewards import PendingRewardRepo
from .purchases import PurchaseRepo
from .sessions import GameSessionRepo

logger = logging.getLogger("storage")


class StorageManager:
    """Top-level manager: opens the database, runs migrations, exposes repos.

    All ledger writes go through ``transaction()``, which serializes writers
    on this connection and holds SQLite's write lock (BEGIN IMMEDIATE) so
    other processes sharing the file are serialized too. Service reads go
    through ``read()``, which waits for any open transaction to finish.
    """

    def __init__(self, db_path: str = "arcade.db"):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        self._write_lock = asyncio.Lock()
        self.sessions: Optional[GameSessionRepo] = None
        self.rewards: Optional[PendingRewardRepo] = None
        self.claims: Optional[ClaimRepo] = None
        self.daily_stats: Optional[DailyStatRepo] = None
        self.achievements: Optional[AchievementRepo] = None
        self.purchases: Optional[PurchaseRepo] = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Storage not initialized")
        return self._db

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA foreign_keys=ON")
        await self._db.execute("PRAGMA busy_timeout=5000")
        await run_migrations(self._db, logger)

        self.sessions = GameSessionRepo(self._db)
        self.rewards = PendingRewardRepo(self._db)
        self.claims = ClaimRepo(self._db)
        self.daily_stats = DailyStatRepo(self._db)
        self.achievements = AchievementRepo(self._db)
        self.purchases = PurchaseRepo(self._db)

        logger.info("Storage initialized: %s (schema v%d)", self.db_path, SCHEMA_VERSION)

    @asynccontextmanager
    async def transaction(self):
        """Run a block atomically: commit on success, roll back on any error."""
        db = self.db
        async with self._write_lock:
            await db.execute("BEGIN IMMEDIATE")
            try:
                yield db
            except BaseException:
                await db.rollback()
                raise
            else:
                await db.commit()

    @asynccontextmanager
    async def read(self):
        """Run reads between transactions, never inside an uncommitted one.

        Readers share the writers' connection, so they queue on the same
        lock and only ever see committed rows.
        """
        db = self.db
        async with self._write_lock:
            yield db

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Storage closed")
