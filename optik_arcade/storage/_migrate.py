import logging
import time

from ._schema import ACHIEVEMENT_CATALOG, SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger("storage")


async def seed_achievements(db):
    await db.executemany(
        "INSERT OR IGNORE INTO achievements "
        "(id, name, description, icon, requirement_type, requirement_value, reward_optik) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        ACHIEVEMENT_CATALOG,
    )


async def run_migrations(db, logger_override=None):
    log = logger_override or logger
    current_version = 0
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
            row = await cursor.fetchone()
            if row and row[0] is not None:
                current_version = row[0]
    except Exception:
        # fresh database, schema_version does not exist yet
        pass

    if current_version < SCHEMA_VERSION:
        log.info("Migrating database from v%d to v%d", current_version, SCHEMA_VERSION)
        # CREATE ... IF NOT EXISTS, so v1 databases just gain the purchases table
        await db.executescript(SCHEMA_SQL)
        await seed_achievements(db)
        await db.execute(
            "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
            (SCHEMA_VERSION, time.time()),
        )
        await db.commit()
        log.info("Migration complete (v%d)", SCHEMA_VERSION)
    else:
        log.debug("Database schema up to date (v%d)", current_version)
