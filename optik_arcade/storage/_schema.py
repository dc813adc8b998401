SCHEMA_VERSION = 2

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version   INTEGER NOT NULL,
    applied_at REAL NOT NULL
);

-- Game sessions: one row per finished play-through, never updated
CREATE TABLE IF NOT EXISTS game_sessions (
    session_id       TEXT PRIMARY KEY,
    wallet_address   TEXT NOT NULL,
    game_id          TEXT NOT NULL,
    score            INTEGER NOT NULL CHECK (score >= 0),
    duration_seconds INTEGER NOT NULL CHECK (duration_seconds >= 0),
    optik_earned     REAL NOT NULL DEFAULT 0.0 CHECK (optik_earned >= 0),
    created_at       REAL NOT NULL
);

-- Claim history: one row per successful claim batch
CREATE TABLE IF NOT EXISTS reward_claims (
    claim_id              TEXT PRIMARY KEY,
    wallet_address        TEXT NOT NULL,
    amount                REAL NOT NULL,
    rewards_claimed       INTEGER NOT NULL,
    transaction_signature TEXT NOT NULL DEFAULT '',
    status                TEXT NOT NULL DEFAULT 'completed' CHECK (status IN ('pending', 'completed', 'failed')),
    created_at            REAL NOT NULL
);

-- Pending rewards: credits owed to a wallet until claimed
CREATE TABLE IF NOT EXISTS pending_rewards (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    wallet_address TEXT NOT NULL,
    amount         REAL NOT NULL CHECK (amount > 0),
    source         TEXT NOT NULL CHECK (source IN ('game_session', 'purchase', 'achievement')),
    source_id      TEXT NOT NULL,
    claimed        INTEGER NOT NULL DEFAULT 0,
    claimed_at     REAL,
    claim_id       TEXT,
    expires_at     REAL NOT NULL,
    created_at     REAL NOT NULL,
    FOREIGN KEY (claim_id) REFERENCES reward_claims(claim_id)
);

-- Daily aggregates per wallet, game and UTC day
CREATE TABLE IF NOT EXISTS daily_stats (
    wallet_address     TEXT NOT NULL,
    game_id            TEXT NOT NULL,
    day                TEXT NOT NULL,
    total_optik_earned REAL NOT NULL DEFAULT 0.0,
    games_played       INTEGER NOT NULL DEFAULT 0,
    best_score         INTEGER NOT NULL DEFAULT 0,
    updated_at         REAL NOT NULL,
    PRIMARY KEY (wallet_address, game_id, day)
);

-- Achievement catalog (seeded, read-only at runtime)
CREATE TABLE IF NOT EXISTS achievements (
    id                INTEGER PRIMARY KEY,
    name              TEXT NOT NULL,
    description       TEXT NOT NULL DEFAULT '',
    icon              TEXT NOT NULL DEFAULT '',
    requirement_type  TEXT NOT NULL CHECK (requirement_type IN ('games_played', 'total_score', 'best_score', 'total_optik_earned')),
    requirement_value REAL NOT NULL,
    reward_optik      REAL NOT NULL DEFAULT 0.0,
    is_active         INTEGER NOT NULL DEFAULT 1
);

-- Unlocked achievements per wallet
CREATE TABLE IF NOT EXISTS user_achievements (
    wallet_address TEXT NOT NULL,
    achievement_id INTEGER NOT NULL,
    unlocked_at    REAL NOT NULL,
    claimed        INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (wallet_address, achievement_id),
    FOREIGN KEY (achievement_id) REFERENCES achievements(id)
);

-- Purchases: audit trail of confirmed external payments
CREATE TABLE IF NOT EXISTS purchases (
    external_id    TEXT PRIMARY KEY,
    wallet_address TEXT NOT NULL,
    amount_cents   INTEGER NOT NULL DEFAULT 0,
    currency       TEXT NOT NULL DEFAULT 'usd',
    optik_amount   REAL NOT NULL,
    created_at     REAL NOT NULL
);

-- Indexes for common queries
CREATE UNIQUE INDEX IF NOT EXISTS idx_pending_rewards_source ON pending_rewards(source, source_id);
CREATE INDEX IF NOT EXISTS idx_pending_rewards_wallet ON pending_rewards(wallet_address, claimed);
CREATE INDEX IF NOT EXISTS idx_sessions_wallet ON game_sessions(wallet_address, created_at);
CREATE INDEX IF NOT EXISTS idx_sessions_game ON game_sessions(game_id);
CREATE INDEX IF NOT EXISTS idx_claims_wallet ON reward_claims(wallet_address);
CREATE INDEX IF NOT EXISTS idx_daily_stats_day ON daily_stats(day);
"""

# (id, name, description, icon, requirement_type, requirement_value, reward_optik)
ACHIEVEMENT_CATALOG = [
    (1, "First Steps", "Play your first arcade game", "🎮", "games_played", 1, 10.0),
    (2, "Regular", "Play 10 games", "🕹️", "games_played", 10, 50.0),
    (3, "Arcade Addict", "Play 100 games", "🔥", "games_played", 100, 500.0),
    (4, "Point Collector", "Score 1,000 points in total", "⭐", "total_score", 1000, 25.0),
    (5, "High Roller", "Score 10,000 points in total", "🌟", "total_score", 10000, 250.0),
    (6, "Sharpshooter", "Reach a score of 100 in a single game", "🎯", "best_score", 100, 20.0),
    (7, "OPTIK Earner", "Earn 100 OPTIK from games", "💰", "total_optik_earned", 100, 25.0),
    (8, "OPTIK Whale", "Earn 5,000 OPTIK from games", "🐋", "total_optik_earned", 5000, 500.0),
]
