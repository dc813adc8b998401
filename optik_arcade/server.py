"""
server.py - Arcade reward server entry point.

Single-process server combining:
 - SQLite persistent storage via StorageManager
 - Reward ledger (sessions, pending rewards, claims, purchases)
 - Read-side leaderboard/stats service
 - REST API (FastAPI on uvicorn, port 8080)

Usage:
    python -m optik_arcade.server [--api-port 8080] [--db-path data/arcade.db]
"""

import argparse
import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Dict, Optional

import uvicorn
from fastapi import FastAPI

from optik_arcade import __version__
from optik_arcade.ledger import DAY_SEC, DEFAULT_REWARD_TTL, RewardLedger
from optik_arcade.leaderboard import LeaderboardService
from optik_arcade.price import PriceSource, create_price_source
from optik_arcade.rewards import GameRate, load_rates
from optik_arcade.routers import register_all_routers
from optik_arcade.storage import StorageManager

LOG_FORMAT = "%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s"

logger = logging.getLogger("server")


class ArcadeServer:
    """Owns the storage connection and services for one process.

    Everything is created in ``_init_services`` on startup and released in
    ``close`` on shutdown; routers reach it through ``app.state.server``.
    """

    def __init__(
        self,
        api_port: int = 8080,
        db_path: str = "data/arcade.db",
        rates: Optional[Dict[str, GameRate]] = None,
        prices: Optional[PriceSource] = None,
        webhook_secret: str = "",
        reward_ttl_sec: float = DEFAULT_REWARD_TTL,
    ):
        self.api_port = api_port
        self.db_path = db_path
        self.rates = rates if rates is not None else load_rates()
        self.prices = prices if prices is not None else create_price_source()
        self.webhook_secret = webhook_secret
        self.reward_ttl_sec = reward_ttl_sec
        if not webhook_secret:
            logger.warning("No webhook secret configured; payment webhooks are NOT signature-checked")

        # Storage + services are initialized async on startup
        self.storage: Optional[StorageManager] = None
        self.ledger: Optional[RewardLedger] = None
        self.leaderboard: Optional[LeaderboardService] = None

        self.app = FastAPI(title="OPTIK Arcade Rewards", version=__version__, lifespan=self._lifespan)
        self.app.state.server = self
        register_all_routers(self.app)

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self._init_services()
        try:
            yield
        finally:
            await self.close()

    async def _init_services(self):
        """Initialize storage and wire up services (must be called in async context)."""
        db_dir = os.path.dirname(self.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.storage = StorageManager(self.db_path)
        await self.storage.initialize()

        self.ledger = RewardLedger(
            self.storage, rates=self.rates, prices=self.prices,
            reward_ttl_sec=self.reward_ttl_sec,
        )
        self.leaderboard = LeaderboardService(self.storage, rates=self.rates)

        logger.info("Services initialized (db=%s, games=%s, prices=%s)",
                    self.db_path, ",".join(sorted(self.rates)), self.prices.name)

    async def close(self):
        if self.storage:
            await self.storage.close()
            self.storage = None
        self.prices.close()

    async def start(self):
        """Serve the API until interrupted."""
        config = uvicorn.Config(
            self.app,
            host="0.0.0.0",
            port=self.api_port,
            log_level="info",
        )
        self._uvicorn_server = uvicorn.Server(config)
        logger.info("REST API starting on port %d", self.api_port)
        await self._uvicorn_server.serve()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OPTIK Arcade Reward Server")
    parser.add_argument("--api-port", type=int, default=8080, help="REST API port (default: 8080)")
    parser.add_argument("--db-path", default="data/arcade.db", help="SQLite database path (default: data/arcade.db)")
    parser.add_argument("--rates-file", default="", help="JSON file overriding the per-game reward rates")
    parser.add_argument("--price-url", default=os.environ.get("ARCADE_PRICE_URL", ""),
                        help="Live price endpoint; static mock prices when unset")
    parser.add_argument("--webhook-secret", default=os.environ.get("ARCADE_WEBHOOK_SECRET", ""),
                        help="Payment webhook signing secret (default: $ARCADE_WEBHOOK_SECRET)")
    parser.add_argument("--reward-ttl-days", type=float, default=DEFAULT_REWARD_TTL / DAY_SEC,
                        help="Days before unclaimed game rewards expire (default: 30)")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv=None):
    """CLI entry point for the arcade reward server."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT, datefmt="%H:%M:%S")

    server = ArcadeServer(
        api_port=args.api_port,
        db_path=args.db_path,
        rates=load_rates(args.rates_file),
        prices=create_price_source(args.price_url),
        webhook_secret=args.webhook_secret,
        reward_ttl_sec=args.reward_ttl_days * DAY_SEC,
    )

    logger.info("=" * 60)
    logger.info("  OPTIK Arcade Reward Server")
    logger.info("  REST API:    http://localhost:%d", args.api_port)
    logger.info("  Database:    %s", args.db_path)
    logger.info("  Prices:      %s", server.prices.name)
    logger.info("=" * 60)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
