"""Status router: / and /api/status."""

from fastapi import APIRouter
from starlette.requests import Request

from optik_arcade.deps import get_server

router = APIRouter()


@router.get("/")
async def root(request: Request):
    srv = get_server(request)
    return {
        "service": "OPTIK Arcade Rewards",
        "api_port": srv.api_port,
        "games": sorted(srv.rates),
        "price_source": srv.prices.name if srv.prices else None,
        "uptime": "running",
    }


@router.get("/api/status")
async def server_status(request: Request):
    srv = get_server(request)
    async with srv.storage.read():
        return {
            "total_sessions": await srv.storage.sessions.count(),
            "pending_rewards": await srv.storage.rewards.count(),
            "purchase_rewards": await srv.storage.rewards.count(source="purchase"),
        }
