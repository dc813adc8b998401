"""Arcade router: /api/arcade/* endpoints for scores, rewards and stats."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from starlette.requests import Request

from optik_arcade.deps import get_server
from optik_arcade.errors import NothingToClaimError, PersistenceError, ValidationError
from optik_arcade.models import AchievementClaimRequest, ClaimRequest, SubmitScoreRequest

router = APIRouter()


@router.post("/api/arcade/submit-score")
async def submit_score(request: Request, req: SubmitScoreRequest):
    srv = get_server(request)
    try:
        result = await srv.ledger.record_session(
            wallet_address=req.wallet_address,
            game_id=str(req.game_id),
            score=req.score,
            duration_seconds=req.duration_seconds,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to record session")
    return {
        "success": True,
        "sessionId": result["session_id"],
        "optikEarned": result["optik_earned"],
        "achievementsUnlocked": [a["id"] for a in result["unlocked_achievements"]],
    }


@router.get("/api/arcade/pending-rewards")
async def pending_rewards(request: Request, wallet: str = Query(default="")):
    srv = get_server(request)
    try:
        rewards = await srv.ledger.get_pending_rewards(wallet)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "rewards": [
            {
                "id": r["id"],
                "amount": r["amount"],
                "source": r["source"],
                "createdAt": r["created_at"],
                "expiresAt": r["expires_at"],
            }
            for r in rewards
        ],
        "total": round(sum(r["amount"] for r in rewards), 4),
    }


@router.post("/api/arcade/claim-rewards")
async def claim_rewards(request: Request, req: ClaimRequest):
    srv = get_server(request)
    try:
        claim = await srv.ledger.claim_rewards(req.wallet_address)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NothingToClaimError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to update rewards status")
    return {
        "success": True,
        "amount": claim["amount"],
        "rewardsClaimed": claim["rewards_claimed"],
        "transactionSignature": claim["transaction_signature"],
    }


@router.get("/api/arcade/achievements")
async def achievements(request: Request, wallet: str = Query(default="")):
    srv = get_server(request)
    try:
        return {"achievements": await srv.leaderboard.get_achievements(wallet)}
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/api/arcade/achievements/claim")
async def claim_achievement(request: Request, req: AchievementClaimRequest):
    srv = get_server(request)
    try:
        result = await srv.ledger.claim_achievement(req.wallet_address, req.achievement_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NothingToClaimError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError:
        raise HTTPException(status_code=503, detail="Failed to claim achievement")
    return {"success": True, "achievementId": result["achievement_id"], "amount": result["amount"]}


@router.get("/api/arcade/daily-stats")
async def daily_stats(
    request: Request,
    wallet: str = Query(default=""),
    game_id: Optional[str] = Query(default=None, alias="gameId"),
):
    srv = get_server(request)
    try:
        return {"stats": await srv.leaderboard.get_daily_stats(wallet, game_id=game_id)}
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/arcade/history")
async def history(request: Request, wallet: str = Query(default=""), limit: int = Query(default=10)):
    srv = get_server(request)
    try:
        return {"sessions": await srv.leaderboard.get_history(wallet, limit=limit)}
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/arcade/leaderboard")
async def leaderboard(
    request: Request,
    limit: int = Query(default=50),
    game_id: Optional[str] = Query(default=None, alias="gameId"),
):
    srv = get_server(request)
    try:
        return {"leaderboard": await srv.leaderboard.get_leaderboard(limit=limit, game_id=game_id)}
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/api/arcade/games")
async def games(request: Request):
    srv = get_server(request)
    return {"games": srv.leaderboard.list_games()}
