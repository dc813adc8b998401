"""Pydantic request models for the REST API.

Field names follow the JSON wire format (camelCase) through aliases.
"""

from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SubmitScoreRequest(_WireModel):
    wallet_address: str = Field(default="", alias="walletAddress")
    game_id: Union[str, int] = Field(alias="gameId")
    score: int
    duration_seconds: int = Field(default=0, alias="durationSeconds")


class ClaimRequest(_WireModel):
    wallet_address: str = Field(default="", alias="walletAddress")


class AchievementClaimRequest(_WireModel):
    wallet_address: str = Field(default="", alias="walletAddress")
    achievement_id: int = Field(alias="achievementId")
