from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field

from cricauction.config.rules import MAX_TEAM_BUDGET
from cricauction.models import Auction, AuctionLog, Player, Team


class AuctionCreate(BaseModel):
    player_id: str = Field(..., min_length=1)
    current_bid: int = Field(..., ge=0, le=MAX_TEAM_BUDGET)
    winning_team: str | None = None

    model_config = ConfigDict(extra="forbid")


class AuctionUpdate(BaseModel):
    player_id: str | None = Field(default=None, min_length=1)
    current_bid: int | None = Field(default=None, ge=0, le=MAX_TEAM_BUDGET)
    winning_team: str | None = None
    final_price: int | None = Field(default=None, ge=0, le=MAX_TEAM_BUDGET)
    is_active: bool | None = None
    is_completed: bool | None = None
    completed_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        changes = {
            key: value
            for key, value in data.items()
            if value is not None or key in {"winning_team", "final_price", "completed_at"}
        }
        if "winning_team" in changes and not changes["winning_team"]:
            changes["winning_team"] = None
        return changes


class SaleRequest(BaseModel):
    team_id: str = Field(..., min_length=1)
    price: int = Field(..., ge=0, le=MAX_TEAM_BUDGET)

    model_config = ConfigDict(extra="forbid")


class SaleResponse(BaseModel):
    auction: Auction
    player: Player
    team: Team
    log: AuctionLog


class UnsoldResponse(BaseModel):
    auction: Auction
    player: Player


class AuctionLogCreate(BaseModel):
    player_id: str = Field(..., min_length=1)
    team_id: str = Field(..., min_length=1)
    sold_price: int = Field(..., ge=0, le=MAX_TEAM_BUDGET)

    model_config = ConfigDict(extra="forbid")
