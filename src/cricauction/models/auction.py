from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class Auction(BaseModel):
    """Bidding session for a single player."""

    id: str = Field(..., min_length=1)
    player_id: str
    current_bid: int = Field(..., ge=0)
    winning_team: Optional[str] = None
    final_price: Optional[int] = Field(default=None, ge=0)
    is_active: bool = False
    is_completed: bool = False
    started_at: datetime
    completed_at: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class AuctionLog(BaseModel):
    """Historical record of a completed sale."""

    id: str = Field(..., min_length=1)
    player_id: str
    team_id: str
    sold_price: int = Field(..., ge=0)
    timestamp: datetime

    model_config = ConfigDict(frozen=True)
