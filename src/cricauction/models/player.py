"""Canonical player record shared by the store, ingest and API layers."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from cricauction.config.rules import PlayerRole, PlayerStatus


class Player(BaseModel):
    """A player entered into the auction.

    ``assigned_team`` is a weak reference to a team id; prices are whole
    rupees.
    """

    id: str = Field(..., min_length=1)
    name: str
    role: PlayerRole
    country: str
    base_price: int = Field(..., ge=0)
    pool: Optional[str] = None
    status: PlayerStatus = "Available"
    sold_price: Optional[int] = Field(default=None, ge=0)
    assigned_team: Optional[str] = None
    points: int = Field(default=0, ge=0)
    age: Optional[int] = None
    stats: Dict[str, int] = Field(default_factory=dict)
    bio: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(frozen=True)
