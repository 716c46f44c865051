from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

from cricauction.config.rules import DEFAULT_COLOR_THEME


class Team(BaseModel):
    """A bidding team.

    ``remaining_budget``, ``total_spent``, ``players_count`` and
    ``total_points`` are derived from the players assigned to the team and
    are only written by reconciliation.
    """

    id: str = Field(..., min_length=1)
    name: str
    color_theme: str = DEFAULT_COLOR_THEME
    logo_url: Optional[str] = None
    budget: int = Field(..., ge=0)
    remaining_budget: int = Field(..., ge=0)
    total_spent: int = Field(default=0, ge=0)
    players_count: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    created_at: datetime

    model_config = ConfigDict(frozen=True)
