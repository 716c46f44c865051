from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class DashboardStatsResponse(BaseModel):
    total_players: int
    available_players: int
    players_sold: int
    unsold_players: int
    total_teams: int
    total_budget: int
    total_spent: int
    active_auctions: int
    auction_status: Literal["Active", "Not Started"]


class PoolSummaryResponse(BaseModel):
    name: str
    order: int
    player_count: int
    sold_count: int
    available_count: int
    total_base_price: int


class DeleteResponse(BaseModel):
    success: bool
