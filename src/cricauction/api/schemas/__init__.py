"""Pydantic models for API I/O."""

from .auction import AuctionCreate, AuctionLogCreate, AuctionUpdate, SaleRequest, SaleResponse, UnsoldResponse
from .auth import LoginRequest, LoginResponse
from .dashboard import DashboardStatsResponse, DeleteResponse, PoolSummaryResponse
from .player import ImportReportResponse, ImportRowResponse, PlayerCreate, PlayerUpdate
from .team import TeamCreate, TeamUpdate

__all__ = [
    "AuctionCreate",
    "AuctionLogCreate",
    "AuctionUpdate",
    "DashboardStatsResponse",
    "DeleteResponse",
    "ImportReportResponse",
    "ImportRowResponse",
    "LoginRequest",
    "LoginResponse",
    "PlayerCreate",
    "PlayerUpdate",
    "PoolSummaryResponse",
    "SaleRequest",
    "SaleResponse",
    "TeamCreate",
    "TeamUpdate",
    "UnsoldResponse",
]
