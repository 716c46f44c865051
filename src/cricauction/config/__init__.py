"""Configuration helpers for auction rules and runtime settings."""

from .rules import (
    PLAYER_ROLES,
    PLAYER_STATUSES,
    PlayerRole,
    PlayerStatus,
)
from .settings import AuctionSettings, load_settings

__all__ = [
    "AuctionSettings",
    "PLAYER_ROLES",
    "PLAYER_STATUSES",
    "PlayerRole",
    "PlayerStatus",
    "load_settings",
]
