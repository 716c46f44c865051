"""Canonical auction records."""

from .auction import Auction, AuctionLog
from .player import Player
from .team import Team

__all__ = [
    "Auction",
    "AuctionLog",
    "Player",
    "Team",
]
