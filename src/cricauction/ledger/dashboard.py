"""Aggregate counters for the admin dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from cricauction.models import Auction, Player, Team


@dataclass(frozen=True)
class DashboardStats:
    total_players: int
    available_players: int
    players_sold: int
    unsold_players: int
    total_teams: int
    total_budget: int
    total_spent: int
    active_auctions: int
    auction_status: str


def summarize_dashboard(
    players: Iterable[Player],
    teams: Iterable[Team],
    auctions: Iterable[Auction],
) -> DashboardStats:
    players = list(players)
    teams = list(teams)
    sold = [player for player in players if player.status == "Sold"]
    active = sum(1 for auction in auctions if auction.is_active)
    return DashboardStats(
        total_players=len(players),
        available_players=sum(1 for player in players if player.status == "Available"),
        players_sold=len(sold),
        unsold_players=sum(1 for player in players if player.status == "Unsold"),
        total_teams=len(teams),
        total_budget=sum(team.budget for team in teams),
        total_spent=sum(player.sold_price or 0 for player in sold),
        active_auctions=active,
        auction_status="Active" if active else "Not Started",
    )
