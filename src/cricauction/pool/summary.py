"""Group players by their pool label."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from cricauction.models import Player


@dataclass(frozen=True)
class PoolSummary:
    name: str
    order: int
    player_count: int
    sold_count: int
    available_count: int
    total_base_price: int


def group_by_pool(players: Iterable[Player]) -> Dict[str, List[Player]]:
    """Players keyed by pool name, in first-seen order. Unpooled players are skipped."""

    grouped: Dict[str, List[Player]] = {}
    for player in players:
        if not player.pool:
            continue
        grouped.setdefault(player.pool, []).append(player)
    return grouped


def summarize_pools(players: Iterable[Player]) -> List[PoolSummary]:
    summaries: List[PoolSummary] = []
    for order, (name, members) in enumerate(group_by_pool(players).items(), start=1):
        summaries.append(
            PoolSummary(
                name=name,
                order=order,
                player_count=len(members),
                sold_count=sum(1 for player in members if player.status == "Sold"),
                available_count=sum(1 for player in members if player.status == "Available"),
                total_base_price=sum(player.base_price for player in members),
            )
        )
    return summaries
