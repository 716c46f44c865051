"""Team budget reconciliation.

A team's ``players_count``, ``total_spent``, ``total_points`` and
``remaining_budget`` are never stored independently of its roster; they are
recomputed from the player set whenever a player joins, leaves, or changes
price while assigned.
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from cricauction.models import Player, Team


def team_roster(team_id: str, players: Iterable[Player]) -> List[Player]:
    return [player for player in players if player.assigned_team == team_id]


def recompute_team_stats(team: Team, players: Iterable[Player]) -> Team:
    """Return ``team`` with its derived fields recomputed from ``players``.

    ``players`` may contain players of other teams; only those assigned to
    ``team`` contribute. Absent sold prices count as zero and the remaining
    budget never drops below zero.
    """

    roster = team_roster(team.id, players)
    total_spent = sum(player.sold_price or 0 for player in roster)
    return team.model_copy(
        update={
            "players_count": len(roster),
            "total_spent": total_spent,
            "total_points": sum(player.points for player in roster),
            "remaining_budget": max(0, team.budget - total_spent),
        }
    )


def affected_team_ids(before: Optional[Player], after: Optional[Player]) -> Set[str]:
    """Team ids whose derived stats change when ``before`` becomes ``after``.

    ``None`` stands for a player that does not exist yet (create) or no longer
    exists (delete).
    """

    old_team = before.assigned_team if before is not None else None
    new_team = after.assigned_team if after is not None else None

    if old_team != new_team:
        return {team_id for team_id in (old_team, new_team) if team_id}
    if new_team is None or before is None or after is None:
        return set()
    if before.sold_price != after.sold_price or before.points != after.points:
        return {new_team}
    return set()
