"""Auction results CSV export."""

from __future__ import annotations

import csv
from io import StringIO
from typing import Iterable, Mapping

from cricauction.config.rules import RESULTS_CSV_HEADERS
from cricauction.models import Player, Team


NOT_APPLICABLE = "N/A"


def _team_label(team_id: str | None, teams_by_id: Mapping[str, Team]) -> str:
    if not team_id:
        return NOT_APPLICABLE
    team = teams_by_id.get(team_id)
    return team.name if team is not None else team_id


def export_results_to_csv(players: Iterable[Player], teams: Iterable[Team]) -> str:
    """Render one row per player with the fixed results header.

    Prices are written in rupees; a missing sold price or team becomes ``N/A``.
    """

    teams_by_id = {team.id: team for team in teams}

    buffer = StringIO()
    writer = csv.writer(buffer)
    writer.writerow(RESULTS_CSV_HEADERS)
    for player in players:
        writer.writerow([
            player.name,
            player.role,
            player.country,
            player.base_price,
            NOT_APPLICABLE if player.sold_price is None else player.sold_price,
            _team_label(player.assigned_team, teams_by_id),
            player.status,
        ])
    return buffer.getvalue()


__all__ = [
    "NOT_APPLICABLE",
    "export_results_to_csv",
]
