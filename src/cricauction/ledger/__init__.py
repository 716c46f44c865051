"""Money handling and derived team/dashboard figures."""

from .currency import format_price, parse_price_label
from .dashboard import DashboardStats, summarize_dashboard
from .reconcile import affected_team_ids, recompute_team_stats, team_roster

__all__ = [
    "DashboardStats",
    "affected_team_ids",
    "format_price",
    "parse_price_label",
    "recompute_team_stats",
    "summarize_dashboard",
    "team_roster",
]
