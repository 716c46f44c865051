"""Auction rules shared by validation, ingest and reporting."""

from __future__ import annotations

from typing import Literal, Mapping, Tuple, get_args


LAKH = 100_000
CRORE = 10_000_000

PlayerRole = Literal["Batsman", "Bowler", "All-rounder", "Wicket-keeper"]
PlayerStatus = Literal["Available", "Sold", "Unsold"]

PLAYER_ROLES: Tuple[str, ...] = get_args(PlayerRole)
PLAYER_STATUSES: Tuple[str, ...] = get_args(PlayerStatus)

# All money is held as whole rupees.
MIN_BASE_PRICE = 5 * LAKH
MAX_BASE_PRICE = 20 * CRORE
DEFAULT_BASE_PRICE = 10 * LAKH
DEFAULT_TEAM_BUDGET = 80 * CRORE
MAX_TEAM_BUDGET = 1500 * CRORE

DEFAULT_COLOR_THEME = "#1E40AF"

MIN_TYPICAL_AGE = 16
MAX_TYPICAL_AGE = 45
DEFAULT_AGE = 25

PLAYER_CSV_HEADERS: Tuple[str, ...] = (
    "Sr No",
    "Player Name",
    "Age",
    "Country",
    "T20 Matches",
    "Runs",
    "Wickets",
    "Catches",
    "Evaluation Points",
    "Base Price",
    "Role",
    "Pool",
)

# Column names used by the older upload template.
PLAYER_CSV_HEADER_ALIASES: Mapping[str, str] = {
    "Matches": "T20 Matches",
    "Eval Points": "Evaluation Points",
}

RESULTS_CSV_HEADERS: Tuple[str, ...] = (
    "Player Name",
    "Role",
    "Country",
    "Base Price",
    "Sold Price",
    "Team",
    "Status",
)
