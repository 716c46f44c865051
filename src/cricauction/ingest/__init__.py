"""Input adapters that turn uploaded files into player records."""

from .players_csv import (
    ImportReport,
    ImportRow,
    PlayerCsvError,
    load_players_csv,
    parse_players_csv,
)

__all__ = [
    "ImportReport",
    "ImportRow",
    "PlayerCsvError",
    "load_players_csv",
    "parse_players_csv",
]
