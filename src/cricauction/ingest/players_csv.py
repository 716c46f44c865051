"""Parse and validate player upload CSVs."""

from __future__ import annotations

import csv
import logging
import re
from dataclasses import dataclass, field
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional

from cricauction.config.rules import (
    DEFAULT_AGE,
    DEFAULT_BASE_PRICE,
    MAX_BASE_PRICE,
    MAX_TYPICAL_AGE,
    MIN_BASE_PRICE,
    MIN_TYPICAL_AGE,
    PLAYER_CSV_HEADER_ALIASES,
    PLAYER_CSV_HEADERS,
    PLAYER_ROLES,
)
from cricauction.ledger.currency import parse_price_label


logger = logging.getLogger(__name__)

RowStatus = Literal["valid", "warning", "error"]

_LEADING_INT = re.compile(r"\s*([-+]?\d+)")

_STAT_COLUMNS = {
    "matches": "T20 Matches",
    "runs": "Runs",
    "wickets": "Wickets",
    "catches": "Catches",
}


class PlayerCsvError(ValueError):
    """Raised when an upload cannot be read as a player CSV at all."""


@dataclass
class ImportRow:
    line: int
    sr_no: int
    name: str
    age: int
    country: str
    role: str
    base_price: int
    pool: Optional[str]
    points: int
    stats: Dict[str, int] = field(default_factory=dict)
    status: RowStatus = "valid"
    message: Optional[str] = None

    def to_player_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.role,
            "country": self.country,
            "base_price": self.base_price,
            "pool": self.pool,
            "status": "Available",
            "points": self.points,
            "age": self.age,
            "stats": dict(self.stats),
        }


@dataclass
class ImportReport:
    rows: List[ImportRow]
    rejected_lines: List[str] = field(default_factory=list)

    @property
    def valid(self) -> int:
        return sum(1 for row in self.rows if row.status == "valid")

    @property
    def warnings(self) -> int:
        return sum(1 for row in self.rows if row.status == "warning")

    @property
    def errors(self) -> int:
        return sum(1 for row in self.rows if row.status == "error") + len(self.rejected_lines)

    @property
    def importable(self) -> List[ImportRow]:
        """Rows that may be created as players (valid or warning only)."""

        return [row for row in self.rows if row.status != "error"]


def _parse_int(value: str, default: int) -> int:
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else default


def _parse_base_price(value: str) -> int:
    if not value.strip():
        return DEFAULT_BASE_PRICE
    try:
        return parse_price_label(value)
    except ValueError:
        return DEFAULT_BASE_PRICE


def _canonical_header(name: str) -> str:
    name = name.strip()
    return PLAYER_CSV_HEADER_ALIASES.get(name, name)


def _validate(row: ImportRow, seen_names: set[str]) -> None:
    key = row.name.strip().lower()
    if len(row.name) < 2:
        row.status, row.message = "error", "Invalid name"
    elif row.role not in PLAYER_ROLES:
        row.status, row.message = "error", "Invalid role"
    elif row.base_price < MIN_BASE_PRICE:
        row.status, row.message = "error", "Base price too low"
    elif row.base_price > MAX_BASE_PRICE:
        row.status, row.message = "error", "Base price too high"
    elif key in seen_names:
        row.status, row.message = "error", "Duplicate player"
    elif row.age < MIN_TYPICAL_AGE or row.age > MAX_TYPICAL_AGE:
        row.status, row.message = "warning", "Age outside typical range"
    if key:
        seen_names.add(key)


def parse_players_csv(text: str, *, existing_names: Iterable[str] = ()) -> ImportReport:
    """Read an upload CSV into validated rows.

    Missing required headers reject the whole file with :class:`PlayerCsvError`.
    Rows whose column count differs from the header are reported in
    ``rejected_lines``; every other row is kept with a status of ``valid``,
    ``warning`` or ``error``. Names already in ``existing_names`` (compared
    case-insensitively) are flagged as duplicates.
    """

    reader = csv.reader(StringIO(text.lstrip("\ufeff")))
    header_row = next(reader, None)
    if not header_row or not any(cell.strip() for cell in header_row):
        raise PlayerCsvError("CSV file is empty")

    headers = [_canonical_header(cell) for cell in header_row]
    missing = [name for name in PLAYER_CSV_HEADERS if name not in headers]
    if missing:
        logger.warning("Rejected player CSV; missing headers: %s", ", ".join(missing))
        raise PlayerCsvError(f"Missing headers: {', '.join(missing)}")
    index = {name: headers.index(name) for name in PLAYER_CSV_HEADERS}

    seen_names = {name.strip().lower() for name in existing_names if name}
    report = ImportReport(rows=[])
    for position, values in enumerate(reader, start=1):
        line = position + 1
        if not any(value.strip() for value in values):
            continue
        if len(values) != len(headers):
            report.rejected_lines.append(f"Line {line}: Invalid number of columns")
            continue

        def cell(column: str) -> str:
            return values[index[column]].strip()

        row = ImportRow(
            line=line,
            sr_no=_parse_int(cell("Sr No"), position),
            name=cell("Player Name"),
            age=_parse_int(cell("Age"), DEFAULT_AGE),
            country=cell("Country"),
            role=cell("Role") or "Batsman",
            base_price=_parse_base_price(cell("Base Price")),
            pool=cell("Pool") or None,
            points=max(0, _parse_int(cell("Evaluation Points"), 0)),
            stats={key: _parse_int(cell(column), 0) for key, column in _STAT_COLUMNS.items()},
        )
        _validate(row, seen_names)
        report.rows.append(row)

    return report


def load_players_csv(path: Path, *, existing_names: Iterable[str] = ()) -> ImportReport:
    return parse_players_csv(path.read_text(encoding="utf-8"), existing_names=existing_names)
