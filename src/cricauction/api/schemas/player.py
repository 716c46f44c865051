from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field

from cricauction.config.rules import MAX_BASE_PRICE, MAX_TEAM_BUDGET, MIN_BASE_PRICE, PlayerRole, PlayerStatus


_NULLABLE_FIELDS = frozenset({"pool", "sold_price", "assigned_team", "age", "bio"})


class PlayerCreate(BaseModel):
    name: str = Field(..., min_length=2)
    role: PlayerRole
    country: str = Field(..., min_length=1)
    base_price: int = Field(..., ge=MIN_BASE_PRICE, le=MAX_BASE_PRICE)
    pool: str | None = None
    points: int = Field(default=0, ge=0)
    age: int | None = Field(default=None, ge=0)
    stats: Dict[str, int] = Field(default_factory=dict)
    bio: str | None = None

    model_config = ConfigDict(extra="forbid")


class PlayerUpdate(BaseModel):
    """Partial player update; only fields present in the request are merged."""

    name: str | None = Field(default=None, min_length=2)
    role: PlayerRole | None = None
    country: str | None = Field(default=None, min_length=1)
    base_price: int | None = Field(default=None, ge=MIN_BASE_PRICE, le=MAX_BASE_PRICE)
    pool: str | None = None
    status: PlayerStatus | None = None
    sold_price: int | None = Field(default=None, ge=0, le=MAX_TEAM_BUDGET)
    assigned_team: str | None = None
    points: int | None = Field(default=None, ge=0)
    age: int | None = Field(default=None, ge=0)
    stats: Dict[str, int] | None = None
    bio: str | None = None

    model_config = ConfigDict(extra="forbid")

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        changes = {key: value for key, value in data.items() if value is not None or key in _NULLABLE_FIELDS}
        for key in ("pool", "assigned_team"):
            if key in changes and not changes[key]:
                changes[key] = None
        return changes


class ImportRowResponse(BaseModel):
    line: int
    sr_no: int
    name: str
    age: int
    country: str
    role: str
    base_price: int
    pool: str | None
    points: int
    stats: Dict[str, int]
    status: Literal["valid", "warning", "error"]
    message: str | None = None


class ImportReportResponse(BaseModel):
    total_rows: int
    valid: int
    warnings: int
    errors: int
    created: int
    rejected_lines: List[str] = Field(default_factory=list)
    rows: List[ImportRowResponse]
