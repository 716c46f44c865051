from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cricauction.config.rules import DEFAULT_COLOR_THEME, MAX_TEAM_BUDGET


_HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


def _check_logo_url(value: str | None) -> str | None:
    if not value:
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("Must be a valid URL")
    return value


class TeamCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=50)
    color_theme: str = Field(default=DEFAULT_COLOR_THEME, pattern=_HEX_COLOR)
    budget: int | None = Field(default=None, ge=1, le=MAX_TEAM_BUDGET)
    logo_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, value: str | None) -> str | None:
        return _check_logo_url(value)


class TeamUpdate(BaseModel):
    """Editable team fields. Budget-derived figures are recomputed, never accepted."""

    name: str | None = Field(default=None, min_length=2, max_length=50)
    color_theme: str | None = Field(default=None, pattern=_HEX_COLOR)
    budget: int | None = Field(default=None, ge=1, le=MAX_TEAM_BUDGET)
    logo_url: str | None = None

    model_config = ConfigDict(extra="forbid")

    @field_validator("logo_url")
    @classmethod
    def validate_logo_url(cls, value: str | None) -> str | None:
        return _check_logo_url(value)

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        return {key: value for key, value in data.items() if value is not None or key == "logo_url"}
