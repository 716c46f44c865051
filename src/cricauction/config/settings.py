"""Runtime settings resolved from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .rules import DEFAULT_TEAM_BUDGET


logger = logging.getLogger(__name__)

_DB_PATH_ENV = "CRICAUCTION_DB_PATH"
_DEFAULT_BUDGET_ENV = "CRICAUCTION_DEFAULT_BUDGET"
_ADMIN_USERNAME_ENV = "CRICAUCTION_ADMIN_USERNAME"
_ADMIN_PASSWORD_ENV = "CRICAUCTION_ADMIN_PASSWORD"


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value for %s below %d: %s; using default %d", name, min_value, raw, default)
        return default
    return value


@dataclass(frozen=True)
class AuctionSettings:
    """Process-wide configuration for the API and CLI.

    ``db_path`` of ``None`` keeps all records in memory for the lifetime of
    the store.
    """

    db_path: Optional[str] = None
    default_team_budget: int = DEFAULT_TEAM_BUDGET
    admin_username: str = "admin"
    admin_password: str = "admin123"


def load_settings() -> AuctionSettings:
    """Build settings from ``CRICAUCTION_*`` environment variables."""

    db_path = os.getenv(_DB_PATH_ENV) or None
    return AuctionSettings(
        db_path=db_path,
        default_team_budget=_env_int(_DEFAULT_BUDGET_ENV, DEFAULT_TEAM_BUDGET, min_value=1),
        admin_username=os.getenv(_ADMIN_USERNAME_ENV, "admin"),
        admin_password=os.getenv(_ADMIN_PASSWORD_ENV, "admin123"),
    )
