"""Store configuration sourced from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_DATA_DIR = Path.home() / ".momentum"
DEFAULT_DB_FILENAME = "momentum.db"
IN_MEMORY_URL = "sqlite+pysqlite:///:memory:"


def _normalize_bool(value: str | None, default: bool) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


def _get_database_url(env: Mapping[str, str]) -> str:
    # Test override wins over everything else
    if env.get("MOMENTUM_TEST_DB"):
        return env["MOMENTUM_TEST_DB"]
    if env.get("MOMENTUM_DATABASE_URL"):
        return env["MOMENTUM_DATABASE_URL"]
    if env.get("DATABASE_URL"):
        return env["DATABASE_URL"]

    data_dir = Path(env["MOMENTUM_DATA_DIR"]) if env.get("MOMENTUM_DATA_DIR") else DEFAULT_DATA_DIR
    return f"sqlite:///{data_dir / DEFAULT_DB_FILENAME}"


@dataclass(frozen=True)
class StoreSettings:
    database_url: str = IN_MEMORY_URL
    echo: bool = False
    auto_create_schema: bool = True

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.database_url or self.database_url.rstrip("/").endswith("sqlite:"))

    @property
    def sqlite_path(self) -> Optional[Path]:
        """Filesystem path of a file-backed SQLite database, else None."""
        if not self.is_sqlite or self.is_in_memory:
            return None
        _, _, path = self.database_url.partition(":///")
        return Path(path) if path else None

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "StoreSettings":
        env = os.environ if env is None else env
        return cls(
            database_url=_get_database_url(env),
            echo=_normalize_bool(env.get("MOMENTUM_SQL_ECHO"), default=False),
            auto_create_schema=_normalize_bool(env.get("MOMENTUM_AUTO_CREATE_SCHEMA"), default=True),
        )
