"""Environment-backed configuration for the ledger indexer."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Optional

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class LedgerConfig:
    """Canonical configuration surface for the indexer and CLI."""

    database_url: str
    node_url: Optional[str]
    start_version: int
    log_level: str
    sql_echo: bool


def _read_env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None or value.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value.strip()


def _read_optional(name: str) -> Optional[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip()


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"Invalid boolean value for {name}: {raw}")


def _read_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer value for {name}: {raw}") from exc
    return value


def load_config(database_url: Optional[str] = None) -> LedgerConfig:
    """Load and validate ledger configuration from environment.

    An explicit `database_url` takes precedence over `LEDGER_DATABASE_URL`.
    """
    start_version = _read_int("LEDGER_START_VERSION", 0)
    if start_version < 0:
        raise RuntimeError(f"LEDGER_START_VERSION must be non-negative: {start_version}")

    log_level = _read_env("LEDGER_LOG_LEVEL", "INFO").upper()
    if log_level not in _LOG_LEVELS:
        raise RuntimeError(f"Invalid LEDGER_LOG_LEVEL: {log_level}")

    return LedgerConfig(
        database_url=database_url or _read_env("LEDGER_DATABASE_URL"),
        node_url=_read_optional("LEDGER_NODE_URL"),
        start_version=start_version,
        log_level=log_level,
        sql_echo=_read_bool("LEDGER_SQL_ECHO", False),
    )


def configure_logging(config: LedgerConfig) -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
