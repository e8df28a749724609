"""Environment-driven settings."""

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from ledgercore.domain.balance import CurrencyPolicy

ENV_DATABASE_URL = "LEDGER_DATABASE_URL"
ENV_DB_PATH = "LEDGER_DB_PATH"
ENV_CURRENCY_POLICY = "LEDGER_CURRENCY_POLICY"
ENV_LOG_LEVEL = "LEDGER_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"


def parse_currency_policy(value: str) -> CurrencyPolicy:
    """Parse a currency policy name such as ``per_currency``."""
    normalized = value.strip().lower().replace("-", "_")
    try:
        return CurrencyPolicy(normalized)
    except ValueError:
        choices = ", ".join(p.value for p in CurrencyPolicy)
        raise ValueError(f"Unknown currency policy '{value}'. Supported: {choices}") from None


def parse_log_level(value: str) -> int:
    """Parse a logging level name (``INFO``) or number (``20``)."""
    value = value.strip()
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{value}'")
    return level


@dataclass(frozen=True)
class LedgerSettings:
    """Runtime settings for stores, posting and logging.

    ``database_url`` wins over ``database_path``; with neither set the
    SQLite file under ``~/.ledgercore`` is used.
    """

    database_url: Optional[str] = None
    database_path: Optional[str] = None
    currency_policy: CurrencyPolicy = CurrencyPolicy.PER_CURRENCY
    log_level: int = logging.WARNING

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LedgerSettings":
        """Load settings from environment variables.

        Raises:
            ValueError: If a variable holds an unsupported value
        """
        env = os.environ if environ is None else environ
        policy = env.get(ENV_CURRENCY_POLICY)
        return cls(
            database_url=env.get(ENV_DATABASE_URL) or None,
            database_path=env.get(ENV_DB_PATH) or None,
            currency_policy=(
                parse_currency_policy(policy) if policy else CurrencyPolicy.PER_CURRENCY
            ),
            log_level=parse_log_level(env.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL),
        )
