"""
Settings — process configuration loaded from the environment.

    settings = Settings.from_env()
    settings = Settings().with_database_url("sqlite+aiosqlite:///dev.db")

Every variable is prefixed with ``BAZAAR_``. A ``.env`` file in the working
directory is loaded first if present; real environment variables win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path

from dotenv import load_dotenv

from bazaar.checkout._policy import Policy


class ConfigurationError(Exception):
    """Raised when an environment variable cannot be parsed."""


# ═══════════════════════════════════════════════════════════════════════════════
# Parsing helpers
# ═══════════════════════════════════════════════════════════════════════════════


def _env(key: str, default: str) -> str:
    return os.getenv(f"BAZAAR_{key}", default)


def _env_float(key: str, default: float | None) -> float | None:
    raw = os.getenv(f"BAZAAR_{key}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"BAZAAR_{key} must be a number, got {raw!r}") from e


# ═══════════════════════════════════════════════════════════════════════════════
# Settings
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Settings:
    """
    Immutable application settings.

    Note: duplicate_window_seconds <= 0 disables duplicate-order detection,
    checkout_deadline_seconds unset means no deadline.
    """

    database_url: str = "sqlite+aiosqlite:///bazaar.db"
    environment: str = "development"
    log_level: str = "INFO"
    duplicate_window_seconds: float = 15.0
    checkout_deadline_seconds: float | None = None
    rate_limit_per_second: float = 1.0
    rate_limit_burst: int = 2

    @classmethod
    def from_env(cls, env_file: Path | None = None) -> Settings:
        path = env_file or Path(".env")
        if path.exists():
            load_dotenv(path, override=False)

        defaults = cls()
        burst = _env_float("RATE_LIMIT_BURST", float(defaults.rate_limit_burst))
        return cls(
            database_url=_env("DATABASE_URL", defaults.database_url),
            environment=_env("ENV", defaults.environment).lower(),
            log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
            duplicate_window_seconds=_env_float(
                "DUPLICATE_WINDOW_SECONDS", defaults.duplicate_window_seconds
            )
            or 0.0,
            checkout_deadline_seconds=_env_float("CHECKOUT_DEADLINE_SECONDS", None),
            rate_limit_per_second=_env_float(
                "RATE_LIMIT_PER_SECOND", defaults.rate_limit_per_second
            )
            or defaults.rate_limit_per_second,
            rate_limit_burst=int(burst or defaults.rate_limit_burst),
        )

    def with_database_url(self, url: str) -> Settings:
        return replace(self, database_url=url)

    def with_environment(self, environment: str) -> Settings:
        return replace(self, environment=environment.lower())

    def with_rate_limit(self, *, per_second: float, burst: int) -> Settings:
        return replace(self, rate_limit_per_second=per_second, rate_limit_burst=burst)

    def checkout_policy(self) -> Policy:
        """Build the checkout policy these settings describe."""
        policy = Policy()
        if self.duplicate_window_seconds > 0:
            policy = policy.with_duplicate_window(seconds=self.duplicate_window_seconds)
        else:
            policy = policy.without_duplicate_check()
        if self.checkout_deadline_seconds:
            policy = policy.with_deadline(seconds=self.checkout_deadline_seconds)
        return policy


__all__ = (
    "ConfigurationError",
    "Settings",
)
