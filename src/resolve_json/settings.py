"""Environment-driven configuration for resolve-json.

Environment Variables:
    RESOLVE_JSON_LOG_LEVEL: Logging level for the command-line harness (default: INFO)
    RESOLVE_JSON_MAX_REFERENCE_DEPTH: Deepest allowed chain of nested references
        (default: 100, clamped to 1-10000)
    RESOLVE_JSON_FETCH_TIMEOUT: Timeout in seconds of the default HTTP fetcher
        (default: 30, clamped to 1-1800)
"""

from __future__ import annotations

import os

from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_MAX_REFERENCE_DEPTH = 100
DEFAULT_FETCH_TIMEOUT = 30


def _int_from_env(name: str, default: int, low: int, high: int) -> int:
    try:
        value = int(os.getenv(name, str(default)))
    except ValueError:
        return default
    return max(low, min(high, value))


class ResolverSettings(BaseModel):
    """Resolver configuration.

    Example:
        settings = ResolverSettings.from_env()
        context = def_context(root, settings=settings)
    """

    log_level: str = Field(default=DEFAULT_LOG_LEVEL, description="Logging level name")
    max_reference_depth: int = Field(
        default=DEFAULT_MAX_REFERENCE_DEPTH,
        ge=1,
        le=10000,
        description="Deepest allowed chain of references resolving through other references",
    )
    fetch_timeout: int = Field(
        default=DEFAULT_FETCH_TIMEOUT,
        ge=1,
        le=1800,
        description="Timeout in seconds for HttpResourceFetcher requests",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: object) -> str:
        level = str(value).upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{value}'. Valid levels: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )
        return level

    @classmethod
    def from_env(cls) -> ResolverSettings:
        """Build settings from RESOLVE_JSON_* environment variables.

        Malformed numbers fall back to their defaults and out-of-range numbers
        are clamped. An invalid log level falls back to INFO.
        """
        log_level = os.getenv("RESOLVE_JSON_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()
        if log_level not in VALID_LOG_LEVELS:
            log_level = DEFAULT_LOG_LEVEL

        return cls(
            log_level=log_level,
            max_reference_depth=_int_from_env(
                "RESOLVE_JSON_MAX_REFERENCE_DEPTH", DEFAULT_MAX_REFERENCE_DEPTH, 1, 10000
            ),
            fetch_timeout=_int_from_env(
                "RESOLVE_JSON_FETCH_TIMEOUT", DEFAULT_FETCH_TIMEOUT, 1, 1800
            ),
        )


__all__ = ["ResolverSettings", "VALID_LOG_LEVELS"]
