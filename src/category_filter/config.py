"""Configuration loading from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Valid log levels
VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Port validation bounds
MIN_PORT = 1
MAX_PORT = 65535

DEFAULT_STORAGE_PATH = Path.home() / ".category-filter" / "storage.json"
DEFAULT_STORAGE_KEY = "category-filter.categories"


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment.

    This dataclass is frozen (immutable) to prevent accidental modification
    after creation.
    """

    # Persistence
    storage_path: Path = DEFAULT_STORAGE_PATH
    storage_key: str = DEFAULT_STORAGE_KEY
    lock_timeout: float = 5.0  # seconds to wait for the storage file lock

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    diagnostic_tags: str = ""

    # HTTP API
    api_host: str = "127.0.0.1"
    api_port: int = 8080

    # Open filter sessions are dropped after this many idle seconds
    session_ttl: int = 3600
    max_sessions: int = 256


def _parse_positive_int(value: str, name: str, default: int) -> int:
    """Parse a string as a positive integer with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed positive integer, or the default if invalid.

    Logs a warning if the value is invalid.
    """
    try:
        parsed = int(value)
        if parsed <= 0:
            logging.warning(
                "Invalid %s: %d is not positive, using default %d",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _parse_port(value: str, name: str, default: int) -> int:
    """Parse a string as a valid TCP port number with range validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed port number (MIN_PORT-MAX_PORT), or the default if invalid.
    """
    try:
        parsed = int(value)
        if parsed < MIN_PORT or parsed > MAX_PORT:
            logging.warning(
                "Invalid %s: %d is not a valid port (must be %d-%d), using default %d",
                name,
                parsed,
                MIN_PORT,
                MAX_PORT,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid integer, using default %d",
            name,
            value,
            default,
        )
        return default


def _validate_log_level(value: str, default: str = "INFO") -> str:
    """Validate and normalize a log level string.

    Args:
        value: The log level string to validate.
        default: The default value to use if invalid.

    Returns:
        The validated log level (uppercase), or the default if invalid.
    """
    normalized = value.upper()
    if normalized not in VALID_LOG_LEVELS:
        logging.warning(
            "Invalid CATEGORY_FILTER_LOG_LEVEL: '%s' is not valid, using default '%s'. "
            "Valid values: %s",
            value,
            default,
            ", ".join(sorted(VALID_LOG_LEVELS)),
        )
        return default
    return normalized


def _parse_bool(value: str) -> bool:
    """Parse a string as a boolean.

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise.
    """
    return value.lower() in ("true", "1", "yes")


def _parse_non_negative_float(value: str, name: str, default: float) -> float:
    """Parse a string as a non-negative float with validation.

    Args:
        value: The string value to parse.
        name: The name of the setting (for error messages).
        default: The default value to use if parsing fails.

    Returns:
        The parsed non-negative float, or the default if invalid.
    """
    try:
        parsed = float(value)
        if parsed < 0:
            logging.warning(
                "Invalid %s: %f is negative, using default %f",
                name,
                parsed,
                default,
            )
            return default
        return parsed
    except ValueError:
        logging.warning(
            "Invalid %s: '%s' is not a valid number, using default %f",
            name,
            value,
            default,
        )
        return default


def _validate_storage_key(value: str, default: str = DEFAULT_STORAGE_KEY) -> str:
    """Validate the storage key the catalog is persisted under.

    Args:
        value: The key to validate.
        default: The default value to use if invalid.

    Returns:
        The stripped key, or the default if it is blank.
    """
    stripped = value.strip()
    if not stripped:
        logging.warning(
            "Invalid CATEGORY_FILTER_STORAGE_KEY: empty key, using default '%s'",
            default,
        )
        return default
    return stripped


def load_config(env_file: Path | None = None) -> Config:
    """Load configuration from environment variables.

    Args:
        env_file: Optional path to .env file. If not provided,
                  looks for .env in current directory.

    Returns:
        Config object with loaded values.

    Values are validated and defaults are used for invalid inputs:
    - Integer values must be valid positive integers
    - CATEGORY_FILTER_LOG_LEVEL must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    storage_path_str = os.getenv("CATEGORY_FILTER_STORAGE_PATH", "")
    storage_path = Path(storage_path_str).expanduser() if storage_path_str else DEFAULT_STORAGE_PATH

    storage_key = _validate_storage_key(
        os.getenv("CATEGORY_FILTER_STORAGE_KEY", DEFAULT_STORAGE_KEY),
    )

    lock_timeout = _parse_non_negative_float(
        os.getenv("CATEGORY_FILTER_LOCK_TIMEOUT", "5.0"),
        "CATEGORY_FILTER_LOCK_TIMEOUT",
        5.0,
    )

    log_level = _validate_log_level(
        os.getenv("CATEGORY_FILTER_LOG_LEVEL", "INFO"),
    )
    log_json = _parse_bool(os.getenv("CATEGORY_FILTER_LOG_JSON", ""))
    diagnostic_tags = os.getenv("CATEGORY_FILTER_DIAGNOSTIC_TAGS", "")

    api_port = _parse_port(
        os.getenv("CATEGORY_FILTER_API_PORT", "8080"),
        "CATEGORY_FILTER_API_PORT",
        8080,
    )
    api_host = os.getenv("CATEGORY_FILTER_API_HOST", "127.0.0.1")

    session_ttl = _parse_positive_int(
        os.getenv("CATEGORY_FILTER_SESSION_TTL", "3600"),
        "CATEGORY_FILTER_SESSION_TTL",
        3600,
    )
    max_sessions = _parse_positive_int(
        os.getenv("CATEGORY_FILTER_MAX_SESSIONS", "256"),
        "CATEGORY_FILTER_MAX_SESSIONS",
        256,
    )

    return Config(
        storage_path=storage_path,
        storage_key=storage_key,
        lock_timeout=lock_timeout,
        log_level=log_level,
        log_json=log_json,
        diagnostic_tags=diagnostic_tags,
        api_host=api_host,
        api_port=api_port,
        session_ttl=session_ttl,
        max_sessions=max_sessions,
    )
