"""Application configuration loader.

Loads configuration from config/gradebook_v1.yaml, falling back to
built-in defaults when the file is missing.

Usage:
    from gradebook.config.app_config import load_app_config, build_password_hasher

    config = load_app_config()
    hasher = build_password_hasher(config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from gradebook.core.passwords import (
    PasswordHasher,
    PlaintextPasswordHasher,
    WerkzeugPasswordHasher,
)

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("config/gradebook_v1.yaml")

# Environment override for the database location
DB_PATH_ENV = "GRADEBOOK_DB_PATH"


@dataclass
class DatabaseConfig:
    """Where the SQLite database lives."""

    path: str = "db/gradebook.db"


@dataclass
class SecurityConfig:
    """How passwords are stored."""

    hasher: str = "werkzeug"
    password_method: str = "pbkdf2:sha256"
    salt_length: int = 16


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    @property
    def db_path(self) -> Path:
        """Database path, honoring the GRADEBOOK_DB_PATH override."""
        return Path(os.environ.get(DB_PATH_ENV) or self.database.path)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": "db/gradebook.db",
        },
        "security": {
            "hasher": "werkzeug",
            "password_method": "pbkdf2:sha256",
            "salt_length": 16,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    db_data = data.get("database") or {}
    database = DatabaseConfig(path=db_data.get("path", "db/gradebook.db"))

    sec_data = data.get("security") or {}
    security = SecurityConfig(
        hasher=sec_data.get("hasher", "werkzeug"),
        password_method=sec_data.get("password_method", "pbkdf2:sha256"),
        salt_length=int(sec_data.get("salt_length", 16)),
    )

    return AppConfig(database=database, security=security)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.debug("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def build_password_hasher(config: AppConfig | None = None) -> PasswordHasher:
    """Create the password hasher named in the security config.

    Raises:
        ValueError: If the configured hasher is unknown
    """
    config = config or load_app_config()
    security = config.security

    if security.hasher == "werkzeug":
        return WerkzeugPasswordHasher(
            method=security.password_method, salt_length=security.salt_length
        )
    if security.hasher == "plaintext":
        logger.warning("plaintext_password_hasher_enabled")
        return PlaintextPasswordHasher()

    raise ValueError(f"Hasher de contraseñas desconocido: {security.hasher}")


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
