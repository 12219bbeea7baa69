"""Configuration package for the gradebook."""

from gradebook.config.app_config import (
    AppConfig,
    DatabaseConfig,
    SecurityConfig,
    build_password_hasher,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "build_password_hasher",
    "clear_config_cache",
    "load_app_config",
]
