"""Settings loader.

This module handles:
- Configuration file loading from TOML
- Environment variable fallback
- Mapping load failures to configuration errors
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import ValidationError

from sqlite_kv.config.models.settings import Settings
from sqlite_kv.shared.errors import create_config_error

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS = (
    Path("sqlite_kv.toml"),
    Path("config") / "sqlite_kv.toml",
)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional path to a TOML file. If None, the default
            locations are tried before falling back to environment variables.

    Returns:
        Settings instance

    Raises:
        ApplicationError: If the file is missing, malformed or invalid
    """
    if config_path:
        path: Path | None = Path(config_path)
    else:
        path = next((p for p in DEFAULT_CONFIG_PATHS if p.exists()), None)

    try:
        if path is None:
            return Settings()
        logger.debug("Loading settings from %s", path)
        return Settings.from_toml_file(path)
    except FileNotFoundError as e:
        raise create_config_error(
            str(e),
            config_key="config_path",
            operation="load_settings",
            original_error=e,
        ) from e
    except toml.TomlDecodeError as e:
        raise create_config_error(
            f"Malformed configuration file: {e}",
            config_key="config_path",
            operation="load_settings",
            original_error=e,
        ) from e
    except ValidationError as e:
        raise create_config_error(
            f"Invalid configuration: {e.error_count()} error(s)",
            operation="load_settings",
            original_error=e,
        ) from e
