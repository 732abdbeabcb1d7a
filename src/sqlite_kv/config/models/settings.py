"""sqlite-kv Settings Configuration Model.

Settings consolidating the store defaults and logging configuration used by
the CLI and by applications that prefer environment/TOML configuration over
keyword arguments.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import toml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from sqlite_kv.config.models.store_settings import StoreOptions
from sqlite_kv.shared.constants import StoreDefaults
from sqlite_kv.shared.errors import create_config_error


class StoreSettings(BaseModel):
    """Store section: the serializable subset of StoreOptions."""

    name: str = Field(default=StoreDefaults.NAME, description="Namespace (table) name")
    path: str = Field(default=StoreDefaults.PATH, description="Database file path")
    ttl: int = Field(default=StoreDefaults.TTL_MS, description="Default TTL in milliseconds")
    serializer: str = Field(default=StoreDefaults.SERIALIZER, description="Codec name")

    def to_options(self, **overrides: Any) -> StoreOptions:
        """Build validated StoreOptions, applying non-None overrides."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return StoreOptions(**values)
        except ValidationError as e:
            first = e.errors()[0]
            raise create_config_error(
                f"Invalid store settings: {first['msg']}",
                config_key=".".join(str(part) for part in first["loc"]) or None,
                operation="to_options",
                original_error=e,
            ) from e


class LoggingSettings(BaseModel):
    """Logging section."""

    level: str = Field(default="WARNING", description="Logging level")
    file: Optional[str] = Field(default=None, description="JSON log file path")
    rich_console: bool = Field(default=True, description="Use rich console output")


class Settings(BaseSettings):
    """Top-level settings.

    Environment variables use the ``SQLITE_KV_`` prefix with ``__`` as the
    nested delimiter, e.g. ``SQLITE_KV_STORE__PATH=/var/cache/kv.db``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SQLITE_KV_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    store: StoreSettings = Field(default_factory=StoreSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml_file(cls, file_path: str | Path) -> Settings:
        """Load settings from a TOML file; environment fills unset sections."""
        file_path = Path(file_path)
        if not file_path.exists():
            msg = f"Configuration file not found: {file_path}"
            raise FileNotFoundError(msg)

        raw_config = toml.load(file_path)
        return cls(**raw_config)

    def to_toml_file(self, file_path: str | Path) -> None:
        """Save settings to a TOML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(exclude_none=True)
        with open(file_path, "w", encoding="utf-8") as f:
            toml.dump(config_dict, f)
