"""Store construction and per-call option models.

This module contains the pydantic models validating the options a store is
created with, and the options object accepted by individual operations.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable
from enum import IntFlag
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sqlite_kv.services.codecs import resolve_codec
from sqlite_kv.shared.constants import NamespaceRules, SqliteLimits, StoreDefaults
from sqlite_kv.shared.errors import ApplicationError


class OpenFlags(IntFlag):
    """Database open mode flags (same bit values as SQLite's open flags)."""

    READONLY = 0x1
    READWRITE = 0x2
    CREATE = 0x4

    @property
    def uri_mode(self) -> str:
        """SQLite URI ``mode=`` value for this flag combination."""
        if self & OpenFlags.READWRITE:
            return "rwc" if self & OpenFlags.CREATE else "rw"
        return "ro"

    @property
    def is_readonly(self) -> bool:
        return not self & OpenFlags.READWRITE


DEFAULT_OPEN_FLAGS = OpenFlags.CREATE | OpenFlags.READWRITE

ReadinessHook = Callable[[Optional[BaseException]], Any]


class StoreOptions(BaseModel):
    """Store construction options.

    Attributes:
        name: Namespace (table) name, a plain SQL identifier
        path: Database file location, ``:memory:`` for a private in-memory db
        ttl: Default entry lifetime in milliseconds
        serializer: Codec name, codec object or ``(encode, decode)`` pair
        flags: Open mode flags
        on_open: Called with the open error (or None) once the connection is open
        on_ready: Called with the setup error (or None) once the schema exists
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True, extra="forbid")

    name: str = Field(
        default=StoreDefaults.NAME,
        min_length=1,
        max_length=NamespaceRules.MAX_LENGTH,
        description="Namespace (table) name",
    )
    path: str = Field(default=StoreDefaults.PATH, description="Database file path")
    ttl: int = Field(
        default=StoreDefaults.TTL_MS,
        ge=-SqliteLimits.MAX_TTL_MS,
        le=SqliteLimits.MAX_TTL_MS,
        description="Default TTL in milliseconds",
    )
    serializer: Any = Field(default=StoreDefaults.SERIALIZER, description="Codec selector")
    flags: int = Field(default=int(DEFAULT_OPEN_FLAGS), description="Open mode flags")
    on_open: Optional[ReadinessHook] = None
    on_ready: Optional[ReadinessHook] = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not re.fullmatch(NamespaceRules.PATTERN, value):
            msg = f"Namespace must be a plain identifier, got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("path", mode="before")
    @classmethod
    def _coerce_path(cls, value: Any) -> Any:
        if isinstance(value, Path):
            return str(value)
        return value

    @field_validator("serializer")
    @classmethod
    def _validate_serializer(cls, value: Any) -> Any:
        try:
            resolve_codec(value)
        except ApplicationError as e:
            raise ValueError(e.message) from e
        return value

    @field_validator("flags", mode="before")
    @classmethod
    def _default_flags(cls, value: Any) -> Any:
        if value is None:
            return int(DEFAULT_OPEN_FLAGS)
        return value

    @field_validator("flags")
    @classmethod
    def _to_open_flags(cls, value: int) -> OpenFlags:
        return OpenFlags(value)

    @model_validator(mode="after")
    def _validate_flag_combination(self) -> StoreOptions:
        if self.flags & OpenFlags.READONLY and self.flags & OpenFlags.READWRITE:
            msg = "READONLY and READWRITE flags are mutually exclusive"
            raise ValueError(msg)
        if not self.flags & (OpenFlags.READONLY | OpenFlags.READWRITE):
            msg = "One of READONLY or READWRITE flags is required"
            raise ValueError(msg)
        return self

    @property
    def open_flags(self) -> OpenFlags:
        return OpenFlags(self.flags)

    @property
    def is_memory(self) -> bool:
        return self.path in (":memory:", "")


class CallOptions(BaseModel):
    """Options object accepted by individual operations.

    Only ``ttl`` is interpreted by the store; other keys are kept so that a
    caching façade can pass its own options through unchanged.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    ttl: Optional[int] = Field(
        default=None,
        ge=-SqliteLimits.MAX_TTL_MS,
        le=SqliteLimits.MAX_TTL_MS,
        description="Entry lifetime in milliseconds",
    )

    @field_validator("ttl", mode="before")
    @classmethod
    def _coerce_ttl(cls, value: Any) -> Any:
        if isinstance(value, bool):
            msg = "ttl must be a number of milliseconds"
            raise ValueError(msg)
        if isinstance(value, float):
            if not math.isfinite(value):
                msg = f"ttl must be finite, got {value}"
                raise ValueError(msg)
            return int(value)
        return value


__all__ = [
    "DEFAULT_OPEN_FLAGS",
    "CallOptions",
    "OpenFlags",
    "ReadinessHook",
    "StoreOptions",
]
