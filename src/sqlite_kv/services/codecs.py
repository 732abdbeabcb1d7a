"""Value codecs for the SQLite store.

A codec turns arbitrary values into the byte payload stored in the ``val``
column and back. Codecs are chosen once per namespace at construction time,
either by name from the registry or by passing a custom codec.

Encoding and decoding failures never leave this module: ``safe_encode``
degrades to the NULL sentinel and ``safe_decode`` degrades to ``None``.
"""

from __future__ import annotations

import logging
import zlib
from collections.abc import Callable
from enum import Enum
from typing import Any, Protocol, Union, runtime_checkable

import orjson

from sqlite_kv.shared.constants import CodecConfig
from sqlite_kv.shared.errors import create_config_error

logger = logging.getLogger(__name__)

# Stored as SQL NULL when a value cannot be encoded
UNENCODABLE: None = None


@runtime_checkable
class Codec(Protocol):
    """Protocol for converting values to stored payloads and back."""

    def encode(self, value: Any) -> bytes:
        """Serialize ``value`` to a byte payload."""
        ...

    def decode(self, payload: bytes) -> Any:
        """Rebuild the value from a payload produced by ``encode``."""
        ...


class CodecName(str, Enum):
    """Built-in codecs selectable by name."""

    JSON = "json"
    ZLIB_JSON = "zlib-json"


class JsonCodec:
    """orjson codec for JSON-native values.

    Supports dict, list, str, int, float, bool and None. Tuples decode as
    lists and dict keys must be strings.
    """

    def encode(self, value: Any) -> bytes:
        return orjson.dumps(value)

    def decode(self, payload: bytes) -> Any:
        return orjson.loads(payload)


class ZlibJsonCodec(JsonCodec):
    """orjson payload compressed with zlib, for large documents."""

    def __init__(self, compression_level: int = CodecConfig.ZLIB_LEVEL) -> None:
        self.compression_level = compression_level

    def encode(self, value: Any) -> bytes:
        return zlib.compress(super().encode(value), self.compression_level)

    def decode(self, payload: bytes) -> Any:
        return super().decode(zlib.decompress(payload))


class CallableCodec:
    """Adapts an ``(encode, decode)`` pair of callables to the Codec protocol."""

    def __init__(
        self,
        encode: Callable[[Any], bytes],
        decode: Callable[[bytes], Any],
    ) -> None:
        self._encode = encode
        self._decode = decode

    def encode(self, value: Any) -> bytes:
        return self._encode(value)

    def decode(self, payload: bytes) -> Any:
        return self._decode(payload)


CODEC_REGISTRY: dict[CodecName, Callable[[], Codec]] = {
    CodecName.JSON: JsonCodec,
    CodecName.ZLIB_JSON: ZlibJsonCodec,
}

CodecSpec = Union[str, CodecName, Codec, tuple, None]


def resolve_codec(serializer: CodecSpec) -> Codec:
    """Resolve a codec selector into a codec instance.

    Args:
        serializer: Registry name, codec object, ``(encode, decode)`` pair,
            or None for the default codec.

    Returns:
        Codec instance

    Raises:
        ApplicationError: If the name is unknown or the object is not a codec
    """
    if serializer is None:
        return JsonCodec()

    if isinstance(serializer, (str, CodecName)):
        try:
            name = CodecName(serializer)
        except ValueError as e:
            known = ", ".join(c.value for c in CodecName)
            raise create_config_error(
                f"Unknown serializer '{serializer}' (known: {known})",
                config_key="serializer",
                operation="resolve_codec",
                original_error=e,
            ) from e
        return CODEC_REGISTRY[name]()

    if isinstance(serializer, tuple):
        if len(serializer) == 2 and all(callable(fn) for fn in serializer):
            return CallableCodec(serializer[0], serializer[1])
        raise create_config_error(
            "Serializer pair must be (encode, decode) callables",
            config_key="serializer",
            operation="resolve_codec",
        )

    if isinstance(serializer, Codec):
        return serializer

    raise create_config_error(
        f"Unsupported serializer type: {type(serializer).__name__}",
        config_key="serializer",
        operation="resolve_codec",
    )


def safe_encode(codec: Codec, value: Any) -> bytes | None:
    """Encode ``value``, returning the UNENCODABLE sentinel on failure."""
    try:
        payload = codec.encode(value)
    except Exception as e:  # noqa: BLE001
        logger.debug(
            "Value of type %s is not encodable with %s: %s",
            type(value).__name__,
            type(codec).__name__,
            e,
        )
        return UNENCODABLE

    if isinstance(payload, str):
        return payload.encode("utf-8")
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)

    logger.debug(
        "Codec %s returned %s instead of bytes",
        type(codec).__name__,
        type(payload).__name__,
    )
    return UNENCODABLE


def safe_decode(codec: Codec, payload: bytes | str | None) -> Any | None:
    """Decode a stored payload, returning None when it cannot be decoded."""
    if payload is None:
        return None
    if isinstance(payload, str):
        payload = payload.encode("utf-8")

    try:
        return codec.decode(bytes(payload))
    except Exception as e:  # noqa: BLE001
        logger.debug(
            "Payload of %d bytes is not decodable with %s: %s",
            len(payload),
            type(codec).__name__,
            e,
        )
        return None
