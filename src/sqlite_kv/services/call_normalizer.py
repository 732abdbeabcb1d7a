"""Call argument normalization.

Store operations accept optional trailing arguments in any combination:
an explicit ttl (number), an options object (mapping or CallOptions) and a
completion handler (callable). This module resolves those tails once, at the
public boundary, into a fixed-shape ``CallRequest``.

Resolution rules:
- the last callable in the tail is the completion handler
- of the remainder, the first number is the ttl and the first options
  object is the options
- ``None`` entries are treated as omitted
- anything else is a caller contract fault

Normalization never raises. A malformed call produces a request whose
``error`` is set, so the fault can travel through the same completion or
future channel as any other operation error.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from sqlite_kv.config.models.store_settings import CallOptions
from sqlite_kv.services.async_bridge import Completion
from sqlite_kv.shared.constants import SqliteLimits
from sqlite_kv.shared.errors import CallContractError, create_call_contract_error


@dataclass(frozen=True)
class CallRequest:
    """Canonical form of one store call.

    Attributes:
        operation: Operation name (get, set, mget, ...)
        keys: Keys addressed by the call, in caller order
        values: Values to write, aligned with ``keys`` (writes only)
        ttl: Explicit positional ttl in milliseconds, if any
        options: Options object (``CallOptions``)
        completion: Completion handler, if the caller supplied one
        error: Caller contract fault detected during normalization
    """

    operation: str
    keys: tuple[str, ...] = ()
    values: tuple[Any, ...] = ()
    ttl: int | None = None
    options: CallOptions = field(default_factory=CallOptions)
    completion: Completion | None = None
    error: CallContractError | None = None

    @property
    def key(self) -> str:
        return self.keys[0]

    def effective_ttl(self, default_ttl: int) -> int:
        """Explicit ttl wins over the options ttl, which wins over the default."""
        if self.ttl is not None:
            return self.ttl
        if self.options.ttl is not None:
            return self.options.ttl
        return default_ttl

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_options(value: Any) -> bool:
    return isinstance(value, (Mapping, CallOptions))


def _to_call_options(operation: str, value: Any) -> CallOptions:
    if isinstance(value, CallOptions):
        return value
    try:
        return CallOptions.model_validate(dict(value))
    except ValidationError as e:
        error = create_call_contract_error(
            f"{operation}: invalid options ({e.error_count()} error(s))",
            operation=operation,
        )
        raise error from e


def _split_completion(args: Sequence[Any]) -> tuple[Completion | None, list[Any]]:
    """Extract the last callable of ``args``."""
    rest = list(args)
    for index in range(len(rest) - 1, -1, -1):
        if callable(rest[index]):
            return rest.pop(index), rest
    return None, rest


def _split_trailing_completion(args: Sequence[Any]) -> tuple[Completion | None, list[Any]]:
    """Extract a completion only from the final position.

    Used where callables may legitimately appear as values (mset).
    """
    rest = list(args)
    if rest and callable(rest[-1]):
        return rest.pop(), rest
    return None, rest


def _to_ttl(operation: str, value: float) -> int:
    """Positional ttl as whole milliseconds within the INTEGER column range."""
    finite = math.isfinite(value) if isinstance(value, float) else True
    if not finite or abs(value) > SqliteLimits.MAX_TTL_MS:
        raise create_call_contract_error(
            f"{operation}: ttl must be a finite number of milliseconds within "
            f"+/-{SqliteLimits.MAX_TTL_MS}, got {value!r}",
            operation=operation,
        )
    return int(value)


def _parse_tail(operation: str, tail: Sequence[Any]) -> tuple[int | None, CallOptions]:
    ttl: int | None = None
    options: CallOptions | None = None

    for value in tail:
        if value is None:
            continue
        if is_number(value):
            if ttl is None:
                ttl = _to_ttl(operation, value)
        elif is_options(value):
            if options is None:
                options = _to_call_options(operation, value)
        else:
            raise create_call_contract_error(
                f"{operation}: unexpected argument of type {type(value).__name__}",
                operation=operation,
                argument_count=len(tail),
            )

    return ttl, options or CallOptions()


def _check_keys(operation: str, keys: Sequence[Any]) -> tuple[str, ...]:
    for key in keys:
        if not isinstance(key, str):
            raise create_call_contract_error(
                f"{operation}: keys must be str, got {type(key).__name__}",
                operation=operation,
                argument_count=len(keys),
            )
    return tuple(keys)


def normalize_single(operation: str, key: Any, args: Sequence[Any]) -> CallRequest:
    """Normalize ``op(key, [ttl], [options], [completion])`` calls (get, del)."""
    completion, tail = _split_completion(args)
    try:
        keys = _check_keys(operation, [key])
        ttl, options = _parse_tail(operation, tail)
    except CallContractError as e:
        return CallRequest(operation, completion=completion, error=e)
    return CallRequest(operation, keys=keys, ttl=ttl, options=options, completion=completion)


def normalize_set(key: Any, value: Any, args: Sequence[Any]) -> CallRequest:
    """Normalize ``set(key, value, [ttl], [options], [completion])``."""
    completion, tail = _split_completion(args)
    try:
        keys = _check_keys("set", [key])
        ttl, options = _parse_tail("set", tail)
    except CallContractError as e:
        return CallRequest("set", completion=completion, error=e)
    return CallRequest(
        "set",
        keys=keys,
        values=(value,),
        ttl=ttl,
        options=options,
        completion=completion,
    )


def normalize_mget(args: Sequence[Any]) -> CallRequest:
    """Normalize ``mget(keys..., [options], [completion])``.

    Keys may be passed variadically or as a single list/tuple.
    """
    completion, rest = _split_trailing_completion(args)
    try:
        options = CallOptions()
        if rest and is_options(rest[-1]):
            options = _to_call_options("mget", rest.pop())
        if len(rest) == 1 and isinstance(rest[0], (list, tuple)):
            rest = list(rest[0])
        keys = _check_keys("mget", rest)
    except CallContractError as e:
        return CallRequest("mget", completion=completion, error=e)
    return CallRequest("mget", keys=keys, options=options, completion=completion)


def normalize_mset(args: Sequence[Any]) -> CallRequest:
    """Normalize ``mset(k1, v1, k2, v2, ..., [options], [completion])``.

    An options object is only recognized when it would otherwise leave an
    odd argument count. A count that is still odd afterwards means a key
    without a value, which is reported rather than dropped.
    """
    completion, rest = _split_trailing_completion(args)
    try:
        options = CallOptions()
        if len(rest) % 2 == 1 and is_options(rest[-1]):
            options = _to_call_options("mset", rest.pop())
        if len(rest) % 2 == 1:
            raise create_call_contract_error(
                f"mset: expected key/value pairs, got {len(rest)} argument(s) with a dangling key",
                operation="mset",
                argument_count=len(rest),
            )
        keys = _check_keys("mset", rest[0::2])
    except CallContractError as e:
        return CallRequest("mset", completion=completion, error=e)
    return CallRequest(
        "mset",
        keys=keys,
        values=tuple(rest[1::2]),
        options=options,
        completion=completion,
    )


def normalize_keyless(operation: str, args: Sequence[Any]) -> CallRequest:
    """Normalize ``op([completion])`` calls (reset, purge_expired)."""
    completion, tail = _split_completion(args)
    try:
        _parse_tail(operation, tail)
    except CallContractError as e:
        return CallRequest(operation, completion=completion, error=e)
    return CallRequest(operation, completion=completion)
