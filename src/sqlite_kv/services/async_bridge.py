"""Dual completion-handler / future delivery of operation results.

Every store operation produces one ``concurrent.futures.Future`` on the
namespace's worker. This module exposes that single outcome in one of two
ways, never both:

- a completion handler, invoked exactly once as ``completion(error, result)``;
  the operation then returns ``None``
- a single-resolution future returned to the caller; it is already marked
  running, so it cannot be cancelled

Asyncio callers can ``await asyncio.wrap_future(future)``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import CancelledError, Future
from functools import partial
from typing import Any, Optional, TypeVar

T = TypeVar("T")

Completion = Callable[[Optional[BaseException], Any], Any]

logger = logging.getLogger(__name__)


def _outcome(source: Future[T]) -> tuple[BaseException | None, T | None]:
    if source.cancelled():
        return CancelledError(), None
    error = source.exception()
    if error is not None:
        return error, None
    return None, source.result()


def _invoke_completion(completion: Completion, source: Future[Any]) -> None:
    error, result = _outcome(source)
    try:
        completion(error, result)
    except Exception:  # noqa: BLE001
        logger.exception("Completion handler %r raised", completion)


def _resolve(target: Future[T], source: Future[T]) -> None:
    error, result = _outcome(source)
    if error is not None:
        target.set_exception(error)
    else:
        target.set_result(result)  # type: ignore[arg-type]


def failed_future(error: BaseException) -> Future[Any]:
    """Future already resolved with ``error``."""
    future: Future[Any] = Future()
    future.set_running_or_notify_cancel()
    future.set_exception(error)
    return future


def bridge(
    completion: Completion | None,
    start: Callable[[], Future[T]],
) -> Future[T] | None:
    """Run ``start`` and deliver its outcome to ``completion`` or a future.

    Args:
        completion: Handler called once with ``(error, result)``, or None
        start: Submits the unit of work and returns its future. Exceptions it
            raises synchronously are delivered like any other failure.

    Returns:
        None when a completion handler is given, otherwise a future that
        resolves exactly once with the result or the error
    """
    try:
        source = start()
    except Exception as e:  # noqa: BLE001
        source = failed_future(e)

    if completion is not None:
        source.add_done_callback(partial(_invoke_completion, completion))
        return None

    target: Future[T] = Future()
    target.set_running_or_notify_cancel()
    source.add_done_callback(partial(_resolve, target))
    return target


def _invoke_hook(hook: Callable[[Optional[BaseException]], Any], source: Future[Any]) -> None:
    error, _ = _outcome(source)
    try:
        hook(error)
    except Exception:  # noqa: BLE001
        logger.exception("Readiness hook %r raised", hook)


def add_readiness_hook(
    future: Future[Any],
    hook: Callable[[Optional[BaseException]], Any] | None,
) -> None:
    """Call ``hook(error)`` once ``future`` settles; ``error`` is None on success."""
    if hook is not None:
        future.add_done_callback(partial(_invoke_hook, hook))
