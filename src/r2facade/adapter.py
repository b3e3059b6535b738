"""Conditional-result adapter shared by the bucket facade and multipart sessions."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from .errors import R2BucketError, R2NetworkError, error_key
from .result import Failure, Result, Success


logger = logging.getLogger(__name__)

T = TypeVar("T")


def log_failure(error: R2BucketError) -> None:
    """Log a classified failure; unclassified fallbacks are raised to warning."""
    match error:
        case R2NetworkError(operation=operation, reason=reason):
            logger.warning(
                f"Unclassified failure during {operation} (key={error_key(error)!r}): {reason}"
            )
        case _:
            logger.debug(f"{error.kind} during {error.operation} (key={error_key(error)!r})")


async def attempt(
    call: Callable[[], Awaitable[T]],
    classify_failure: Callable[[Exception], R2BucketError],
) -> Result[T, R2BucketError]:
    """Run one provider call and turn its outcome into a Result.

    A returned ``None`` is passed through as ``Success(None)``; it is never
    turned into an error. Anything the call raises is classified. Only
    ``Exception`` is caught, so cancellation still propagates.

    Args:
        call: Thunk starting the provider call
        classify_failure: Maps the raised exception to an error variant

    Returns:
        Success with the provider's value, or Failure with the classified error
    """
    try:
        value = await call()
    except Exception as exc:
        error = classify_failure(exc)
        log_failure(error)
        return Failure(error)
    return Success(value)


def attempt_sync(
    call: Callable[[], T],
    classify_failure: Callable[[Exception], R2BucketError],
) -> Result[T, R2BucketError]:
    """Synchronous counterpart of ``attempt`` for provider calls that do no I/O."""
    try:
        value = call()
    except Exception as exc:
        error = classify_failure(exc)
        log_failure(error)
        return Failure(error)
    return Success(value)


__all__ = ["attempt", "attempt_sync", "log_failure"]
