"""Tenacity retry policies."""

from __future__ import annotations

from collections.abc import Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_exponential,
    wait_fixed,
)

from .config import RetryConfig


def with_retry(
    config: RetryConfig,
    *,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable:
    """Return a bounded exponential-backoff decorator configured from *config*.

    Usage::

        @with_retry(settings.retry)
        async def ensure_schema() -> None: ...
    """
    return retry(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.multiplier,
            min=config.initial_wait_seconds,
            max=config.max_wait_seconds,
        ),
        retry=retry_if_exception_type(retryable_exceptions),
        reraise=True,
    )


def retry_forever(
    interval_seconds: float,
    *,
    before_sleep: Callable[[RetryCallState], None] | None = None,
) -> AsyncRetrying:
    """Unbounded retry on any exception with a fixed interval.

    Usage::

        async for attempt in retry_forever(30.0):
            with attempt:
                await watch_once()
    """
    return AsyncRetrying(
        stop=stop_never,
        wait=wait_fixed(interval_seconds),
        retry=retry_if_exception_type(Exception),
        before_sleep=before_sleep,
        reraise=True,
    )
