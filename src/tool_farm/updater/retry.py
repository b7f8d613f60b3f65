"""Exponential-backoff retry for asynchronous operations."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog

from tool_farm.logging import get_logger
from tool_farm.updater.errors import RetryExhausted

T = TypeVar("T")

log = get_logger("tool_farm.updater.retry")


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry.

    The delay before retry ``n`` (1-based) is
    ``initial_delay * backoff_multiplier ** (n - 1)``.
    """

    max_retries: int = 3
    initial_delay: float = 1.0
    backoff_multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.initial_delay < 0:
            raise ValueError("initial_delay must be >= 0")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")

    @property
    def total_attempts(self) -> int:
        return self.max_retries + 1

    def delays(self) -> list[float]:
        """Return the waits inserted between consecutive attempts."""
        return [
            self.initial_delay * self.backoff_multiplier**n for n in range(self.max_retries)
        ]


class RetryExecutor:
    """Run a fallible coroutine factory until it succeeds or retries run out.

    Every exception is treated as retryable. Once the policy is exhausted
    a ``RetryExhausted`` wrapping the last failure is raised.
    """

    def __init__(
        self,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._sleep = sleep
        self._log = logger or log

    async def execute(self, operation: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
        attempts_left = policy.max_retries
        delay = policy.initial_delay
        attempt = 0

        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as exc:
                if attempts_left == 0:
                    raise RetryExhausted(exc, attempts=attempt) from exc

                self._log.info(
                    "updater_retrying",
                    attempt=attempt,
                    delay_seconds=delay,
                    error=str(exc) or type(exc).__name__,
                )
                await self._sleep(delay)
                delay *= policy.backoff_multiplier
                attempts_left -= 1
