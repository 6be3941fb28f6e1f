"""Composable retry policy shared by every oracle call site."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple

from config.routes import LlmRoute

from .errors import LlmGatewayError, TransientLlmError


def is_retryable(exc: BaseException) -> bool:
    """Network, 5xx, 429, parse and schema failures are worth another attempt."""

    return isinstance(exc, TransientLlmError)


@dataclass(frozen=True)
class RetryPolicy:
    """A retryability predicate plus a fixed delay schedule.

    ``delays`` holds the wait before each retry, so ``len(delays)`` is the
    number of retries and ``len(delays) + 1`` the number of attempts.
    """

    delays: Tuple[float, ...] = (1.5, 3.0)
    retryable: Callable[[BaseException], bool] = field(default=is_retryable)

    @property
    def attempts(self) -> int:
        return len(self.delays) + 1

    def delay_before_retry(self, exc: BaseException, attempt: int) -> Optional[float]:
        """Seconds to wait before retrying after ``attempt`` (0-based) failed, or None to stop."""

        if not self.retryable(exc):
            return None
        if attempt >= len(self.delays):
            return None
        return self.delays[attempt]

    @classmethod
    def for_route(cls, cfg: LlmRoute) -> "RetryPolicy":
        return cls(delays=_schedule(cfg.retry_delays_s, cfg.max_retries))


def _schedule(delays: Sequence[float], max_retries: int) -> Tuple[float, ...]:
    # Pad with the last delay when max_retries exceeds the configured schedule.
    if max_retries <= 0:
        return ()
    base = list(delays) or [0.0]
    while len(base) < max_retries:
        base.append(base[-1])
    return tuple(base[:max_retries])


def describe(exc: BaseException) -> str:
    if isinstance(exc, LlmGatewayError):
        return exc.failure_class
    return type(exc).__name__


__all__ = ["RetryPolicy", "describe", "is_retryable"]
