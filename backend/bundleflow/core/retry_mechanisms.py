"""
Retry Mechanisms

Bounded retries for optimistic-concurrency conflicts on bundle writes. Each
attempt re-reads and re-validates, so a retry never replays a stale decision.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..domain.shared.exceptions import ConcurrencyError
from .config import settings
from .observability import VERSION_CONFLICTS, get_logger

T = TypeVar("T")

logger = get_logger("retry")


@dataclass
class RetryConfig:
    """Configuration for conflict retries."""

    max_attempts: int = settings.WRITE_MAX_RETRIES
    base_delay_seconds: float = 0.0
    max_delay_seconds: float = 0.05
    retry_on_exceptions: tuple[type[Exception], ...] = (ConcurrencyError,)


def _conflict_recorder(operation: str) -> Callable[[RetryCallState], None]:
    def record(retry_state: RetryCallState) -> None:
        VERSION_CONFLICTS.labels(operation=operation).inc()
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.info(
            "Version conflict",
            operation=operation,
            attempt=retry_state.attempt_number,
            error=str(error) if error else None,
        )

    return record


def retry_on_conflict(
    func: Callable[[], T],
    *,
    operation: str,
    config: RetryConfig | None = None,
) -> T:
    """
    Call ``func`` until it stops raising a retryable conflict.

    The last conflict is re-raised once ``config.max_attempts`` is used up.
    Any other exception propagates immediately.
    """
    config = config or RetryConfig()
    retrying = Retrying(
        stop=stop_after_attempt(config.max_attempts),
        wait=wait_exponential(
            multiplier=config.base_delay_seconds, max=config.max_delay_seconds
        ),
        retry=retry_if_exception_type(config.retry_on_exceptions),
        after=_conflict_recorder(operation),
        reraise=True,
    )
    return retrying(func)
