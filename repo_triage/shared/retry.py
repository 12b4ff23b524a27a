from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import CancellationError, ValidationError


logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    backoff_base_seconds: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must not be negative")

    def delay_after(self, attempt: int) -> float:
        """Delay between attempt ``attempt`` and ``attempt + 1`` (1-based)."""
        return self.backoff_base_seconds**attempt


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, (ValidationError, CancellationError)):
        return False
    return isinstance(exc, Exception)


def call_with_retry(
    operation: Callable[[], T],
    *,
    policy: RetryPolicy | None = None,
    cancel_token: CancellationToken | None = None,
    description: str = "operation",
) -> T:
    """Run ``operation`` with bounded exponential backoff.

    The error of the final attempt propagates unchanged. Cancellation is
    checked before every attempt and interrupts the backoff wait.
    """
    policy = policy or RetryPolicy()
    token = cancel_token or CancellationToken()

    attempt = 1
    while True:
        token.raise_if_cancelled()
        try:
            return operation()
        except Exception as exc:
            if not is_retryable(exc) or attempt >= policy.max_attempts:
                raise

            delay = policy.delay_after(attempt)
            logger.warning(
                "Retrying %s after error: attempt=%s/%s, delay=%ss, error=%s",
                description,
                attempt,
                policy.max_attempts,
                delay,
                exc,
            )
            if token.wait(delay):
                raise CancellationError(
                    f"Triage run was cancelled while waiting to retry {description}"
                ) from exc
        attempt += 1
