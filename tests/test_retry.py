import pytest

from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import (
    CancellationError,
    InvalidReferenceError,
    ProtocolError,
    TransientNetworkError,
)
from repo_triage.shared.retry import RetryPolicy, call_with_retry


class _RecordingToken(CancellationToken):
    """Records backoff waits instead of sleeping."""

    def __init__(self, *, cancel_on_wait: bool = False) -> None:
        super().__init__()
        self.waits: list[float] = []
        self._cancel_on_wait = cancel_on_wait

    def wait(self, seconds: float) -> bool:
        self.waits.append(seconds)
        if self._cancel_on_wait:
            self.cancel()
        return self.cancelled


class _FlakyOperation:
    def __init__(self, failures: int, error: Exception | None = None) -> None:
        self.failures = failures
        self.error = error or TransientNetworkError("connection refused")
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return "ok"


def test_retry_succeeds_after_two_failures_with_exponential_backoff() -> None:
    token = _RecordingToken()
    operation = _FlakyOperation(failures=2)

    result = call_with_retry(operation, policy=RetryPolicy(max_attempts=3), cancel_token=token)

    assert result == "ok"
    assert operation.calls == 3
    assert token.waits == [2.0, 4.0]


def test_retry_raises_last_error_after_max_attempts() -> None:
    token = _RecordingToken()
    operation = _FlakyOperation(failures=10)

    with pytest.raises(TransientNetworkError) as exc_info:
        call_with_retry(operation, policy=RetryPolicy(max_attempts=3), cancel_token=token)

    assert exc_info.value is operation.error
    assert operation.calls == 3
    assert token.waits == [2.0, 4.0]


def test_retry_does_not_distinguish_protocol_errors() -> None:
    token = _RecordingToken()
    operation = _FlakyOperation(failures=1, error=ProtocolError("missing choices"))

    assert call_with_retry(operation, cancel_token=token) == "ok"
    assert operation.calls == 2


def test_retry_fails_fast_on_validation_errors() -> None:
    token = _RecordingToken()
    operation = _FlakyOperation(failures=1, error=InvalidReferenceError("bad url"))

    with pytest.raises(InvalidReferenceError):
        call_with_retry(operation, cancel_token=token)

    assert operation.calls == 1
    assert token.waits == []


def test_cancel_during_backoff_aborts_without_further_attempts() -> None:
    token = _RecordingToken(cancel_on_wait=True)
    operation = _FlakyOperation(failures=10)

    with pytest.raises(CancellationError):
        call_with_retry(operation, cancel_token=token)

    assert operation.calls == 1
    assert token.waits == [2.0]


def test_cancelled_token_prevents_first_attempt() -> None:
    token = CancellationToken()
    token.cancel()
    operation = _FlakyOperation(failures=0)

    with pytest.raises(CancellationError):
        call_with_retry(operation, cancel_token=token)

    assert operation.calls == 0


def test_retry_policy_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)
