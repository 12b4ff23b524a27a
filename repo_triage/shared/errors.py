class ValidationError(ValueError):
    """Raised when user input is malformed or incomplete."""


class ConfigurationError(ValidationError):
    """Raised when required application settings are missing or invalid."""


class InvalidReferenceError(ValidationError):
    """Raised when a pull request reference cannot be parsed."""


class TransientNetworkError(RuntimeError):
    """Raised when a remote endpoint is unreachable, times out or returns 5xx."""


class RemoteFetchError(RuntimeError):
    """Raised when GitHub API requests fail or return invalid payloads."""


class LLMInvocationError(RuntimeError):
    """Raised when LLM invocation fails."""


class ProtocolError(LLMInvocationError):
    """Raised when the inference endpoint returns an unexpected response shape."""


class CancellationError(Exception):
    """Raised when a triage run is cancelled."""
