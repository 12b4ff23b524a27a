from __future__ import annotations

import os
from dataclasses import dataclass

from repo_triage.shared.errors import ConfigurationError


SUPPORTED_LLM_PROVIDERS = {"foundry", "openai", "ollama"}
DEFAULT_MODEL = "phi-4"
DEFAULT_LLM_TIMEOUT_SECONDS = 300.0


def _clean_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _get_optional_str(name: str) -> str | None:
    return _clean_optional(os.environ.get(name))


def _get_bool(name: str, default: bool) -> bool:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _get_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid integer for {name}: {raw}") from exc

    if min_value is not None and value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}")
    return value


def _get_float(name: str, default: float, *, min_value: float | None = None) -> float:
    raw = _clean_optional(os.environ.get(name))
    if raw is None:
        value = default
    else:
        try:
            value = float(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid float for {name}: {raw}") from exc

    if min_value is not None and value < min_value:
        raise ConfigurationError(f"{name} must be >= {min_value}")
    return value


@dataclass(frozen=True)
class AppSettings:
    log_level: str

    github_token: str | None
    github_api_url: str
    github_request_timeout_seconds: float

    llm_provider: str
    llm_model: str
    llm_timeout_seconds: float
    llm_max_tokens: int
    llm_temperature: float
    foundry_endpoint: str
    foundry_api_key: str
    openai_api_key: str | None
    ollama_base_url: str

    max_attempts: int
    backoff_base_seconds: float
    parallel_analysis: bool

    @classmethod
    def from_env(cls) -> "AppSettings":
        provider = (_get_optional_str("LLM_PROVIDER") or "foundry").lower()
        if provider not in SUPPORTED_LLM_PROVIDERS:
            raise ConfigurationError(f"Unsupported LLM_PROVIDER: {provider}")

        settings = cls(
            log_level=(_get_optional_str("LOG_LEVEL") or "WARNING").upper(),
            github_token=_get_optional_str("GITHUB_TOKEN"),
            github_api_url=_get_optional_str("GITHUB_API_URL") or "https://api.github.com",
            github_request_timeout_seconds=_get_float(
                "GITHUB_REQUEST_TIMEOUT_SECONDS", 10.0, min_value=0.001
            ),
            llm_provider=provider,
            llm_model=_get_optional_str("FOUNDRY_LOCAL_MODEL") or DEFAULT_MODEL,
            llm_timeout_seconds=_get_float(
                "LLM_TIMEOUT_SECONDS", DEFAULT_LLM_TIMEOUT_SECONDS, min_value=0.001
            ),
            llm_max_tokens=_get_int("LLM_MAX_TOKENS", 1024, min_value=1),
            llm_temperature=_get_float("LLM_TEMPERATURE", 0.3, min_value=0.0),
            foundry_endpoint=_get_optional_str("FOUNDRY_LOCAL_ENDPOINT")
            or "http://localhost:5273/v1",
            foundry_api_key=_get_optional_str("FOUNDRY_LOCAL_API_KEY") or "foundry-local",
            openai_api_key=_get_optional_str("OPENAI_API_KEY"),
            ollama_base_url=_get_optional_str("OLLAMA_BASE_URL") or "http://localhost:11434",
            max_attempts=_get_int("TRIAGE_MAX_ATTEMPTS", 3, min_value=1),
            backoff_base_seconds=_get_float("TRIAGE_BACKOFF_BASE_SECONDS", 2.0, min_value=0.0),
            parallel_analysis=_get_bool("TRIAGE_PARALLEL_ANALYSIS", False),
        )

        if settings.llm_provider == "openai" and not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is required when LLM_PROVIDER=openai")

        return settings
