import pytest

from repo_triage.app.config import AppSettings
from repo_triage.shared.errors import ConfigurationError


_ENV_KEYS = [
    "LOG_LEVEL",
    "GITHUB_TOKEN",
    "GITHUB_API_URL",
    "GITHUB_REQUEST_TIMEOUT_SECONDS",
    "LLM_PROVIDER",
    "FOUNDRY_LOCAL_ENDPOINT",
    "FOUNDRY_LOCAL_MODEL",
    "FOUNDRY_LOCAL_API_KEY",
    "OPENAI_API_KEY",
    "OLLAMA_BASE_URL",
    "LLM_TIMEOUT_SECONDS",
    "LLM_MAX_TOKENS",
    "LLM_TEMPERATURE",
    "TRIAGE_MAX_ATTEMPTS",
    "TRIAGE_BACKOFF_BASE_SECONDS",
    "TRIAGE_PARALLEL_ANALYSIS",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_app_settings_defaults() -> None:
    settings = AppSettings.from_env()

    assert settings.log_level == "WARNING"
    assert settings.github_token is None
    assert settings.github_api_url == "https://api.github.com"
    assert settings.llm_provider == "foundry"
    assert settings.llm_model == "phi-4"
    assert settings.llm_timeout_seconds == 300.0
    assert settings.llm_max_tokens == 1024
    assert settings.llm_temperature == 0.3
    assert settings.foundry_endpoint == "http://localhost:5273/v1"
    assert settings.max_attempts == 3
    assert settings.backoff_base_seconds == 2.0
    assert settings.parallel_analysis is False


def test_app_settings_reads_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "  gh-token  ")
    monkeypatch.setenv("FOUNDRY_LOCAL_MODEL", "phi-3.5-mini")
    monkeypatch.setenv("LLM_TIMEOUT_SECONDS", "60")
    monkeypatch.setenv("TRIAGE_PARALLEL_ANALYSIS", "yes")
    monkeypatch.setenv("LLM_PROVIDER", "OLLAMA")

    settings = AppSettings.from_env()

    assert settings.github_token == "gh-token"
    assert settings.llm_model == "phi-3.5-mini"
    assert settings.llm_timeout_seconds == 60.0
    assert settings.parallel_analysis is True
    assert settings.llm_provider == "ollama"


def test_app_settings_invalid_provider_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "gemini")

    with pytest.raises(ConfigurationError):
        AppSettings.from_env()


def test_app_settings_openai_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "openai")

    with pytest.raises(ConfigurationError):
        AppSettings.from_env()


@pytest.mark.parametrize(
    "name, value",
    [
        ("TRIAGE_MAX_ATTEMPTS", "0"),
        ("TRIAGE_MAX_ATTEMPTS", "three"),
        ("LLM_TIMEOUT_SECONDS", "-1"),
    ],
)
def test_app_settings_rejects_invalid_numbers(
    monkeypatch: pytest.MonkeyPatch, name: str, value: str
) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        AppSettings.from_env()
