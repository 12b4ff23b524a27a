from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from time import perf_counter
from typing import Any, Iterator, List

import httpx
import openai
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import (
    CancellationError,
    ConfigurationError,
    LLMInvocationError,
    ProtocolError,
    TransientNetworkError,
)
from repo_triage.shared.types import ChatMessageDict


logger = logging.getLogger(__name__)

_CHAT_COMPLETIONS_SUFFIX = "/chat/completions"

_TRANSIENT_ERRORS = (
    openai.APIConnectionError,
    openai.InternalServerError,
    openai.RateLimitError,
    httpx.TransportError,
)


class LLMProvider(str, Enum):
    FOUNDRY = "foundry"
    OPENAI = "openai"
    OLLAMA = "ollama"


def normalize_openai_base_url(endpoint: str) -> str:
    """Accept either a base URL or a full ``.../chat/completions`` endpoint."""
    base_url = endpoint.strip().rstrip("/")
    if base_url.endswith(_CHAT_COMPLETIONS_SUFFIX):
        base_url = base_url[: -len(_CHAT_COMPLETIONS_SUFFIX)]
    return base_url


@dataclass(frozen=True)
class LLMClientConfig:
    provider: str
    model: str
    timeout_seconds: float
    max_tokens: int
    temperature: float
    foundry_endpoint: str
    foundry_api_key: str
    openai_api_key: str | None
    ollama_base_url: str


class LLMClient:
    """Inference agent that talks to a chat completion endpoint through LangChain."""

    def __init__(self, config: LLMClientConfig) -> None:
        try:
            provider = LLMProvider(config.provider)
        except ValueError as exc:
            raise ConfigurationError(f"Unsupported LLM provider: {config.provider}") from exc

        self._provider = provider
        self._model = config.model
        self._timeout_seconds = config.timeout_seconds
        self._max_tokens = config.max_tokens
        self._temperature = config.temperature
        self._foundry_base_url = normalize_openai_base_url(config.foundry_endpoint)
        self._foundry_api_key = config.foundry_api_key
        self._openai_api_key = config.openai_api_key
        self._ollama_base_url = config.ollama_base_url

    @property
    def provider_name(self) -> str:
        return self._provider.value

    @property
    def model_name(self) -> str:
        return self._model

    @property
    def endpoint(self) -> str:
        if self._provider is LLMProvider.FOUNDRY:
            return self._foundry_base_url
        if self._provider is LLMProvider.OLLAMA:
            return self._ollama_base_url
        return "https://api.openai.com/v1"

    @staticmethod
    def _to_langchain_messages(messages: List[ChatMessageDict]) -> List[BaseMessage]:
        lc_messages: List[BaseMessage] = []
        for message in messages:
            role = message.get("role")
            content = message.get("content", "")

            if role == "system":
                lc_messages.append(SystemMessage(content=content))
            elif role == "user":
                lc_messages.append(HumanMessage(content=content))
            else:
                logger.warning("Unknown message role '%s', treating as user", role)
                lc_messages.append(HumanMessage(content=content))

        return lc_messages

    @staticmethod
    def _build_messages(system_prompt: str, user_prompt: str) -> List[ChatMessageDict]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]

    def _create_foundry_llm(self) -> ChatOpenAI:
        # retries are applied by the triage workflow
        return ChatOpenAI(
            model=self._model,
            api_key=self._foundry_api_key,
            base_url=self._foundry_base_url,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            timeout=self._timeout_seconds,
            max_retries=0,
        )

    def _create_openai_llm(self) -> ChatOpenAI:
        if not self._openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not set (required when LLM_PROVIDER=openai)")

        return ChatOpenAI(
            model=self._model,
            api_key=self._openai_api_key,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
            timeout=self._timeout_seconds,
            max_retries=0,
        )

    def _create_ollama_llm(self) -> ChatOllama:
        return ChatOllama(
            model=self._model,
            temperature=self._temperature,
            num_predict=self._max_tokens,
            base_url=self._ollama_base_url,
            client_kwargs={"timeout": self._timeout_seconds},
        )

    def _create_llm(self) -> BaseChatModel:
        logger.info(
            "Creating LLM: provider=%s, model=%s",
            self._provider.value,
            self._model,
        )

        if self._provider is LLMProvider.FOUNDRY:
            return self._create_foundry_llm()
        if self._provider is LLMProvider.OPENAI:
            return self._create_openai_llm()
        if self._provider is LLMProvider.OLLAMA:
            return self._create_ollama_llm()

        raise ConfigurationError(f"Unsupported LLM provider: {self._provider.value}")

    def _translate_error(self, exc: Exception) -> Exception:
        status_code = getattr(exc, "status_code", None)
        if isinstance(exc, _TRANSIENT_ERRORS) or (
            isinstance(status_code, int) and status_code >= 500
        ):
            return TransientNetworkError(
                f"LLM endpoint unavailable: provider={self._provider.value}, endpoint={self.endpoint}"
            )
        return LLMInvocationError(f"Failed to invoke LLM: {type(exc).__name__}: {exc}")

    @staticmethod
    def _content_text(content: Any) -> str:
        if not isinstance(content, str):
            raise ProtocolError(
                f"Unexpected LLM response content type: {type(content).__name__}"
            )
        return content

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> str:
        cancel_token.raise_if_cancelled()
        lc_messages = self._to_langchain_messages(self._build_messages(system_prompt, user_prompt))
        llm = self._create_llm()

        try:
            started_at = perf_counter()
            response = llm.invoke(lc_messages)
            elapsed = perf_counter() - started_at
        except Exception as exc:  # noqa: BLE001 - external provider wrapper
            raise self._translate_error(exc) from exc

        content = self._content_text(getattr(response, "content", None))
        logger.info(
            "LLM completion finished: provider=%s, model=%s, elapsed_seconds=%.2f, chars=%s",
            self._provider.value,
            self._model,
            elapsed,
            len(content),
        )
        cancel_token.raise_if_cancelled()
        return content

    def complete_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> Iterator[str]:
        cancel_token.raise_if_cancelled()
        lc_messages = self._to_langchain_messages(self._build_messages(system_prompt, user_prompt))
        llm = self._create_llm()

        stream = llm.stream(lc_messages)
        try:
            while True:
                try:
                    chunk = next(stream)
                except StopIteration:
                    return
                except Exception as exc:  # noqa: BLE001 - external provider wrapper
                    raise self._translate_error(exc) from exc

                if cancel_token.cancelled:
                    raise CancellationError("Triage run was cancelled during streaming")

                text = self._content_text(getattr(chunk, "content", None))
                if text:
                    yield text
        finally:
            stream.close()
