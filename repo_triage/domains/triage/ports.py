"""Agent protocols the triage workflow depends on.

Each protocol has one production implementation under ``repo_triage.infra.clients``
and one deterministic mock in ``repo_triage.infra.clients.mock``.
"""

from __future__ import annotations

from typing import Iterator, Protocol, Sequence, runtime_checkable

from repo_triage.domains.triage.models import ChangeInput
from repo_triage.shared.cancellation import CancellationToken


@runtime_checkable
class SourceControlAgent(Protocol):
    """Fetches change context and drafts the review comment."""

    def get_diff(self, change: ChangeInput, *, cancel_token: CancellationToken) -> str: ...

    def draft_comment(
        self,
        summary: str,
        risks: Sequence[str],
        checklist: Sequence[str],
        title: str,
        *,
        cancel_token: CancellationToken,
    ) -> str: ...


@runtime_checkable
class InferenceAgent(Protocol):
    """Sends a system/user prompt pair to a chat completion endpoint."""

    @property
    def provider_name(self) -> str: ...

    @property
    def model_name(self) -> str: ...

    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> str: ...

    def complete_streaming(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        cancel_token: CancellationToken,
    ) -> Iterator[str]: ...
