from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ChangeInput:
    """A pull request or local diff to triage."""

    title: str
    body: str
    diff_text: str
    files_changed: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptPair:
    system_instruction: str
    user_prompt: str


@dataclass(frozen=True)
class TriageResult:
    """Final output of a successful triage run."""

    summary: str
    risks: Tuple[str, ...]
    checklist: Tuple[str, ...]
    suggested_comment: str
