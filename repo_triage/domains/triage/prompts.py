from typing import Sequence

from repo_triage.domains.triage.models import ChangeInput, PromptPair


SUMMARIZE_SYSTEM_INSTRUCTION = (
    "You are a code-review assistant. Summarize the following code change concisely "
    "in 3-5 bullet points. Be specific about what changed."
)

RISKS_SYSTEM_INSTRUCTION = (
    "You are a senior code reviewer. Identify potential risks in this change: tests, "
    "breaking changes, performance, security, or documentation gaps. "
    "Output max 5 bullet points."
)

CHECKLIST_SYSTEM_INSTRUCTION = (
    "You are a code-review assistant. Generate a concise review checklist (max 8 items) "
    "for a reviewer to verify. Output as bullet points."
)


def _format_files(files_changed: Sequence[str]) -> str:
    return "\n".join(files_changed)


def build_diff_context(change: ChangeInput, diff_text: str) -> str:
    """Title, body, changed files and raw diff, shared by every inference call of a run."""

    pr_context = (
        f"Title: {change.title}\n\n{change.body}\n\n"
        f"Files changed:\n{_format_files(change.files_changed)}"
    )
    return f"{pr_context}\n\n--- Diff ---\n{diff_text}"


def build_summarize_prompt(diff_context: str) -> PromptPair:
    return PromptPair(
        system_instruction=SUMMARIZE_SYSTEM_INSTRUCTION,
        user_prompt=f"Summarize this change:\n\n{diff_context}",
    )


def build_risks_prompt(diff_context: str) -> PromptPair:
    return PromptPair(
        system_instruction=RISKS_SYSTEM_INSTRUCTION,
        user_prompt=f"Identify risks in this change:\n\n{diff_context}",
    )


def build_checklist_prompt(diff_context: str) -> PromptPair:
    return PromptPair(
        system_instruction=CHECKLIST_SYSTEM_INSTRUCTION,
        user_prompt=f"Generate a review checklist for this change:\n\n{diff_context}",
    )
