import pytest

from repo_triage.domains.triage.prompts import (
    CHECKLIST_SYSTEM_INSTRUCTION,
    RISKS_SYSTEM_INSTRUCTION,
    SUMMARIZE_SYSTEM_INSTRUCTION,
)
from repo_triage.infra.clients.github import PullRequestReference
from repo_triage.infra.clients.mock import (
    MOCK_CHECKLIST,
    MOCK_FALLBACK,
    MOCK_RISKS,
    MOCK_SUMMARY,
    SAMPLE_PR_TITLE,
    MockInferenceAgent,
    MockSourceControlAgent,
    mock_response,
)
from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import CancellationError


@pytest.mark.parametrize(
    "system_prompt, expected",
    [
        (SUMMARIZE_SYSTEM_INSTRUCTION, MOCK_SUMMARY),
        (RISKS_SYSTEM_INSTRUCTION, MOCK_RISKS),
        (CHECKLIST_SYSTEM_INSTRUCTION, MOCK_CHECKLIST),
        ("Please SUMMARIZE", MOCK_SUMMARY),
        ("RiSk review", MOCK_RISKS),
        ("something else", MOCK_FALLBACK),
    ],
)
def test_mock_response_matches_system_prompt(system_prompt: str, expected: str) -> None:
    assert mock_response(system_prompt) == expected


def test_mock_streaming_joins_to_complete_output() -> None:
    agent = MockInferenceAgent()
    token = CancellationToken()

    chunks = list(agent.complete_streaming(RISKS_SYSTEM_INSTRUCTION, "diff", cancel_token=token))

    assert len(chunks) == 3
    assert "".join(chunks) == agent.complete(RISKS_SYSTEM_INSTRUCTION, "diff", cancel_token=token)


def test_mock_streaming_stops_after_cancel() -> None:
    token = CancellationToken()
    stream = MockInferenceAgent().complete_streaming(
        CHECKLIST_SYSTEM_INSTRUCTION, "diff", cancel_token=token
    )

    first = next(stream)
    token.cancel()

    assert first.startswith("- Verify password hashing")
    with pytest.raises(CancellationError):
        next(stream)
    with pytest.raises(StopIteration):
        next(stream)


def test_mock_source_control_returns_sample_pull_request() -> None:
    change = MockSourceControlAgent().fetch_pull_request(
        PullRequestReference(owner="octo", repo="demo", number=1)
    )

    assert change.title == SAMPLE_PR_TITLE
    assert change.files_changed == (
        "src/auth/login.cs",
        "src/auth/signup.cs",
        "tests/auth/loginTests.cs",
    )


def test_mock_agents_satisfy_agent_protocols() -> None:
    from repo_triage.domains.triage.ports import InferenceAgent, SourceControlAgent

    assert isinstance(MockSourceControlAgent(), SourceControlAgent)
    assert isinstance(MockInferenceAgent(), InferenceAgent)
