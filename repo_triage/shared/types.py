from typing import List, TypedDict


class ChatMessageDict(TypedDict):
    """Single chat message payload."""

    role: str
    content: str


class PullRequestPayload(TypedDict, total=False):
    """Subset of the GitHub pull request response used by this project."""

    number: int
    title: str
    body: str | None
    html_url: str


class PullRequestFilePayload(TypedDict, total=False):
    """Subset of a GitHub pull request file entry used by this project."""

    filename: str
    status: str
    additions: int
    deletions: int


PullRequestFilesResponse = List[PullRequestFilePayload]
