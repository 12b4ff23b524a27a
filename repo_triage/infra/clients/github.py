from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence
from urllib.parse import urlparse

import requests

from repo_triage.domains.triage.comment import format_comment
from repo_triage.domains.triage.models import ChangeInput
from repo_triage.shared.cancellation import CancellationToken
from repo_triage.shared.errors import (
    InvalidReferenceError,
    RemoteFetchError,
    TransientNetworkError,
)
from repo_triage.shared.types import PullRequestFilesResponse, PullRequestPayload


logger = logging.getLogger(__name__)

DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
JSON_MEDIA_TYPE = "application/vnd.github+json"
FILES_PAGE_SIZE = 100
USER_AGENT = "repo-triage"


@dataclass(frozen=True)
class PullRequestReference:
    owner: str
    repo: str
    number: int

    def __str__(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"


def parse_pull_request_reference(url: str) -> PullRequestReference:
    """Extract owner/repo/number from a URL like https://github.com/OWNER/REPO/pull/123."""

    raw = (url or "").strip()
    if not raw:
        raise InvalidReferenceError("Pull request URL is empty")

    segments = [segment for segment in urlparse(raw).path.split("/") if segment]
    if len(segments) < 4 or segments[2] != "pull":
        raise InvalidReferenceError(f"Invalid PR URL format: {raw}")

    owner, repo, _, number = segments[:4]
    if not number.isdigit() or int(number) <= 0:
        raise InvalidReferenceError(f"Invalid PR number in URL: {raw}")

    return PullRequestReference(owner=owner, repo=repo, number=int(number))


@dataclass(frozen=True)
class GitHubClientConfig:
    api_base_url: str
    access_token: str | None
    timeout_seconds: float


class GitHubClient:
    """Source-control agent backed by the GitHub REST API."""

    def __init__(self, config: GitHubClientConfig) -> None:
        self._api_base_url = config.api_base_url.rstrip("/")
        self._access_token = config.access_token
        self._timeout_seconds = config.timeout_seconds

    def _headers(self, accept: str = JSON_MEDIA_TYPE) -> Dict[str, str]:
        headers = {"Accept": accept, "User-Agent": USER_AGENT}
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _send(
        self,
        *,
        method: str,
        url: str,
        accept: str,
        params: Dict[str, Any] | None,
        cancel_token: CancellationToken | None,
    ) -> requests.Response:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        try:
            response = requests.request(
                method,
                url,
                headers=self._headers(accept),
                params=params,
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
            return response
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            message = f"GitHub API request failed: {method} {url} status={status_code or 'unknown'}"
            if status_code is not None and status_code >= 500:
                raise TransientNetworkError(message) from exc
            raise RemoteFetchError(message) from exc
        except (requests.ConnectionError, requests.Timeout) as exc:
            raise TransientNetworkError(f"GitHub API unreachable: {method} {url}") from exc
        except requests.RequestException as exc:
            raise RemoteFetchError(f"GitHub API request failed: {method} {url}") from exc

    def _request_json(
        self,
        *,
        method: str,
        url: str,
        params: Dict[str, Any] | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> Any:
        response = self._send(
            method=method,
            url=url,
            accept=JSON_MEDIA_TYPE,
            params=params,
            cancel_token=cancel_token,
        )
        try:
            return response.json()
        except ValueError as exc:
            raise RemoteFetchError(f"GitHub API returned invalid JSON: {method} {url}") from exc

    def _request_text(
        self,
        *,
        method: str,
        url: str,
        accept: str,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        response = self._send(
            method=method,
            url=url,
            accept=accept,
            params=None,
            cancel_token=cancel_token,
        )
        return response.text

    def _pull_request_url(self, reference: PullRequestReference) -> str:
        return (
            f"{self._api_base_url}/repos/{reference.owner}/{reference.repo}"
            f"/pulls/{reference.number}"
        )

    def get_pull_request(
        self,
        reference: PullRequestReference,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> PullRequestPayload:
        data = self._request_json(
            method="GET",
            url=self._pull_request_url(reference),
            cancel_token=cancel_token,
        )
        if not isinstance(data, dict) or "title" not in data:
            raise RemoteFetchError("Invalid pull request response: missing 'title' field")
        return data  # type: ignore[return-value]

    def get_pull_request_diff(
        self,
        reference: PullRequestReference,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        return self._request_text(
            method="GET",
            url=self._pull_request_url(reference),
            accept=DIFF_MEDIA_TYPE,
            cancel_token=cancel_token,
        )

    def get_pull_request_files(
        self,
        reference: PullRequestReference,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> PullRequestFilesResponse:
        url = f"{self._pull_request_url(reference)}/files"
        files: PullRequestFilesResponse = []
        page = 1
        while True:
            data = self._request_json(
                method="GET",
                url=url,
                params={"per_page": FILES_PAGE_SIZE, "page": page},
                cancel_token=cancel_token,
            )
            if not isinstance(data, list):
                raise RemoteFetchError("Invalid pull request files response: expected list")

            files.extend(data)
            if len(data) < FILES_PAGE_SIZE:
                return files
            page += 1

    def fetch_pull_request(
        self,
        reference: PullRequestReference,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> ChangeInput:
        pull_request = self.get_pull_request(reference, cancel_token=cancel_token)
        diff_text = self.get_pull_request_diff(reference, cancel_token=cancel_token)
        files = self.get_pull_request_files(reference, cancel_token=cancel_token)

        filenames: List[str] = [entry.get("filename") or "" for entry in files]
        logger.info(
            "Fetched pull request: ref=%s, files=%s, diff_chars=%s",
            reference,
            len(filenames),
            len(diff_text),
        )
        return ChangeInput(
            title=pull_request.get("title") or "",
            body=pull_request.get("body") or "",
            diff_text=diff_text,
            files_changed=tuple(filenames),
        )

    def get_diff(self, change: ChangeInput, *, cancel_token: CancellationToken) -> str:
        return change.diff_text

    def draft_comment(
        self,
        summary: str,
        risks: Sequence[str],
        checklist: Sequence[str],
        title: str,
        *,
        cancel_token: CancellationToken,
    ) -> str:
        cancel_token.raise_if_cancelled()
        return format_comment(summary, risks, checklist, title)
