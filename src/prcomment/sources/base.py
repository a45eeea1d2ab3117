"""The pull request API capability consumed by the check, in and out actions."""

from __future__ import annotations

from typing import Protocol
from urllib.parse import urlparse

from prcomment.core.errors import ConfigurationError, VersionError
from prcomment.core.schema import Comment, PullRequest, Review


class PullRequestAPI(Protocol):
    """Operations on the pull requests of one ``owner/name`` repository."""

    def list_pull_requests(self) -> list[PullRequest]: ...

    def get_pull_request(self, number: int) -> PullRequest: ...

    def list_comments(self, number: int) -> list[Comment]: ...

    def get_comment(self, comment_id: int) -> Comment: ...

    def list_reviews(self, number: int) -> list[Review]: ...

    def get_review(self, number: int, review_id: int) -> Review: ...

    def set_state(self, number: int, state: str) -> None: ...

    def delete_last_comment(self, number: int) -> None: ...

    def add_labels(self, number: int, labels: list[str]) -> None: ...

    def remove_labels(self, number: int, labels: list[str]) -> None: ...

    def replace_labels(self, number: int, labels: list[str]) -> None: ...

    def create_comment(self, number: int, body: str) -> None: ...


def parse_repository(repo: str) -> tuple[str, str]:
    """Split ``owner/name``."""
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ConfigurationError(f"Malformed repository (expected owner/name): {repo!r}")
    return parts[0], parts[1]


def parse_comment_html_url(url: str) -> int:
    """Return the PR/issue number from a comment or review HTML URL.

    Handles both forms GitHub produces:
      https://github.com/octocat/Hello-World/issues/1347#issuecomment-1
      https://github.com/octocat/Hello-World/pull/1347#pullrequestreview-80
    """
    path = urlparse(url).path.rstrip("/")
    last = path.rsplit("/", 1)[-1]
    try:
        return int(last)
    except ValueError:
        raise VersionError(f"Cannot find a pull request number in {url!r}")
