"""Shared fixtures: GitHub payload factories, an in-memory pull request API."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import git
import pytest

from prcomment.core.schema import Comment, PullRequest, Review


def _pr_payload(
    number: int = 1,
    state: str = "open",
    labels: list[str] | None = None,
    draft: bool = False,
    mergeable: bool | None = True,
    head_ref: str = "feature",
    head_sha: str = "a" * 40,
    base_ref: str = "main",
    base_sha: str = "b" * 40,
    clone_url: str = "https://github.com/owner/repo.git",
) -> dict[str, Any]:
    """A pull request as returned by GET /repos/{owner}/{repo}/pulls/{n}."""
    return {
        "number": number,
        "state": state,
        "labels": [{"name": name} for name in (labels or [])],
        "draft": draft,
        "mergeable": mergeable,
        "head": {"ref": head_ref, "sha": head_sha, "repo": {"clone_url": clone_url}},
        "base": {"ref": base_ref, "sha": base_sha, "repo": {"clone_url": clone_url}},
        "html_url": f"https://github.com/owner/repo/pull/{number}",
    }


def _comment_payload(
    id: int = 100,
    body: str = "ship it",
    pr: int = 1,
    association: str = "MEMBER",
    created_at: str = "2026-01-15T10:00:00Z",
    updated_at: str | None = None,
    login: str = "octocat",
    user_id: int = 1,
) -> dict[str, Any]:
    return {
        "id": id,
        "body": body,
        "user": {
            "login": login,
            "id": user_id,
            "avatar_url": f"https://avatars.example.com/u/{user_id}",
            "html_url": f"https://github.com/{login}",
        },
        "author_association": association,
        "created_at": created_at,
        "updated_at": updated_at or created_at,
        "html_url": f"https://github.com/owner/repo/pull/{pr}#issuecomment-{id}",
    }


def _review_payload(
    id: int = 500,
    state: str = "APPROVED",
    body: str = "",
    pr: int = 1,
    association: str = "MEMBER",
    submitted_at: str | None = "2026-01-15T12:00:00Z",
    login: str = "reviewer",
    user_id: int = 2,
) -> dict[str, Any]:
    return {
        "id": id,
        "body": body,
        "state": state,
        "user": {
            "login": login,
            "id": user_id,
            "avatar_url": f"https://avatars.example.com/u/{user_id}",
            "html_url": f"https://github.com/{login}",
        },
        "author_association": association,
        "submitted_at": submitted_at,
        "html_url": f"https://github.com/owner/repo/pull/{pr}#pullrequestreview-{id}",
    }


@pytest.fixture
def pr_payload():
    return _pr_payload


@pytest.fixture
def comment_payload():
    return _comment_payload


@pytest.fixture
def review_payload():
    return _review_payload


@pytest.fixture
def make_pr():
    return lambda **kw: PullRequest.model_validate(_pr_payload(**kw))


@pytest.fixture
def make_comment():
    return lambda **kw: Comment.model_validate(_comment_payload(**kw))


@pytest.fixture
def make_review():
    return lambda **kw: Review.model_validate(_review_payload(**kw))


class FakeAPI:
    """In-memory PullRequestAPI recording every mutation."""

    def __init__(self) -> None:
        self.pulls: dict[int, PullRequest] = {}
        self.comments: dict[int, list[Comment]] = {}
        self.reviews: dict[int, list[Review]] = {}
        self.calls: list[tuple] = []
        self.closed = False

    def add_pull(self, pr: PullRequest, comments=(), reviews=()) -> None:
        self.pulls[pr.number] = pr
        self.comments[pr.number] = list(comments)
        self.reviews[pr.number] = list(reviews)

    def list_pull_requests(self) -> list[PullRequest]:
        return list(self.pulls.values())

    def get_pull_request(self, number: int) -> PullRequest:
        self.calls.append(("get_pull_request", number))
        return self.pulls[number]

    def list_comments(self, number: int) -> list[Comment]:
        return list(self.comments.get(number, []))

    def get_comment(self, comment_id: int) -> Comment:
        for comments in self.comments.values():
            for c in comments:
                if c.id == comment_id:
                    return c
        raise KeyError(comment_id)

    def list_reviews(self, number: int) -> list[Review]:
        return list(self.reviews.get(number, []))

    def get_review(self, number: int, review_id: int) -> Review:
        for r in self.reviews.get(number, []):
            if r.id == review_id:
                return r
        raise KeyError(review_id)

    def set_state(self, number: int, state: str) -> None:
        self.calls.append(("set_state", number, state))

    def delete_last_comment(self, number: int) -> None:
        self.calls.append(("delete_last_comment", number))

    def add_labels(self, number: int, labels: list[str]) -> None:
        self.calls.append(("add_labels", number, labels))

    def remove_labels(self, number: int, labels: list[str]) -> None:
        self.calls.append(("remove_labels", number, labels))

    def replace_labels(self, number: int, labels: list[str]) -> None:
        self.calls.append(("replace_labels", number, labels))

    def create_comment(self, number: int, body: str) -> None:
        self.calls.append(("create_comment", number, body))

    def close(self) -> None:
        self.closed = True

    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] != "get_pull_request"]


@pytest.fixture
def api() -> FakeAPI:
    return FakeAPI()


@pytest.fixture
def upstream_repo(tmp_path: Path) -> Path:
    """A non-bare repo with ``main`` and a PR head published as pull/7/head.

    main:        initial -- base change
    pull/7/head: initial -- feature change
    """
    upstream = tmp_path / "upstream"
    repo = git.Repo.init(upstream)
    with repo.config_writer() as cw:
        cw.set_value("user", "name", "upstream")
        cw.set_value("user", "email", "upstream@example.com")
    repo.git.checkout("-b", "main")

    (upstream / "README.md").write_text("# Test\n")
    repo.index.add(["README.md"])
    repo.index.commit("initial")

    repo.git.checkout("-b", "feature")
    (upstream / "feature.txt").write_text("feature\n")
    repo.index.add(["feature.txt"])
    repo.index.commit("feature change")
    repo.git.update_ref("refs/pull/7/head", "feature")

    repo.git.checkout("main")
    (upstream / "base.txt").write_text("base\n")
    repo.index.add(["base.txt"])
    repo.index.commit("base change")
    return upstream
