"""GitHub REST client implementing the pull request API capability.

One client talks to one ``owner/name`` repository. Requests are sequential
and never retried; list endpoints follow ``Link: rel="next"`` pages.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from prcomment.core.errors import ConfigurationError
from prcomment.core.schema import Comment, PullRequest, Review, Source
from prcomment.sources.base import parse_comment_html_url, parse_repository

DEFAULT_API_URL = "https://api.github.com"

_HEADERS = {
    "Accept": "application/vnd.github+json",
    "X-GitHub-Api-Version": "2022-11-28",
}

_PER_PAGE = 100
_TIMEOUT = 60.0

PR_STATES = ("open", "closed")

M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "api_base_url",
    "parse_comment_html_url",
    "parse_repository",
]


class GitHubAPIError(Exception):
    """Raised when a GitHub API call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def api_base_url(endpoint: str = "") -> str:
    """Resolve the REST base URL; Enterprise endpoints live under ``/api/v3``."""
    if not endpoint:
        return DEFAULT_API_URL
    url = endpoint.rstrip("/")
    if url == DEFAULT_API_URL or url.endswith("/api/v3"):
        return url
    return f"{url}/api/v3"


class GitHubClient:
    """Pull request operations against the GitHub REST API."""

    def __init__(
        self,
        repository: str,
        access_token: str = "",
        username: str = "",
        password: str = "",
        endpoint: str = "",
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.owner, self.repo = parse_repository(repository)

        headers = dict(_HEADERS)
        auth: Optional[httpx.BasicAuth] = None
        if access_token:
            headers["Authorization"] = f"token {access_token}"
        elif username:
            auth = httpx.BasicAuth(username, password)

        self._http = httpx.Client(
            base_url=api_base_url(endpoint),
            headers=headers,
            auth=auth,
            verify=verify,
            timeout=_TIMEOUT,
            transport=transport,
        )
        self._user_id: Optional[int] = None

    @classmethod
    def from_source(
        cls, source: Source, transport: Optional[httpx.BaseTransport] = None
    ) -> GitHubClient:
        return cls(
            source.repository,
            access_token=source.access_token,
            username=source.username,
            password=source.password,
            endpoint=source.github_endpoint,
            verify=not source.skip_ssl,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- Pull requests --

    def list_pull_requests(self) -> list[PullRequest]:
        """All pull requests in every state; callers filter locally."""
        url = f"{self._repo_path}/pulls"
        return [_parse(PullRequest, p, url) for p in self._get_all(url, {"state": "all"})]

    def get_pull_request(self, number: int) -> PullRequest:
        url = f"{self._repo_path}/pulls/{number}"
        return _parse(PullRequest, self._get(url), url)

    def set_state(self, number: int, state: str) -> None:
        if state not in PR_STATES:
            raise ConfigurationError(f"Invalid pull request state: {state}")
        self._request("PATCH", f"{self._repo_path}/issues/{number}", json={"state": state})

    # -- Comments --

    def list_comments(self, number: int) -> list[Comment]:
        """Issue comments of a pull request, oldest first."""
        url = f"{self._repo_path}/issues/{number}/comments"
        return [_parse(Comment, c, url) for c in self._get_all(url)]

    def get_comment(self, comment_id: int) -> Comment:
        url = f"{self._repo_path}/issues/comments/{comment_id}"
        return _parse(Comment, self._get(url), url)

    def create_comment(self, number: int, body: str) -> None:
        self._request("POST", f"{self._repo_path}/issues/{number}/comments", json={"body": body})

    def delete_last_comment(self, number: int) -> None:
        """Delete the most recent comment written by the authenticated user."""
        user_id = self.current_user_id()
        last: Optional[Comment] = None
        for comment in self.list_comments(number):
            if comment.user.id == user_id:
                last = comment
        if last is None:
            logger.info("No comment by the current user on #%d to delete", number)
            return
        self._request("DELETE", f"{self._repo_path}/issues/comments/{last.id}")
        logger.info("Deleted comment %d on #%d", last.id, number)

    def current_user_id(self) -> int:
        if self._user_id is None:
            user = self._get("/user")
            try:
                self._user_id = int(user["id"])
            except (KeyError, TypeError, ValueError):
                raise GitHubAPIError("GET /user did not return a user id") from None
        return self._user_id

    # -- Reviews --

    def list_reviews(self, number: int) -> list[Review]:
        """Reviews of a pull request, oldest first."""
        url = f"{self._repo_path}/pulls/{number}/reviews"
        return [_parse(Review, r, url) for r in self._get_all(url)]

    def get_review(self, number: int, review_id: int) -> Review:
        url = f"{self._repo_path}/pulls/{number}/reviews/{review_id}"
        return _parse(Review, self._get(url), url)

    # -- Labels --

    def add_labels(self, number: int, labels: list[str]) -> None:
        self._request("POST", f"{self._repo_path}/issues/{number}/labels", json={"labels": labels})

    def remove_labels(self, number: int, labels: list[str]) -> None:
        for label in labels:
            self._request(
                "DELETE",
                f"{self._repo_path}/issues/{number}/labels/{quote(label, safe='')}",
            )

    def replace_labels(self, number: int, labels: list[str]) -> None:
        self._request("PUT", f"{self._repo_path}/issues/{number}/labels", json={"labels": labels})

    # -- Internal helpers --

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        logger.debug("%s %s", method, url)
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"{method} {url} failed: {e}") from e

        if response.is_error:
            raise GitHubAPIError(
                f"{method} {url} returned {response.status_code}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response

    def _get(self, url: str) -> Any:
        return _decode(self._request("GET", url), url)

    def _get_all(self, url: str, params: Optional[dict[str, Any]] = None) -> list[dict]:
        """GET every page of a list endpoint."""
        items: list[dict] = []
        next_url: Optional[str] = url
        page_params: Optional[dict[str, Any]] = {"per_page": _PER_PAGE, **(params or {})}
        while next_url:
            response = self._request("GET", next_url, params=page_params)
            page = _decode(response, next_url)
            if not isinstance(page, list):
                raise GitHubAPIError(f"GET {next_url} did not return a list")
            items.extend(page)
            next_url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            page_params = None
        return items


# -- Module-level helpers --


def _decode(response: httpx.Response, url: str) -> Any:
    try:
        return response.json()
    except ValueError:
        raise GitHubAPIError(f"GET {url} did not return JSON", status_code=response.status_code) from None


def _parse(model: type[M], data: Any, url: str) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise GitHubAPIError(f"Unexpected {model.__name__} payload from GET {url}: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text[:200]
