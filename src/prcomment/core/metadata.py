"""Turn fetched comments, reviews and pull requests into ordered metadata.

Each record type has its own hand-written extractor: the field names and
their order are part of the output contract (they become file names in the
``in`` directory), so adding a field means editing one of these functions.

Timestamps are rendered as RFC 3339 in UTC, e.g. ``2020-01-02T15:04:05Z``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Optional

from prcomment.core.filters import compile_patterns
from prcomment.core.schema import Comment, Metadata, PullRequest, Review, User


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def pull_request_metadata(pr: PullRequest) -> Metadata:
    meta = Metadata()
    meta.add("pr_id", str(pr.number))
    meta.add("pr_head_ref", pr.head.ref)
    meta.add("pr_head_sha", pr.head.sha)
    meta.add("pr_base_ref", pr.base.ref)
    meta.add("pr_base_sha", pr.base.sha)
    return meta


def _user_metadata(meta: Metadata, user: User) -> None:
    meta.add("user_login", user.login)
    meta.add("user_id", str(user.id))
    meta.add("user_avatar_url", user.avatar_url)
    meta.add("user_html_url", user.html_url)


def comment_metadata(comment: Comment) -> Metadata:
    meta = Metadata()
    meta.add("comment_id", str(comment.id))
    meta.add("body", comment.body)
    meta.add("created_at", format_timestamp(comment.created_at))
    meta.add("updated_at", format_timestamp(comment.updated_at))
    meta.add("author_association", comment.author_association)
    meta.add("html_url", comment.html_url)
    _user_metadata(meta, comment.user)
    return meta


def review_metadata(review: Review) -> Metadata:
    meta = Metadata()
    meta.add("review_id", str(review.id))
    meta.add("body", review.body)
    meta.add("state", review.state)
    meta.add("submitted_at", format_timestamp(review.submitted_at))
    meta.add("author_association", review.author_association)
    meta.add("html_url", review.html_url)
    _user_metadata(meta, review.user)
    return meta


def enrich_from_comment_body(patterns: Iterable[str], body: str) -> Metadata:
    """Named capture groups of each matching pattern, in group order.

    A group that did not take part in the match is recorded as ``""``.
    Names are not checked against existing fields: a group called ``pr_id``
    adds a second ``pr_id`` entry.
    """
    meta = Metadata()
    for pattern in compile_patterns(patterns):
        match = pattern.search(body)
        if match is None:
            continue
        for name, _ in sorted(pattern.groupindex.items(), key=lambda item: item[1]):
            meta.add(name, match.group(name) or "")
    return meta
