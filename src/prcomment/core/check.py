"""Version resolution: walk pull requests and collect matching comments/reviews."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, TypeVar

from prcomment.core.filters import (
    matches_commenter_association,
    matches_comment_text,
    matches_labels,
    matches_review_state,
    matches_state,
)
from prcomment.core.schema import Comment, PullRequest, Review, Source, Version
from prcomment.sources.base import PullRequestAPI

_log = logging.getLogger(__name__)

T = TypeVar("T")


def select(
    items: Iterable[T],
    when: str,
    is_match: Callable[[T], bool],
    to_version: Callable[[T], Version],
) -> list[Version]:
    """Apply a selection mode to one chronological timeline.

    ``all`` keeps every match and ``first`` only the earliest. ``latest``
    keeps the last match only if it is also the last item examined: a
    non-matching item after it means the conversation has moved on.
    """
    selected: list[Version] = []
    last: Optional[Version] = None
    for item in items:
        if not is_match(item):
            last = None
            continue
        last = to_version(item)
        if when in ("all", "first"):
            selected.append(last)
        if when == "first":
            break
    if when == "latest" and last is not None:
        selected.append(last)
    return selected


def wants_pull_request(source: Source, pr: PullRequest) -> bool:
    """State, label and draft filters; mergeability is checked separately."""
    if not matches_state(source, pr.state):
        return False
    if not matches_labels(source, pr.label_names):
        return False
    if source.ignore_drafts and pr.draft:
        return False
    return True


def comment_matches(source: Source, comment: Comment) -> bool:
    return matches_commenter_association(
        source, comment.author_association
    ) and matches_comment_text(source, comment.body)


def review_matches(source: Source, review: Review) -> bool:
    # Pending reviews have no submission time and cannot be ordered
    if review.submitted_at is None:
        return False
    return matches_review_state(source, review.state) and matches_comment_text(
        source, review.body
    )


def _is_mergeable(client: PullRequestAPI, pr: PullRequest) -> bool:
    if pr.mergeable is None:
        # The list endpoint leaves mergeability out; the single-PR view has it
        pr = client.get_pull_request(pr.number)
    return bool(pr.mergeable)


def check(
    source: Source,
    client: PullRequestAPI,
    logger: Optional[logging.Logger] = None,
) -> list[Version]:
    """Return every version the source is interested in, oldest first.

    Any API failure propagates: no partial list is ever returned.
    """
    log = logger or _log
    versions: list[Version] = []

    for pr in client.list_pull_requests():
        if not wants_pull_request(source, pr):
            continue
        if source.only_mergeable and not _is_mergeable(client, pr):
            log.debug("Skipping #%d: not mergeable", pr.number)
            continue

        pr_id = str(pr.number)

        found = select(
            client.list_comments(pr.number),
            source.when,
            lambda c: comment_matches(source, c),
            lambda c: Version(
                created_at=str(int(c.created_at.timestamp())),
                pr_id=pr_id,
                comment_id=str(c.id),
            ),
        )
        found += select(
            client.list_reviews(pr.number),
            source.when,
            lambda r: review_matches(source, r),
            lambda r: Version(
                created_at=str(int(r.submitted_at.timestamp())),
                pr_id=pr_id,
                review_id=str(r.id),
            ),
        )
        if found:
            log.debug("#%d: %d matching version(s)", pr.number, len(found))
        versions.extend(found)

    # sorted() is stable: equal timestamps keep traversal order
    versions = sorted(versions, key=lambda v: v.sort_key)
    log.info("Found %d version(s) in %s", len(versions), source.repository)
    return versions
