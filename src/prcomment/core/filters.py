"""Predicates deciding whether a source is interested in a PR, comment or review.

Every dimension has the same shape: an allow-list with a default for the
empty case, and a deny-list that always wins. ``allow_deny`` implements that
once; the public predicates only choose the matcher and the default.
"""

from __future__ import annotations

import re
from typing import Callable, Iterable

from prcomment.core.errors import ConfigurationError
from prcomment.core.schema import Source

Matcher = Callable[[str, str], bool]


def _equals(wanted: str, candidate: str) -> bool:
    return wanted == candidate


def _equals_folded(wanted: str, candidate: str) -> bool:
    return wanted.lower() == candidate.lower()


def _regex(pattern: str, candidate: str) -> bool:
    return re.search(pattern, candidate) is not None


def compile_patterns(patterns: Iterable[str]) -> list[re.Pattern[str]]:
    """Compile every pattern, reporting the first bad one as a configuration error."""
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigurationError(f"Invalid comment pattern {pattern!r}: {e}") from e
    return compiled


def allow_deny(
    candidates: Iterable[str],
    allow: list[str],
    deny: list[str],
    match: Matcher,
    default: bool,
) -> bool:
    """Accept if any candidate matches ``allow`` (or ``allow`` is empty and
    ``default`` holds), unless any candidate matches ``deny``."""
    candidates = list(candidates)
    if allow:
        accepted = any(match(a, c) for a in allow for c in candidates)
    else:
        accepted = default
    if any(match(d, c) for d in deny for c in candidates):
        return False
    return accepted


def matches_state(source: Source, state: str) -> bool:
    allow = source.states or ["open"]
    return allow_deny([state], allow, source.ignore_states, _equals, default=False)


def matches_labels(source: Source, labels: Iterable[str]) -> bool:
    return allow_deny(labels, source.labels, source.ignore_labels, _equals, default=True)


def matches_commenter_association(source: Source, association: str) -> bool:
    allow = source.commenter_association
    if allow == ["all"]:
        allow = []
    return allow_deny([association], allow, [], _equals_folded, default=True)


def matches_review_state(source: Source, state: str) -> bool:
    # Reviews are opt-in: no review_states means no review is interesting.
    return allow_deny([state], source.review_states, [], _equals_folded, default=False)


def matches_comment_text(source: Source, body: str) -> bool:
    compile_patterns([*source.comments, *source.ignore_comments])
    return allow_deny([body], source.comments, source.ignore_comments, _regex, default=True)
