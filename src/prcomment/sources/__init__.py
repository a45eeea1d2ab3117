"""Pull request API capability and its GitHub implementation.

The actions only depend on ``PullRequestAPI``; ``GitHubClient`` is the
production implementation over the GitHub REST API.
"""

from __future__ import annotations

from prcomment.sources.base import PullRequestAPI, parse_comment_html_url, parse_repository

__all__ = ["PullRequestAPI", "parse_comment_html_url", "parse_repository"]
