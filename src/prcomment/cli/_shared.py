"""Shared CLI utilities: stdin, client construction, error reporting."""

from __future__ import annotations

import logging
import sys

import typer

from prcomment.core.errors import ResourceError
from prcomment.core.schema import Source
from prcomment.sources.github import GitHubAPIError, GitHubClient
from prcomment.sync.git_sync import GitSyncError
from prcomment.utils.config import log_level
from prcomment.utils.output import error, setup_logging

# Everything an action may raise that is reported as a plain message
RESOURCE_ERRORS = (ResourceError, GitHubAPIError, GitSyncError, OSError)


def read_stdin() -> str:
    return sys.stdin.read()


def get_client(source: Source) -> GitHubClient:
    return GitHubClient.from_source(source)


def start_logging() -> logging.Logger:
    return setup_logging(log_level())


def fail(exc: BaseException) -> typer.Exit:
    """Report ``exc`` on stderr and return the exit to raise."""
    error(str(exc))
    return typer.Exit(1)
