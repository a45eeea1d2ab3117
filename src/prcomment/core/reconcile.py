"""The ``out`` step: act on the pull request materialized by a prior ``in``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from prcomment.core.errors import ConfigurationError, VersionError
from prcomment.core.schema import Metadata, OutParams, OutResponse, Version
from prcomment.sources.base import PullRequestAPI
from prcomment.utils.config import safe_expand_env
from prcomment.utils.paths import METADATA_FILE, VERSION_FILE, resolve_within

_log = logging.getLogger(__name__)

ALLOWED_STATES = ("open", "closed")


def validate_state(state: str) -> str:
    """Normalize a requested PR state; empty means "leave unchanged"."""
    if not state:
        return ""
    normalized = state.lower()
    if normalized not in ALLOWED_STATES:
        raise ConfigurationError(f"Invalid parameters: unknown state: {state}")
    return normalized


def read_materialized(path: Path) -> tuple[Version, Metadata]:
    """Load ``version.json`` and ``metadata.json`` written by the ``in`` step."""
    try:
        raw_version = (path / VERSION_FILE).read_text(encoding="utf-8")
        raw_metadata = (path / METADATA_FILE).read_text(encoding="utf-8")
    except OSError as e:
        raise VersionError(f"Failed to read version from path {path}: {e}") from e
    try:
        version = Version.model_validate_json(raw_version)
        metadata = Metadata.model_validate_json(raw_metadata)
    except ValidationError as e:
        raise VersionError(f"Malformed files in {path}: {e}") from e
    return version, metadata


def pr_number(metadata: Metadata) -> int:
    try:
        value = metadata.get("pr_id")
    except KeyError:
        raise ConfigurationError(
            "metadata has no pr_id field; run a get step on this resource first"
        ) from None
    try:
        return int(value)
    except ValueError:
        raise VersionError(f"metadata pr_id is not a number: {value!r}") from None


def comment_text(params: OutParams, input_dir: Path) -> str:
    """Inline comment, or the comment file relative to ``params.path``.

    The file may live in a sibling input (``../message/comment.md``) but not
    outside the inputs directory.
    """
    if params.comment:
        return params.comment
    if params.comment_file:
        name = str(Path(params.path) / params.comment_file)
        try:
            return resolve_within(input_dir, name).read_text(encoding="utf-8")
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
    return ""


def reconcile(
    params: OutParams,
    input_dir: Path,
    client: PullRequestAPI,
    logger: Optional[logging.Logger] = None,
) -> OutResponse:
    """Run the ``out`` step and echo back the materialized version."""
    log = logger or _log
    state = validate_state(params.state)

    path = input_dir / params.path if params.path else input_dir
    version, metadata = read_materialized(path)
    number = pr_number(metadata)

    if state:
        client.set_state(number, state)
        log.info("Set #%d to %s", number, state)

    if params.delete_last_comment:
        client.delete_last_comment(number)

    if params.labels:
        client.replace_labels(number, params.labels)
        log.info("Replaced labels on #%d: %s", number, ", ".join(params.labels))
    else:
        if params.add_labels:
            client.add_labels(number, params.add_labels)
            log.info("Added labels to #%d: %s", number, ", ".join(params.add_labels))
        if params.remove_labels:
            client.remove_labels(number, params.remove_labels)
            log.info("Removed labels from #%d: %s", number, ", ".join(params.remove_labels))

    body = comment_text(params, input_dir)
    if body:
        client.create_comment(number, safe_expand_env(body))
        log.info("Commented on #%d", number)

    return OutResponse(version=version, metadata=metadata)
