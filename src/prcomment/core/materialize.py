"""The ``in`` step: turn one version back into files on disk.

Layout written under the output directory:

    version.json      the version, verbatim
    metadata.json     every metadata field, in order
    <field name>      one file per metadata field holding its raw value
    comment.txt       the comment or review body (name configurable)
    source/           the pull request checked out onto its base (optional)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from prcomment.core.errors import ConfigurationError, VersionError
from prcomment.core.metadata import (
    comment_metadata,
    enrich_from_comment_body,
    pull_request_metadata,
    review_metadata,
)
from prcomment.core.schema import (
    InParams,
    InResponse,
    IntegrationTool,
    Metadata,
    PullRequest,
    Source,
    Version,
)
from prcomment.sources.base import PullRequestAPI, parse_comment_html_url
from prcomment.sync.git_sync import GitCheckout
from prcomment.utils.paths import METADATA_FILE, VERSION_FILE, resolve_within, write_text

_log = logging.getLogger(__name__)

GitFactory = Callable[..., GitCheckout]


def _numeric(value: str, what: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise VersionError(f"Version has a non-numeric {what}: {value!r}") from None


def _belongs_to(html_url: str, number: int, what: str) -> None:
    if not html_url:
        return
    owner = parse_comment_html_url(html_url)
    if owner != number:
        raise VersionError(f"{what} belongs to #{owner}, not #{number}")


def fetch_event(
    client: PullRequestAPI, version: Version, pr: PullRequest
) -> tuple[Metadata, str]:
    """Fetch the comment or review a version points at.

    Returns its metadata (PR fields first) and its body.
    """
    meta = pull_request_metadata(pr)
    if version.comment_id:
        comment = client.get_comment(_numeric(version.comment_id, "comment_id"))
        _belongs_to(comment.html_url, pr.number, f"Comment {comment.id}")
        meta.extend(comment_metadata(comment))
        return meta, comment.body
    if version.review_id:
        review = client.get_review(pr.number, _numeric(version.review_id, "review_id"))
        _belongs_to(review.html_url, pr.number, f"Review {review.id}")
        meta.extend(review_metadata(review))
        return meta, review.body
    raise VersionError("cannot extrapolate version: it references neither a comment nor a review")


def _check_overlap(output_dir: Path, directory: Path, names: list[str]) -> None:
    """Refuse files that would land on, above or inside the checkout directory."""
    for name in names:
        try:
            target = resolve_within(output_dir, name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        if target == directory or target in directory.parents or directory in target.parents:
            raise ConfigurationError(
                f"{name!r} clashes with source_path {directory.relative_to(output_dir.resolve())}; "
                "choose another name or source_path"
            )


def write_layout(
    output_dir: Path, version: Version, metadata: Metadata, body: str, comment_file: str
) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        write_text(output_dir, comment_file, body)
        write_text(output_dir, VERSION_FILE, json.dumps(version.dump()))
        write_text(output_dir, METADATA_FILE, metadata.model_dump_json())
        for field in metadata:
            write_text(output_dir, field.name, field.value)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def download(
    source: Source,
    params: InParams,
    pr: PullRequest,
    directory: Path,
    git_factory: GitFactory = GitCheckout,
    logger: Optional[logging.Logger] = None,
) -> None:
    """Check out the pull request head integrated onto its base branch."""
    log = logger or _log
    try:
        tool = IntegrationTool(params.integration_tool)
    except ValueError:
        raise ConfigurationError(
            f"Unknown integration_tool: {params.integration_tool!r} (use rebase, merge or checkout)"
        ) from None

    uri = pr.clone_url
    if not uri:
        raise VersionError(f"Pull request #{pr.number} has no base repository to clone")

    repo = git_factory(
        directory,
        access_token=source.access_token,
        username=source.username,
        password=source.password,
        skip_ssl=source.skip_ssl,
        disable_git_lfs=source.disable_git_lfs,
    )
    log.info("Checking out #%d (%s onto %s) with %s", pr.number, pr.head.sha[:12], pr.base.ref, tool.value)
    repo.init(pr.base.ref)
    repo.pull(uri, pr.base.ref, params.git_depth, params.submodules, params.fetch_tags)
    repo.fetch_pull(uri, pr.number, params.git_depth, params.submodules)

    if tool is IntegrationTool.rebase:
        repo.rebase(pr.base.ref, pr.head.sha, params.submodules)
    elif tool is IntegrationTool.merge:
        repo.merge(pr.head.sha, params.submodules)
    else:
        repo.checkout(pr.head.ref, pr.head.sha, params.submodules)

    if source.git_crypt_key:
        repo.git_crypt_unlock(source.git_crypt_key)


def materialize(
    source: Source,
    version: Version,
    params: InParams,
    output_dir: Path,
    client: PullRequestAPI,
    git_factory: GitFactory = GitCheckout,
    logger: Optional[logging.Logger] = None,
) -> InResponse:
    """Run the ``in`` step. Fails fast; a half-written directory is left as is."""
    log = logger or _log

    pr = client.get_pull_request(_numeric(version.pr_id, "pr_id"))
    metadata, body = fetch_event(client, version, pr)

    if source.map_comment_meta:
        metadata.extend(enrich_from_comment_body(source.comments, body))

    directory: Optional[Path] = None
    if not params.skip_download:
        try:
            directory = resolve_within(output_dir, params.source_path)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        _check_overlap(output_dir, directory, [*metadata.names(), params.comment_file])

    write_layout(output_dir, version, metadata, body, params.comment_file)
    log.info("Wrote %d metadata field(s) for #%d to %s", len(metadata), pr.number, output_dir)

    if directory is not None:
        download(source, params, pr, directory, git_factory=git_factory, logger=log)

    return InResponse(version=version, metadata=metadata)
