"""Typer app: the check, in and out commands of the resource.

Each command reads its JSON request from stdin and writes its JSON response
to stdout. Messages and logs go to stderr.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from prcomment import __version__
from prcomment.cli._shared import RESOURCE_ERRORS, fail, get_client, read_stdin, start_logging
from prcomment.core.check import check as find_versions
from prcomment.core.materialize import materialize
from prcomment.core.reconcile import reconcile
from prcomment.core.schema import CheckRequest, InRequest, OutRequest
from prcomment.utils.config import load_request
from prcomment.utils.output import emit

app = typer.Typer(
    name="prcomment",
    help="CI resource acting on GitHub pull request comments and reviews.",
    no_args_is_help=True,
    add_completion=False,
)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", "-v", callback=_print_version, is_eager=True, help="Display version number"
    ),
) -> None:
    """CI resource acting on GitHub pull request comments and reviews."""


@app.command()
def check() -> None:
    """Emit versions for matching comments and reviews (stdin: source, version)."""
    log = start_logging()
    try:
        request = load_request(read_stdin(), CheckRequest)
        client = get_client(request.source)
        try:
            versions = find_versions(request.source, client, logger=log)
        finally:
            client.close()
    except RESOURCE_ERRORS as e:
        raise fail(e)

    emit([v.dump() for v in versions])


@app.command("in")
def in_(
    path: Path = typer.Argument(..., help="Directory to materialize the version into"),
) -> None:
    """Fetch one version's comment or review and write it under PATH."""
    log = start_logging()
    try:
        request = load_request(read_stdin(), InRequest)
        client = get_client(request.source)
        try:
            response = materialize(
                request.source, request.version, request.params, path, client, logger=log
            )
        finally:
            client.close()
    except RESOURCE_ERRORS as e:
        raise fail(e)

    emit(response)


@app.command("out")
def out(
    path: Path = typer.Argument(..., help="Directory holding the inputs of the put step"),
) -> None:
    """Comment on, label, or change the state of the materialized pull request."""
    log = start_logging()
    try:
        request = load_request(read_stdin(), OutRequest)
        client = get_client(request.source)
        try:
            response = reconcile(request.params, path, client, logger=log)
        finally:
            client.close()
    except RESOURCE_ERRORS as e:
        raise fail(e)

    emit(response)
