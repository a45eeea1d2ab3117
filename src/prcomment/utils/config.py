"""Request loading and environment configuration."""

from __future__ import annotations

import os
import re
from typing import Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from prcomment.core.errors import ConfigurationError

LOG_LEVEL_ENV = "PRCOMMENT_LOG_LEVEL"

# Build metadata Concourse exposes to resource containers. Only these are
# substituted into outgoing comments; other variables may hold secrets.
BUILD_METADATA_VARS = (
    "BUILD_ID",
    "BUILD_NAME",
    "BUILD_JOB_NAME",
    "BUILD_PIPELINE_NAME",
    "BUILD_TEAM_NAME",
    "ATC_EXTERNAL_URL",
)

_ENV_REF = re.compile(r"\$(?:\{(\w+)\}|(\w+))")

M = TypeVar("M", bound=BaseModel)


def load_request(raw: str | bytes, model: type[M]) -> M:
    """Parse a JSON request read from stdin into ``model``.

    Unknown fields are rejected by the models themselves.
    """
    if not raw or not raw.strip():
        raise ConfigurationError("Empty request on stdin")
    try:
        return model.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid request: {e}") from e


def log_level(environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    return (env.get(LOG_LEVEL_ENV) or "INFO").upper()


def safe_expand_env(text: str, environ: Mapping[str, str] | None = None) -> str:
    """Expand ``$VAR`` and ``${VAR}`` for allow-listed build variables only.

    Every other reference is left exactly as written.
    """
    env = os.environ if environ is None else environ

    def _sub(match: re.Match[str]) -> str:
        name = match.group(1) or match.group(2)
        if name in BUILD_METADATA_VARS:
            return env.get(name, "")
        return match.group(0)

    return _ENV_REF.sub(_sub, text)


def git_environment(skip_ssl: bool = False, disable_git_lfs: bool = False) -> dict[str, str]:
    """Extra environment for git subprocesses."""
    env: dict[str, str] = {}
    if skip_ssl:
        env["GIT_SSL_NO_VERIFY"] = "true"
    if disable_git_lfs:
        env["GIT_LFS_SKIP_SMUDGE"] = "true"
    return env
