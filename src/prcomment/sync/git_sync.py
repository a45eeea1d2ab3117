"""Local checkout of a pull request: init, pull base, fetch head, integrate."""

from __future__ import annotations

import base64
import binascii
import logging
import tempfile
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

import git

from prcomment.utils.config import git_environment

logger = logging.getLogger(__name__)

GIT_USER_NAME = "concourse-ci"
GIT_USER_EMAIL = "concourse@local"


class GitSyncError(Exception):
    pass


class GitCheckout:
    """Git operations scoped to one working directory.

    Credentials are only ever placed in remote URLs handed to git; every
    error raised from here has them redacted.
    """

    def __init__(
        self,
        directory: Path,
        access_token: str = "",
        username: str = "",
        password: str = "",
        skip_ssl: bool = False,
        disable_git_lfs: bool = False,
    ) -> None:
        self.directory = directory.resolve()
        self.access_token = access_token
        self.username = username
        self.password = password
        self.env = git_environment(skip_ssl=skip_ssl, disable_git_lfs=disable_git_lfs)
        self._repo: Optional[git.Repo] = None

    @property
    def repo(self) -> git.Repo:
        if self._repo is None:
            raise GitSyncError(f"Repository not initialized: {self.directory}")
        return self._repo

    def endpoint(self, uri: str) -> str:
        """Bake the credentials into ``uri``'s user-info."""
        if self.access_token:
            user, secret = "x-oauth-basic", self.access_token
        elif self.username:
            user, secret = self.username, self.password
        else:
            return uri
        parts = urlsplit(uri)
        if not parts.scheme or not parts.hostname:
            raise GitSyncError(f"Cannot add credentials to URL: {uri}")
        host = parts.hostname
        if parts.port:
            host = f"{host}:{parts.port}"
        netloc = f"{quote(user, safe='')}:{quote(secret, safe='')}@{host}"
        return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))

    # -- Operations --

    def init(self, branch: str) -> None:
        """Create an empty repository on ``branch`` with a CI identity."""
        self.directory.mkdir(parents=True, exist_ok=True)
        try:
            self._repo = git.Repo.init(self.directory)
        except git.GitCommandError as e:
            raise GitSyncError(f"init failed: {self._redact(str(e))}") from None
        self._repo.git.update_environment(**self.env)

        self._run("checkout", "-b", branch, what=f"checkout to '{branch}'")
        self._run("config", "user.name", GIT_USER_NAME, what="configure git user")
        self._run("config", "user.email", GIT_USER_EMAIL, what="configure git email")
        self._run(
            "config",
            "url.https://x-oauth-basic@github.com/.insteadOf",
            "git@github.com:",
            what="configure github url",
        )
        self._run("config", "url.https://.insteadOf", "git://", what="configure github url")

    def pull(
        self,
        uri: str,
        branch: str,
        depth: int = 0,
        submodules: bool = False,
        fetch_tags: bool = False,
    ) -> None:
        self._run("remote", "add", "origin", self.endpoint(uri), what="setting 'origin' remote")

        args = ["origin", branch]
        if depth > 0:
            args += ["--depth", str(depth)]
        if fetch_tags:
            args.append("--tags")
        if submodules:
            args.append("--recurse-submodules")
        self._run("pull", *args, what="pull")

        if submodules:
            self._run("submodule", "update", "--init", "--recursive", what="submodule update")

    def fetch_pull(self, uri: str, number: int, depth: int = 0, submodules: bool = False) -> None:
        """Fetch the synthetic ``pull/<n>/head`` ref of a pull request."""
        args = [self.endpoint(uri), f"pull/{number}/head"]
        if depth > 0:
            args += ["--depth", str(depth)]
        if submodules:
            args.append("--recurse-submodules")
        self._run("fetch", *args, what="fetch")

    def rev_parse(self, ref: str) -> str:
        return self._run("rev-parse", "--verify", ref, what=f"rev-parse '{ref}'").strip()

    def rebase(self, base_ref: str, head_sha: str, submodules: bool = False) -> None:
        self._run("rebase", base_ref, head_sha, what="rebase")
        if submodules:
            self._run("submodule", "update", "--init", "--recursive", "--rebase", what="submodule update")

    def merge(self, sha: str, submodules: bool = False) -> None:
        self._run("merge", sha, "--no-stat", what="merge")
        if submodules:
            self._run("submodule", "update", "--init", "--recursive", "--merge", what="submodule update")

    def checkout(self, branch: str, sha: str, submodules: bool = False) -> None:
        # -B: the head branch may share its name with the base branch (fork PRs)
        self._run("checkout", "-B", branch, sha, what="checkout")
        if submodules:
            self._run("submodule", "update", "--init", "--recursive", "--checkout", what="submodule update")

    def git_crypt_unlock(self, base64_key: str) -> None:
        try:
            key = base64.b64decode(base64_key, validate=True)
        except (binascii.Error, ValueError):
            raise GitSyncError("failed to decode git-crypt key") from None

        with tempfile.TemporaryDirectory() as key_dir:
            key_path = Path(key_dir) / "git-crypt-key"
            key_path.touch(mode=0o600)
            key_path.write_bytes(key)
            try:
                self.repo.git.execute(["git-crypt", "unlock", str(key_path)])
            except git.GitCommandError as e:
                raise GitSyncError(f"git-crypt unlock failed: {e.stderr.strip()}") from None

    # -- Internal helpers --

    def _run(self, command: str, *args: str, what: str) -> str:
        """Run ``git <command> <args>``; failures never echo the arguments."""
        logger.debug("git %s", command)
        try:
            return getattr(self.repo.git, command.replace("-", "_"))(*args)
        except git.GitCommandError as e:
            stderr = self._redact((e.stderr or "").strip())
            raise GitSyncError(f"{what} failed (exit {e.status}): {stderr}") from None

    def _redact(self, text: str) -> str:
        for secret in (self.access_token, self.password):
            if secret:
                text = text.replace(secret, "***")
                text = text.replace(quote(secret, safe=""), "***")
        return text
