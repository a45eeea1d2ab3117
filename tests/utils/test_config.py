"""Tests for request loading, env expansion and the file layout helpers."""

import pytest

from prcomment.core.errors import ConfigurationError
from prcomment.core.schema import CheckRequest
from prcomment.utils.config import git_environment, load_request, log_level, safe_expand_env
from prcomment.utils.paths import resolve_within, write_text


class TestSafeExpandEnv:
    ENV = {"BUILD_ID": "42", "BUILD_PIPELINE_NAME": "prs", "GITHUB_TOKEN": "secret"}

    def test_allowed_variables(self):
        text = "build $BUILD_ID of ${BUILD_PIPELINE_NAME}"
        assert safe_expand_env(text, self.ENV) == "build 42 of prs"

    def test_other_variables_left_verbatim(self):
        assert safe_expand_env("$GITHUB_TOKEN ${GITHUB_TOKEN}", self.ENV) == "$GITHUB_TOKEN ${GITHUB_TOKEN}"

    def test_allowed_but_unset_is_empty(self):
        assert safe_expand_env("[$BUILD_TEAM_NAME]", self.ENV) == "[]"

    def test_no_references(self):
        assert safe_expand_env("costs $ 5", self.ENV) == "costs $ 5"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("ATC_EXTERNAL_URL", "https://ci.example.com")
        assert safe_expand_env("see $ATC_EXTERNAL_URL") == "see https://ci.example.com"


class TestLoadRequest:
    def test_valid(self):
        request = load_request('{"source": {"repository": "owner/repo"}}', CheckRequest)
        assert request.source.repository == "owner/repo"

    @pytest.mark.parametrize("raw", ["", "   \n"])
    def test_empty(self, raw):
        with pytest.raises(ConfigurationError, match="Empty request"):
            load_request(raw, CheckRequest)

    def test_malformed_json(self):
        with pytest.raises(ConfigurationError, match="Invalid request"):
            load_request("{not json", CheckRequest)

    def test_missing_repository(self):
        with pytest.raises(ConfigurationError, match="Invalid request"):
            load_request('{"source": {}}', CheckRequest)


class TestEnvironment:
    def test_log_level_default(self):
        assert log_level({}) == "INFO"

    def test_log_level_override(self):
        assert log_level({"PRCOMMENT_LOG_LEVEL": "debug"}) == "DEBUG"

    def test_git_environment(self):
        assert git_environment() == {}
        assert git_environment(skip_ssl=True) == {"GIT_SSL_NO_VERIFY": "true"}


class TestPaths:
    def test_resolve_within(self, tmp_path):
        assert resolve_within(tmp_path, "a/b.txt") == (tmp_path / "a" / "b.txt").resolve()

    @pytest.mark.parametrize("name", ["", "  ", "..", "../x", "a/../../x", "/etc/passwd"])
    def test_escapes_rejected(self, tmp_path, name):
        with pytest.raises(ValueError):
            resolve_within(tmp_path, name)

    def test_write_text_keeps_line_endings(self, tmp_path):
        write_text(tmp_path, "nested/body.txt", "a\r\nb\n")
        assert (tmp_path / "nested" / "body.txt").read_bytes() == b"a\r\nb\n"
