"""Tests for input validators."""

import pytest

from gitea_mcp_server.validators import (
    normalize_path,
    validate_commit_message,
    validate_content,
    validate_repository_name,
)


class TestValidateRepositoryName:
    @pytest.mark.parametrize("name", ["notes", "my-repo", "my_repo.v2", "A1"])
    def test_valid(self, name):
        assert validate_repository_name(name) == (True, "")

    @pytest.mark.parametrize(
        "name,reason",
        [
            ("", "cannot be empty"),
            ("   ", "cannot be empty"),
            ("x" * 101, "cannot exceed 100 characters"),
            ("..", "reserved"),
            ("mirror.git", "reserved"),
            ("has space", "may only contain"),
            ("slash/name", "may only contain"),
        ],
    )
    def test_invalid(self, name, reason):
        is_valid, error = validate_repository_name(name)
        assert not is_valid
        assert reason in error


class TestValidateCommitMessage:
    def test_valid(self):
        assert validate_commit_message("Update docs") == (True, "")

    @pytest.mark.parametrize("message", ["", "  \n"])
    def test_empty(self, message):
        assert validate_commit_message(message) == (
            False,
            "Commit message cannot be empty",
        )


class TestNormalizePath:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("a.txt", "a.txt"),
            ("docs/guide.md", "docs/guide.md"),
            ("docs\\win\\file.txt", "docs/win/file.txt"),
            ("./docs//a.txt", "docs/a.txt"),
            ("docs/./a.txt/", "docs/a.txt"),
            ("..hidden/file", "..hidden/file"),
            ("c:notes.txt", "c:notes.txt"),
        ],
    )
    def test_normalizes(self, raw, expected):
        assert normalize_path(raw) == (expected, "")

    @pytest.mark.parametrize(
        "raw,reason",
        [
            ("", "cannot be empty"),
            ("/etc/passwd", "must be relative"),
            ("C:\\temp\\a.txt", "must be relative"),
            ("../escape.txt", "cannot contain '..'"),
            ("docs/../../x", "cannot contain '..'"),
            ("docs\\..\\x", "cannot contain '..'"),
            ("./.", "names no file"),
        ],
    )
    def test_rejects(self, raw, reason):
        normalized, error = normalize_path(raw)
        assert normalized == ""
        assert reason in error


class TestValidateContent:
    def test_empty_content_allowed(self):
        assert validate_content("") == (True, "")

    def test_limit_counts_utf8_bytes(self):
        # 3 characters, 6 bytes
        assert validate_content("ééé", max_size=6) == (True, "")
        is_valid, error = validate_content("ééé", max_size=5)
        assert not is_valid
        assert "exceeds maximum size of 5 bytes" in error
