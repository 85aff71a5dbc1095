"""Shared pytest fixtures for gitea-mcp-server tests."""

import base64
import hashlib
from typing import Any, Dict, Optional
from unittest.mock import MagicMock

import pytest
from dotenv import load_dotenv

from gitea_mcp_server.config import Config, InstanceConfig
from gitea_mcp_server.core.exceptions import ConflictError, NotFoundError

load_dotenv()


def pytest_addoption(parser):
    """Add custom CLI options for test filtering."""
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run tests that require a live Gitea instance",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "live: mark test as requiring a live Gitea instance"
    )


def pytest_collection_modifyitems(config, items):
    """Skip live tests unless --run-live is passed."""
    if config.getoption("--run-live"):
        return
    skip_live = pytest.mark.skip(reason="need --run-live option to run")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


def blob_sha(content: bytes) -> str:
    """Git blob SHA, the same version token Gitea reports."""
    header = f"blob {len(content)}\0".encode()
    return hashlib.sha1(header + content).hexdigest()


class FakeGiteaClient:
    """Minimal GiteaClient replacement for testing.

    Simulates one repository branch with an in-memory dict and enforces
    the contents API's SHA checks. Every read and write is recorded.
    """

    def __init__(
        self,
        files: Optional[Dict[str, str | bytes]] = None,
        instance: Optional[InstanceConfig] = None,
    ) -> None:
        self.instance = instance or InstanceConfig(
            id="test",
            name="Test Gitea",
            base_url="https://gitea.example.com",
            token="test-token-123456",
        )
        self.files: Dict[str, bytes] = {}
        for path, content in (files or {}).items():
            self.files[path] = (
                content.encode() if isinstance(content, str) else content
            )
        self.get_calls: list[str] = []
        self.write_calls: list[tuple] = []
        self.probe_errors: Dict[str, Exception] = {}
        self.write_errors: Dict[str, Exception] = {}
        self.batch_error: Optional[Exception] = None

    def sha(self, path: str) -> str:
        return blob_sha(self.files[path])

    def text(self, path: str) -> str:
        return self.files[path].decode()

    # Reads

    def get_version(self) -> str:
        return "1.21.0"

    def get_file(
        self, owner: str, repo: str, path: str, ref: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        self.get_calls.append(path)
        if path in self.probe_errors:
            raise self.probe_errors[path]
        if path not in self.files:
            return None
        return {"path": path, "sha": self.sha(path), "content": self.files[path]}

    # Writes

    def _check_sha(self, path: str, sha: Optional[str]) -> None:
        if path not in self.files:
            raise NotFoundError(f"404: file '{path}' does not exist")
        if sha != self.sha(path):
            raise ConflictError(409, f"sha does not match [given: {sha}]")

    def create_file(self, owner, repo, path, content, message, branch):
        self.write_calls.append(("create", path, None))
        if path in self.write_errors:
            raise self.write_errors[path]
        if path in self.files:
            raise ConflictError(422, "repository file already exists")
        self.files[path] = content.encode() if isinstance(content, str) else content
        return {"content": {"path": path, "sha": self.sha(path)}}

    def update_file(self, owner, repo, path, content, message, branch, sha):
        self.write_calls.append(("update", path, sha))
        if path in self.write_errors:
            raise self.write_errors[path]
        self._check_sha(path, sha)
        self.files[path] = content.encode() if isinstance(content, str) else content
        return {"content": {"path": path, "sha": self.sha(path)}}

    def delete_file(self, owner, repo, path, message, branch, sha):
        self.write_calls.append(("delete", path, sha))
        if path in self.write_errors:
            raise self.write_errors[path]
        self._check_sha(path, sha)
        del self.files[path]
        return {"commit": {"message": message}}

    def change_files(self, owner, repo, files, message, branch):
        self.write_calls.append(("batch", [f["path"] for f in files], None))
        if self.batch_error is not None:
            raise self.batch_error
        # All-or-nothing: validate every entry before applying any
        for f in files:
            if f["operation"] == "create" and f["path"] in self.files:
                raise ConflictError(422, f"file '{f['path']}' already exists")
            if f["operation"] in ("update", "delete"):
                self._check_sha(f["path"], f.get("sha"))
        for f in files:
            if f["operation"] == "delete":
                del self.files[f["path"]]
            else:
                self.files[f["path"]] = base64.b64decode(f["content"])
        return {"commit": {"message": message}}

    def create_repository(self, name, **kwargs):
        self.write_calls.append(("create_repository", name, None))
        owner = kwargs.get("organization") or "testuser"
        return {
            "id": 1,
            "name": name,
            "full_name": f"{owner}/{name}",
            "html_url": f"https://gitea.example.com/{owner}/{name}",
            "clone_url": f"https://gitea.example.com/{owner}/{name}.git",
            "ssh_url": f"git@gitea.example.com:{owner}/{name}.git",
            "private": kwargs.get("private", True),
            "default_branch": kwargs.get("default_branch", "main"),
            "created_at": "2026-01-01T00:00:00Z",
        }


@pytest.fixture
def make_fake_client():
    """Factory fixture returning a ``FakeGiteaClient`` seeded with files."""

    def _make(files=None, **kwargs):
        return FakeGiteaClient(files, **kwargs)

    return _make


@pytest.fixture
def fake_client():
    """An empty ``FakeGiteaClient``."""
    return FakeGiteaClient()


@pytest.fixture
def mock_instance():
    """Create an InstanceConfig for testing."""
    return InstanceConfig(
        id="main",
        name="Main Gitea",
        base_url="https://gitea.example.com",
        token="test-token-123456",
    )


@pytest.fixture
def mock_config(mock_instance):
    """Create a Config instance for testing."""
    return Config(instances=[mock_instance])


@pytest.fixture
def mock_gitea_client(mock_instance):
    """Create a mock GiteaClient instance for testing."""
    from gitea_mcp_server.core.client import GiteaClient

    client = MagicMock(spec=GiteaClient)
    client.instance = mock_instance
    return client
