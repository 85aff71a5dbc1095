import base64
import logging
import threading
from typing import Any
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .. import __version__
from ..config import InstanceConfig
from .exceptions import (
    ApiError,
    ConflictError,
    NotFoundError,
    TransportError,
)

logger = logging.getLogger(__name__)

# Response bodies are echoed into per-file errors; keep them readable
_MAX_ERROR_BODY = 500


def encode_content(content: str | bytes) -> str:
    """Base64-encode file content for the contents API."""
    raw = content.encode("utf-8") if isinstance(content, str) else content
    return base64.b64encode(raw).decode("ascii")


class GiteaClient:
    """Blocking client for one Gitea instance's REST API (``/api/v1``).

    Every non-2xx response is raised as an ``ApiError`` subclass and every
    network failure as ``TransportError``. Idempotent GETs are retried by
    the session adapter; writes never are.
    """

    def __init__(self, instance: InstanceConfig, max_retries: int = 3):
        self.instance = instance
        self.max_retries = max_retries
        self._thread_local = threading.local()
        self.api_url = instance.api_url

    @property
    def session(self) -> requests.Session:
        """The current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "Authorization": f"token {self.instance.token}",
                "Accept": "application/json",
                "User-Agent": f"gitea-mcp-server/{__version__}",
            }
        )
        session.verify = not self.instance.insecure
        retry = Retry(
            total=self.max_retries,
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset({"GET"}),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session

    def _repo_path(self, owner: str, repo: str) -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}"

    def _contents_path(self, owner: str, repo: str, path: str) -> str:
        return f"{self._repo_path(owner, repo)}/contents/{quote(path, safe='/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> requests.Response:
        """Send one request and map failures onto the exception hierarchy."""
        url = f"{self.api_url}{path}"
        logger.debug("%s %s", method, url)
        try:
            response = self._get_session().request(
                method,
                url,
                params=params,
                json=json,
                timeout=self.instance.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(
                f"{method} {path} on '{self.instance.id}' failed: {e}"
            ) from e

        if not response.ok:
            self._raise_for_status(response)
        return response

    def _raise_for_status(self, response: requests.Response) -> None:
        status = response.status_code
        body = (response.text or response.reason or "")[:_MAX_ERROR_BODY]

        match status:
            case 401:
                raise ApiError(
                    status,
                    body,
                    f"Authentication failed for {self.instance.name or self.instance.id}",
                )
            case 403:
                raise ApiError(
                    status,
                    body,
                    f"Insufficient permissions for {self.instance.name or self.instance.id}",
                )
            case 404:
                raise NotFoundError(f"404: {body}")
            case 409 | 422:
                raise ConflictError(status, body)
            case _:
                raise ApiError(status, body)

    # Instance / repository operations

    def get_version(self) -> str:
        """Return the Gitea server version; doubles as a connectivity check."""
        data = self._request("GET", "/version").json()
        return str(data.get("version", ""))

    def get_repository(self, owner: str, repo: str) -> dict[str, Any]:
        """Get repository metadata.

        Raises:
            NotFoundError: If the repository does not exist or is not visible.
        """
        return self._request("GET", self._repo_path(owner, repo)).json()

    def create_repository(
        self,
        name: str,
        description: str = "",
        private: bool = True,
        auto_init: bool = True,
        default_branch: str = "main",
        organization: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a repository for the token's user, or inside an organization.

        Args:
            name: Repository name
            description: Repository description
            private: Make the repository private
            auto_init: Initialize with a README commit
            default_branch: Name of the default branch
            organization: Create under this organization instead of the user

        Returns:
            Repository JSON as returned by Gitea

        Raises:
            ConflictError: If a repository with that name already exists
        """
        if organization:
            path = f"/orgs/{quote(organization, safe='')}/repos"
        else:
            path = "/user/repos"

        logger.info(
            "Creating repository %s on %s", name, self.instance.id
        )
        result = self._request(
            "POST",
            path,
            json={
                "name": name,
                "description": description,
                "private": private,
                "auto_init": auto_init,
                "default_branch": default_branch,
            },
        ).json()
        logger.info(
            "Repository created: %s", result.get("clone_url", name)
        )
        return result

    # Contents API

    def get_file(
        self, owner: str, repo: str, path: str, ref: str | None = None
    ) -> dict[str, Any] | None:
        """
        Fetch a file's stored SHA and decoded content.

        Returns:
            ``{"path", "sha", "content"}`` with ``content`` as bytes, or
            ``None`` if the path does not exist at *ref*. ``content`` is
            ``None`` when Gitea omits the body (blobs over its size limit).

        Raises:
            ApiError: For non-404 error responses, or if the path is not a file
            TransportError: For network failures
        """
        params = {"ref": ref} if ref else None
        try:
            response = self._request(
                "GET", self._contents_path(owner, repo, path), params=params
            )
        except NotFoundError:
            return None

        data = response.json()
        if not isinstance(data, dict) or data.get("type") != "file":
            raise ApiError(
                response.status_code,
                "",
                f"'{path}' is not a regular file",
            )

        encoded = data.get("content")
        return {
            "path": data.get("path", path),
            "sha": data["sha"],
            "content": None if encoded is None else base64.b64decode(encoded),
        }

    def create_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str | bytes,
        message: str,
        branch: str,
    ) -> dict[str, Any]:
        """Create a new file in its own commit."""
        return self._request(
            "POST",
            self._contents_path(owner, repo, path),
            json={
                "content": encode_content(content),
                "message": message,
                "branch": branch,
            },
        ).json()

    def update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str | bytes,
        message: str,
        branch: str,
        sha: str | None,
    ) -> dict[str, Any]:
        """Update an existing file; *sha* is the blob SHA being replaced.

        Raises:
            ConflictError: If *sha* is stale or missing
        """
        return self._request(
            "PUT",
            self._contents_path(owner, repo, path),
            json={
                "content": encode_content(content),
                "message": message,
                "branch": branch,
                "sha": sha,
            },
        ).json()

    def delete_file(
        self,
        owner: str,
        repo: str,
        path: str,
        message: str,
        branch: str,
        sha: str | None,
    ) -> dict[str, Any]:
        """Delete a file; *sha* is the blob SHA being removed."""
        return self._request(
            "DELETE",
            self._contents_path(owner, repo, path),
            json={"message": message, "branch": branch, "sha": sha},
        ).json()

    def change_files(
        self,
        owner: str,
        repo: str,
        files: list[dict[str, Any]],
        message: str,
        branch: str,
    ) -> dict[str, Any]:
        """
        Apply several file changes in a single commit.

        Args:
            files: Items of ``{"operation": "create"|"update"|"delete",
                "path": str, "content": base64 str (create/update),
                "sha": str (update/delete)}``

        Returns:
            Commit JSON as returned by Gitea
        """
        return self._request(
            "POST",
            f"{self._repo_path(owner, repo)}/contents",
            json={"files": files, "message": message, "branch": branch},
        ).json()
