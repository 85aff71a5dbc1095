"""Exception hierarchy for Gitea operations.

``ValidationError`` subclasses ``ValueError`` so tool handlers that
catch ``ValueError`` report it as a validation failure.
"""


class GiteaError(Exception):
    """Base class for all Gitea MCP server errors."""


class ValidationError(GiteaError, ValueError):
    """Request rejected before any network activity."""


class NotFoundError(GiteaError):
    """Unknown instance, repository, or path."""


class TransportError(GiteaError):
    """Network failure or timeout talking to a Gitea instance."""


class ApiError(GiteaError):
    """Non-2xx response from the Gitea REST API.

    Attributes:
        status_code: HTTP status code returned by the server.
        body: Response body text (possibly truncated).
    """

    def __init__(self, status_code: int, body: str, message: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"{status_code}: {body}")


class ConflictError(ApiError):
    """Stale SHA or already-existing file (HTTP 409/422)."""
