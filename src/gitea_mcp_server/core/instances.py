"""Registry of Gitea clients keyed by instance id.

The registry is built once at startup from ``Config`` and handed to tool
handlers and the reconciliation engine explicitly, so tests can build
one around fake clients.
"""

import logging
from collections.abc import Iterator, Mapping

from ..config import Config
from .client import GiteaClient
from .exceptions import NotFoundError

logger = logging.getLogger(__name__)


class InstanceRegistry(Mapping):
    """Read-only mapping of instance id to ``GiteaClient``.

    Also carries the per-call upload limits tool handlers enforce.
    """

    def __init__(
        self,
        clients: Mapping[str, GiteaClient],
        max_files: int = 100,
        max_file_size: int = 10 * 1024 * 1024,
    ):
        self._clients = dict(clients)
        self.max_files = max_files
        self.max_file_size = max_file_size

    @classmethod
    def from_config(cls, config: Config) -> "InstanceRegistry":
        clients = {}
        for instance in config.instances:
            clients[instance.id] = GiteaClient(
                instance, max_retries=config.max_retries
            )
            logger.info(
                "Initialized Gitea client %s (%s)",
                instance.id,
                instance.base_url,
            )
        return cls(
            clients,
            max_files=config.max_files,
            max_file_size=config.max_file_size,
        )

    def __getitem__(self, instance_id: str) -> GiteaClient:
        return self._clients[instance_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._clients)

    def __len__(self) -> int:
        return len(self._clients)

    def resolve(self, instance_id: str | None) -> GiteaClient:
        """Return the client for *instance_id*.

        When *instance_id* is omitted and exactly one instance is
        configured, that instance is used.

        Raises:
            NotFoundError: If the id is unknown, or omitted while several
                instances are configured.
        """
        if not instance_id:
            if len(self._clients) == 1:
                return next(iter(self._clients.values()))
            raise NotFoundError(
                "instance_id is required when several Gitea instances are "
                f"configured. Available instances: {', '.join(self._clients)}"
            )

        client = self._clients.get(instance_id)
        if client is None:
            raise NotFoundError(
                f"Gitea instance '{instance_id}' not found. "
                f"Available instances: {', '.join(self._clients) or 'none'}"
            )
        return client
