"""Core Gitea client functionality shared by the MCP tools and the reconciliation engine."""

from .async_utils import run_sync, run_sync_limited
from .client import GiteaClient
from .instances import InstanceRegistry

__all__ = ["GiteaClient", "InstanceRegistry", "run_sync", "run_sync_limited"]
