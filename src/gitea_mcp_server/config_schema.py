"""Unified configuration schema for gitea_mcp_server.

Pydantic models for the YAML config structure, with one section for the
Gitea instances and one for logging, plus an adapter to the ``Config``
dataclass used at runtime.

Usage:
    from gitea_mcp_server.config_schema import build_config, to_legacy_config

    raw = load_hierarchical_config()
    unified = build_config(raw)
    legacy = to_legacy_config(unified)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, model_validator

if TYPE_CHECKING:
    from .config import Config

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GiteaInstanceSettings(BaseModel):
    """One Gitea instance reachable by the server."""

    id: str = Field(description="Identifier passed as instance_id by tools")
    name: str | None = Field(default=None, description="Display name")
    base_url: str = Field(
        alias="baseUrl",
        description="Instance root URL, without /api/v1",
    )
    token: str = Field(description="Personal access token")
    timeout: float = Field(
        default=30.0, gt=0, description="Request timeout in seconds"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )

    model_config = {"frozen": True, "populate_by_name": True}


class GiteaSettings(BaseModel):
    """Server-wide Gitea settings.

    ``instances`` may be empty so env vars and CLI args can supply them
    at runtime instead.
    """

    instances: list[GiteaInstanceSettings] = Field(default_factory=list)
    debug: bool = Field(default=False, description="Enable debug mode")
    max_parallel_requests: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Maximum concurrent requests to Gitea (1-100)",
    )
    max_retries: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries for idempotent reads (0-10)",
    )
    max_files: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Maximum file operations per tool call",
    )
    max_file_size: int = Field(
        default=10 * 1024 * 1024,
        ge=1,
        description="Maximum content size per file in bytes",
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _unique_ids(self) -> GiteaSettings:
        ids = [i.id for i in self.instances]
        duplicates = {i for i in ids if ids.count(i) > 1}
        if duplicates:
            raise ValueError(
                f"Duplicate instance ids: {', '.join(sorted(duplicates))}"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has defaults, so ``UnifiedConfig()`` is always valid.
    """

    gitea: GiteaSettings = Field(default_factory=GiteaSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the dict returned by
    ``load_hierarchical_config()``. Missing sections get defaults.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def yaml_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten the ``gitea`` section into the fallback dict ``load_config`` expects."""
    data = unified.gitea.model_dump()
    data["instances"] = [
        i.model_dump() for i in unified.gitea.instances
    ]
    return data


def to_legacy_config(
    unified: UnifiedConfig,
    cli_overrides: dict | None = None,
) -> Config:
    """Convert a ``UnifiedConfig`` into the runtime ``Config`` dataclass.

    CLI overrides supported: ``insecure`` and ``debug``.

    The result is NOT validated; call ``validate_config()`` separately.
    """
    # Import here to avoid circular imports
    from .config import Config, InstanceConfig

    overrides = cli_overrides or {}
    insecure = bool(overrides.get("insecure", False))

    return Config(
        instances=[
            InstanceConfig(
                id=i.id,
                name=i.name or i.id,
                base_url=i.base_url,
                token=i.token,
                timeout=i.timeout,
                insecure=insecure or i.insecure,
            )
            for i in unified.gitea.instances
        ],
        debug=overrides.get("debug", False) or unified.gitea.debug,
        max_parallel_requests=unified.gitea.max_parallel_requests,
        max_retries=unified.gitea.max_retries,
        max_files=unified.gitea.max_files,
        max_file_size=unified.gitea.max_file_size,
    )
