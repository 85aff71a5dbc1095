"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, yaml_fallbacks
from ..core.async_utils import init_semaphore, run_sync
from ..core.instances import InstanceRegistry

logger = logging.getLogger(__name__)

_CONFIG_HINT = "Set GITEA_URL and GITEA_TOKEN, or GITEA_INSTANCES."


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env file (so values are available for env var lookups and YAML interpolation)
    - Load YAML config file if present (as fallback values)
    - Merge all sources via load_config(): CLI > env vars > .env > YAML > defaults
    - Create one GiteaClient per instance and check each with /version
    - Fail fast if no instance is reachable

    On shutdown:
    - Log shutdown message

    Args:
        config_overrides: Optional dict with config values from CLI (url, token, instance_id, insecure, debug)

    Yields:
        Dict with 'instances' key containing the InstanceRegistry

    Raises:
        RuntimeError: If configuration is invalid or no instance is reachable.
    """
    logger.info("MCP server starting...")
    _stderr_print("Gitea MCP Server starting...")

    # CLI args > env vars (.env loaded first) > YAML config > defaults
    try:
        # .env first so ${VAR} interpolation in YAML can use its values
        load_dotenv()

        fallbacks: dict[str, Any] | None = None
        config_files = discover_config_files()
        sources = []

        if config_files:
            config_path = config_files[0]
            unified = build_config(load_hierarchical_config())
            fallbacks = yaml_fallbacks(unified)
            sources.append(f"config file: {config_path}")

        overrides = config_overrides or {}
        config = load_config(
            url=overrides.get("url"),
            token=overrides.get("token"),
            instance_id=overrides.get("instance_id"),
            insecure=overrides.get("insecure", False),
            debug=overrides.get("debug", False),
            yaml_fallbacks=fallbacks,
        )

        if overrides:
            sources.append("CLI arguments")
        sources.append("environment variables")
        source_desc = ", ".join(sources)
        logger.info("Configuration loaded from: %s", source_desc)
        _stderr_print(f"  Configuration loaded from: {source_desc}")
        for instance in config.instances:
            logger.info("Gitea instance %s: %s", instance.id, instance.base_url)
            _stderr_print(f"  Gitea instance {instance.id}: {instance.base_url}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(f"  {_CONFIG_HINT}")
        raise RuntimeError(f"Configuration error: {e}. {_CONFIG_HINT}") from e

    instances = InstanceRegistry.from_config(config)

    logger.info("Validating Gitea connections...")
    _stderr_print("  Validating Gitea connections...")
    reachable = 0
    for iid, client in instances.items():
        try:
            version = await run_sync(client.get_version)
        except Exception as e:
            logger.error("Failed to connect to Gitea instance %s: %s", iid, e)
            _stderr_print(f"  WARNING: {iid} unreachable: {e}")
            continue
        reachable += 1
        logger.info("Connected to %s (Gitea %s)", iid, version)
        _stderr_print(f"  Connected to {iid} (Gitea {version})")

    if reachable == 0:
        _stderr_print("ERROR: No Gitea instance is reachable.")
        _stderr_print("  Check the instance URLs and tokens.")
        raise RuntimeError(
            "Gitea connection failed for every configured instance. "
            "Check the instance URLs and tokens."
        )

    init_semaphore(config.max_parallel_requests)
    _stderr_print(f"  Parallel requests: {config.max_parallel_requests}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"instances": instances, "config": config}

    logger.info("MCP server shutting down")
    _stderr_print("Gitea MCP Server shutting down.")
