"""
Hierarchical YAML configuration loader for gitea_mcp_server.

Finds config files by convention, merges them with "project wins"
semantics, and interpolates ``${VAR}`` references from the environment
so tokens never have to be written into the file itself.

Usage:
    from gitea_mcp_server.config_loader import load_hierarchical_config

    config = load_hierarchical_config()
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GITEA_MCP_CONFIG"

# ${VAR} and ${VAR:-default}
_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+?)(?::-(.*?))?\}")


def interpolate_env_vars(value: str) -> str:
    """Replace ``${VAR}`` and ``${VAR:-default}`` with environment values.

    An unset or empty variable becomes its default, or ``""`` when no
    default is given. A ``${`` without a closing brace is left alone.
    """

    def _replace(match: re.Match) -> str:
        env_val = os.environ.get(match.group(1))
        if env_val:
            return env_val
        return match.group(2) or ""

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _interpolate_recursive(obj: Any) -> Any:
    if isinstance(obj, str):
        return interpolate_env_vars(obj)
    if isinstance(obj, dict):
        return {k: _interpolate_recursive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_interpolate_recursive(item) for item in obj]
    return obj


def discover_config_files() -> list[Path]:
    """Return existing config file paths, highest precedence first.

    Search order:
        1. ``GITEA_MCP_CONFIG`` env var (explicit path)
        2. ``.gitea_mcp/config.yml`` in CWD
        3. ``.gitea_mcp/config.yaml`` in CWD
        4. ``~/.config/gitea_mcp/config.yml``
    """
    candidates: list[Path] = []

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        candidates.append(Path(env_path).expanduser().resolve())

    cwd = Path.cwd()
    candidates.append(cwd / ".gitea_mcp" / "config.yml")
    candidates.append(cwd / ".gitea_mcp" / "config.yaml")
    candidates.append(Path.home() / ".config" / "gitea_mcp" / "config.yml")

    return [p for p in candidates if p.exists()]


_STARTER_CONFIG = """\
# gitea-mcp-server configuration
#
# Connection settings can also come from environment variables:
#   GITEA_URL, GITEA_TOKEN (single instance) or GITEA_INSTANCES (JSON list)
#
# gitea:
#   instances:
#     - id: main
#       name: Main Gitea
#       base_url: https://gitea.example.com
#       token: ${GITEA_TOKEN}
#       timeout: 30
#   max_parallel_requests: 5
#   max_retries: 3
#   max_files: 100
#
# logging:
#   level: INFO
#   file: null
"""


def resolve_config_path() -> Path:
    """Return the active config file, or the default project path if none exists.

    Does NOT create the file; see ``ensure_config()``.
    """
    existing = discover_config_files()
    if existing:
        return existing[0]
    return Path.cwd() / ".gitea_mcp" / "config.yml"


def ensure_config(target: Path | None = None) -> Path:
    """Return the active config file, writing a commented starter file if none exists."""
    existing = discover_config_files()
    if existing:
        logger.debug("Config file already exists: %s", existing[0])
        return existing[0]

    config_path = target or resolve_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(_STARTER_CONFIG, encoding="utf-8")
    logger.info("Created starter config: %s", config_path)

    return config_path


def load_hierarchical_config() -> dict[str, Any]:
    """Load and merge all discovered config files.

    Files are applied from lowest precedence to highest; each file's
    top-level keys replace (not deep-merge) earlier ones. Env var
    interpolation runs after the merge.

    Returns an empty dict when no config files exist.
    """
    paths = discover_config_files()

    if not paths:
        logger.debug("No config files found, using zero-config defaults")
        return {}

    merged: dict[str, Any] = {}
    for path in reversed(paths):
        logger.debug("Loading config: %s", path)
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except Exception:
            logger.exception("Failed to load config file %s", path)
            raise

        if isinstance(data, dict):
            merged.update(data)
        elif data is not None:
            logger.warning(
                "Config file %s has non-dict root (%s), skipping",
                path,
                type(data).__name__,
            )

    return _interpolate_recursive(merged)
