"""Configuration for the standalone Gitea MCP server.

Reads Gitea connection settings from CLI args, environment variables,
.env files, and YAML config file fallbacks.

Precedence (highest to lowest):
    CLI args > Environment variables > .env file > YAML config > Built-in defaults

Environment variables:
    GITEA_INSTANCES: JSON list of instance objects
        (``[{"id": "main", "base_url": "...", "token": "..."}]``)
    GITEA_URL / GITEA_TOKEN: Single-instance shorthand (used when
        GITEA_INSTANCES is unset)
    GITEA_INSTANCE_ID: Id for the single-instance shorthand (default: "default")
    GITEA_INSECURE: Skip SSL verification (optional, default: false)
    GITEA_TIMEOUT: Per-request timeout in seconds (optional, default: 30)
    GITEA_MAX_RETRIES: Retries for idempotent reads (optional, default: 3)
    GITEA_MAX_PARALLEL_REQUESTS: Max concurrent API requests (optional, default: 5)
    GITEA_MAX_FILES: Max file operations per call (optional, default: 100)
    GITEA_MAX_FILE_SIZE: Max content bytes per file (optional, default: 10 MiB)
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_INSTANCE_ID = "default"


@dataclass
class InstanceConfig:
    id: str
    base_url: str
    token: str
    name: str = ""
    timeout: float = 30.0
    insecure: bool = False

    @property
    def api_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/api/v1"


@dataclass
class Config:
    instances: list[InstanceConfig] = field(default_factory=list)
    debug: bool = False
    max_parallel_requests: int = 5
    max_retries: int = 3
    max_files: int = 100
    max_file_size: int = 10 * 1024 * 1024


def validate_config(config: Config) -> None:
    """Validate configuration values and raise ValueError if invalid.

    Args:
        config: Config instance to validate.

    Raises:
        ValueError: If no instance is configured, an id is duplicated,
            a URL is malformed, or a token is empty.
    """
    if not config.instances:
        raise ValueError(
            "At least one Gitea instance must be configured. "
            "Set GITEA_URL and GITEA_TOKEN, or GITEA_INSTANCES."
        )

    seen: set[str] = set()
    for instance in config.instances:
        if not instance.id or not instance.id.strip():
            raise ValueError("Gitea instance id cannot be empty")
        if instance.id in seen:
            raise ValueError(f"Duplicate Gitea instance id '{instance.id}'")
        seen.add(instance.id)

        instance.base_url = instance.base_url.strip()
        if not instance.base_url.startswith(("http://", "https://")):
            raise ValueError(
                f"Invalid URL '{instance.base_url}' for instance '{instance.id}': "
                "must start with http:// or https://"
            )
        if not urlparse(instance.base_url).hostname:
            raise ValueError(
                f"Invalid URL '{instance.base_url}' for instance '{instance.id}': "
                "URL must include a hostname"
            )
        instance.base_url = instance.base_url.removesuffix("/")

        if not instance.token or not instance.token.strip():
            raise ValueError(
                f"Gitea instance '{instance.id}' is missing required token"
            )

        if not instance.name:
            instance.name = instance.id

        if instance.insecure:
            logger.warning(
                "WARNING: SSL verification disabled for instance '%s'. "
                "Use only for development.",
                instance.id,
            )


def _instance_from_dict(raw: dict[str, Any], source: str) -> InstanceConfig:
    """Build an InstanceConfig from a loosely-typed mapping.

    Accepts ``baseUrl`` as an alias of ``base_url``.
    """
    if not isinstance(raw, dict):
        raise ValueError(f"Invalid instance entry in {source}: expected an object")
    base_url = raw.get("base_url") or raw.get("baseUrl") or ""
    return InstanceConfig(
        id=str(raw.get("id", "")).strip(),
        name=str(raw.get("name", "") or ""),
        base_url=str(base_url),
        token=str(raw.get("token", "") or ""),
        timeout=float(raw.get("timeout", 30.0)),
        insecure=bool(raw.get("insecure", False)),
    )


def _get_bool_env(key: str) -> bool | None:
    """Return True/False from env var, or None if unset."""
    val = os.getenv(key)
    if val is None:
        return None
    return val.lower() in ("true", "1", "yes", "on")


def _get_int_setting(
    env_key: str,
    fallbacks: dict,
    fb_key: str,
    default: int,
    minimum: int,
    maximum: int,
) -> int:
    raw = os.getenv(env_key)
    if raw is None:
        return int(fallbacks.get(fb_key, default))
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {minimum} and {maximum}"
        ) from None
    if not (minimum <= value <= maximum):
        raise ValueError(
            f"Invalid {env_key} '{raw}': must be a number between {minimum} and {maximum}"
        )
    return value


def _resolve_instances(
    url: str | None,
    token: str | None,
    instance_id: str | None,
    insecure: bool,
    fb: dict,
) -> list[InstanceConfig]:
    # CLI pair wins outright
    if url or token:
        if not (url and token):
            raise ValueError(
                "Both --url and --token are required when overriding the Gitea instance."
            )
        return [
            InstanceConfig(
                id=instance_id or DEFAULT_INSTANCE_ID,
                base_url=url,
                token=token,
                insecure=insecure,
            )
        ]

    raw_instances = os.getenv("GITEA_INSTANCES")
    if raw_instances:
        try:
            parsed = json.loads(raw_instances)
        except json.JSONDecodeError as e:
            raise ValueError(f"GITEA_INSTANCES is not valid JSON: {e}") from None
        if not isinstance(parsed, list):
            raise ValueError("GITEA_INSTANCES must be a JSON list of instances")
        return [_instance_from_dict(item, "GITEA_INSTANCES") for item in parsed]

    env_url = os.getenv("GITEA_URL")
    env_token = os.getenv("GITEA_TOKEN")
    if env_url or env_token:
        if not (env_url and env_token):
            raise ValueError(
                "Both GITEA_URL and GITEA_TOKEN must be set for a single instance."
            )
        timeout_raw = os.getenv("GITEA_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else 30.0
        except ValueError:
            raise ValueError(
                f"Invalid GITEA_TIMEOUT '{timeout_raw}': must be a number of seconds"
            ) from None
        return [
            InstanceConfig(
                id=instance_id
                or os.getenv("GITEA_INSTANCE_ID")
                or DEFAULT_INSTANCE_ID,
                base_url=env_url,
                token=env_token,
                timeout=timeout,
                insecure=bool(_get_bool_env("GITEA_INSECURE")),
            )
        ]

    return [
        _instance_from_dict(item, "config file")
        for item in fb.get("instances") or []
    ]


def load_config(
    url: str | None = None,
    token: str | None = None,
    instance_id: str | None = None,
    insecure: bool = False,
    debug: bool = False,
    yaml_fallbacks: dict | None = None,
) -> Config:
    """Load configuration with unified precedence.

    Resolution order (highest to lowest):
        CLI arg > env var / .env > yaml_fallbacks > built-in default

    The caller is responsible for calling ``load_dotenv()`` before this
    function so that .env values are available via ``os.getenv()``.

    Args:
        url: Override base URL of a single instance.
        token: Override API token of a single instance.
        instance_id: Id to give the single overridden instance.
        insecure: Skip SSL verification (CLI flag).
        debug: Enable debug logging (CLI flag).
        yaml_fallbacks: Dict of values from the YAML ``gitea`` section.

    Returns:
        Validated Config instance.

    Raises:
        ValueError: If no instance can be resolved or a value is invalid.
    """
    fb = yaml_fallbacks or {}

    instances = _resolve_instances(url, token, instance_id, insecure, fb)
    if insecure:
        for instance in instances:
            instance.insecure = True

    if debug:
        final_debug = True
    else:
        env_debug = _get_bool_env("GITEA_DEBUG")
        final_debug = (
            env_debug if env_debug is not None else bool(fb.get("debug", False))
        )

    config = Config(
        instances=instances,
        debug=final_debug,
        max_parallel_requests=_get_int_setting(
            "GITEA_MAX_PARALLEL_REQUESTS", fb, "max_parallel_requests", 5, 1, 100
        ),
        max_retries=_get_int_setting(
            "GITEA_MAX_RETRIES", fb, "max_retries", 3, 0, 10
        ),
        max_files=_get_int_setting("GITEA_MAX_FILES", fb, "max_files", 100, 1, 10000),
        max_file_size=_get_int_setting(
            "GITEA_MAX_FILE_SIZE",
            fb,
            "max_file_size",
            10 * 1024 * 1024,
            1,
            100 * 1024 * 1024,
        ),
    )

    validate_config(config)

    return config
