"""Environment-aware configuration loader.

Loads YAML config from config/metrika.{env}.yaml and provides the
counter id, OAuth token (usually from env vars), API endpoint, request
timeout and cache settings.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

VALID_ENVS = ("dev", "staging", "prod")
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_BASE_URL = "https://api-metrika.yandex.net/stat/v1/data"


@dataclass(frozen=True)
class CacheConfig:
    """Cache settings for raw API payloads."""

    ttl: int = 3600
    directory: str = ".cache/metrika"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    env: str
    counter_id: str
    token: str
    base_url: str = DEFAULT_BASE_URL
    timeout: int = 30
    cache: CacheConfig = field(default_factory=CacheConfig)


def detect_env(cli_env: str | None = None) -> str:
    """Detect the runtime environment.

    Priority:
      1. Explicit CLI flag
      2. METRIKA_ENV environment variable
      3. Default to 'dev'
    """
    env = cli_env or os.environ.get("METRIKA_ENV", "dev")
    if env not in VALID_ENVS:
        raise ValueError(f"Invalid environment '{env}'. Must be one of {VALID_ENVS}")
    return env


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ${VAR} references in config values."""
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        var_name = value[2:-1]
        return os.environ.get(var_name, "")
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _build_cache_config(raw: dict[str, Any]) -> CacheConfig:
    ttl = int(raw.get("ttl", 3600))
    if ttl < 0:
        raise ValueError(f"cache.ttl must be >= 0, got {ttl}")
    return CacheConfig(ttl=ttl, directory=str(raw.get("directory", ".cache/metrika")))


def load_config(env: str | None = None, config_dir: Path | None = None) -> AppConfig:
    """Load and parse the YAML config for the given environment.

    Args:
        env: The environment name (dev/staging/prod). Auto-detected if None.
        config_dir: Override the config directory path.

    Returns:
        Fully resolved AppConfig instance.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If ``counter_id`` or ``token`` resolve to empty values.
    """
    resolved_env = detect_env(env)
    config_path = (config_dir or PROJECT_ROOT / "config") / f"metrika.{resolved_env}.yaml"

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw_config: dict[str, Any] = _resolve_env_vars(yaml.safe_load(f) or {})

    counter_id = str(raw_config.get("counter_id") or "")
    token = str(raw_config.get("token") or "")
    if not counter_id:
        raise ValueError(f"counter_id is not set in {config_path}")
    if not token:
        raise ValueError(f"token is not set in {config_path}")

    return AppConfig(
        env=resolved_env,
        counter_id=counter_id,
        token=token,
        base_url=raw_config.get("base_url", DEFAULT_BASE_URL),
        timeout=int(raw_config.get("timeout", 30)),
        cache=_build_cache_config(raw_config.get("cache") or {}),
    )
