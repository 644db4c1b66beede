"""Configuration loading with XDG paths and precedence resolution.

The decoding core reads no configuration at all; this module only serves
the HTTP client glue and the CLI.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.httpunwrap/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- ``config.json`` in the config directory,
  deserialised into :class:`~httpunwrap.models.GlobalConfig`.
* **Project config** -- ``./httpunwrap.json``; same shape, layered over the
  global config key by key.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, project config and global config.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from httpunwrap.exceptions import ConfigError
from httpunwrap.models import GlobalConfig

_APP_NAME = "httpunwrap"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "httpunwrap.json"

ENV_BASE_URL = "HTTPUNWRAP_BASE_URL"
ENV_TIMEOUT = "HTTPUNWRAP_TIMEOUT"
ENV_CONNECT_TIMEOUT = "HTTPUNWRAP_CONNECT_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/httpunwrap/`` (default
    ``~/.config/httpunwrap/``). On macOS/Windows: ``~/.httpunwrap/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Loading ---


def _read_json(path: Path, label: str) -> Optional[dict[str, Any]]:
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid {label} at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid {label} at {path}: expected a JSON object")
    return data


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load the global configuration.

    Args:
        path: Explicit config file. Defaults to ``config.json`` in
            :func:`get_config_dir`.

    Returns:
        The validated :class:`~httpunwrap.models.GlobalConfig`; defaults if
        the file does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or fails validation.
    """
    path = path or get_config_dir() / _CONFIG_FILENAME
    data = _read_json(path, "global config")
    return _validate(data or {}, path)


def load_project_config() -> Optional[dict[str, Any]]:
    """Load ``./httpunwrap.json`` as a raw dict, or ``None`` if absent."""
    return _read_json(Path.cwd() / _PROJECT_CONFIG_FILENAME, "project config")


def _validate(data: dict[str, Any], source: Path | str) -> GlobalConfig:
    try:
        return GlobalConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {source}: {exc}") from exc


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _env_float(name: str) -> Optional[float]:
    raw = os.environ.get(name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"Environment variable {name} must be a number, got {raw!r}") from exc


# --- Precedence resolution ---


def resolve_config(
    cli_base_url: Optional[str] = None,
    cli_timeout: Optional[float] = None,
    config_path: Optional[Path] = None,
) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_base_url``, ``cli_timeout``)
        2. Environment variables (``HTTPUNWRAP_BASE_URL``,
           ``HTTPUNWRAP_TIMEOUT``, ``HTTPUNWRAP_CONNECT_TIMEOUT``)
        3. Project config (``./httpunwrap.json``)
        4. User config (``~/.config/httpunwrap/config.json``)
        5. Defaults

    Raises:
        ConfigError: If any layer is invalid.
    """
    global_cfg = load_global_config(config_path)
    data = global_cfg.model_dump()

    project = load_project_config()
    if project is not None:
        data = _merge(data, project)

    client = data.setdefault("client", {})
    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        client["base_url"] = env_base_url
    env_timeout = _env_float(ENV_TIMEOUT)
    if env_timeout is not None:
        client["timeout"] = env_timeout
    env_connect_timeout = _env_float(ENV_CONNECT_TIMEOUT)
    if env_connect_timeout is not None:
        client["connect_timeout"] = env_connect_timeout

    if cli_base_url is not None:
        client["base_url"] = cli_base_url
    if cli_timeout is not None:
        client["timeout"] = cli_timeout

    return _validate(data, "resolved configuration")
