"""Settings resolution with XDG paths and precedence.

This module is the only place plexpin reads the process environment:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.plexpin/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Config file** -- an optional ``config.json`` in the config directory,
  validated against :class:`~plexpin.models.Settings`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables, the config file, and defaults into the
  :class:`~plexpin.models.Settings` handed to
  :func:`plexpin.flow.run_pin_flow`.

Environment variables::

    APP_NAME                 device name shown on the approval page
    APP_DESCRIPTION          version string shown on the approval page
    PLEXPIN_IDENTITY_URL     local identity endpoint
    PLEXPIN_PLEX_URL         plex.tv base URL
    PLEXPIN_CLIENT_ID        skip the identity lookup and use this id
    PLEXPIN_POLL_INTERVAL    seconds between poll requests
    PLEXPIN_POLL_TIMEOUT     seconds before polling gives up
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from plexpin.exceptions import ConfigError
from plexpin.models import Settings

logger = logging.getLogger(__name__)

_APP_NAME = "plexpin"
_CONFIG_FILENAME = "config.json"

# env var -> (section, key); section None means top level of Settings
_ENV_VARS: dict[str, tuple[Optional[str], str]] = {
    "APP_NAME": ("metadata", "device_name"),
    "APP_DESCRIPTION": ("metadata", "version"),
    "PLEXPIN_IDENTITY_URL": (None, "identity_url"),
    "PLEXPIN_PLEX_URL": (None, "plex_url"),
    "PLEXPIN_CLIENT_ID": (None, "client_id"),
    "PLEXPIN_POLL_INTERVAL": ("poll", "interval"),
    "PLEXPIN_POLL_TIMEOUT": ("poll", "timeout"),
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/plexpin/`` (default ``~/.config/plexpin/``).
    On macOS/Windows: ``~/.plexpin/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/plexpin/`` (default ``~/.local/share/plexpin/``).
    On macOS/Windows: ``~/.plexpin/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_file_path() -> Path:
    """Path to the optional JSON config file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Config file ---


def load_config_file(path: Optional[Path] = None) -> dict[str, Any]:
    """Load the JSON config file as a raw dict.

    Args:
        path: Explicit file to read; defaults to :func:`config_file_path`.

    Returns:
        The parsed JSON object, or an empty dict if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or is not an object.
    """
    path = path or config_file_path()
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid config file at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config file at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _set(data: dict[str, Any], section: Optional[str], key: str, value: Any) -> None:
    """Set ``data[section][key]`` (or ``data[key]``), creating the section."""
    if section is None:
        data[key] = value
        return
    target = data.get(section)
    if not isinstance(target, dict):
        target = {}
        data[section] = target
    target[key] = value


def resolve_settings(
    cli_overrides: Optional[dict[str, Any]] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_overrides``; ``None`` values are ignored). Keys
           are ``Settings`` fields, or ``"poll.<field>"`` /
           ``"metadata.<field>"`` for nested ones.
        2. Environment variables (see module docstring).
        3. Config file (``config.json`` in :func:`get_config_dir`).
        4. Defaults.

    Args:
        cli_overrides: Flag values from the CLI.
        config_path: Explicit config file; defaults to :func:`config_file_path`.

    Returns:
        The validated :class:`~plexpin.models.Settings`.

    Raises:
        ConfigError: If the config file is invalid or a merged value fails
            validation.
    """
    # 4 + 3. Defaults are filled in by the model; start from the file
    data = load_config_file(config_path)

    # 2. Environment
    for var, (section, key) in _ENV_VARS.items():
        value = os.environ.get(var)
        if value is not None and value != "":
            _set(data, section, key, value)

    # 1. CLI flags
    for name, value in (cli_overrides or {}).items():
        if value is None:
            continue
        section, _, key = name.rpartition(".")
        _set(data, section or None, key, value)

    try:
        settings = Settings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc

    if not settings.metadata.device_name:
        logger.warning("APP_NAME is empty; plex.tv may reject the request")
    if not settings.metadata.version:
        logger.warning("APP_DESCRIPTION is empty; plex.tv may reject the request")
    return settings
