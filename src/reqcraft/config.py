"""Project settings with XDG paths and precedence resolution.

This module handles everything reqcraft reads about its environment:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.reqcraft/`` on macOS and Windows. Only the data directory is used,
  for crash logs (see :func:`get_data_dir`).
* **Project config** -- an optional ``reqcraft.json`` file in the working
  directory (or an explicit directory), loaded by :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables, the project config and defaults into one
  :class:`~reqcraft.models.ProjectConfig`.
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from reqcraft.exceptions import ConfigError
from reqcraft.models import ProjectConfig

_APP_NAME = "reqcraft"
_PROJECT_CONFIG_FILENAME = "reqcraft.json"

ENV_ROOT = "REQCRAFT_ROOT"
ENV_FETCH_TIMEOUT = "REQCRAFT_FETCH_TIMEOUT"
ENV_REMOTE_IMPORTS = "REQCRAFT_REMOTE_IMPORTS"
ENV_LOG_LEVEL = "REQCRAFT_LOG_LEVEL"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/reqcraft/`` (default
    ``~/.local/share/reqcraft/``). On macOS/Windows: ``~/.reqcraft/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``reqcraft.json``.

    Args:
        directory: Directory to look in; defaults to the working directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Environment ---


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{name} must be a boolean (got '{value}')")


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    root = os.environ.get(ENV_ROOT)
    if root:
        overrides["root_file"] = root

    timeout = os.environ.get(ENV_FETCH_TIMEOUT)
    if timeout:
        try:
            overrides["fetch_timeout"] = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"{ENV_FETCH_TIMEOUT} must be a number (got '{timeout}')") from exc

    remote = os.environ.get(ENV_REMOTE_IMPORTS)
    if remote:
        overrides["remote_imports"] = _parse_bool(ENV_REMOTE_IMPORTS, remote)

    level = os.environ.get(ENV_LOG_LEVEL)
    if level:
        overrides["log_level"] = level

    return overrides


# --- Precedence resolution ---


def resolve_config(
    cli_root: Optional[str] = None,
    cli_log_level: Optional[str] = None,
    project_dir: Optional[Path] = None,
) -> ProjectConfig:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_root``, ``cli_log_level``)
        2. Environment variables (``REQCRAFT_ROOT``,
           ``REQCRAFT_FETCH_TIMEOUT``, ``REQCRAFT_REMOTE_IMPORTS``,
           ``REQCRAFT_LOG_LEVEL``)
        3. Project config (``./reqcraft.json``)
        4. Defaults

    Raises:
        ConfigError: If any layer holds an invalid value.
    """
    values: dict[str, Any] = {}

    # 3. Project-local config
    project = load_project_config(project_dir)
    if project is not None:
        values.update(project)

    # 2. Environment variables
    values.update(_env_overrides())

    # 1. CLI flags (highest precedence)
    if cli_root is not None:
        values["root_file"] = cli_root
    if cli_log_level is not None:
        values["log_level"] = cli_log_level

    try:
        config = ProjectConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc

    level = config.log_level.upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level '{config.log_level}'")
    config.log_level = level

    if config.fetch_timeout <= 0:
        raise ConfigError(f"fetch_timeout must be positive (got {config.fetch_timeout})")

    return config
