"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for punchclock:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.punchclock/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~punchclock.models.GlobalConfig`
  JSON file storing the API base URL, request defaults and output format.
* **Project config** -- an optional ``./punchclock.json`` that pins the
  base URL for a working directory.
* **Precedence resolution** -- :func:`resolve_config` merges the CLI flag,
  environment variables, project-local config and global config into the
  effective configuration.

The bearer token is *not* configuration; it lives in the credential store
(:mod:`punchclock.auth.credential_store`) under the data directory.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

from punchclock.exceptions import ConfigError
from punchclock.models import GlobalConfig

_APP_NAME = "punchclock"
_CONFIG_FILENAME = "config.json"
_PROJECT_CONFIG_FILENAME = "punchclock.json"

# Checked in order; the first non-blank value wins.
BASE_URL_ENV_VARS = (
    "PUNCHCLOCK_API_BASE_URL",
    "PUNCHCLOCK_API_URL",
    "PUNCHCLOCK_BACKEND_URL",
)


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
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
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/punchclock/`` (default ``~/.config/punchclock/``).
    On macOS/Windows: ``~/.punchclock/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (credentials, crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/punchclock/`` (default ``~/.local/share/punchclock/``).
    On macOS/Windows: ``~/.punchclock/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems.  When *mode* is
    given it is applied to the temp file before any content is written, so
    secrets are never readable with looser permissions, even momentarily.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the config directory.

    Returns:
        The deserialised :class:`~punchclock.models.GlobalConfig`, or a
        default instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Project-local config ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``./punchclock.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def _env_base_url() -> Optional[str]:
    for var in BASE_URL_ENV_VARS:
        value = os.environ.get(var, "").strip()
        if value:
            return value
    return None


def resolve_config(cli_base_url: Optional[str] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence for ``base_url`` (high to low):
        1. ``cli_base_url`` (the ``--base-url`` flag)
        2. ``PUNCHCLOCK_API_BASE_URL``, ``PUNCHCLOCK_API_URL``,
           ``PUNCHCLOCK_BACKEND_URL`` (first non-blank wins)
        3. ``base_url`` in ``./punchclock.json``
        4. ``base_url`` in the global config
        5. Default (empty -- callers must then pass absolute URLs)

    Returns:
        The merged :class:`~punchclock.models.GlobalConfig`.
    """
    config = load_global_config()

    project = load_project_config()
    if project is not None and project.get("base_url"):
        config.base_url = str(project["base_url"])

    env_url = _env_base_url()
    if env_url:
        config.base_url = env_url

    if cli_base_url:
        config.base_url = cli_base_url

    config.base_url = config.base_url.strip()
    return config
