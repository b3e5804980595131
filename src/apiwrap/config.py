"""Configuration for the bundled httpx primitives and the command line tool.

The generator core takes no configuration of its own: everything it needs is
passed to :func:`~apiwrap.registry.register_backend`.  This module serves the
parts around it:

* **Client settings** -- :func:`resolve_client_config` merges explicit
  arguments, ``APIWRAP_*`` environment variables and a project-local
  ``apiwrap.json`` into a :class:`~apiwrap.models.ClientConfig`.
* **Credential resolution** -- :func:`resolve_credential` reads a secret
  from an environment variable or a file.
* **Data directory** -- :func:`get_data_dir` locates the XDG data directory
  where the command line tool writes crash logs.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from apiwrap.exceptions import ConfigError
from apiwrap.models import ClientConfig

_APP_NAME = "apiwrap"
_PROJECT_CONFIG_FILENAME = "apiwrap.json"

ENV_BASE_URL = "APIWRAP_BASE_URL"
ENV_TOKEN_SOURCE = "APIWRAP_TOKEN_SOURCE"
ENV_TIMEOUT = "APIWRAP_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/apiwrap/`` (default ``~/.local/share/apiwrap/``).
    On macOS/Windows: ``~/.apiwrap/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load ``apiwrap.json`` from *directory* (default: the working directory).

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Project config at {path} must be a JSON object")
    return data


# --- Precedence resolution ---


def resolve_client_config(
    base_url: Optional[str] = None,
    token_source: Optional[str] = None,
    timeout: Optional[float] = None,
    directory: Optional[Path] = None,
) -> ClientConfig:
    """Resolve client settings with the full precedence chain.

    Precedence (high to low):
        1. Explicit arguments (usually CLI flags)
        2. Environment variables (``APIWRAP_BASE_URL``,
           ``APIWRAP_TOKEN_SOURCE``, ``APIWRAP_TIMEOUT``)
        3. Project config (``./apiwrap.json``)
        4. Defaults

    Raises:
        ConfigError: If the project file or an environment value is invalid.
    """
    values: dict[str, Any] = dict(load_project_config(directory) or {})

    env_base_url = os.environ.get(ENV_BASE_URL)
    if env_base_url:
        values["base_url"] = env_base_url
    env_token = os.environ.get(ENV_TOKEN_SOURCE)
    if env_token:
        values["token_source"] = env_token
    env_timeout = os.environ.get(ENV_TIMEOUT)
    if env_timeout:
        values["timeout"] = env_timeout

    if base_url is not None:
        values["base_url"] = base_url
    if token_source is not None:
        values["token_source"] = token_source
    if timeout is not None:
        values["timeout"] = timeout

    try:
        return ClientConfig.model_validate(values)
    except ValueError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    raise ConfigError(f"Unknown credential source format: {source}")
