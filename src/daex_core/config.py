"""Configuration loading for the shared HTTP client.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.daex/`` on macOS and Windows. See :func:`get_config_dir`.
* **Client config file** -- an optional JSON document deserialised into a
  :class:`~daex_core.models.ClientConfiguration`. Located via the
  ``path`` argument, the ``DAEX_SDK_CONFIG`` environment variable, or
  ``<config dir>/client.json``, in that order.
* **Precedence** -- explicit keyword overrides beat the file, the file
  beats the built-in defaults.

Writes use an atomic temp-file-then-rename strategy (:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import ValidationError

from daex_core.exceptions import ConfigurationError
from daex_core.models import ClientConfiguration

_APP_NAME = "daex"
_CLIENT_CONFIG_FILENAME = "client.json"
CONFIG_ENV_VAR = "DAEX_SDK_CONFIG"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


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
    """Return the configuration directory. It is not created.

    On Linux/BSD: ``$XDG_CONFIG_HOME/daex/`` (default ``~/.config/daex/``).
    On macOS/Windows: ``~/.daex/``.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return Path.home() / f".{_APP_NAME}"


def default_config_path() -> Path:
    """Path of the client config file inside :func:`get_config_dir`."""
    return get_config_dir() / _CLIENT_CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file lives in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On failure the
    temp file is removed.
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


# --- Client configuration ---


def _resolve_config_path(path: Union[str, Path, None]) -> Optional[Path]:
    """Pick the config file to read, or ``None`` when there is none.

    An explicitly named file (argument or env var) must exist; the
    default location is optional.
    """
    if path is not None:
        explicit = Path(path)
    elif os.environ.get(CONFIG_ENV_VAR):
        explicit = Path(os.environ[CONFIG_ENV_VAR])
    else:
        candidate = default_config_path()
        return candidate if candidate.is_file() else None

    if not explicit.is_file():
        raise ConfigurationError(f"Client config file not found: {explicit}")
    return explicit


def _read_config_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigurationError(f"Invalid client config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Invalid client config at {path}: expected a JSON object, got {type(data).__name__}"
        )
    return data


def load_client_config(
    path: Union[str, Path, None] = None,
    **overrides: Any,
) -> ClientConfiguration:
    """Build the effective :class:`~daex_core.models.ClientConfiguration`.

    Args:
        path: Config file to read. Falls back to ``$DAEX_SDK_CONFIG``,
            then to ``<config dir>/client.json`` if that file exists.
        **overrides: Field values that take precedence over the file.
            ``None`` values are ignored.

    Returns:
        The validated configuration. Built-in defaults fill anything
        neither the file nor the overrides set.

    Raises:
        ConfigurationError: If a named file is missing, the file is not a
            JSON object, or the merged values fail validation (including
            ``trust_all`` without ``allow_insecure``).
    """
    config_path = _resolve_config_path(path)
    data: dict[str, Any] = _read_config_file(config_path) if config_path else {}
    data.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return ClientConfiguration.model_validate(data)
    except ValidationError as exc:
        source = f" at {config_path}" if config_path else ""
        raise ConfigurationError(f"Invalid client configuration{source}: {exc}") from exc


def save_client_config(
    config: ClientConfiguration,
    path: Union[str, Path, None] = None,
) -> Path:
    """Persist *config* as JSON, atomically.

    Args:
        config: The configuration to save.
        path: Destination file. Defaults to :func:`default_config_path`.

    Returns:
        The path written to.
    """
    target = Path(path) if path is not None else default_config_path()
    data = config.model_dump(mode="json", exclude_defaults=True)
    _atomic_write(target, json.dumps(data, indent=2) + "\n")
    return target
