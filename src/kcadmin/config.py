"""Connection profiles, XDG paths, and credential-source resolution.

This module handles all persistent configuration for kcadmin:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.kcadmin/`` on macOS and Windows. See :func:`get_config_dir`.
* **Global config** -- ``config.json`` holding a
  :class:`~kcadmin.models.GlobalConfig` (the default profile name).
* **Profiles** -- one JSON file per identity provider target, each
  deserialised into a :class:`~kcadmin.models.ConnectionProfile`.
* **Profile resolution** -- :func:`resolve_profile` picks the active profile
  from the CLI flag, ``KCADMIN_PROFILE``, the configured default, or the only
  existing profile.
* **Credential resolution** -- :func:`resolve_credential` reads secrets from
  env vars, files, interactive prompts, or literal values.

Profiles never contain secrets directly, only source descriptors, and all
file writes go through :func:`_atomic_write`.
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from kcadmin.exceptions import ConfigurationError
from kcadmin.models import ConnectionProfile, GlobalConfig

_APP_NAME = "kcadmin"
_CONFIG_FILENAME = "config.json"
PROFILE_ENV_VAR = "KCADMIN_PROFILE"


# --- Paths ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/kcadmin/`` (default ``~/.config/kcadmin/``).
    On macOS/Windows: ``~/.kcadmin/``.
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    path = get_config_dir() / "profiles"
    path.mkdir(parents=True, exist_ok=True)
    return path


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory and a rename."""
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
        os.chmod(tmp_path, 0o600)
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
    """Load ``config.json``, or defaults if it does not exist.

    Raises:
        ConfigurationError: If the file is not valid JSON or fails validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    data = config.model_dump(mode="json")
    _atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Profiles ---


def _profile_path(name: str) -> Path:
    return get_profiles_dir() / f"{name}.json"


def list_profiles() -> list[str]:
    """Return all profile names, sorted alphabetically."""
    return sorted(p.stem for p in get_profiles_dir().glob("*.json") if p.is_file())


def load_profile(name: str) -> ConnectionProfile:
    """Load and validate a profile from disk.

    Raises:
        ConfigurationError: If the profile does not exist, is not valid JSON,
            or fails validation.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigurationError(f"Profile '{name}' not found at {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ConnectionProfile.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid profile '{name}' at {path}: {exc}") from exc


def save_profile(profile: ConnectionProfile) -> None:
    data = profile.model_dump(mode="json")
    _atomic_write(_profile_path(profile.name), json.dumps(data, indent=2) + "\n")


def profile_exists(name: str) -> bool:
    return _profile_path(name).is_file()


def delete_profile(name: str) -> None:
    """Delete a profile, clearing it as default if it was one.

    Raises:
        ConfigurationError: If the profile does not exist.
    """
    path = _profile_path(name)
    if not path.is_file():
        raise ConfigurationError(f"Profile '{name}' not found at {path}")
    path.unlink()

    config = load_global_config()
    if config.default_profile == name:
        config.default_profile = None
        save_global_config(config)


def resolve_profile(cli_profile: Optional[str] = None) -> ConnectionProfile:
    """Pick and load the active profile.

    Precedence (high to low):
        1. ``cli_profile`` (the ``--profile`` flag)
        2. ``KCADMIN_PROFILE`` environment variable
        3. ``default_profile`` in ``config.json``
        4. The only existing profile, if there is exactly one

    Raises:
        ConfigurationError: If no profile can be determined or loaded.
    """
    name = cli_profile or os.environ.get(PROFILE_ENV_VAR) or load_global_config().default_profile
    if name is None:
        profiles = list_profiles()
        if len(profiles) == 1:
            name = profiles[0]
        elif not profiles:
            raise ConfigurationError(
                "No profile configured. Create one with 'kcadmin profile add'."
            )
        else:
            raise ConfigurationError(
                "Several profiles exist; pick one with --profile or 'kcadmin profile use'."
            )
    return load_profile(name)


# --- Credential sources ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts interactively (requires a TTY)
        - ``"value:literal"`` -- the literal text after the prefix

    Raises:
        ConfigurationError: If the source cannot be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigurationError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigurationError(f"Credential file not found: {path}")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigurationError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigurationError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    if source.startswith("value:"):
        return source[6:]

    raise ConfigurationError(f"Unknown credential source format: {source}")
