"""XDG locations for cleanbin's files.

- Profile and theme: ``$XDG_CONFIG_HOME/cleanbin/`` (``~/.config/cleanbin/``)
- Backup sets: ``$XDG_STATE_HOME/cleanbin/backups/``
  (``~/.local/state/cleanbin/backups/``)
"""

import os
from pathlib import Path

APP_NAME = "cleanbin"


def _xdg_base(env_var: str, fallback: str) -> Path:
    """Resolve an XDG base directory and append the application name.

    An unset or empty variable falls back to ``~/<fallback>``.
    """
    configured = os.environ.get(env_var)
    base = Path(configured) if configured else Path.home() / fallback
    return base / APP_NAME


def get_config_dir() -> Path:
    """Directory holding the profile and theme files."""
    return _xdg_base("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Directory holding data that persists between runs, such as backups."""
    return _xdg_base("XDG_STATE_HOME", ".local/state")


def get_profile_path() -> Path:
    """Default profile file, ``profile.toml`` in the config directory."""
    return get_config_dir() / "profile.toml"


def get_theme_path() -> Path:
    """User theme override, ``theme.toml`` in the config directory."""
    return get_config_dir() / "theme.toml"


def get_backup_dir() -> Path:
    """Default backup root.

    Every backup creates a ``backup_<id>_<timestamp>`` directory below it.
    """
    return get_state_dir() / "backups"


def ensure_config_dir() -> Path:
    """Create the config directory if needed and return it.

    Raises:
        RuntimeError: If the directory cannot be created.
    """
    path = get_config_dir()
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create config directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create config directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path
