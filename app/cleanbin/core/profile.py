"""Configuration profile file I/O.

This module provides functions for loading and saving configuration
profiles in TOML format with validation through the Pydantic model.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from cleanbin.core.errors import CleanbinError
from cleanbin.core.paths import get_backup_dir, get_profile_path
from cleanbin.models.profile import ConfigurationProfile


class ProfileError(CleanbinError):
    """Base exception for profile-related errors."""


class ProfileNotFoundError(ProfileError):
    """Raised when the profile file is not found."""


class ProfileParseError(ProfileError):
    """Raised when the profile file cannot be parsed."""


class ProfileValidationError(ProfileError):
    """Raised when the profile content is invalid."""


def default_profile() -> ConfigurationProfile:
    """Create the default profile with backups stored in the XDG state directory."""
    return ConfigurationProfile(
        name="default",
        description="Remove build output and dependency caches",
        backup_path=str(get_backup_dir()),
    )


def load_profile(path: Path | None = None) -> ConfigurationProfile:
    """Load and validate a profile from a TOML file.

    Args:
        path: Path to the profile file. If None, uses the default profile path.

    Returns:
        Validated ConfigurationProfile.

    Raises:
        ProfileNotFoundError: If the profile file doesn't exist.
        ProfileParseError: If the TOML syntax is invalid.
        ProfileValidationError: If the content doesn't match the schema.
    """
    profile_path = path or get_profile_path()

    if not profile_path.exists():
        raise ProfileNotFoundError(f"Profile not found: {profile_path}")

    try:
        with open(profile_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ProfileParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ProfileError(f"Failed to read profile: {e}") from e

    try:
        return ConfigurationProfile.model_validate(data.get("profile", data))
    except ValidationError as e:
        raise ProfileValidationError(f"Invalid profile content: {e}") from e


def load_profile_or_default(path: Path | None = None) -> ConfigurationProfile:
    """Load a profile, falling back to ``default_profile()`` when no file exists.

    Raises:
        ProfileParseError: If the file exists but is not valid TOML.
        ProfileValidationError: If the file exists but is invalid.
    """
    try:
        return load_profile(path)
    except ProfileNotFoundError:
        return default_profile()


def save_profile(profile: ConfigurationProfile, path: Path | None = None) -> Path:
    """Save a profile to a TOML file.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        profile: The profile to save.
        path: Path to save the profile. If None, uses the default profile path.

    Returns:
        Path where the profile was saved.

    Raises:
        ProfileError: If the file cannot be written.
    """
    profile_path = path or get_profile_path()
    profile_path.parent.mkdir(parents=True, exist_ok=True)

    data = _profile_to_dict(profile)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=profile_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(profile_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ProfileError(f"Failed to write profile: {e}") from e

    return profile_path


def profile_exists(path: Path | None = None) -> bool:
    """Check if a profile file exists."""
    return (path or get_profile_path()).exists()


def require_profile(profile_path: Path | None = None) -> ConfigurationProfile:
    """Load a profile or exit with a helpful error message.

    An explicitly given path must exist. Without one, the default profile
    file is used when present and ``default_profile()`` otherwise.

    Args:
        profile_path: Optional custom profile path.

    Returns:
        Loaded and validated profile.

    Raises:
        typer.Exit: If the profile cannot be loaded.
    """
    import typer

    from cleanbin.utils.formatting import print_error, print_info

    try:
        if profile_path is None:
            return load_profile_or_default()
        return load_profile(profile_path)
    except ProfileNotFoundError as e:
        print_error(f"Profile not found: {profile_path}")
        print_info("Run 'cleanbin profile init' to create a profile.")
        raise typer.Exit(code=1) from e
    except ProfileError as e:
        print_error(f"Failed to load profile: {e}")
        raise typer.Exit(code=1) from e


def _profile_to_dict(profile: ConfigurationProfile) -> dict[str, Any]:
    """Convert a profile to a dictionary suitable for TOML serialization.

    Everything lives under a ``[profile]`` table.
    """
    return {"profile": profile.model_dump(mode="json")}
