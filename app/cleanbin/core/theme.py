"""Console theme for the cleanbin CLI.

Every style used by the preview tables and report output is backed by a
hex color in ThemeColors. Users can override single colors in the
``[colors]`` table of ``~/.config/cleanbin/theme.toml``; invalid files
are reported and ignored.
"""

import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from rich.theme import Theme

from cleanbin.core.paths import get_theme_path

logger = logging.getLogger(__name__)

# Styles rendered in bold on top of their color
_BOLD_STYLES = frozenset({"error", "priority_high", "unsafe"})


def _parse_hex(field: str, value: object) -> str:
    """Normalize a ``#RGB``/``#RRGGBB`` color or raise ValueError."""
    if not isinstance(value, str):
        msg = f"{field}: color must be a string"
        raise ValueError(msg)
    color = value.strip()
    if not color.startswith("#"):
        msg = f"{field}: color must start with '#'"
        raise ValueError(msg)
    digits = color[1:]
    if len(digits) not in (3, 6):
        msg = f"{field}: color must be #RGB or #RRGGBB format"
        raise ValueError(msg)
    if any(char not in "0123456789abcdefABCDEF" for char in digits):
        msg = f"{field}: invalid hex color '{color}'"
        raise ValueError(msg)
    return color


class ThemeColors(BaseModel):
    """Hex colors for each named console style."""

    model_config = ConfigDict(extra="forbid")

    text: str = "#ffffff"
    muted: str = "#b2bec3"
    header: str = "#69B9A1"
    border: str = "#29526d"

    success: str = "#03b971"
    warning: str = "#f5b332"
    error: str = "#f53263"
    info: str = "#0ec1c8"

    # Deletion priority 1-3
    priority_high: str = "#c1ff62"
    priority_medium: str = "#faf870"
    priority_low: str = "#b2bec3"

    safe: str = "#03b971"
    unsafe: str = "#d44ebc"

    @field_validator("*", mode="before")
    @classmethod
    def validate_hex_color(cls, v: object, info: Any) -> str:
        return _parse_hex(info.field_name, v)


def _load_toml_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Returns:
        String-valued color entries, or None if the file is missing or
        unreadable.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return None
    except (tomllib.TOMLDecodeError, OSError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    section = data.get("colors", {})
    if not isinstance(section, dict):
        logger.warning("Ignoring theme file %s: 'colors' is not a table", path)
        return None
    return {key: value for key, value in section.items() if isinstance(value, str)}


def load_theme(path: Path | None = None) -> ThemeColors:
    """Build theme colors from the defaults and a user theme file.

    Args:
        path: Theme file to read. Defaults to the user theme path.

    Returns:
        ThemeColors with valid overrides applied, or the defaults if the
        overrides do not validate.
    """
    theme_path = path or get_theme_path()
    overrides = _load_toml_colors(theme_path)
    if not overrides:
        return ThemeColors()

    try:
        colors = ThemeColors(**overrides)
    except ValidationError as e:
        logger.warning("Invalid colors in %s, using defaults: %s", theme_path, e)
        return ThemeColors()
    logger.debug("Applied %d theme overrides from %s", len(overrides), theme_path)
    return colors


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Map ThemeColors onto Rich style names.

    Each field becomes a style of the same name; ``bold_header`` is added
    for table headers.
    """
    colors = colors or load_theme()
    styles = {
        name: f"bold {value}" if name in _BOLD_STYLES else value
        for name, value in colors.model_dump().items()
    }
    styles["bold_header"] = f"bold {colors.header}"
    return Theme(styles)


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the process-wide Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
