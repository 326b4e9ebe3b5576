"""Theme palettes stored as JSON files.

A theme is kept as the raw mapping the client sent, so unknown keys survive a
save; only the keys the UI cannot render without are enforced.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from .domain.exceptions import PathError, ThemeValidationError
from .util import atomic_write_json

logger = logging.getLogger("noti.themes")

REQUIRED_FIELDS = ("name", "author", "version", "colors")

REQUIRED_COLORS = (
    "primary",
    "primaryHover",
    "secondary",
    "accent",
    "background",
    "surface",
    "foreground",
    "textPrimary",
    "textSecondary",
    "textMuted",
    "border",
    "borderLight",
)

_COLOR_VARIABLES = {
    "primary": "--primary",
    "primaryHover": "--primary-hover",
    "secondary": "--secondary",
    "accent": "--accent",
    "background": "--background",
    "surface": "--surface",
    "foreground": "--foreground",
    "textPrimary": "--text-primary",
    "textSecondary": "--text-secondary",
    "textMuted": "--text-muted",
    "border": "--border",
    "borderLight": "--border-light",
}

_SHADOW_VARIABLES = {"sm": "--shadow-sm", "md": "--shadow-md", "lg": "--shadow-lg"}
_RADIUS_VARIABLES = {"default": "--radius", "sm": "--radius-sm"}

_WHITESPACE_RE = re.compile(r"\s+")


def theme_file_name(name: str) -> str:
    stem = _WHITESPACE_RE.sub("-", name.strip().lower())
    if not stem or stem.startswith(".") or "/" in stem or "\\" in stem or "\x00" in stem:
        raise PathError("invalid_theme_name")
    return f"{stem}.json"


def theme_problems(theme: Any) -> list[str]:
    if not isinstance(theme, dict):
        return ["theme_not_object"]
    problems = [f"missing_{field}" for field in REQUIRED_FIELDS if not theme.get(field)]
    colors = theme.get("colors")
    if isinstance(colors, dict):
        problems.extend(f"missing_color_{c}" for c in REQUIRED_COLORS if not colors.get(c))
    elif colors:
        problems.append("colors_not_object")
    if theme.get("type") not in (None, "light", "dark"):
        problems.append("invalid_type")
    return problems


def validate_theme(theme: Any) -> bool:
    return not theme_problems(theme)


def theme_to_css_variables(theme: dict) -> dict[str, str]:
    colors = theme.get("colors") or {}
    out = {var: str(colors[key]) for key, var in _COLOR_VARIABLES.items() if colors.get(key)}
    header_bg = colors.get("headerBg") or colors.get("surface")
    if header_bg:
        out["--header-bg"] = str(header_bg)
    for section, mapping in (("shadows", _SHADOW_VARIABLES), ("radius", _RADIUS_VARIABLES)):
        values = theme.get(section) or {}
        if not isinstance(values, dict):
            continue
        for key, var in mapping.items():
            if values.get(key):
                out[var] = str(values[key])
    return out


class ThemeStore:
    def __init__(self, themes_dir: Path) -> None:
        self.themes_dir = themes_dir

    def _path_for(self, name: str) -> Path:
        return self.themes_dir / theme_file_name(name)

    def list_themes(self) -> list[dict]:
        if not self.themes_dir.is_dir():
            return []
        themes: list[dict] = []
        for path in sorted(self.themes_dir.glob("*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("theme_unreadable", extra={"path": str(path), "error": str(e)})
                continue
            if not isinstance(data, dict):
                logger.warning("theme_not_object", extra={"path": str(path)})
                continue
            themes.append(data)
        return themes

    def get_theme(self, name: str) -> dict:
        path = self._path_for(name)
        if not path.is_file():
            raise FileNotFoundError(name)
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ThemeValidationError("theme_not_object")
        return data

    def save_theme(self, theme: Any) -> dict:
        problems = theme_problems(theme)
        if problems:
            raise ThemeValidationError(problems[0])
        atomic_write_json(self._path_for(str(theme["name"])), theme)
        return theme

    def replace_theme(self, name: str, theme: Any) -> dict:
        old_path = self._path_for(name)
        saved = self.save_theme(theme)
        new_path = self._path_for(str(saved["name"]))
        if new_path != old_path and old_path.is_file():
            old_path.unlink()
        return saved

    def delete_theme(self, name: str) -> str:
        path = self._path_for(name)
        if not path.is_file():
            raise FileNotFoundError(name)
        path.unlink()
        return name
