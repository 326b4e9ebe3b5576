import copy
import json

import pytest

from noti_api.domain.exceptions import PathError, ThemeValidationError
from noti_api.themes import (
    REQUIRED_COLORS,
    ThemeStore,
    theme_file_name,
    theme_problems,
    theme_to_css_variables,
    validate_theme,
)


def make_theme(name: str = "Solarized Dark") -> dict:
    return {
        "name": name,
        "author": "someone",
        "version": "1.0.0",
        "description": "test palette",
        "type": "dark",
        "colors": {c: f"#{i:06x}" for i, c in enumerate(REQUIRED_COLORS, start=1)},
        "shadows": {"sm": "s", "md": "m", "lg": "l"},
        "radius": {"default": "4px", "sm": "2px"},
    }


def test_theme_file_name() -> None:
    assert theme_file_name("Solarized  Dark") == "solarized-dark.json"
    for bad in ("", "../up", ".hidden", "a/b"):
        with pytest.raises(PathError):
            theme_file_name(bad)


def test_validate_theme_requires_fields_and_colors() -> None:
    assert validate_theme(make_theme())

    missing_author = make_theme()
    del missing_author["author"]
    assert theme_problems(missing_author) == ["missing_author"]

    missing_color = make_theme()
    missing_color["colors"]["borderLight"] = ""
    assert theme_problems(missing_color) == ["missing_color_borderLight"]

    bad_type = make_theme()
    bad_type["type"] = "sepia"
    assert not validate_theme(bad_type)

    assert not validate_theme(["not", "a", "dict"])


def test_css_variables() -> None:
    theme = make_theme()
    css = theme_to_css_variables(theme)
    assert css["--primary"] == theme["colors"]["primary"]
    assert css["--border-light"] == theme["colors"]["borderLight"]
    assert css["--header-bg"] == theme["colors"]["surface"]
    assert css["--shadow-lg"] == "l"
    assert css["--radius"] == "4px"
    assert css["--radius-sm"] == "2px"

    theme["colors"]["headerBg"] = "#abcdef"
    del theme["shadows"]
    css = theme_to_css_variables(theme)
    assert css["--header-bg"] == "#abcdef"
    assert "--shadow-sm" not in css


def test_save_get_delete(tmp_path) -> None:
    store = ThemeStore(tmp_path)
    theme = make_theme()
    store.save_theme(theme)

    path = tmp_path / "solarized-dark.json"
    assert json.loads(path.read_text(encoding="utf-8")) == theme
    assert store.get_theme("Solarized Dark") == theme
    assert store.list_themes() == [theme]

    store.delete_theme("solarized dark")
    assert not path.exists()
    with pytest.raises(FileNotFoundError):
        store.get_theme("Solarized Dark")
    with pytest.raises(FileNotFoundError):
        store.delete_theme("Solarized Dark")


def test_save_rejects_invalid(tmp_path) -> None:
    store = ThemeStore(tmp_path)
    theme = make_theme()
    del theme["colors"]["accent"]
    with pytest.raises(ThemeValidationError):
        store.save_theme(theme)
    assert list(tmp_path.iterdir()) == []


def test_replace_theme_renames_file(tmp_path) -> None:
    store = ThemeStore(tmp_path)
    store.save_theme(make_theme("Old Name"))

    renamed = copy.deepcopy(make_theme("New Name"))
    store.replace_theme("Old Name", renamed)
    assert not (tmp_path / "old-name.json").exists()
    assert (tmp_path / "new-name.json").exists()


def test_list_skips_unreadable_files(tmp_path) -> None:
    store = ThemeStore(tmp_path)
    store.save_theme(make_theme("Good"))
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "list.json").write_text("[1, 2]")

    assert [t["name"] for t in store.list_themes()] == ["Good"]
    assert ThemeStore(tmp_path / "missing").list_themes() == []
