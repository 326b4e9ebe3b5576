from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    notes_dir: Path
    themes_dir: Path
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool
    git_binary: str
    git_auto_init: bool
    git_timeout_s: float
    git_default_user_name: str
    git_default_user_email: str


def load_settings() -> Settings:
    notes_dir = Path(os.environ.get("NOTES_DIR", "./notes")).resolve()
    themes_dir = Path(os.environ.get("THEMES_DIR", "./themes")).resolve()
    api_auth_mode = os.environ.get("API_AUTH_MODE", "none").strip().lower()
    api_auth_token = os.environ.get("API_AUTH_TOKEN")
    api_debug_log = _env_bool("API_DEBUG_LOG", "false")
    git_binary = os.environ.get("GIT_BINARY", "git")
    git_auto_init = _env_bool("GIT_AUTO_INIT", "true")
    git_timeout_s = float(os.environ.get("GIT_TIMEOUT_S", "60"))
    git_default_user_name = os.environ.get("GIT_DEFAULT_USER_NAME", "Noti User")
    git_default_user_email = os.environ.get("GIT_DEFAULT_USER_EMAIL", "user@noti.local")
    return Settings(
        notes_dir=notes_dir,
        themes_dir=themes_dir,
        api_auth_mode=api_auth_mode,
        api_auth_token=api_auth_token,
        api_debug_log=api_debug_log,
        git_binary=git_binary,
        git_auto_init=git_auto_init,
        git_timeout_s=git_timeout_s,
        git_default_user_name=git_default_user_name,
        git_default_user_email=git_default_user_email,
    )
