from functools import lru_cache

from noti_api.attachments import AttachmentStore
from noti_api.config import load_settings
from noti_api.folders import FolderStore
from noti_api.notes import NoteStore
from noti_api.templates import TemplateStore
from noti_api.themes import ThemeStore
from noti_api.vcs.git import GitRepository

@lru_cache()
def get_settings():
    return load_settings()

@lru_cache()
def get_notes():
    settings = get_settings()
    return NoteStore(settings.notes_dir)

@lru_cache()
def get_folders():
    settings = get_settings()
    return FolderStore(settings.notes_dir)

@lru_cache()
def get_templates():
    settings = get_settings()
    return TemplateStore(settings.notes_dir)

@lru_cache()
def get_themes():
    settings = get_settings()
    return ThemeStore(settings.themes_dir)

@lru_cache()
def get_attachments():
    settings = get_settings()
    return AttachmentStore(settings.notes_dir)

@lru_cache()
def get_git():
    settings = get_settings()
    return GitRepository(
        settings.notes_dir,
        binary=settings.git_binary,
        timeout_s=settings.git_timeout_s,
        default_user_name=settings.git_default_user_name,
        default_user_email=settings.git_default_user_email,
    )

ALL_PROVIDERS = (get_settings, get_notes, get_folders, get_templates, get_themes, get_attachments, get_git)

def clear_caches() -> None:
    for provider in ALL_PROVIDERS:
        provider.cache_clear()
