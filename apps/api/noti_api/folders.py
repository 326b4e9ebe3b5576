from __future__ import annotations

import re
from pathlib import Path, PurePosixPath

from .domain.entities import Folder
from .domain.exceptions import FolderNameError, FolderNotEmptyError, PathError
from .notes import NOTE_SUFFIX, normalize_relative_path

_RESERVED_CHARS_RE = re.compile(r'[<>:"|?*]')


def validate_folder_name(name: str) -> None:
    if not name or not name.strip():
        raise FolderNameError("folder_name_empty")
    if "/" in name or "\\" in name:
        raise FolderNameError("folder_name_has_slash")
    if name.startswith("."):
        raise FolderNameError("folder_name_starts_with_dot")
    if _RESERVED_CHARS_RE.search(name):
        raise FolderNameError("folder_name_invalid_chars")


def _count_notes(directory: Path) -> int:
    return sum(1 for p in directory.iterdir() if p.is_file() and p.name.endswith(NOTE_SUFFIX))


class FolderStore:
    def __init__(self, notes_dir: Path) -> None:
        self.notes_dir = notes_dir

    def _abs_path(self, folder_path: str) -> Path:
        abs_path = (self.notes_dir / PurePosixPath(folder_path)).resolve()
        if self.notes_dir.resolve() not in abs_path.parents:
            raise PathError("path_outside_notes_dir")
        return abs_path

    def list_folders(self) -> list[Folder]:
        folders: list[Folder] = []
        if not self.notes_dir.exists():
            return folders

        def scan(directory: Path, rel: str) -> None:
            for entry in sorted(directory.iterdir(), key=lambda p: p.name):
                if entry.is_symlink() or not entry.is_dir() or entry.name.startswith("."):
                    continue
                folder_path = f"{rel}/{entry.name}" if rel else entry.name
                folders.append(Folder(name=entry.name, path=folder_path, note_count=_count_notes(entry)))
                scan(entry, folder_path)

        scan(self.notes_dir, "")
        folders.sort(key=lambda f: f.path)
        return folders

    def create_folder(self, folder_path: str) -> Folder:
        cleaned = folder_path.strip().replace("\\", "/").strip("/")
        for segment in cleaned.split("/"):
            validate_folder_name(segment)
        folder_path = normalize_relative_path(cleaned)
        abs_path = self._abs_path(folder_path)
        if abs_path.exists():
            raise FileExistsError(folder_path)
        try:
            abs_path.mkdir(parents=True)
        except NotADirectoryError as e:
            # A file sits where one of the parent folders should be.
            raise FileExistsError(folder_path) from e
        return Folder(name=abs_path.name, path=folder_path, note_count=0)

    def rename_folder(self, folder_path: str, new_name: str) -> Folder:
        validate_folder_name(new_name)
        folder_path = normalize_relative_path(folder_path)
        old_abs = self._abs_path(folder_path)
        if not old_abs.is_dir():
            raise FileNotFoundError(folder_path)

        parent = PurePosixPath(folder_path).parent.as_posix()
        new_path = new_name if parent == "." else f"{parent}/{new_name}"
        new_abs = self._abs_path(new_path)
        if new_abs.exists():
            raise FileExistsError(new_path)
        old_abs.rename(new_abs)
        return Folder(name=new_name, path=new_path, note_count=_count_notes(new_abs))

    def delete_folder(self, folder_path: str) -> str:
        folder_path = normalize_relative_path(folder_path)
        abs_path = self._abs_path(folder_path)
        if not abs_path.is_dir():
            raise FileNotFoundError(folder_path)
        if any(abs_path.iterdir()):
            raise FolderNotEmptyError(folder_path)
        abs_path.rmdir()
        return folder_path

    def is_folder_empty(self, folder_path: str) -> bool:
        folder_path = normalize_relative_path(folder_path)
        abs_path = self._abs_path(folder_path)
        if not abs_path.is_dir():
            return True
        return not any(abs_path.iterdir())
