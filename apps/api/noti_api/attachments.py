from __future__ import annotations

import base64
import mimetypes
import re
from pathlib import Path, PurePosixPath

from .domain.entities import Attachment
from .domain.exceptions import PathError
from .notes import normalize_relative_path, normalize_slug
from .util import atomic_write_bytes

ATTACHMENTS_DIR_NAME = ".attachments"
DEFAULT_MIME_TYPE = "image/png"

_LEADING_PARENT_RE = re.compile(r"^(\.\./)+")


def mime_type_for(name: str) -> str:
    mime, _ = mimetypes.guess_type(name)
    return mime or DEFAULT_MIME_TYPE


def data_url(name: str, data: bytes) -> str:
    return f"data:{mime_type_for(name)};base64,{base64.b64encode(data).decode('ascii')}"


def _safe_filename(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name.strip()
    if not name or name.startswith(".") or "\x00" in name:
        raise PathError("invalid_attachment_name")
    return name


class AttachmentStore:
    def __init__(self, notes_dir: Path) -> None:
        self.notes_dir = notes_dir
        self.attachments_dir = notes_dir / ATTACHMENTS_DIR_NAME

    def save_attachment(self, note_slug: str, filename: str, data: bytes) -> Attachment:
        slug = normalize_slug(note_slug)
        name = _safe_filename(filename)
        target_dir = self.attachments_dir / PurePosixPath(slug)

        stem, suffix = PurePosixPath(name).stem, PurePosixPath(name).suffix
        candidate = name
        counter = 1
        while (target_dir / candidate).exists():
            candidate = f"{stem}-{counter}{suffix}"
            counter += 1
        atomic_write_bytes(target_dir / candidate, data)

        # Relative to the note's own folder, as written into its markdown.
        up = "../" * slug.count("/")
        return Attachment(
            path=f"{up}{ATTACHMENTS_DIR_NAME}/{slug}/{candidate}",
            data_url=data_url(candidate, data),
        )

    def resolve_attachment(self, relative_path: str) -> Attachment:
        cleaned = _LEADING_PARENT_RE.sub("", relative_path.strip().replace("\\", "/"))
        if not cleaned.startswith(f"{ATTACHMENTS_DIR_NAME}/"):
            raise PathError("path_not_attachment")
        inner = normalize_relative_path(cleaned[len(ATTACHMENTS_DIR_NAME) + 1 :])
        abs_path = (self.attachments_dir / PurePosixPath(inner)).resolve()
        if self.attachments_dir.resolve() not in abs_path.parents:
            raise PathError("path_outside_notes_dir")
        if not abs_path.is_file():
            raise FileNotFoundError(relative_path)
        return Attachment(
            path=f"{ATTACHMENTS_DIR_NAME}/{inner}",
            data_url=data_url(abs_path.name, abs_path.read_bytes()),
        )
