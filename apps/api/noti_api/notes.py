from __future__ import annotations

import os
import re
from collections import Counter
from pathlib import Path, PurePosixPath

from .domain.entities import Note, NoteMetadata, TagCount
from .domain.exceptions import PathError
from .parsing import (
    extract_frontmatter_tags,
    extract_title,
    normalize_tags,
    parse_frontmatter,
    render_markdown_with_frontmatter,
)
from .util import atomic_write_text, coerce_timestamp, rfc3339_from_timestamp, rfc3339_now, safe_filename_stem

NOTE_SUFFIX = ".md"

_CREATED_LINE_RE = re.compile(r"""^created:[ \t]*['"]?([^'"\n]+?)['"]?[ \t]*$""", re.MULTILINE)


def normalize_relative_path(path: str, *, allow_empty: bool = False) -> str:
    """Normalize a user-supplied path relative to the notes root.

    Segments starting with a dot are reserved (``.templates``, ``.attachments``, ``.git``).
    """
    if "\x00" in path:
        raise PathError("path_contains_nul")

    cleaned = path.strip().replace("\\", "/")
    if cleaned.startswith("/"):
        raise PathError("path_absolute_not_allowed")
    cleaned = cleaned.strip("/")
    if not cleaned:
        if allow_empty:
            return ""
        raise PathError("path_empty")

    p = PurePosixPath(cleaned)
    if ".." in p.parts:
        raise PathError("path_traversal_not_allowed")
    if any(part.startswith(".") for part in p.parts):
        raise PathError("path_reserved")
    return p.as_posix()


def normalize_slug(slug: str) -> str:
    cleaned = slug.strip()
    if cleaned.lower().endswith(NOTE_SUFFIX):
        cleaned = cleaned[: -len(NOTE_SUFFIX)]
    return normalize_relative_path(cleaned)


def _salvage_created(yaml_block: str) -> str | None:
    match = _CREATED_LINE_RE.search(yaml_block)
    return match.group(1).strip() if match else None


def slug_from_relative_path(rel: str) -> str:
    return rel.replace("\\", "/")[: -len(NOTE_SUFFIX)]


class NoteStore:
    def __init__(self, notes_dir: Path) -> None:
        self.notes_dir = notes_dir

    def _abs_path(self, slug: str) -> Path:
        return (self.notes_dir / PurePosixPath(slug + NOTE_SUFFIX)).resolve()

    def _ensure_under_root(self, abs_path: Path) -> None:
        root = self.notes_dir.resolve()
        if root not in abs_path.parents:
            raise PathError("path_outside_notes_dir")

    def _resolve(self, slug: str) -> tuple[str, Path]:
        slug = normalize_slug(slug)
        abs_path = self._abs_path(slug)
        self._ensure_under_root(abs_path)
        return slug, abs_path

    def list_slugs(self) -> list[str]:
        if not self.notes_dir.exists():
            return []
        slugs: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.notes_dir):
            dirnames[:] = [d for d in dirnames if not d.startswith(".")]
            for name in filenames:
                if not name.endswith(NOTE_SUFFIX) or name.startswith("."):
                    continue
                rel = Path(dirpath, name).relative_to(self.notes_dir).as_posix()
                slugs.append(slug_from_relative_path(rel))
        return sorted(slugs)

    def _read(self, slug: str, abs_path: Path) -> Note:
        if not abs_path.is_file():
            raise FileNotFoundError(slug)
        text = abs_path.read_text(encoding="utf-8", errors="replace")
        parsed = parse_frontmatter(text)
        stat = abs_path.stat()
        birth = getattr(stat, "st_birthtime", None) or stat.st_mtime
        folder = PurePosixPath(slug).parent.as_posix()
        return Note(
            slug=slug,
            title=extract_title(parsed.frontmatter, PurePosixPath(slug).name),
            content=parsed.body,
            tags=extract_frontmatter_tags(parsed.frontmatter),
            created=coerce_timestamp(parsed.frontmatter.get("created")) or rfc3339_from_timestamp(birth),
            modified=rfc3339_from_timestamp(stat.st_mtime),
            folder="" if folder == "." else folder,
            file_path=slug + NOTE_SUFFIX,
            frontmatter_error=parsed.error,
        )

    def get_note(self, slug: str) -> Note:
        slug, abs_path = self._resolve(slug)
        return self._read(slug, abs_path)

    def list_notes(
        self, tag: str | None = None, folder: str | None = None, q: str | None = None
    ) -> list[NoteMetadata]:
        wanted_tag = tag.strip().lstrip("#") if tag else None
        wanted_folder = normalize_relative_path(folder, allow_empty=True) if folder is not None else None
        needle = q.strip().lower() if q else None
        out: list[NoteMetadata] = []
        for slug in self.list_slugs():
            note = self._read(slug, self._abs_path(slug))
            if wanted_tag and wanted_tag not in note.tags:
                continue
            if wanted_folder is not None and note.folder != wanted_folder:
                continue
            if needle and needle not in note.title.lower() and needle not in note.slug.lower():
                continue
            out.append(note.metadata())
        out.sort(key=lambda n: n.modified, reverse=True)
        return out

    def generate_slug(self, title: str | None, folder: str = "") -> str:
        stem = safe_filename_stem(title or "Untitled")
        prefix = f"{folder}/" if folder else ""
        candidate = prefix + stem
        idx = 2
        while self._abs_path(candidate).exists():
            candidate = f"{prefix}{stem}-{idx}"
            idx += 1
        return candidate

    def _write(
        self,
        slug: str,
        abs_path: Path,
        content: str,
        title: str | None,
        tags: list[str] | None,
    ) -> Note:
        frontmatter: dict = {}
        created: str | None = None
        if abs_path.is_file():
            existing = parse_frontmatter(abs_path.read_text(encoding="utf-8", errors="replace"))
            frontmatter = dict(existing.frontmatter)
            created = coerce_timestamp(existing.frontmatter.get("created"))
            if existing.error and existing.yaml_block is not None:
                # The unreadable block is replaced, not stacked under a new one.
                if content == existing.body:
                    content = existing.after_fence or ""
                created = created or _salvage_created(existing.yaml_block)
            if created is None:
                stat = abs_path.stat()
                created = rfc3339_from_timestamp(getattr(stat, "st_birthtime", None) or stat.st_mtime)

        # title/tags/created lead the block; other existing keys follow untouched.
        head = {
            "title": (title or "").strip() or PurePosixPath(slug).name,
            "tags": normalize_tags(tags or []),
            "created": created or rfc3339_now(),
        }
        for key in head:
            frontmatter.pop(key, None)
        try:
            atomic_write_text(abs_path, render_markdown_with_frontmatter({**head, **frontmatter}, content))
        except NotADirectoryError as e:
            raise FileExistsError(slug) from e
        return self._read(slug, abs_path)

    def save_note(
        self, slug: str, content: str, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        slug, abs_path = self._resolve(slug)
        return self._write(slug, abs_path, content, title, tags)

    def create_note(
        self, slug: str | None, content: str, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        if slug:
            slug, abs_path = self._resolve(slug)
            if abs_path.exists():
                raise FileExistsError(slug)
        else:
            slug, abs_path = self._resolve(self.generate_slug(title))
        return self._write(slug, abs_path, content, title, tags)

    def update_note(
        self, slug: str, content: str | None = None, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        slug, abs_path = self._resolve(slug)
        existing = self._read(slug, abs_path)
        return self._write(
            slug,
            abs_path,
            existing.content if content is None else content,
            existing.title if title is None else title,
            existing.tags if tags is None else tags,
        )

    def delete_note(self, slug: str) -> str:
        slug, abs_path = self._resolve(slug)
        if not abs_path.is_file():
            raise FileNotFoundError(slug)
        abs_path.unlink()
        return slug

    def move_note(self, slug: str, target_folder: str) -> Note:
        slug, old_abs = self._resolve(slug)
        if not old_abs.is_file():
            raise FileNotFoundError(slug)

        folder = normalize_relative_path(target_folder, allow_empty=True)
        name = PurePosixPath(slug).name
        new_slug, new_abs = self._resolve(f"{folder}/{name}" if folder else name)
        if new_slug == slug:
            return self._read(slug, old_abs)
        if new_abs.exists():
            raise FileExistsError(new_slug)
        try:
            new_abs.parent.mkdir(parents=True, exist_ok=True)
        except NotADirectoryError as e:
            raise FileExistsError(new_slug) from e
        old_abs.replace(new_abs)
        return self._read(new_slug, new_abs)

    def list_tags(self) -> list[TagCount]:
        counts: Counter[str] = Counter()
        for slug in self.list_slugs():
            counts.update(self._read(slug, self._abs_path(slug)).tags)
        ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        return [TagCount(tag=t, count=c) for t, c in ranked]
