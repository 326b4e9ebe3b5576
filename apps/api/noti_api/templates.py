from __future__ import annotations

import re
from pathlib import Path

from .domain.entities import Note, Template
from .domain.exceptions import TemplateNameError
from .notes import NOTE_SUFFIX, NoteStore, normalize_relative_path
from .parsing import extract_title, parse_frontmatter, render_markdown_with_frontmatter
from .util import atomic_write_text, coerce_timestamp, rfc3339_now

TEMPLATES_DIR_NAME = ".templates"

_INVALID_SLUG_CHARS_RE = re.compile(r"[^a-z0-9-]")
_DASH_RUN_RE = re.compile(r"-+")


def sanitize_template_slug(raw: str) -> str:
    slug = _INVALID_SLUG_CHARS_RE.sub("-", raw.lower())
    slug = _DASH_RUN_RE.sub("-", slug).strip("-")
    if not slug:
        raise TemplateNameError("invalid_template_name")
    return slug


class TemplateStore:
    def __init__(self, notes_dir: Path) -> None:
        self.notes_dir = notes_dir
        self.templates_dir = notes_dir / TEMPLATES_DIR_NAME

    def _ensure_dir(self) -> None:
        self.templates_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, slug: str) -> Path:
        # Lookups only accept slugs that create_template could have produced.
        if slug != sanitize_template_slug(slug):
            raise FileNotFoundError(slug)
        return self.templates_dir / f"{slug}{NOTE_SUFFIX}"

    def _read(self, slug: str, path: Path) -> Template:
        parsed = parse_frontmatter(path.read_text(encoding="utf-8", errors="replace"))
        description = parsed.frontmatter.get("description")
        return Template(
            slug=slug,
            title=extract_title(parsed.frontmatter, slug),
            content=parsed.body,
            description=str(description) if description is not None else None,
            created=coerce_timestamp(parsed.frontmatter.get("created")) or rfc3339_now(),
        )

    def list_templates(self) -> list[Template]:
        self._ensure_dir()
        templates = [
            self._read(p.name[: -len(NOTE_SUFFIX)], p)
            for p in self.templates_dir.iterdir()
            if p.is_file() and p.name.endswith(NOTE_SUFFIX)
        ]
        templates.sort(key=lambda t: t.title.casefold())
        return templates

    def get_template(self, slug: str) -> Template:
        self._ensure_dir()
        path = self._path_for(slug)
        if not path.is_file():
            raise FileNotFoundError(slug)
        return self._read(slug, path)

    def create_template(
        self, slug: str, content: str, title: str, description: str | None = None
    ) -> Template:
        self._ensure_dir()
        slug = sanitize_template_slug(slug)
        path = self.templates_dir / f"{slug}{NOTE_SUFFIX}"
        if path.exists():
            raise FileExistsError(slug)

        frontmatter: dict = {"title": title}
        if description is not None:
            frontmatter["description"] = description
        frontmatter["created"] = rfc3339_now()
        frontmatter["isTemplate"] = True
        atomic_write_text(path, render_markdown_with_frontmatter(frontmatter, content))
        return self._read(slug, path)

    def delete_template(self, slug: str) -> str:
        self._ensure_dir()
        path = self._path_for(slug)
        if not path.is_file():
            raise FileNotFoundError(slug)
        path.unlink()
        return slug

    def create_note_from_template(
        self,
        notes: NoteStore,
        template_slug: str,
        note_slug: str | None,
        title: str,
        tags: list[str] | None = None,
        folder: str = "",
    ) -> Note:
        template = self.get_template(template_slug)
        folder = normalize_relative_path(folder, allow_empty=True)
        if note_slug:
            slug = f"{folder}/{note_slug}" if folder else note_slug
        else:
            slug = notes.generate_slug(title, folder)
        return notes.create_note(slug, template.content, title=title, tags=tags)
