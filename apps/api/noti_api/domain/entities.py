from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class NoteMetadata:
    slug: str
    title: str
    tags: list[str]
    created: str
    modified: str
    folder: str


@dataclass(frozen=True)
class Note:
    slug: str
    title: str
    content: str
    tags: list[str]
    created: str
    modified: str
    folder: str
    file_path: str
    frontmatter_error: str | None = None

    def metadata(self) -> NoteMetadata:
        return NoteMetadata(
            slug=self.slug,
            title=self.title,
            tags=self.tags,
            created=self.created,
            modified=self.modified,
            folder=self.folder,
        )


@dataclass(frozen=True)
class TagCount:
    tag: str
    count: int


@dataclass(frozen=True)
class Folder:
    name: str
    path: str
    note_count: int


@dataclass(frozen=True)
class Template:
    slug: str
    title: str
    content: str
    description: str | None
    created: str


@dataclass(frozen=True)
class Attachment:
    path: str
    data_url: str
