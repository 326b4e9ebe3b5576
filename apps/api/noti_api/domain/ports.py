from __future__ import annotations

from typing import Protocol, runtime_checkable

from noti_api.domain.entities import Note, NoteMetadata, TagCount


@runtime_checkable
class NoteRepository(Protocol):
    def list_notes(
        self, tag: str | None = None, folder: str | None = None, q: str | None = None
    ) -> list[NoteMetadata]:
        ...

    def get_note(self, slug: str) -> Note:
        ...

    def create_note(
        self, slug: str | None, content: str, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        ...

    def save_note(
        self, slug: str, content: str, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        ...

    def update_note(
        self, slug: str, content: str | None = None, title: str | None = None, tags: list[str] | None = None
    ) -> Note:
        ...

    def delete_note(self, slug: str) -> str:
        ...

    def move_note(self, slug: str, target_folder: str) -> Note:
        ...

    def list_tags(self) -> list[TagCount]:
        ...
