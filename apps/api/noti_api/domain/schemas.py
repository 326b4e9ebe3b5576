from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class NoteMetadataOut(BaseModel):
    slug: str
    title: str
    tags: list[str] = Field(default_factory=list)
    created: str
    modified: str
    folder: str = ""


class NoteOut(NoteMetadataOut):
    content: str
    file_path: str
    frontmatter_error: Optional[str] = None


class NoteMetadataIn(BaseModel):
    title: Optional[str] = None
    tags: Optional[list[str]] = None


class NoteCreateIn(BaseModel):
    slug: Optional[str] = None
    content: str = ""
    metadata: NoteMetadataIn = Field(default_factory=NoteMetadataIn)


class NoteUpdateIn(BaseModel):
    content: Optional[str] = None
    metadata: NoteMetadataIn = Field(default_factory=NoteMetadataIn)


class NoteMoveIn(BaseModel):
    target_folder: str = ""


class TagCountOut(BaseModel):
    tag: str
    count: int


class FolderOut(BaseModel):
    name: str
    path: str
    note_count: int


class FolderCreateIn(BaseModel):
    path: str


class FolderRenameIn(BaseModel):
    new_name: str


class TemplateOut(BaseModel):
    slug: str
    title: str
    content: str
    description: Optional[str] = None
    created: str


class TemplateMetadataIn(BaseModel):
    title: str
    description: Optional[str] = None


class TemplateCreateIn(BaseModel):
    slug: str
    content: str
    metadata: TemplateMetadataIn


class NoteFromTemplateIn(BaseModel):
    slug: Optional[str] = None
    title: str
    tags: list[str] = Field(default_factory=list)
    folder: str = ""


class AttachmentIn(BaseModel):
    note_slug: str
    filename: str
    data_base64: str


class AttachmentOut(BaseModel):
    path: str
    data_url: str


class FileStatusOut(BaseModel):
    path: str
    index: str
    working_dir: str


class RenameOut(BaseModel):
    from_: str = Field(serialization_alias="from")
    to: str


class GitStatusOut(BaseModel):
    current: Optional[str] = None
    tracking: Optional[str] = None
    ahead: int = 0
    behind: int = 0
    files: list[FileStatusOut] = Field(default_factory=list)
    staged: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    created: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    renamed: list[RenameOut] = Field(default_factory=list)
    conflicted: list[str] = Field(default_factory=list)
    not_added: list[str] = Field(default_factory=list)
    is_clean: bool


class CommitOut(BaseModel):
    hash: str
    date: str
    message: str
    author_name: str
    author_email: str
    refs: str = ""


class CommitIn(BaseModel):
    message: str = ""


class CommitResultOut(BaseModel):
    latest: Optional[CommitOut] = None
    total: int


class SyncIn(BaseModel):
    action: str


class PullOut(BaseModel):
    changes: int
    insertions: int
    deletions: int
    files: list[str] = Field(default_factory=list)


class PushOut(BaseModel):
    success: bool
    result: str


class DiffOut(BaseModel):
    diff: str


class RemoteRefsOut(BaseModel):
    fetch: str
    push: str


class RemoteOut(BaseModel):
    name: str
    refs: RemoteRefsOut
