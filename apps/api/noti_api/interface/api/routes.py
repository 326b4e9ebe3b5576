import base64
import binascii
import logging
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from noti_api.attachments import AttachmentStore
from noti_api.dependencies import get_attachments, get_folders, get_git, get_notes, get_templates, get_themes
from noti_api.domain.exceptions import FolderNotEmptyError, PathError, ThemeValidationError
from noti_api.domain.schemas import (
    AttachmentIn,
    AttachmentOut,
    CommitIn,
    CommitOut,
    CommitResultOut,
    DiffOut,
    FileStatusOut,
    FolderCreateIn,
    FolderOut,
    FolderRenameIn,
    GitStatusOut,
    NoteCreateIn,
    NoteFromTemplateIn,
    NoteMetadataOut,
    NoteMoveIn,
    NoteOut,
    NoteUpdateIn,
    PullOut,
    PushOut,
    RemoteOut,
    RemoteRefsOut,
    RenameOut,
    SyncIn,
    TagCountOut,
    TemplateCreateIn,
    TemplateOut,
)
from noti_api.folders import FolderStore
from noti_api.notes import NoteStore
from noti_api.templates import TemplateStore
from noti_api.themes import ThemeStore, theme_to_css_variables
from noti_api.vcs.git import GitError, GitRepository

router = APIRouter()
logger = logging.getLogger("noti.api")

_GIT_CONFLICT_CODES = {"not_a_git_repository", "nothing_to_commit"}
_GIT_BAD_REQUEST_CODES = {"commit_message_required"}


def _rid(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def _git_http_error(e: GitError) -> HTTPException:
    if e.code in _GIT_CONFLICT_CODES:
        return HTTPException(status_code=409, detail=e.code)
    if e.code in _GIT_BAD_REQUEST_CODES:
        return HTTPException(status_code=400, detail=e.code)
    return HTTPException(status_code=502, detail=e.code)


@router.get("/health")
def health():
    return {"ok": True}


# Notes


@router.get("/notes", response_model=list[NoteMetadataOut])
def list_notes(
    tag: Optional[str] = None,
    folder: Optional[str] = None,
    q: Optional[str] = None,
    notes: NoteStore = Depends(get_notes),
):
    try:
        items = notes.list_notes(tag=tag, folder=folder, q=q)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return [NoteMetadataOut(**n.__dict__) for n in items]


@router.post("/notes", response_model=NoteOut, status_code=201)
def create_note(payload: NoteCreateIn, request: Request, notes: NoteStore = Depends(get_notes)):
    try:
        note = notes.create_note(
            payload.slug,
            payload.content,
            title=payload.metadata.title,
            tags=payload.metadata.tags,
        )
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="note_exists") from e
    logger.info("note_create", extra={"rid": _rid(request), "slug": note.slug})
    return NoteOut(**note.__dict__)


@router.post("/notes/{slug:path}/move", response_model=NoteOut)
def move_note(slug: str, payload: NoteMoveIn, request: Request, notes: NoteStore = Depends(get_notes)):
    try:
        note = notes.move_note(slug, payload.target_folder)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="note_exists") from e
    logger.info("note_move", extra={"rid": _rid(request), "slug": slug, "new_slug": note.slug})
    return NoteOut(**note.__dict__)


@router.get("/notes/{slug:path}", response_model=NoteOut)
def get_note(slug: str, notes: NoteStore = Depends(get_notes)):
    try:
        note = notes.get_note(slug)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    return NoteOut(**note.__dict__)


@router.put("/notes/{slug:path}", response_model=NoteOut)
def update_note(slug: str, payload: NoteUpdateIn, request: Request, notes: NoteStore = Depends(get_notes)):
    try:
        note = notes.update_note(
            slug,
            content=payload.content,
            title=payload.metadata.title,
            tags=payload.metadata.tags,
        )
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    logger.info("note_update", extra={"rid": _rid(request), "slug": note.slug})
    return NoteOut(**note.__dict__)


@router.delete("/notes/{slug:path}")
def delete_note(slug: str, request: Request, notes: NoteStore = Depends(get_notes)):
    try:
        deleted = notes.delete_note(slug)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="note_not_found") from e
    logger.info("note_delete", extra={"rid": _rid(request), "slug": deleted})
    return {"success": True}


@router.get("/tags", response_model=list[TagCountOut])
def list_tags(notes: NoteStore = Depends(get_notes)):
    return [TagCountOut(tag=t.tag, count=t.count) for t in notes.list_tags()]


# Folders


@router.get("/folders", response_model=list[FolderOut])
def list_folders(folders: FolderStore = Depends(get_folders)):
    return [FolderOut(**f.__dict__) for f in folders.list_folders()]


@router.post("/folders", response_model=FolderOut, status_code=201)
def create_folder(payload: FolderCreateIn, request: Request, folders: FolderStore = Depends(get_folders)):
    try:
        folder = folders.create_folder(payload.path)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="folder_exists") from e
    logger.info("folder_create", extra={"rid": _rid(request), "folder": folder.path})
    return FolderOut(**folder.__dict__)


@router.put("/folders/{path:path}", response_model=FolderOut)
def rename_folder(path: str, payload: FolderRenameIn, request: Request, folders: FolderStore = Depends(get_folders)):
    try:
        folder = folders.rename_folder(path, payload.new_name)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="folder_not_found") from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="folder_exists") from e
    logger.info("folder_rename", extra={"rid": _rid(request), "folder": path, "new_folder": folder.path})
    return FolderOut(**folder.__dict__)


@router.delete("/folders/{path:path}")
def delete_folder(path: str, request: Request, folders: FolderStore = Depends(get_folders)):
    try:
        deleted = folders.delete_folder(path)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="folder_not_found") from e
    except FolderNotEmptyError as e:
        raise HTTPException(status_code=409, detail="folder_not_empty") from e
    logger.info("folder_delete", extra={"rid": _rid(request), "folder": deleted})
    return {"success": True}


# Templates


@router.get("/templates", response_model=list[TemplateOut])
def list_templates(templates: TemplateStore = Depends(get_templates)):
    return [TemplateOut(**t.__dict__) for t in templates.list_templates()]


@router.post("/templates", response_model=TemplateOut, status_code=201)
def create_template(
    payload: TemplateCreateIn,
    request: Request,
    templates: TemplateStore = Depends(get_templates),
):
    if not payload.content or not payload.metadata.title.strip():
        raise HTTPException(status_code=400, detail="template_content_and_title_required")
    try:
        template = templates.create_template(
            payload.slug,
            payload.content,
            title=payload.metadata.title,
            description=payload.metadata.description,
        )
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="template_exists") from e
    logger.info("template_create", extra={"rid": _rid(request), "slug": template.slug})
    return TemplateOut(**template.__dict__)


@router.get("/templates/{slug}", response_model=TemplateOut)
def get_template(slug: str, templates: TemplateStore = Depends(get_templates)):
    try:
        template = templates.get_template(slug)
    except (PathError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail="template_not_found") from e
    return TemplateOut(**template.__dict__)


@router.delete("/templates/{slug}")
def delete_template(slug: str, request: Request, templates: TemplateStore = Depends(get_templates)):
    try:
        templates.delete_template(slug)
    except (PathError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail="template_not_found") from e
    logger.info("template_delete", extra={"rid": _rid(request), "slug": slug})
    return {"success": True}


@router.post("/templates/{slug}/notes", response_model=NoteOut, status_code=201)
def create_note_from_template(
    slug: str,
    payload: NoteFromTemplateIn,
    request: Request,
    templates: TemplateStore = Depends(get_templates),
    notes: NoteStore = Depends(get_notes),
):
    try:
        templates.get_template(slug)
    except (PathError, FileNotFoundError) as e:
        raise HTTPException(status_code=404, detail="template_not_found") from e
    try:
        note = templates.create_note_from_template(
            notes,
            slug,
            payload.slug,
            title=payload.title,
            tags=payload.tags,
            folder=payload.folder,
        )
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileExistsError as e:
        raise HTTPException(status_code=409, detail="note_exists") from e
    logger.info("note_create", extra={"rid": _rid(request), "slug": note.slug, "template": slug})
    return NoteOut(**note.__dict__)


# Themes


@router.get("/themes")
def list_themes(themes: ThemeStore = Depends(get_themes)):
    return themes.list_themes()


@router.post("/themes")
def create_theme(request: Request, theme: Any = Body(...), themes: ThemeStore = Depends(get_themes)):
    try:
        saved = themes.save_theme(theme)
    except (PathError, ThemeValidationError) as e:
        raise HTTPException(status_code=400, detail="invalid_theme_format") from e
    logger.info("theme_save", extra={"rid": _rid(request), "theme": saved["name"]})
    return saved


@router.get("/themes/{name}")
def get_theme(name: str, themes: ThemeStore = Depends(get_themes)):
    try:
        return themes.get_theme(name)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=404, detail="theme_not_found") from e


@router.put("/themes/{name}")
def replace_theme(name: str, request: Request, theme: Any = Body(...), themes: ThemeStore = Depends(get_themes)):
    try:
        saved = themes.replace_theme(name, theme)
    except (PathError, ThemeValidationError) as e:
        raise HTTPException(status_code=400, detail="invalid_theme_format") from e
    logger.info("theme_save", extra={"rid": _rid(request), "theme": saved["name"]})
    return saved


@router.delete("/themes/{name}")
def delete_theme(name: str, request: Request, themes: ThemeStore = Depends(get_themes)):
    try:
        themes.delete_theme(name)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="theme_not_found") from e
    logger.info("theme_delete", extra={"rid": _rid(request), "theme": name})
    return {"success": True}


@router.get("/themes/{name}/css")
def theme_css(name: str, themes: ThemeStore = Depends(get_themes)):
    try:
        theme = themes.get_theme(name)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except (FileNotFoundError, ValueError) as e:
        raise HTTPException(status_code=404, detail="theme_not_found") from e
    return theme_to_css_variables(theme)


# Attachments


@router.post("/attachments", response_model=AttachmentOut, status_code=201)
def save_attachment(
    payload: AttachmentIn,
    request: Request,
    attachments: AttachmentStore = Depends(get_attachments),
):
    try:
        data = base64.b64decode(payload.data_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=400, detail="invalid_base64") from e
    try:
        attachment = attachments.save_attachment(payload.note_slug, payload.filename, data)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    logger.info("attachment_save", extra={"rid": _rid(request), "path": attachment.path, "size": len(data)})
    return AttachmentOut(**attachment.__dict__)


@router.get("/attachments/resolve", response_model=AttachmentOut)
def resolve_attachment(path: str, attachments: AttachmentStore = Depends(get_attachments)):
    try:
        attachment = attachments.resolve_attachment(path)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=404, detail="attachment_not_found") from e
    return AttachmentOut(**attachment.__dict__)


# Git


@router.get("/git/status", response_model=GitStatusOut)
def git_status(git: GitRepository = Depends(get_git)):
    try:
        status = git.status()
    except GitError as e:
        raise _git_http_error(e) from e
    return GitStatusOut(
        current=status.current,
        tracking=status.tracking,
        ahead=status.ahead,
        behind=status.behind,
        files=[FileStatusOut(**f.__dict__) for f in status.files],
        staged=status.staged,
        modified=status.modified,
        created=status.created,
        deleted=status.deleted,
        renamed=[RenameOut(from_=r.from_path, to=r.to_path) for r in status.renamed],
        conflicted=status.conflicted,
        not_added=status.not_added,
        is_clean=status.is_clean,
    )


@router.post("/git/commit", response_model=CommitResultOut)
def git_commit(payload: CommitIn, request: Request, git: GitRepository = Depends(get_git)):
    if not payload.message.strip():
        raise HTTPException(status_code=400, detail="commit_message_required")
    try:
        result = git.commit(payload.message)
    except GitError as e:
        raise _git_http_error(e) from e
    latest = CommitOut(**result.latest.__dict__) if result.latest else None
    logger.info("git_commit", extra={"rid": _rid(request), "hash": latest.hash if latest else None})
    return CommitResultOut(latest=latest, total=result.total)


@router.post("/git/sync")
def git_sync(payload: SyncIn, request: Request, git: GitRepository = Depends(get_git)):
    if payload.action not in {"pull", "push"}:
        raise HTTPException(status_code=400, detail="invalid_sync_action")
    try:
        if payload.action == "pull":
            pulled = git.pull()
            out: Any = PullOut(**pulled.__dict__)
        else:
            pushed = git.push()
            out = PushOut(**pushed.__dict__)
    except GitError as e:
        raise _git_http_error(e) from e
    logger.info("git_sync", extra={"rid": _rid(request), "action": payload.action})
    return out


@router.get("/git/diff", response_model=DiffOut)
def git_diff(staged: bool = False, file: Optional[str] = None, git: GitRepository = Depends(get_git)):
    try:
        diff = git.file_diff(file, staged=staged) if file else git.diff(staged=staged)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except GitError as e:
        raise _git_http_error(e) from e
    return DiffOut(diff=diff)


@router.get("/git/history", response_model=list[CommitOut])
def git_history(file: str = Query(..., min_length=1), git: GitRepository = Depends(get_git)):
    try:
        history = git.file_history(file)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except GitError as e:
        raise _git_http_error(e) from e
    return [CommitOut(**c.__dict__) for c in history]


@router.get("/git/file-version", response_model=NoteOut)
def git_file_version(
    file: str = Query(..., min_length=1),
    commit: str = Query(..., min_length=1),
    git: GitRepository = Depends(get_git),
):
    try:
        note = git.file_at_commit(file, commit)
    except PathError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except GitError as e:
        raise _git_http_error(e) from e
    if note is None:
        raise HTTPException(status_code=404, detail="file_not_found_at_commit")
    return NoteOut(**note.__dict__)


@router.get("/git/remotes", response_model=list[RemoteOut])
def git_remotes(git: GitRepository = Depends(get_git)):
    try:
        remotes = git.remotes()
    except GitError as e:
        raise _git_http_error(e) from e
    return [RemoteOut(name=r.name, refs=RemoteRefsOut(fetch=r.fetch, push=r.push)) for r in remotes]
