from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from ..domain.entities import Note
from ..domain.exceptions import PathError
from ..parsing import extract_frontmatter_tags, extract_title, parse_frontmatter
from ..util import coerce_timestamp
from .porcelain import (
    LOG_FORMAT,
    CommitInfo,
    GitStatus,
    Remote,
    parse_log,
    parse_numstat,
    parse_remotes,
    parse_status,
    render_untracked_diff,
)

logger = logging.getLogger("noti.git")

README_NAME = "README.md"
README_CONTENT = "# My Notes\n\nWelcome to Noti!\n"


class GitError(RuntimeError):
    def __init__(self, code: str, stderr: str = "") -> None:
        super().__init__(code)
        self.code = code
        self.stderr = stderr


@dataclass(frozen=True)
class CommitResult:
    latest: CommitInfo | None
    total: int


@dataclass(frozen=True)
class PullResult:
    changes: int
    insertions: int
    deletions: int
    files: list[str]


@dataclass(frozen=True)
class PushResult:
    success: bool
    result: str


def _check_path_arg(path: str) -> str:
    cleaned = path.strip().replace("\\", "/")
    if not cleaned or "\x00" in cleaned or cleaned.startswith("/"):
        raise PathError("invalid_file_path")
    if ".." in PurePosixPath(cleaned).parts:
        raise PathError("path_traversal_not_allowed")
    return cleaned


def _check_revision(commit: str) -> str:
    cleaned = commit.strip()
    if not cleaned or cleaned.startswith("-") or any(c.isspace() for c in cleaned) or ":" in cleaned:
        raise PathError("invalid_commit")
    return cleaned


class GitRepository:
    def __init__(
        self,
        repo_dir: Path,
        *,
        binary: str = "git",
        timeout_s: float = 60.0,
        default_user_name: str = "Noti User",
        default_user_email: str = "user@noti.local",
    ) -> None:
        self.repo_dir = repo_dir
        self.binary = binary
        self.timeout_s = timeout_s
        self.default_user_name = default_user_name
        self.default_user_email = default_user_email

    def run(self, args: list[str], *, check: bool = True) -> subprocess.CompletedProcess:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0", "LC_ALL": "C"}
        cmd = [self.binary, "-C", str(self.repo_dir), *args]
        try:
            proc = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                env=env,
                timeout=self.timeout_s,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as e:
            raise GitError("git_not_available") from e
        except subprocess.TimeoutExpired as e:
            raise GitError("git_timeout") from e

        if check and proc.returncode != 0:
            logger.warning(
                "git_command_failed",
                extra={"command": args[0], "returncode": proc.returncode, "stderr": proc.stderr.strip()},
            )
            raise GitError(f"git_{args[0]}_failed", proc.stderr.strip())
        return proc

    def _output(self, args: list[str]) -> str:
        return self.run(args).stdout

    def is_repo(self) -> bool:
        if not self.repo_dir.is_dir():
            return False
        proc = self.run(["rev-parse", "--is-inside-work-tree"], check=False)
        return proc.returncode == 0 and proc.stdout.strip() == "true"

    def _require_repo(self) -> None:
        if not self.is_repo():
            raise GitError("not_a_git_repository")

    def _has_commits(self) -> bool:
        return self.run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False).returncode == 0

    def _config_value(self, key: str) -> str | None:
        proc = self.run(["config", "--get", key], check=False)
        value = proc.stdout.strip()
        return value or None

    def ensure_initialized(self) -> bool:
        """Make the notes root a usable repository. Returns True when it had to be created."""
        self.repo_dir.mkdir(parents=True, exist_ok=True)
        created = False
        if not self.is_repo():
            logger.info("git_init", extra={"path": str(self.repo_dir)})
            self.run(["init"])
            created = True

        if not self._config_value("user.name"):
            self.run(["config", "user.name", self.default_user_name])
        if not self._config_value("user.email"):
            self.run(["config", "user.email", self.default_user_email])

        if created and [p.name for p in self.repo_dir.iterdir()] == [".git"]:
            (self.repo_dir / README_NAME).write_text(README_CONTENT, encoding="utf-8")
            self.run(["add", README_NAME])
            self.run(["commit", "-m", "Initial commit"])
        return created

    def status(self) -> GitStatus:
        self._require_repo()
        return parse_status(self._output(["status", "--porcelain=v1", "-b", "-z", "--untracked-files=all"]))

    def log(self, max_count: int | None = None, path: str | None = None) -> list[CommitInfo]:
        self._require_repo()
        if not self._has_commits():
            return []
        args = ["log", f"--format={LOG_FORMAT}"]
        if max_count is not None:
            args.append(f"--max-count={max_count}")
        if path is not None:
            args += ["--follow", "--", _check_path_arg(path)]
        return parse_log(self._output(args))

    def total_commits(self) -> int:
        if not self._has_commits():
            return 0
        return int(self._output(["rev-list", "--count", "HEAD"]).strip() or 0)

    def commit(self, message: str) -> CommitResult:
        if not message.strip():
            raise GitError("commit_message_required")
        self._require_repo()
        self.run(["add", "-A"])
        staged = self.run(["diff", "--cached", "--quiet"], check=False)
        if staged.returncode == 0:
            raise GitError("nothing_to_commit")
        self.run(["commit", "-m", message])
        latest = self.log(max_count=1)
        return CommitResult(latest=latest[0] if latest else None, total=self.total_commits())

    def push(self) -> PushResult:
        self._require_repo()
        proc = self.run(["push"])
        # git reports push progress on stderr.
        return PushResult(success=True, result=(proc.stdout + proc.stderr).strip())

    def _head(self) -> str | None:
        proc = self.run(["rev-parse", "--verify", "--quiet", "HEAD"], check=False)
        return proc.stdout.strip() or None

    def pull(self) -> PullResult:
        self._require_repo()
        before = self._head()
        self.run(["pull", "--no-edit"])
        after = self._head()
        if not after or before == after:
            return PullResult(changes=0, insertions=0, deletions=0, files=[])

        if before:
            entries = parse_numstat(self._output(["diff", "--numstat", before, after]))
        else:
            entries = parse_numstat(self._output(["show", "--numstat", "--format=", after]))
        return PullResult(
            changes=len(entries),
            insertions=sum(e.insertions for e in entries),
            deletions=sum(e.deletions for e in entries),
            files=[e.path for e in entries],
        )

    def remotes(self) -> list[Remote]:
        self._require_repo()
        return parse_remotes(self._output(["remote", "-v"]))

    def diff(self, staged: bool = False) -> str:
        self._require_repo()
        text = self._output(["diff", "--cached"] if staged else ["diff"])
        if staged:
            return text

        for path in self.status().not_added:
            full = self.repo_dir / path
            if not full.is_file():
                continue
            try:
                content = full.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("untracked_unreadable", extra={"path": path, "error": str(e)})
                continue
            text += ("\n" if text and not text.endswith("\n") else "") + render_untracked_diff(path, content)
        return text

    def file_diff(self, path: str, staged: bool = False) -> str:
        self._require_repo()
        args = ["diff", "--cached"] if staged else ["diff"]
        return self._output([*args, "--", _check_path_arg(path)])

    def file_history(self, path: str) -> list[CommitInfo]:
        return self.log(path=path)

    def file_at_commit(self, path: str, commit: str) -> Note | None:
        path = _check_path_arg(path)
        commit = _check_revision(commit)
        self._require_repo()
        proc = self.run(["show", f"{commit}:{path}"], check=False)
        if proc.returncode != 0:
            logger.info("file_at_commit_missing", extra={"path": path, "commit": commit})
            return None

        parsed = parse_frontmatter(proc.stdout)
        slug = path[:-3] if path.endswith(".md") else path
        folder = PurePosixPath(path).parent.as_posix()
        return Note(
            slug=slug,
            title=extract_title(parsed.frontmatter, PurePosixPath(slug).name),
            content=parsed.body,
            tags=extract_frontmatter_tags(parsed.frontmatter),
            created=coerce_timestamp(parsed.frontmatter.get("created")) or "",
            modified=coerce_timestamp(parsed.frontmatter.get("modified")) or "",
            folder="" if folder == "." else folder,
            file_path=path,
            frontmatter_error=parsed.error,
        )
