"""Parsers for the machine-readable output of git commands."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

LOG_FIELD_SEP = "\x1f"
LOG_RECORD_SEP = "\x1e"
LOG_FORMAT = LOG_FIELD_SEP.join(["%H", "%aI", "%s", "%an", "%ae", "%D"]) + LOG_RECORD_SEP

CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

_BRANCH_RE = re.compile(
    r"^## (?:No commits yet on |Initial commit on )?"
    r"(?P<current>.+?)"
    r"(?:\.\.\.(?P<tracking>\S+))?"
    r"(?: \[(?P<counts>[^\]]*)\])?$"
)
_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")


@dataclass(frozen=True)
class FileStatus:
    path: str
    index: str
    working_dir: str


@dataclass(frozen=True)
class Rename:
    from_path: str
    to_path: str


@dataclass
class GitStatus:
    current: str | None = None
    tracking: str | None = None
    ahead: int = 0
    behind: int = 0
    files: list[FileStatus] = field(default_factory=list)
    staged: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    renamed: list[Rename] = field(default_factory=list)
    conflicted: list[str] = field(default_factory=list)
    not_added: list[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.files


@dataclass(frozen=True)
class CommitInfo:
    hash: str
    date: str
    message: str
    author_name: str
    author_email: str
    refs: str


@dataclass(frozen=True)
class Remote:
    name: str
    fetch: str
    push: str


@dataclass(frozen=True)
class NumstatEntry:
    path: str
    insertions: int
    deletions: int


def parse_branch_header(line: str, status: GitStatus) -> None:
    if line.startswith("## HEAD (no branch)"):
        status.current = "HEAD"
        return
    m = _BRANCH_RE.match(line)
    if not m:
        return
    status.current = m.group("current")
    status.tracking = m.group("tracking")
    counts = m.group("counts") or ""
    ahead = _AHEAD_RE.search(counts)
    behind = _BEHIND_RE.search(counts)
    status.ahead = int(ahead.group(1)) if ahead else 0
    status.behind = int(behind.group(1)) if behind else 0


def parse_status(output: str) -> GitStatus:
    """Parse ``git status --porcelain=v1 -b -z``."""
    status = GitStatus()
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if not entry:
            continue
        if entry.startswith("## "):
            parse_branch_header(entry, status)
            continue
        if len(entry) < 4:
            continue

        index, working_dir, path = entry[0], entry[1], entry[3:]
        status.files.append(FileStatus(path=path, index=index, working_dir=working_dir))

        if index in "RC" and i < len(entries):
            # -z puts the source path of a rename in the next field.
            status.renamed.append(Rename(from_path=entries[i], to_path=path))
            i += 1

        code = index + working_dir
        if code in CONFLICT_CODES:
            status.conflicted.append(path)
            continue
        if code == "??":
            status.not_added.append(path)
        elif index not in " ?":
            status.staged.append(path)

        if working_dir == "M" or index == "M":
            status.modified.append(path)
        elif working_dir == "D" or index == "D":
            status.deleted.append(path)
        elif working_dir == "?" or index == "A":
            status.created.append(path)
    return status


def parse_log(output: str) -> list[CommitInfo]:
    commits: list[CommitInfo] = []
    for record in output.split(LOG_RECORD_SEP):
        record = record.strip("\n")
        if not record:
            continue
        parts = record.split(LOG_FIELD_SEP)
        if len(parts) < 6:
            parts += [""] * (6 - len(parts))
        commits.append(
            CommitInfo(
                hash=parts[0],
                date=parts[1],
                message=parts[2],
                author_name=parts[3],
                author_email=parts[4],
                refs=parts[5],
            )
        )
    return commits


def parse_remotes(output: str) -> list[Remote]:
    fetch: dict[str, str] = {}
    push: dict[str, str] = {}
    order: list[str] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 3:
            continue
        name, url, kind = parts[0], parts[1], parts[2]
        if name not in order:
            order.append(name)
        if kind == "(fetch)":
            fetch[name] = url
        elif kind == "(push)":
            push[name] = url
    return [Remote(name=n, fetch=fetch.get(n, ""), push=push.get(n, "")) for n in order]


def parse_numstat(output: str) -> list[NumstatEntry]:
    entries: list[NumstatEntry] = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        added, deleted, path = parts
        entries.append(
            NumstatEntry(
                path=path,
                insertions=int(added) if added.isdigit() else 0,
                deletions=int(deleted) if deleted.isdigit() else 0,
            )
        )
    return entries


def render_untracked_diff(path: str, content: str) -> str:
    """Format an untracked file as a git-style addition so it shows up next to real diffs."""
    lines = content.splitlines()
    out = [
        f"diff --git a/{path} b/{path}",
        "new file mode 100644",
        "index 0000000..0000000",
        "--- /dev/null",
        f"+++ b/{path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    out.extend(f"+{line}" for line in lines)
    return "\n".join(out) + "\n"
