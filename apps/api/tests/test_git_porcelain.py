from noti_api.vcs.porcelain import (
    LOG_FIELD_SEP,
    LOG_RECORD_SEP,
    GitStatus,
    parse_branch_header,
    parse_log,
    parse_numstat,
    parse_remotes,
    parse_status,
    render_untracked_diff,
)


def test_branch_header_with_tracking_and_counts() -> None:
    status = GitStatus()
    parse_branch_header("## main...origin/main [ahead 2, behind 1]", status)
    assert (status.current, status.tracking, status.ahead, status.behind) == ("main", "origin/main", 2, 1)


def test_branch_header_variants() -> None:
    s1 = GitStatus()
    parse_branch_header("## No commits yet on main", s1)
    assert s1.current == "main"
    assert s1.tracking is None

    s2 = GitStatus()
    parse_branch_header("## feature/x", s2)
    assert (s2.current, s2.ahead, s2.behind) == ("feature/x", 0, 0)

    s3 = GitStatus()
    parse_branch_header("## HEAD (no branch)", s3)
    assert s3.current == "HEAD"

    s4 = GitStatus()
    parse_branch_header("## main...origin/main [gone]", s4)
    assert (s4.tracking, s4.ahead) == ("origin/main", 0)


def test_parse_status_categorizes_files() -> None:
    output = "\0".join(
        [
            "## main...origin/main [behind 3]",
            " M edited.md",
            "M  staged.md",
            "A  added.md",
            " D removed.md",
            "?? new note.md",
            "R  renamed.md",
            "original.md",
            "UU conflict.md",
            "",
        ]
    )
    status = parse_status(output)

    assert status.current == "main"
    assert status.behind == 3
    assert [f.path for f in status.files] == [
        "edited.md",
        "staged.md",
        "added.md",
        "removed.md",
        "new note.md",
        "renamed.md",
        "conflict.md",
    ]
    assert status.modified == ["edited.md", "staged.md"]
    assert status.created == ["added.md", "new note.md"]
    assert status.deleted == ["removed.md"]
    assert status.not_added == ["new note.md"]
    assert status.staged == ["staged.md", "added.md", "renamed.md"]
    assert [(r.from_path, r.to_path) for r in status.renamed] == [("original.md", "renamed.md")]
    assert status.conflicted == ["conflict.md"]
    assert not status.is_clean


def test_parse_status_clean() -> None:
    status = parse_status("## main\0")
    assert status.is_clean
    assert status.current == "main"


def test_parse_log() -> None:
    rec1 = LOG_FIELD_SEP.join(["abc123", "2024-05-01T10:00:00+02:00", "Edit notes", "Ann", "ann@example.com", "HEAD -> main"])
    rec2 = LOG_FIELD_SEP.join(["def456", "2024-04-30T09:00:00+02:00", "Initial commit", "Ann", "ann@example.com", ""])
    output = rec1 + LOG_RECORD_SEP + "\n" + rec2 + LOG_RECORD_SEP + "\n"

    commits = parse_log(output)
    assert [c.hash for c in commits] == ["abc123", "def456"]
    assert commits[0].refs == "HEAD -> main"
    assert commits[1].message == "Initial commit"
    assert commits[1].author_email == "ann@example.com"
    assert parse_log("") == []


def test_parse_remotes() -> None:
    output = (
        "origin\tgit@example.com:me/notes.git (fetch)\n"
        "origin\tgit@example.com:me/notes.git (push)\n"
        "backup\thttps://example.org/notes.git (fetch)\n"
    )
    remotes = parse_remotes(output)
    assert [(r.name, r.fetch, r.push) for r in remotes] == [
        ("origin", "git@example.com:me/notes.git", "git@example.com:me/notes.git"),
        ("backup", "https://example.org/notes.git", ""),
    ]


def test_parse_numstat_handles_binary() -> None:
    entries = parse_numstat("3\t1\tnotes/a.md\n-\t-\timage.png\n")
    assert [(e.path, e.insertions, e.deletions) for e in entries] == [("notes/a.md", 3, 1), ("image.png", 0, 0)]


def test_render_untracked_diff() -> None:
    diff = render_untracked_diff("new.md", "line one\nline two\n")
    assert diff.splitlines() == [
        "diff --git a/new.md b/new.md",
        "new file mode 100644",
        "index 0000000..0000000",
        "--- /dev/null",
        "+++ b/new.md",
        "@@ -0,0 +1,2 @@",
        "+line one",
        "+line two",
    ]
