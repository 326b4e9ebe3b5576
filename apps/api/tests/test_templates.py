import pytest

from noti_api.domain.exceptions import TemplateNameError
from noti_api.notes import NoteStore
from noti_api.parsing import parse_frontmatter
from noti_api.templates import TemplateStore, sanitize_template_slug


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Daily Note", "daily-note"),
        ("  Meeting -- Notes!! ", "meeting-notes"),
        ("weekly_review", "weekly-review"),
        ("abc123", "abc123"),
    ],
)
def test_sanitize_template_slug(raw: str, expected: str) -> None:
    assert sanitize_template_slug(raw) == expected


def test_sanitize_template_slug_rejects_empty() -> None:
    with pytest.raises(TemplateNameError):
        sanitize_template_slug("!!!")


def test_create_and_read_template(tmp_path) -> None:
    store = TemplateStore(tmp_path)
    created = store.create_template("Daily Note", "## Tasks\n", title="Daily", description="Every day")
    assert created.slug == "daily-note"
    assert created.description == "Every day"

    path = tmp_path / ".templates" / "daily-note.md"
    parsed = parse_frontmatter(path.read_text(encoding="utf-8"))
    assert parsed.frontmatter["isTemplate"] is True
    assert parsed.frontmatter["title"] == "Daily"
    assert parsed.body == "## Tasks\n"

    fetched = store.get_template("daily-note")
    assert fetched.content == "## Tasks\n"
    assert fetched.created == created.created


def test_description_omitted_when_absent(tmp_path) -> None:
    store = TemplateStore(tmp_path)
    store.create_template("plain", "x", title="Plain")
    parsed = parse_frontmatter((tmp_path / ".templates" / "plain.md").read_text(encoding="utf-8"))
    assert "description" not in parsed.frontmatter
    assert store.get_template("plain").description is None


def test_duplicate_and_missing_templates(tmp_path) -> None:
    store = TemplateStore(tmp_path)
    store.create_template("a", "x", title="A")
    with pytest.raises(FileExistsError):
        store.create_template("A", "y", title="Again")
    with pytest.raises(FileNotFoundError):
        store.get_template("missing")
    with pytest.raises(FileNotFoundError):
        store.get_template("../a")
    with pytest.raises(FileNotFoundError):
        store.delete_template("missing")

    assert store.delete_template("a") == "a"
    assert store.list_templates() == []


def test_list_templates_sorted_by_title(tmp_path) -> None:
    store = TemplateStore(tmp_path)
    store.create_template("z", "x", title="beta")
    store.create_template("y", "x", title="Alpha")
    assert [t.title for t in store.list_templates()] == ["Alpha", "beta"]


def test_templates_are_not_listed_as_notes(tmp_path) -> None:
    TemplateStore(tmp_path).create_template("t", "x", title="T")
    assert NoteStore(tmp_path).list_notes() == []


def test_create_note_from_template(tmp_path) -> None:
    templates = TemplateStore(tmp_path)
    notes = NoteStore(tmp_path)
    templates.create_template("meeting", "## Agenda\n\n## Actions\n", title="Meeting")

    note = templates.create_note_from_template(notes, "meeting", None, title="Standup", tags=["team"], folder="work")
    assert note.slug == "work/Standup"
    assert note.title == "Standup"
    assert note.tags == ["team"]
    assert note.content == "## Agenda\n\n## Actions\n"

    named = templates.create_note_from_template(notes, "meeting", "retro", title="Retro")
    assert named.slug == "retro"

    with pytest.raises(FileExistsError):
        templates.create_note_from_template(notes, "meeting", "retro", title="Retro")
    with pytest.raises(FileNotFoundError):
        templates.create_note_from_template(notes, "nope", None, title="X")


def test_non_utf8_template_still_lists(tmp_path) -> None:
    store = TemplateStore(tmp_path)
    store.create_template("good", "x", title="Good")
    (tmp_path / ".templates" / "legacy.md").write_bytes(b"---\ntitle: Legacy\n---\nna\xefve\n")

    templates = store.list_templates()
    assert [t.slug for t in templates] == ["good", "legacy"]
    assert templates[1].content == "na\ufffdve\n"
