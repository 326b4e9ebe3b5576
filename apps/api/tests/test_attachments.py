import base64

import pytest

from noti_api.attachments import AttachmentStore, mime_type_for
from noti_api.domain.exceptions import PathError

PNG = b"\x89PNG\r\n\x1a\nfake"


def test_save_attachment_for_root_note(tmp_path) -> None:
    store = AttachmentStore(tmp_path)
    att = store.save_attachment("my-note", "shot.png", PNG)
    assert att.path == ".attachments/my-note/shot.png"
    assert att.data_url == "data:image/png;base64," + base64.b64encode(PNG).decode()
    assert (tmp_path / ".attachments" / "my-note" / "shot.png").read_bytes() == PNG


def test_save_attachment_in_subfolder_uses_relative_path(tmp_path) -> None:
    att = AttachmentStore(tmp_path).save_attachment("work/deep/note", "a.jpg", b"jpg")
    assert att.path == "../../.attachments/work/deep/note/a.jpg"
    assert att.data_url.startswith("data:image/jpeg;base64,")


def test_name_collisions_get_suffixes(tmp_path) -> None:
    store = AttachmentStore(tmp_path)
    names = [store.save_attachment("n", "pic.png", PNG).path for _ in range(3)]
    assert names == [
        ".attachments/n/pic.png",
        ".attachments/n/pic-1.png",
        ".attachments/n/pic-2.png",
    ]


def test_resolve_attachment(tmp_path) -> None:
    store = AttachmentStore(tmp_path)
    saved = store.save_attachment("work/note", "pic.png", PNG)

    resolved = store.resolve_attachment(saved.path)
    assert resolved.path == ".attachments/work/note/pic.png"
    assert resolved.data_url == saved.data_url

    with pytest.raises(FileNotFoundError):
        store.resolve_attachment(".attachments/work/note/missing.png")
    with pytest.raises(PathError):
        store.resolve_attachment("../../etc/passwd")
    with pytest.raises(PathError):
        store.resolve_attachment(".attachments/../secret.md")


def test_rejects_bad_filenames(tmp_path) -> None:
    store = AttachmentStore(tmp_path)
    with pytest.raises(PathError):
        store.save_attachment("n", ".hidden", PNG)
    with pytest.raises(PathError):
        store.save_attachment("../escape", "a.png", PNG)
    # Directory components are dropped from the uploaded name.
    assert store.save_attachment("n", "some/dir/b.png", PNG).path == ".attachments/n/b.png"


def test_mime_type_defaults_to_png() -> None:
    assert mime_type_for("a.gif") == "image/gif"
    assert mime_type_for("noext") == "image/png"
