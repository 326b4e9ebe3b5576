from __future__ import annotations

from fastapi.testclient import TestClient


def test_request_id_header_present(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path / "notes"))
    from main import create_app

    client = TestClient(create_app())
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}
    assert r.headers.get("x-request-id")

    r2 = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert r2.headers["x-request-id"] == "abc-123"


def test_notes_dir_created_on_startup(tmp_path, monkeypatch) -> None:
    notes_dir = tmp_path / "nested" / "notes"
    monkeypatch.setenv("NOTES_DIR", str(notes_dir))
    from main import create_app

    create_app()
    assert notes_dir.is_dir()
    assert not (notes_dir / ".git").exists()


def test_bearer_auth_blocks_when_enabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    monkeypatch.setenv("API_AUTH_MODE", "bearer")
    monkeypatch.setenv("API_AUTH_TOKEN", "secret")

    from main import create_app

    client = TestClient(create_app())

    # Health is exempt so containers can be checked.
    r0 = client.get("/health")
    assert r0.status_code == 200

    r1 = client.get("/notes")
    assert r1.status_code == 401
    assert r1.json() == {"detail": "unauthorized"}
    assert r1.headers.get("x-request-id")

    r2 = client.get("/notes", headers={"Authorization": "Bearer secret"})
    assert r2.status_code == 200

    r3 = client.get("/notes", headers={"Authorization": "Bearer wrong"})
    assert r3.status_code == 401


def test_bearer_mode_without_token_rejects_everything(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NOTES_DIR", str(tmp_path))
    monkeypatch.setenv("API_AUTH_MODE", "bearer")

    from main import create_app

    client = TestClient(create_app())
    assert client.get("/notes", headers={"Authorization": "Bearer "}).status_code == 401
