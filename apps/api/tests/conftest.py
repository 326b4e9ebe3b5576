from __future__ import annotations

import pytest

from noti_api.dependencies import clear_caches


@pytest.fixture(autouse=True)
def clear_provider_caches(monkeypatch):
    monkeypatch.setenv("GIT_AUTO_INIT", "false")
    monkeypatch.delenv("API_AUTH_MODE", raising=False)
    monkeypatch.delenv("API_AUTH_TOKEN", raising=False)
    clear_caches()
    yield
    clear_caches()
