from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest
from fastapi.testclient import TestClient

from campaign_map.core import content_store
from campaign_map.core.config import get_settings
from campaign_map.core.content_store import LOCATIONS_PATH
from campaign_map.core.local_store import LocalContentStore
from campaign_map.main import app
from campaign_map.modules.auth.service import hash_password
from campaign_map.modules.character_paths import cache as path_cache

PASSWORDS = {"gm": "gm-pass", "admin": "admin-pass", "mira": "mira-pass", "tam": "tam-pass"}

USERS: List[Dict[str, Any]] = [
    {"username": "gm", "displayName": "gm", "role": "gm", "password": PASSWORDS["gm"]},
    {"username": "admin", "displayName": "Admin", "role": "admin", "password": PASSWORDS["admin"]},
    {"username": "mira", "displayName": "Mira", "role": "user", "password": PASSWORDS["mira"]},
    {"username": "tam", "role": "user", "password_hash": hash_password(PASSWORDS["tam"], iterations=1000)},
]


def feature(name: str, x: float, y: float, **props: Any) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "properties": {"name": name, "description": "", **props},
        "geometry": {"type": "Point", "coordinates": [x, y]},
    }


LOCATIONS = {
    "type": "FeatureCollection",
    "features": [
        feature("Valaris", 100, 200, region="valaris_region", type="city"),
        feature("Harak", 300, 50, region="harak", type="town"),
        feature("Upeto", 10, 20, region="upeto", type="village"),
    ],
}


@pytest.fixture
def store(tmp_path, monkeypatch):
    db_url = "sqlite:///" + (tmp_path / "content.db").as_posix()
    monkeypatch.setenv("CONTENT_BACKEND", "local")
    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("CAMPAIGN_USERS", json.dumps(USERS))
    monkeypatch.delenv("CHANGELOG_SYSTEM_AUTHORS", raising=False)
    monkeypatch.delenv("REVIEW_RETENTION_DAYS", raising=False)
    get_settings.cache_clear()

    s = LocalContentStore(db_url)
    monkeypatch.setattr(content_store, "_store", s)
    monkeypatch.setattr(path_cache, "_cache", None)
    yield s
    get_settings.cache_clear()


@pytest.fixture
def seeded(store):
    store.write_json(LOCATIONS_PATH, LOCATIONS, message="Seed locations", sha=None, author="seed")
    return store


@pytest.fixture
def client(store):
    with TestClient(app) as c:
        yield c


def login(client: TestClient, username: str) -> None:
    r = client.post("/api/login", json={"username": username, "password": PASSWORDS[username]})
    assert r.status_code == 200, r.text
