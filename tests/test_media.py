from __future__ import annotations

import io

import pytest
from PIL import Image

from campaign_map.core.content_store import ContentStoreError, MEDIA_LIBRARY_PATH
from campaign_map.core.storage import media_dir
from campaign_map.modules.media import service as media_service
from campaign_map.modules.media.service import Upload, render_sizes, upload_media

from conftest import login


def _png(width: int, height: int, mode: str = "RGB", color=(200, 30, 30)) -> bytes:
    buf = io.BytesIO()
    Image.new(mode, (width, height), color).save(buf, "PNG")
    return buf.getvalue()


def _upload(client, data: bytes, **form):
    fields = {"credits": "Artist Anna", "category": "maps", "tags": "north, city, "}
    fields.update(form)
    return client.post("/api/media/upload", files=[("images", ("world map.png", data, "image/png"))], data=fields)


def test_render_sizes_never_upscale():
    sizes = render_sizes(Image.new("RGB", (2000, 1000)))
    assert {k: v[0].size for k, v in sizes.items()} == {
        "thumb": (150, 75),
        "small": (300, 150),
        "medium": (600, 300),
        "large": (1200, 600),
        "original": (2000, 1000),
    }
    assert sizes["original"][1] == 95
    assert sizes["thumb"][1] == 85

    small = render_sizes(Image.new("RGB", (100, 50)))
    assert small["large"][0].size == (100, 50)


def test_upload_writes_webp_sizes(client, store):
    login(client, "mira")
    r = _upload(client, _png(2000, 1000))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["totalProcessed"] == 1
    item = body["media"][0]

    assert item["id"].startswith("maps-")
    assert item["title"] == "world map"
    assert item["credits"] == "Artist Anna"
    assert item["tags"] == ["north", "city"]
    assert item["mimeType"] == "image/png"
    assert item["sizes"]["thumb"]["width"] == 150
    assert item["sizes"]["thumb"]["height"] == 75
    assert item["sizes"]["original"]["url"].startswith("/media/")

    for size in item["sizes"].values():
        path = media_dir() / size["filename"]
        assert path.exists()
        with Image.open(path) as img:
            assert img.format == "WEBP"
            assert img.size == (size["width"], size["height"])

    commit = store.list_commits(path=MEDIA_LIBRARY_PATH)[0]
    assert commit.message == "Add 1 new media files via CMS"
    assert commit.author == "Mira"


def test_upload_keeps_transparency(client, store):
    login(client, "mira")
    r = _upload(client, _png(40, 40, mode="LA", color=(128, 100)))
    assert r.status_code == 200
    thumb = r.json()["media"][0]["sizes"]["thumb"]
    with Image.open(media_dir() / thumb["filename"]) as img:
        assert img.mode == "RGBA"


def test_upload_validation(client, store):
    assert _upload(client, _png(10, 10)).status_code == 401

    login(client, "mira")
    r = _upload(client, _png(10, 10), credits="  ")
    assert r.status_code == 400
    assert r.json()["message"] == "Credits/Attribution is required for all image uploads"

    r = client.post(
        "/api/media/upload",
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
        data={"credits": "me"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Only image files (JPEG, PNG, GIF, WebP) are allowed!"

    r = client.post(
        "/api/media/upload",
        files=[("images", ("broken.png", b"not an image", "image/png"))],
        data={"credits": "me"},
    )
    assert r.status_code == 400
    assert r.json()["message"].startswith("Unreadable image")

    files = [("images", (f"{i}.png", _png(4, 4), "image/png")) for i in range(11)]
    assert client.post("/api/media/upload", files=files, data={"credits": "me"}).status_code == 400

    assert store.read_json(MEDIA_LIBRARY_PATH) is None
    assert list(media_dir().iterdir()) == []


def test_failed_commit_removes_files(store, monkeypatch):
    def boom(*args, **kwargs):
        raise ContentStoreError("GitHub down", status_code=503)

    monkeypatch.setattr(media_service, "save_document", boom)
    upload = Upload(filename="a.png", content_type="image/png", data=_png(20, 20))
    with pytest.raises(ContentStoreError):
        upload_media(store, [upload], category="general", title="", caption="", credits="me", tags="", user="Mira")
    assert list(media_dir().iterdir()) == []


def test_failed_write_removes_earlier_files(store, monkeypatch):
    write_sizes = media_service.write_sizes
    calls = []

    def second_write_fails(img, base_id):
        calls.append(base_id)
        if len(calls) == 2:
            raise OSError("disk full")
        return write_sizes(img, base_id)

    monkeypatch.setattr(media_service, "write_sizes", second_write_fails)
    uploads = [Upload(filename=f"{n}.png", content_type="image/png", data=_png(20, 20)) for n in "ab"]
    with pytest.raises(OSError):
        upload_media(store, uploads, category="general", title="", caption="", credits="me", tags="", user="Mira")
    assert list(media_dir().iterdir()) == []
    assert store.read_json(MEDIA_LIBRARY_PATH) is None


def test_list_update_delete(client, store):
    login(client, "mira")
    first = _upload(client, _png(10, 10), title="Valaris gate").json()["media"][0]
    _upload(client, _png(10, 10), title="Harak docks", category="locations", credits="Bob")

    listing = client.get("/api/media", params={"search": "anna"}).json()
    assert list(listing["media"]) == [first["id"]]
    assert listing["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}

    listing = client.get("/api/media", params={"category": "locations"}).json()
    assert [m["title"] for m in listing["media"].values()] == ["Harak docks"]

    listing = client.get("/api/media", params={"limit": 1, "page": 2}).json()
    assert [m["title"] for m in listing["media"].values()] == ["Valaris gate"]
    assert listing["pagination"]["totalPages"] == 2

    mid = first["id"]
    assert client.put(f"/api/media/{mid}", json={"title": "Gate"}).status_code == 400
    r = client.put(f"/api/media/{mid}", json={"title": "Gate", "credits": "Anna", "tags": "a,b"})
    assert r.status_code == 200
    assert r.json()["media"]["tags"] == ["a", "b"]
    assert r.json()["media"]["category"] == "general"
    assert client.put("/api/media/missing", json={"credits": "x"}).status_code == 404

    files = [s["filename"] for s in first["sizes"].values()]
    assert client.delete(f"/api/media/{mid}").status_code == 200
    assert client.get(f"/api/media/{mid}").status_code == 404
    assert not any((media_dir() / f).exists() for f in files)
    assert client.delete(f"/api/media/{mid}").status_code == 404

    commit = store.list_commits(path=MEDIA_LIBRARY_PATH)[0]
    assert commit.message == "Delete media: Gate"


def test_categories(client):
    r = client.get("/api/media/categories")
    assert r.status_code == 200
    assert "maps" in r.json()["categories"]
