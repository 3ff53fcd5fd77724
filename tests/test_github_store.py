from __future__ import annotations

import base64
import json

import httpx
import pytest

from campaign_map.core.content_store import ContentStoreError, ShaConflictError
from campaign_map.core.github_store import GitHubContentStore


def _b64(data) -> str:
    raw = base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")
    # the contents API wraps base64 at 60 characters
    return "\n".join(raw[i : i + 60] for i in range(0, len(raw), 60))


def _store(handler) -> GitHubContentStore:
    return GitHubContentStore(owner="o", repo="r", token="tok", branch="main", transport=httpx.MockTransport(handler))


def test_read_json_decodes_content():
    seen = {}
    doc = {"type": "FeatureCollection", "features": [{"properties": {"name": "Valaris"}}]}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["ref"] = request.url.params.get("ref")
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={"sha": "abc", "encoding": "base64", "content": _b64(doc)})

    f = _store(handler).read_json("public/data/places.geojson")
    assert f.sha == "abc"
    assert f.data == doc
    assert seen == {"path": "/repos/o/r/contents/public/data/places.geojson", "ref": "main", "auth": "Bearer tok"}


def test_read_missing_file():
    store = _store(lambda request: httpx.Response(404, json={"message": "Not Found"}))
    assert store.read_json("public/data/characters.json") is None


def test_read_large_file_through_blob():
    doc = {"characters": []}

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/git/blobs/big"):
            return httpx.Response(200, json={"sha": "big", "encoding": "base64", "content": _b64(doc)})
        return httpx.Response(200, json={"sha": "big", "encoding": "none", "content": ""})

    assert _store(handler).read_json("public/data/characters.json").data == doc


def test_write_json_sends_sha_and_branch():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["payload"] = json.loads(request.content)
        return httpx.Response(200, json={"commit": {"sha": "c0ffee"}})

    sha = _store(handler).write_json("public/data/reviews.json", {"reviews": []}, message="Update review status", sha="abc")
    assert sha == "c0ffee"
    assert seen["method"] == "PUT"
    payload = seen["payload"]
    assert payload["sha"] == "abc"
    assert payload["branch"] == "main"
    assert payload["message"] == "Update review status"
    assert json.loads(base64.b64decode(payload["content"])) == {"reviews": []}


def test_create_omits_sha():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["payload"] = json.loads(request.content)
        return httpx.Response(201, json={"commit": {"sha": "new"}})

    assert _store(handler).write_json("x.json", {}, message="m", sha=None) == "new"
    assert "sha" not in seen["payload"]


@pytest.mark.parametrize("status", [409, 422])
def test_write_conflict(status):
    store = _store(lambda request: httpx.Response(status, json={"message": "sha mismatch"}))
    with pytest.raises(ShaConflictError) as exc:
        store.write_json("x.json", {}, message="m", sha="stale")
    assert exc.value.path == "x.json"
    assert exc.value.expected == "stale"


def test_upstream_errors():
    store = _store(lambda request: httpx.Response(500, json={"message": "boom"}))
    with pytest.raises(ContentStoreError) as exc:
        store.write_json("x.json", {}, message="m", sha=None)
    assert exc.value.status_code == 500
    assert not isinstance(exc.value, ShaConflictError)

    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ContentStoreError):
        _store(offline).read_json("x.json")


def test_list_commits():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json=[
                {
                    "sha": "s1",
                    "commit": {
                        "message": "Create location: Valaris (by Mira) - Initial location creation",
                        "author": {"name": "Mira", "date": "2026-01-02T00:00:00Z"},
                    },
                }
            ],
        )

    commits = _store(handler).list_commits(path="public/data/places.geojson", since="2026-01-01T00:00:00Z", limit=500)
    assert seen["params"] == {
        "sha": "main",
        "per_page": "100",
        "path": "public/data/places.geojson",
        "since": "2026-01-01T00:00:00Z",
    }
    assert len(commits) == 1
    c = commits[0]
    assert (c.sha, c.author, c.date) == ("s1", "Mira", "2026-01-02T00:00:00Z")
    assert c.path == "public/data/places.geojson"


def test_list_commits_follows_next_links():
    pages = []

    def handler(request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        pages.append(page)
        body = [{"sha": f"p{page}-{i}", "commit": {"message": "m", "author": {"name": "Mira"}}} for i in range(100)]
        headers = {}
        if page < 3:
            headers["Link"] = f'<https://api.github.com/repositories/7/commits?sha=main&per_page=100&page={page + 1}>; rel="next"'
        return httpx.Response(200, json=body, headers=headers)

    commits = _store(handler).list_commits(limit=150)
    assert len(commits) == 150
    assert pages == [1, 2]
    assert commits[-1].sha == "p2-49"


def test_requires_owner_and_repo():
    with pytest.raises(ValueError):
        GitHubContentStore(owner="", repo="r", token=None)
