from __future__ import annotations

from datetime import datetime, timedelta, timezone

from campaign_map.core.content_store import LOCATIONS_PATH, REVIEWS_PATH
from campaign_map.modules.reviews import service as reviews_service
from campaign_map.modules.reviews.service import (
    AUTO_APPROVE_NOTE,
    build_review,
    prune_reviews,
    submit_change_for_review,
)

from conftest import login

NOW = datetime(2026, 6, 1, tzinfo=timezone.utc)


def _ago(days):
    return (NOW - timedelta(days=days)).isoformat().replace("+00:00", "Z")


def _location(name):
    return {"properties": {"name": name}, "geometry": {"type": "Point", "coordinates": [1, 2]}}


def test_prune_only_drops_old_approved():
    reviews = [
        {"commitSha": "a", "status": "approved", "reviewedAt": _ago(40)},
        {"commitSha": "b", "status": "approved", "reviewedAt": _ago(10)},
        {"commitSha": "c", "status": "pending", "timestamp": _ago(100)},
        {"commitSha": "d", "status": "rejected", "reviewedAt": _ago(100)},
        {"commitSha": "e", "status": "approved"},
        {"commitSha": "f", "status": "approved", "reviewedAt": None, "timestamp": _ago(31)},
    ]
    kept = prune_reviews(reviews, 30, now=NOW)
    assert [r["commitSha"] for r in kept] == ["b", "c", "d", "e"]


def test_reviewers_are_auto_approved():
    review = build_review("abc", "create", "location", "Valaris", "msg", "Admin", "admin")
    assert review["status"] == "approved"
    assert review["reviewedBy"] == "Admin"
    assert review["reviewNotes"] == AUTO_APPROVE_NOTE

    review = build_review("abc", "create", "location", "Valaris", "msg", "Mira", "user")
    assert review["status"] == "pending"
    assert review["reviewedBy"] is None
    assert review["reviewedAt"] is None


def test_gm_account_skips_review(store):
    assert submit_change_for_review(store, "abc", "create", "location", "Valaris", "msg", "gm", "gm") is None
    assert store.read_json(REVIEWS_PATH) is None


def test_duplicate_sha_is_ignored(store):
    first = submit_change_for_review(store, "abc", "create", "location", "X", "msg", "Mira", "user")
    assert first["status"] == "pending"
    assert submit_change_for_review(store, "abc", "create", "location", "X", "msg", "Mira", "user") is None
    assert len(store.read_json(REVIEWS_PATH).data["reviews"]) == 1


def test_null_entries_in_reviews_file_are_skipped(client, store):
    store.write_json(REVIEWS_PATH, {"reviews": [None, "junk"]}, message="Seed reviews", sha=None, author="seed")
    login(client, "mira")
    assert client.post("/api/locations", json=_location("Valaris")).status_code == 200

    reviews = store.read_json(REVIEWS_PATH).data["reviews"]
    assert [r["itemName"] for r in reviews] == ["Valaris"]


def test_review_failure_does_not_fail_the_write(client, store, monkeypatch):
    def broken(store, review):
        raise ValueError("reviews.json is not valid JSON")

    monkeypatch.setattr(reviews_service, "record_review", broken)
    login(client, "mira")
    r = client.post("/api/locations", json=_location("Valaris"))
    assert r.status_code == 200, r.text
    assert [f["properties"]["name"] for f in store.read_json(LOCATIONS_PATH).data["features"]] == ["Valaris"]


def test_review_flow(client, store):
    login(client, "mira")
    r = client.post("/api/locations", json=_location("Valaris"))
    sha = r.json()["commitSha"]

    assert client.get("/api/changelog/pending").status_code == 403
    assert client.put(f"/api/changelog/review/{sha}", json={"status": "approved"}).status_code == 403

    stats = client.get("/api/changelog/user-stats").json()
    assert stats["user"] == "Mira"
    assert stats["stats"]["total"] == 1
    assert stats["stats"]["pending"] == 1
    assert client.get("/api/changelog/user-stats/Admin").status_code == 403

    login(client, "gm")
    pending = client.get("/api/changelog/pending").json()
    assert pending["count"] == 1
    assert pending["pendingReviews"][0]["commitSha"] == sha
    assert pending["pendingReviews"][0]["itemName"] == "Valaris"

    r = client.put(f"/api/changelog/review/{sha}", json={"status": "bogus"})
    assert r.status_code == 400
    assert client.put("/api/changelog/review/nope", json={"status": "approved"}).status_code == 404

    r = client.put(f"/api/changelog/review/{sha}", json={"status": "rejected", "reviewNotes": "wrong spot"})
    assert r.status_code == 200
    review = r.json()["review"]
    assert review["status"] == "rejected"
    assert review["reviewedBy"] == "gm"
    assert review["reviewNotes"] == "wrong spot"

    assert client.get("/api/changelog/pending").json()["count"] == 0
    assert client.get("/api/changelog/user-stats/Mira").json()["stats"]["rejected"] == 1


def test_user_stats_requires_login(client, store):
    assert client.get("/api/changelog/user-stats").status_code == 401
    assert client.get("/api/changelog/user-stats/Mira").status_code == 401


def test_submit_review_endpoint(client, store):
    login(client, "admin")
    r = client.post(
        "/api/changelog/submit-review",
        json={"commitSha": "abc123", "action": "update", "type": "location", "itemName": "Valaris"},
    )
    assert r.json()["message"] == "Change auto-approved"
    r = client.post(
        "/api/changelog/submit-review",
        json={"commitSha": "abc123", "action": "update", "type": "location", "itemName": "Valaris"},
    )
    assert r.json()["message"] == "Review already exists"
    assert r.json()["review"] is None


def test_changelog_filters_noise(client, store):
    login(client, "admin")
    client.post("/api/locations", json=_location("Harak"))

    login(client, "mira")
    mira_sha = client.post("/api/locations", json=_location("Valaris")).json()["commitSha"]

    doc = store.read_json(LOCATIONS_PATH)
    store.write_json(LOCATIONS_PATH, doc.data, message="Sync data", sha=doc.sha, author="github-actions[bot]")
    doc = store.read_json(LOCATIONS_PATH)
    manual_sha = store.write_json(LOCATIONS_PATH, doc.data, message="Manual fix", sha=doc.sha, author="Someone")

    r = client.get("/api/changelog")
    assert r.status_code == 200
    body = r.json()
    assert body["currentUser"] == "Mira"
    assert body["userRole"] == "user"

    items = {i["sha"]: i for i in body["changelog"]}
    # admin change is auto-approved, bot and review bookkeeping commits are untracked noise
    assert set(items) == {mira_sha, manual_sha}
    assert body["totalItems"] == 2

    mine = items[mira_sha]
    assert mine["action"] == "create"
    assert mine["type"] == "location"
    assert mine["review"]["status"] == "pending"
    assert mine["isOwnChange"] is True
    assert mine["canReview"] is False

    manual = items[manual_sha]
    assert manual["action"] == "unknown"
    assert manual["user"] == "Someone"
    assert manual["review"]["status"] == "untracked"


def test_changelog_limit_is_clamped(client, store):
    r = client.get("/api/changelog", params={"limit": 0})
    assert r.status_code == 200
    assert r.json()["changelog"] == []
    assert r.json()["currentUser"] is None
