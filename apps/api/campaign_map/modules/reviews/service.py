"""
Review workflow over public/data/reviews.json.

Lifecycle:
- created on every write (commit sha is the key)
- gm/admin authors are auto-approved, everyone else starts pending
- gm/admin reviewers move pending <-> approved/rejected
- approved reviews older than the retention window are pruned;
  pending/rejected are never pruned
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence

from fastapi import HTTPException

from campaign_map.core.commits import parse_commit_message
from campaign_map.core.config import get_settings
from campaign_map.core.content_store import (
    REVIEWS_PATH,
    ContentStore,
    empty_reviews,
    load_document,
    save_document,
)
from campaign_map.core.logs import emit, now_iso
from campaign_map.modules.auth.service import is_reviewer

AUTO_APPROVE_NOTE = "Auto-approved (GM/Admin)"
REVIEW_COMMIT_MESSAGE = "Update review status"
VALID_DECISIONS = ("pending", "approved", "rejected")


def _parse_ts(raw: Any) -> Optional[datetime]:
    if not raw:
        return None
    try:
        dt = datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def prune_reviews(
    reviews: Sequence[Dict[str, Any]],
    retention_days: int,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=retention_days)
    kept: List[Dict[str, Any]] = []
    for r in reviews:
        if r.get("status") != "approved":
            kept.append(r)
            continue
        ts = _parse_ts(r.get("reviewedAt") or r.get("timestamp"))
        # approved entries without a usable date cannot be aged out
        if ts is None or ts > cutoff:
            kept.append(r)
    return kept


def build_review(
    commit_sha: str,
    action: str,
    type_: str,
    item_name: str,
    commit_message: str,
    user: str,
    role: str,
) -> Dict[str, Any]:
    now = now_iso()
    auto = is_reviewer(role)
    return {
        "commitSha": commit_sha,
        "action": action,
        "type": type_,
        "itemName": item_name,
        "user": user,
        "timestamp": now,
        "status": "approved" if auto else "pending",
        "reviewedBy": user if auto else None,
        "reviewedAt": now if auto else None,
        "reviewNotes": AUTO_APPROVE_NOTE if auto else "",
        "commitMessage": commit_message,
    }


def _entries(doc: Dict[str, Any]) -> List[Dict[str, Any]]:
    # hand-edited files can hold nulls or strings
    return [r for r in doc.get("reviews") or [] if isinstance(r, dict)]


def load_reviews(store: ContentStore) -> List[Dict[str, Any]]:
    doc, _ = load_document(store, REVIEWS_PATH, empty_reviews)
    return _entries(doc)


def record_review(store: ContentStore, review: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Prepends the review and prunes; returns None when the sha is already reviewed."""
    doc, sha = load_document(store, REVIEWS_PATH, empty_reviews)
    reviews = _entries(doc)
    if any(r.get("commitSha") == review["commitSha"] for r in reviews):
        return None

    reviews.insert(0, review)
    before = len(reviews)
    reviews = prune_reviews(reviews, get_settings().review_retention_days)
    removed = before - len(reviews)
    if removed:
        emit("info", "reviews.pruned", f"removed {removed} old approved reviews", None, __name__, removed=removed)

    doc["reviews"] = reviews
    doc["lastUpdated"] = now_iso()
    save_document(store, REVIEWS_PATH, doc, message=REVIEW_COMMIT_MESSAGE, sha=sha)
    return review


def submit_change_for_review(
    store: ContentStore,
    commit_sha: str,
    action: str,
    type_: str,
    item_name: str,
    commit_message: str,
    user: str,
    role: str,
    request_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Called after every content write. Never raises: the content commit
    already happened, so a review failure is logged and the write stands.
    """
    if role == "gm" and user == "gm":
        return None
    try:
        review = build_review(commit_sha, action, type_, item_name, commit_message, user, role)
        return record_review(store, review)
    except Exception as e:
        emit(
            "error",
            "reviews.submit.failed",
            str(e),
            request_id,
            __name__,
            commit_sha=commit_sha,
            item=item_name,
        )
        return None


def update_review_status(
    store: ContentStore,
    commit_sha: str,
    status: str,
    reviewer: str,
    notes: Optional[str],
) -> Dict[str, Any]:
    if status not in VALID_DECISIONS:
        raise HTTPException(status_code=400, detail="Invalid status. Must be: pending, approved, or rejected")

    doc, sha = load_document(store, REVIEWS_PATH, empty_reviews)
    reviews = _entries(doc)
    for r in reviews:
        if r.get("commitSha") == commit_sha:
            r["status"] = status
            r["reviewedBy"] = reviewer
            r["reviewedAt"] = now_iso()
            r["reviewNotes"] = notes or ""
            doc["reviews"] = reviews
            doc["lastUpdated"] = now_iso()
            save_document(store, REVIEWS_PATH, doc, message=REVIEW_COMMIT_MESSAGE, sha=sha)
            return r
    raise HTTPException(status_code=404, detail="Review not found")


def pending_reviews(store: ContentStore) -> List[Dict[str, Any]]:
    return [r for r in load_reviews(store) if r.get("status") == "pending"]


def user_stats(store: ContentStore, user: str) -> Dict[str, Any]:
    mine = [r for r in load_reviews(store) if r.get("user") == user]
    return {
        "total": len(mine),
        "pending": sum(1 for r in mine if r.get("status") == "pending"),
        "approved": sum(1 for r in mine if r.get("status") == "approved"),
        "rejected": sum(1 for r in mine if r.get("status") == "rejected"),
        "recentChanges": mine[:10],
    }


def _is_system_author(author: str) -> bool:
    a = (author or "").lower()
    if "github" in a:
        return True
    return a in {s.lower() for s in get_settings().changelog_system_authors}


def build_changelog(
    store: ContentStore,
    *,
    limit: int,
    current_user: Optional[str],
    role: str,
) -> List[Dict[str, Any]]:
    by_sha = {r.get("commitSha"): r for r in load_reviews(store)}
    can_review = is_reviewer(role)

    items: List[Dict[str, Any]] = []
    for c in store.list_commits(limit=limit):
        activity = parse_commit_message(c.message, c.author, c.date, c.sha)
        if activity is None:
            continue
        review = by_sha.get(c.sha) or {
            "status": "untracked",
            "reviewedBy": None,
            "reviewedAt": None,
            "reviewNotes": "",
        }

        # gm/admin changes are already settled; they would only add noise
        if review.get("status") == "approved" and review.get("reviewNotes") == AUTO_APPROVE_NOTE:
            continue
        if review.get("status") == "untracked" and (
            _is_system_author(c.author) or c.message.strip() == REVIEW_COMMIT_MESSAGE
        ):
            continue

        items.append(
            {
                **activity,
                "review": review,
                "isOwnChange": bool(current_user) and activity["user"] == current_user,
                "canReview": can_review,
            }
        )
    return items
