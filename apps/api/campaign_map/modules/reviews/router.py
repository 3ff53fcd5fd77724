from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from campaign_map.core.content_store import ContentStore, get_store
from campaign_map.modules.auth.deps import SessionUser, current_user, require_auth, require_reviewer

from .schemas import (
    ChangelogOut,
    PendingOut,
    ReviewSubmitIn,
    ReviewSubmitOut,
    ReviewUpdateIn,
    ReviewUpdateOut,
    UserStatsOut,
)
from .service import build_changelog, build_review, pending_reviews, record_review, update_review_status, user_stats

router = APIRouter(prefix="/changelog", tags=["changelog"])


def _clamp_limit(raw: int | None) -> int:
    # lock: default=50, max=200
    if raw is None:
        return 50
    try:
        v = int(raw)
    except Exception:
        return 50
    if v < 1:
        v = 1
    if v > 200:
        v = 200
    return v


@router.get("", response_model=ChangelogOut)
def get_changelog(
    request: Request,
    limit: int | None = Query(None, description="Max commits to scan (default 50, max 200)"),
    store: ContentStore = Depends(get_store),
) -> ChangelogOut:
    u = current_user(request)
    name = u.name if u else None
    role = u.role if u else "user"
    items = build_changelog(store, limit=_clamp_limit(limit), current_user=name, role=role)
    return ChangelogOut(changelog=items, currentUser=name, userRole=role, totalItems=len(items))


@router.post("/submit-review", response_model=ReviewSubmitOut)
def submit_review(
    body: ReviewSubmitIn,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> ReviewSubmitOut:
    review = build_review(body.commitSha, body.action, body.type, body.itemName, body.commitMessage, user.name, user.role)
    saved = record_review(store, review)
    if saved is None:
        return ReviewSubmitOut(message="Review already exists")
    msg = "Change auto-approved" if saved["status"] == "approved" else "Change submitted for review"
    return ReviewSubmitOut(message=msg, review=saved)


@router.put("/review/{commit_sha}", response_model=ReviewUpdateOut)
def put_review(
    commit_sha: str,
    body: ReviewUpdateIn,
    user: SessionUser = Depends(require_reviewer),
    store: ContentStore = Depends(get_store),
) -> ReviewUpdateOut:
    review = update_review_status(store, commit_sha, body.status, user.name, body.reviewNotes)
    return ReviewUpdateOut(review=review, message=f"Change {body.status} successfully")


@router.get("/pending", response_model=PendingOut)
def get_pending(
    _: SessionUser = Depends(require_reviewer),
    store: ContentStore = Depends(get_store),
) -> PendingOut:
    items = pending_reviews(store)
    return PendingOut(pendingReviews=items, count=len(items))


@router.get("/user-stats", response_model=UserStatsOut)
def get_own_stats(request: Request, store: ContentStore = Depends(get_store)) -> UserStatsOut:
    u = current_user(request)
    if u is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return UserStatsOut(user=u.name, stats=user_stats(store, u.name))


@router.get("/user-stats/{username}", response_model=UserStatsOut)
def get_user_stats(
    username: str,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> UserStatsOut:
    if username != user.name and not user.can_review:
        raise HTTPException(status_code=403, detail="You can only view your own statistics")
    return UserStatsOut(user=username, stats=user_stats(store, username))
