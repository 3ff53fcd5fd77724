from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from campaign_map.core.content_store import ContentStore, get_store
from campaign_map.modules.auth.deps import SessionUser, require_auth

from .schemas import LocationIn, LocationWriteOut
from .service import create_location, delete_location, load_locations, update_location

router = APIRouter(prefix="/locations", tags=["locations"])


def _rid(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("")
def list_locations(store: ContentStore = Depends(get_store)) -> Dict[str, Any]:
    doc, _ = load_locations(store)
    return doc


@router.post("", response_model=LocationWriteOut)
def post_location(
    body: LocationIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> LocationWriteOut:
    feature, sha = create_location(store, body.model_dump(), user, _rid(request))
    return LocationWriteOut(feature=feature, commitSha=sha)


@router.put("/{name}", response_model=LocationWriteOut)
def put_location(
    name: str,
    body: LocationIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> LocationWriteOut:
    feature, sha = update_location(store, name, body.model_dump(), user, _rid(request))
    return LocationWriteOut(feature=feature, commitSha=sha)


@router.delete("/{name}", response_model=LocationWriteOut)
def remove_location(
    name: str,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> LocationWriteOut:
    sha = delete_location(store, name, user, _rid(request))
    return LocationWriteOut(message=f'Location "{name}" deleted successfully', commitSha=sha)
