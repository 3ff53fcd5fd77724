from __future__ import annotations

from datetime import date
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from campaign_map.core.content_store import CHARACTERS_PATH, ContentStore, empty_characters, get_store, load_document
from campaign_map.core.logs import emit
from campaign_map.modules.auth.deps import SessionUser, require_auth
from campaign_map.modules.locations.service import load_locations

from .cache import get_path_cache
from .schemas import CharacterPathOut, CharacterPathsOut, InvalidateOut, PathStatsOut
from .service import build_character_path, generate_character_paths

router = APIRouter(prefix="/character-paths", tags=["character-paths"])


def _load_inputs(store: ContentStore) -> tuple[Dict[str, Any], Dict[str, Any]]:
    characters, _ = load_document(store, CHARACTERS_PATH, empty_characters)
    locations, _ = load_locations(store)
    return characters, locations


@router.get("", response_model=CharacterPathsOut)
def get_character_paths(request: Request, store: ContentStore = Depends(get_store)) -> Dict[str, Any]:
    cache = get_path_cache()
    generation = cache.generation
    cached = cache.get()
    if cached is not None:
        return cached

    characters, locations = _load_inputs(store)
    data = generate_character_paths(characters, locations)
    cache.set(data, generation)
    emit(
        "info",
        "paths.generated",
        "character paths generated",
        getattr(request.state, "request_id", None),
        __name__,
        **data["metadata"]["statistics"],
    )
    return data


@router.post("/invalidate", response_model=InvalidateOut)
def post_invalidate(request: Request, _: SessionUser = Depends(require_auth)) -> InvalidateOut:
    get_path_cache().invalidate("manual", getattr(request.state, "request_id", None))
    return InvalidateOut()


@router.get("/stats", response_model=PathStatsOut, response_model_exclude_none=True)
def get_stats() -> Dict[str, Any]:
    return get_path_cache().stats()


@router.get("/{character_id}", response_model=CharacterPathOut)
def get_character_path(
    character_id: str,
    as_of: date | None = Query(None, description="YYYY-MM-DD; keep movements started on or before this date"),
    store: ContentStore = Depends(get_store),
) -> Dict[str, Any]:
    characters, locations = _load_inputs(store)
    character = next((c for c in characters.get("characters") or [] if c.get("id") == character_id), None)
    if character is None:
        raise HTTPException(status_code=404, detail="Character not found")

    path = build_character_path(character, locations, as_of=as_of)
    if path is None:
        raise HTTPException(status_code=404, detail="No resolvable coordinates for character")
    return path
