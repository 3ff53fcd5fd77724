from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Path, Request

from campaign_map.core.content_store import ContentStore, get_store
from campaign_map.modules.auth.deps import SessionUser, require_auth

from .schemas import CharacterIn, CharactersDocOut, CharacterWriteOut, MigrateOut, MovementIn, ReorderIn
from .service import (
    add_movement,
    create_character,
    delete_character,
    delete_movement,
    get_character,
    load_characters,
    migrate_movement_numbers,
    reorder_movements,
    update_character,
    update_movement,
)

router = APIRouter(prefix="/characters", tags=["characters"])


def _rid(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("", response_model=CharactersDocOut)
def api_list_characters(store: ContentStore = Depends(get_store)) -> Dict[str, Any]:
    doc, _ = load_characters(store)
    return doc


@router.post("/migrate-movement-numbers", response_model=MigrateOut)
def api_migrate_movement_numbers(
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> MigrateOut:
    changes, sha = migrate_movement_numbers(store, user, _rid(request))
    if sha is None:
        return MigrateOut(message="No migration needed - all movements already numbered")
    return MigrateOut(message=f"Migrated {len(changes)} characters", changes=changes, commitSha=sha)


@router.get("/{character_id}")
def api_get_character(character_id: str = Path(...), store: ContentStore = Depends(get_store)) -> Dict[str, Any]:
    return get_character(store, character_id)


@router.post("", response_model=CharacterWriteOut)
def api_create_character(
    body: CharacterIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    character, sha = create_character(store, body.model_dump(), user, _rid(request))
    return CharacterWriteOut(character=character, commitSha=sha)


@router.put("/{character_id}", response_model=CharacterWriteOut)
def api_update_character(
    character_id: str,
    body: CharacterIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    character, sha = update_character(store, character_id, body.model_dump(), user, _rid(request))
    return CharacterWriteOut(character=character, commitSha=sha)


@router.delete("/{character_id}", response_model=CharacterWriteOut)
def api_delete_character(
    character_id: str,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    sha = delete_character(store, character_id, user, _rid(request))
    return CharacterWriteOut(message="Character deleted successfully", commitSha=sha)


@router.post("/{character_id}/movements", response_model=CharacterWriteOut)
def api_add_movement(
    character_id: str,
    body: MovementIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    movement, character, sha = add_movement(store, character_id, body.model_dump(), user, _rid(request))
    return CharacterWriteOut(movement=movement, character=character, commitSha=sha)


# registered before /{movement_id} so "reorder" is not taken as an id
@router.put("/{character_id}/movements/reorder", response_model=CharacterWriteOut)
def api_reorder_movements(
    character_id: str,
    body: ReorderIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    ids = [m.id for m in body.movements]
    character, sha = reorder_movements(store, character_id, ids, user, _rid(request))
    return CharacterWriteOut(
        message="Movement order updated successfully",
        character=character,
        reorderedCount=len(ids),
        commitSha=sha,
    )


@router.put("/{character_id}/movements/{movement_id}", response_model=CharacterWriteOut)
def api_update_movement(
    character_id: str,
    movement_id: str,
    body: MovementIn,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    movement, character, sha = update_movement(store, character_id, movement_id, body.model_dump(), user, _rid(request))
    return CharacterWriteOut(movement=movement, character=character, commitSha=sha)


@router.delete("/{character_id}/movements/{movement_id}", response_model=CharacterWriteOut)
def api_delete_movement(
    character_id: str,
    movement_id: str,
    request: Request,
    user: SessionUser = Depends(require_auth),
    store: ContentStore = Depends(get_store),
) -> CharacterWriteOut:
    character, sha = delete_movement(store, character_id, movement_id, user, _rid(request))
    return CharacterWriteOut(message="Movement deleted successfully", character=character, commitSha=sha)
