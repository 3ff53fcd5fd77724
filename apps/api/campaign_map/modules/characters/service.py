"""
Characters document: CRUD plus movement history.

Invariants kept on every write:
- movementHistory is in chronological dateStart order (stable for ties)
- movement_nr is dense 0..n-1 in that order
- currentLocation mirrors the highest movement_nr entry, or the place of
  origin when the history is empty
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException

from campaign_map.core.commits import build_commit_message, detect_character_changes
from campaign_map.core.content_store import (
    CHARACTERS_PATH,
    ContentStore,
    empty_characters,
    load_document,
    save_document,
)
from campaign_map.core.ids import movement_id
from campaign_map.core.logs import emit, now_iso
from campaign_map.modules.auth.deps import SessionUser
from campaign_map.modules.character_paths.cache import invalidate_paths
from campaign_map.modules.character_paths.service import sort_movements
from campaign_map.modules.locations.service import load_locations, location_xy
from campaign_map.modules.reviews.service import submit_change_for_review

DEFAULT_MOVEMENT_TYPE = "travel"


def character_id_from_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "_", name.lower())


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def load_characters(store: ContentStore) -> Tuple[Dict[str, Any], Optional[str]]:
    doc, sha = load_document(store, CHARACTERS_PATH, empty_characters)
    doc.setdefault("characters", [])
    return doc, sha


def _find(doc: Dict[str, Any], character_id: str) -> int:
    for i, c in enumerate(doc["characters"]):
        if c.get("id") == character_id:
            return i
    return -1


def _require(doc: Dict[str, Any], character_id: str) -> Dict[str, Any]:
    idx = _find(doc, character_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Character not found")
    return doc["characters"][idx]


def get_character(store: ContentStore, character_id: str) -> Dict[str, Any]:
    doc, _ = load_characters(store)
    return _require(doc, character_id)


# -------------------------
# derived fields
# -------------------------
def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def _origin_location(name: str, coordinates: Any, notes: str) -> Dict[str, Any]:
    today = _today()
    return {
        "location": name,
        "date": today,
        "dateStart": today,
        "dateEnd": None,
        "coordinates": coordinates,
        "notes": notes,
    }


def _from_movement(m: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "date": m.get("dateStart") or m.get("date"),
        "dateStart": m.get("dateStart"),
        "dateEnd": m.get("dateEnd"),
        "location": m.get("location"),
        "coordinates": m.get("coordinates"),
        "notes": m.get("notes") or "",
    }


def refresh_movements(character: Dict[str, Any], locations_doc: Dict[str, Any], fallback_note: str) -> None:
    """Re-sorts, renumbers and recomputes currentLocation in place."""
    history = sort_movements(character.get("movementHistory") or [])
    character["movementHistory"] = history
    if history:
        character["currentLocation"] = _from_movement(history[-1])
        return

    origin = character.get("placeOfOrigin")
    if origin:
        coords = location_xy(locations_doc, origin) or character.get("coordinates")
        character["currentLocation"] = _origin_location(origin, coords, fallback_note)
    else:
        character["currentLocation"] = None


def _resolve_movement_coordinates(body: Dict[str, Any], locations_doc: Dict[str, Any]) -> List[float]:
    coords = body.get("coordinates")
    if body.get("isCustomLocation"):
        if not (isinstance(coords, list) and len(coords) == 2 and all(_is_number(c) for c in coords)):
            raise HTTPException(
                status_code=400,
                detail="Custom locations require valid coordinates. Please provide both X and Y coordinates.",
            )
        if not (body.get("location") or "").strip():
            raise HTTPException(status_code=400, detail="Custom locations require a location name.")

    if isinstance(coords, list) and len(coords) == 2 and all(_is_number(c) for c in coords):
        return [coords[0], coords[1]]
    if body.get("location"):
        found = location_xy(locations_doc, body["location"])
        if found is not None:
            return found
    raise HTTPException(status_code=400, detail="Could not resolve coordinates for movement")


def _date_info(m: Dict[str, Any]) -> str:
    if m.get("dateEnd"):
        return f"{m.get('dateStart')} to {m['dateEnd']}"
    return str(m.get("dateStart"))


# -------------------------
# commit helper
# -------------------------
def _commit(
    store: ContentStore,
    doc: Dict[str, Any],
    sha: Optional[str],
    *,
    action: str,
    item: str,
    message: str,
    user: SessionUser,
    request_id: Optional[str],
) -> str:
    doc["lastUpdated"] = now_iso()
    commit_sha = save_document(store, CHARACTERS_PATH, doc, message=message, sha=sha, author=user.name)
    submit_change_for_review(store, commit_sha, action, "character", item, message, user.name, user.role, request_id)
    invalidate_paths(f"character {action}", request_id)
    return commit_sha


# -------------------------
# characters
# -------------------------
def _profile(body: Dict[str, Any], origin_coords: Any) -> Dict[str, Any]:
    return {
        "id": character_id_from_name(body["name"]),
        "name": body["name"],
        "title": body.get("title") or "",
        "placeOfOrigin": body.get("placeOfOrigin") or "",
        "coordinates": origin_coords,
        "description": body.get("description") or "",
        "image": body.get("image") or "",
        "status": body.get("status") or "alive",
        "faction": body.get("faction") or "",
        "relationship": body.get("relationship") or "neutral",
        "firstMet": body.get("firstMet") or "",
        "notes": body.get("notes") or "",
    }


def create_character(
    store: ContentStore, body: Dict[str, Any], user: SessionUser, request_id: Optional[str] = None
) -> Tuple[Dict[str, Any], str]:
    locations, _ = load_locations(store)
    doc, sha = load_characters(store)

    origin = body.get("placeOfOrigin") or ""
    origin_coords = location_xy(locations, origin) if origin else None
    character = _profile(body, origin_coords)
    if _find(doc, character["id"]) != -1:
        raise HTTPException(status_code=409, detail=f"Character already exists: {character['id']}")

    now = now_iso()
    character.update(movementHistory=[], createdAt=now, updatedAt=now)
    if origin and origin_coords:
        character["currentLocation"] = _origin_location(origin, origin_coords, "Initial location based on place of origin")

    doc["characters"].append(character)
    message = build_commit_message("create", "character", character["name"], user.name)
    commit_sha = _commit(store, doc, sha, action="create", item=character["name"], message=message, user=user, request_id=request_id)
    return character, commit_sha


def update_character(
    store: ContentStore,
    character_id: str,
    body: Dict[str, Any],
    user: SessionUser,
    request_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], str]:
    locations, _ = load_locations(store)
    doc, sha = load_characters(store)
    idx = _find(doc, character_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Character not found")
    old = doc["characters"][idx]

    origin = body.get("placeOfOrigin") or ""
    origin_coords = location_xy(locations, origin) if origin else None
    updated = _profile(body, origin_coords)
    if updated["id"] != character_id and _find(doc, updated["id"]) != -1:
        raise HTTPException(status_code=409, detail=f"Character already exists: {updated['id']}")

    history = old.get("movementHistory") or []
    updated.update(
        movementHistory=history,
        currentLocation=old.get("currentLocation"),
        createdAt=old.get("createdAt"),
        updatedAt=now_iso(),
    )
    if origin and origin_coords and not history:
        updated["currentLocation"] = _origin_location(origin, origin_coords, "Location set based on place of origin")

    changes = detect_character_changes(old, updated)
    description = ", ".join(changes) if changes else "Updated character details"
    doc["characters"][idx] = updated
    message = build_commit_message("update", "character", character_id, user.name, description=description)
    commit_sha = _commit(store, doc, sha, action="update", item=updated["name"], message=message, user=user, request_id=request_id)
    return updated, commit_sha


def delete_character(store: ContentStore, character_id: str, user: SessionUser, request_id: Optional[str] = None) -> str:
    doc, sha = load_characters(store)
    idx = _find(doc, character_id)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Character not found")

    removed = doc["characters"].pop(idx)
    name = removed.get("name") or character_id
    message = build_commit_message("delete", "character", name, user.name)
    return _commit(store, doc, sha, action="delete", item=name, message=message, user=user, request_id=request_id)


# -------------------------
# movements
# -------------------------
def add_movement(
    store: ContentStore,
    character_id: str,
    body: Dict[str, Any],
    user: SessionUser,
    request_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any], str]:
    locations, _ = load_locations(store)
    coords = _resolve_movement_coordinates(body, locations)

    doc, sha = load_characters(store)
    character = _require(doc, character_id)

    start = body.get("dateStart") or body.get("date") or _today()
    movement = {
        "id": movement_id(),
        "movement_nr": len(character.get("movementHistory") or []),
        "date": start,
        "dateStart": start,
        "dateEnd": body.get("dateEnd") or None,
        "location": body.get("location") or None,
        "coordinates": coords,
        "notes": body.get("notes") or "",
        "type": body.get("type") or DEFAULT_MOVEMENT_TYPE,
        "isCustomLocation": bool(body.get("isCustomLocation")),
        "createdAt": now_iso(),
    }
    character.setdefault("movementHistory", []).append(movement)
    refresh_movements(character, locations, "Initial location based on place of origin")
    character["updatedAt"] = now_iso()

    stored = next(m for m in character["movementHistory"] if m["id"] == movement["id"])
    message = (
        f"Add movement to character: {character['name']} (by {user.name}) - "
        f"{movement['location'] or 'Custom coordinates'} ({_date_info(movement)})"
    )
    commit_sha = _commit(store, doc, sha, action="update", item=character["name"], message=message, user=user, request_id=request_id)
    return stored, character, commit_sha


def update_movement(
    store: ContentStore,
    character_id: str,
    mov_id: str,
    body: Dict[str, Any],
    user: SessionUser,
    request_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], Dict[str, Any], str]:
    locations, _ = load_locations(store)
    coords = _resolve_movement_coordinates(body, locations)

    doc, sha = load_characters(store)
    character = _require(doc, character_id)
    history = character.get("movementHistory") or []
    idx = next((i for i, m in enumerate(history) if m.get("id") == mov_id), -1)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Movement not found")

    prev = history[idx]
    start = body.get("dateStart") or body.get("date") or prev.get("dateStart")
    history[idx] = {
        **prev,
        "date": start,
        "dateStart": start,
        "dateEnd": body.get("dateEnd") or None,
        "location": body.get("location") or None,
        "coordinates": coords,
        "notes": body.get("notes") or "",
        "type": body.get("type") or prev.get("type") or DEFAULT_MOVEMENT_TYPE,
        "isCustomLocation": bool(body.get("isCustomLocation") or prev.get("isCustomLocation")),
        "updatedAt": now_iso(),
    }
    character["movementHistory"] = history
    refresh_movements(character, locations, "Initial location based on place of origin")
    character["updatedAt"] = now_iso()

    stored = next(m for m in character["movementHistory"] if m["id"] == mov_id)
    message = (
        f"Update character movement: {character['name']} (by {user.name}) - "
        f"{stored.get('location') or 'Custom coordinates'} ({_date_info(stored)})"
    )
    commit_sha = _commit(store, doc, sha, action="update", item=character["name"], message=message, user=user, request_id=request_id)
    return stored, character, commit_sha


def delete_movement(
    store: ContentStore,
    character_id: str,
    mov_id: str,
    user: SessionUser,
    request_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], str]:
    locations, _ = load_locations(store)
    doc, sha = load_characters(store)
    character = _require(doc, character_id)
    history = character.get("movementHistory") or []
    idx = next((i for i, m in enumerate(history) if m.get("id") == mov_id), -1)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Movement not found")

    removed = history.pop(idx)
    character["movementHistory"] = history
    refresh_movements(character, locations, "Fallback to place of origin after movement deletion")
    character["updatedAt"] = now_iso()

    message = (
        f"Delete character movement: {character['name']} (by {user.name}) - "
        f"Removed {removed.get('location') or 'coordinates'} entry"
    )
    commit_sha = _commit(store, doc, sha, action="update", item=character["name"], message=message, user=user, request_id=request_id)
    return character, commit_sha


def reorder_movements(
    store: ContentStore,
    character_id: str,
    ordered_ids: List[str],
    user: SessionUser,
    request_id: Optional[str] = None,
) -> Tuple[Dict[str, Any], str]:
    """
    Applies the client's order as the tie-break between movements that share
    a dateStart; chronological order always wins.
    """
    locations, _ = load_locations(store)
    doc, sha = load_characters(store)
    character = _require(doc, character_id)
    history = character.get("movementHistory") or []

    if len(history) != len(ordered_ids):
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Movement conflict detected - data may have been modified by another user",
                "currentCount": len(history),
                "expectedCount": len(ordered_ids),
            },
        )
    current_ids = [m.get("id") for m in history]
    if set(current_ids) != set(ordered_ids) or len(set(ordered_ids)) != len(ordered_ids):
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Movement ID mismatch - movements may have been modified",
                "currentIds": current_ids,
                "reorderedIds": list(ordered_ids),
            },
        )

    by_id = {m.get("id"): m for m in history}
    now = now_iso()
    character["movementHistory"] = [{**by_id[i], "updatedAt": now} for i in ordered_ids]
    refresh_movements(character, locations, "Initial location based on place of origin")
    character["updatedAt"] = now

    message = (
        f"Reorder movements for character: {character['name']} (by {user.name}) - "
        f"{len(ordered_ids)} movements reordered"
    )
    commit_sha = _commit(store, doc, sha, action="update", item=character["name"], message=message, user=user, request_id=request_id)
    return character, commit_sha


def migrate_movement_numbers(
    store: ContentStore, user: SessionUser, request_id: Optional[str] = None
) -> Tuple[List[str], Optional[str]]:
    """Re-sorts and renumbers every history; commits only when something changed."""
    locations, _ = load_locations(store)
    doc, sha = load_characters(store)

    changes: List[str] = []
    migrated = 0
    for character in doc["characters"]:
        history = character.get("movementHistory") or []
        if not history:
            continue
        before = [(m.get("id"), m.get("movement_nr")) for m in history]
        current_before = character.get("currentLocation")
        refresh_movements(character, locations, "Initial location based on place of origin")
        after = [(m.get("id"), m.get("movement_nr")) for m in character["movementHistory"]]
        if before != after or current_before != character.get("currentLocation"):
            migrated += len(history)
            changes.append(f"Renumbered {len(history)} movements for {character.get('name')}")

    if not changes:
        return changes, None

    emit("info", "characters.migrated", "movement numbers migrated", request_id, __name__, characters=len(changes))
    message = (
        f"Movement numbering migration: Renumbered {migrated} movements across "
        f"{len(changes)} characters (by {user.name})"
    )
    commit_sha = _commit(store, doc, sha, action="update", item="movement numbers", message=message, user=user, request_id=request_id)
    return changes, commit_sha
