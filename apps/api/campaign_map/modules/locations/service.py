from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException

from campaign_map.core.commits import build_commit_message, detect_location_changes
from campaign_map.core.content_store import (
    LOCATIONS_PATH,
    ContentStore,
    empty_locations,
    load_document,
    save_document,
)
from campaign_map.modules.auth.deps import SessionUser
from campaign_map.modules.character_paths.cache import invalidate_paths
from campaign_map.modules.reviews.service import submit_change_for_review


def feature_name(feature: Dict[str, Any]) -> str:
    return str((feature.get("properties") or {}).get("name") or "")


def find_location(locations_doc: Dict[str, Any], name: str) -> Optional[Dict[str, Any]]:
    """Exact name match first, then case-insensitive."""
    if not name:
        return None
    features = locations_doc.get("features") or []
    for f in features:
        if feature_name(f) == name:
            return f
    lowered = name.strip().lower()
    for f in features:
        if feature_name(f).strip().lower() == lowered:
            return f
    return None


def location_xy(locations_doc: Dict[str, Any], name: str) -> Optional[List[float]]:
    """[x, y] of the named location, or None when unknown or without a point."""
    f = find_location(locations_doc, name)
    if f is None:
        return None
    coords = (f.get("geometry") or {}).get("coordinates")
    if isinstance(coords, list) and len(coords) >= 2:
        return [coords[0], coords[1]]
    return None


def load_locations(store: ContentStore) -> Tuple[Dict[str, Any], Optional[str]]:
    doc, sha = load_document(store, LOCATIONS_PATH, empty_locations)
    doc.setdefault("type", "FeatureCollection")
    doc.setdefault("features", [])
    return doc, sha


def _index_of(features: List[Dict[str, Any]], name: str) -> int:
    for i, f in enumerate(features):
        if feature_name(f) == name:
            return i
    return -1


def _to_feature(body: Dict[str, Any]) -> Dict[str, Any]:
    props = dict(body["properties"])
    props.setdefault("description", "")
    props.setdefault("contentUrl", None)
    return {
        "type": "Feature",
        "properties": props,
        "geometry": {"type": "Point", "coordinates": list(body["geometry"]["coordinates"])},
    }


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
    commit_sha = save_document(store, LOCATIONS_PATH, doc, message=message, sha=sha, author=user.name)
    submit_change_for_review(store, commit_sha, action, "location", item, message, user.name, user.role, request_id)
    invalidate_paths(f"location {action}", request_id)
    return commit_sha


def create_location(
    store: ContentStore, body: Dict[str, Any], user: SessionUser, request_id: Optional[str] = None
) -> Tuple[Dict[str, Any], str]:
    doc, sha = load_locations(store)
    feature = _to_feature(body)
    name = feature_name(feature)
    if _index_of(doc["features"], name) != -1:
        raise HTTPException(status_code=409, detail=f"Location already exists: {name}")

    doc["features"].append(feature)
    message = build_commit_message("create", "location", name, user.name)
    commit_sha = _commit(store, doc, sha, action="create", item=name, message=message, user=user, request_id=request_id)
    return feature, commit_sha


def update_location(
    store: ContentStore, original_name: str, body: Dict[str, Any], user: SessionUser, request_id: Optional[str] = None
) -> Tuple[Dict[str, Any], str]:
    doc, sha = load_locations(store)
    idx = _index_of(doc["features"], original_name)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Location not found")

    old = doc["features"][idx]
    feature = _to_feature(body)
    new_name = feature_name(feature)
    if new_name != original_name and _index_of(doc["features"], new_name) != -1:
        raise HTTPException(status_code=409, detail=f"Location already exists: {new_name}")

    changes = detect_location_changes(old, feature)
    description = ", ".join(changes) if changes else "Updated location details"
    doc["features"][idx] = feature
    message = build_commit_message("update", "location", original_name, user.name, description=description)
    commit_sha = _commit(store, doc, sha, action="update", item=new_name, message=message, user=user, request_id=request_id)
    return feature, commit_sha


def delete_location(store: ContentStore, name: str, user: SessionUser, request_id: Optional[str] = None) -> str:
    doc, sha = load_locations(store)
    idx = _index_of(doc["features"], name)
    if idx == -1:
        raise HTTPException(status_code=404, detail="Location not found")

    doc["features"].pop(idx)
    message = build_commit_message("delete", "location", name, user.name)
    return _commit(store, doc, sha, action="delete", item=name, message=message, user=user, request_id=request_id)
