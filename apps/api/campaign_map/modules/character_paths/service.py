"""
Character movement paths.

Input: the characters document and the locations FeatureCollection.
Output: {paths: {character_id: path}, metadata: {...}} ready for the map.

Rules:
- movements ordered by dateStart; missing/unparseable dates go last, ties keep input order
- explicit movement coordinates are [x, y]; emitted points are [lat, lng] = [y, x]
- characters without history fall back to a single static point
- stored documents are never mutated
"""
from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

from campaign_map.core.logs import now_iso
from campaign_map.modules.locations.service import location_xy

PATHS_VERSION = "1.0"

BASE_STYLE = {"color": "#999999", "weight": 5, "opacity": 0.7, "dashArray": "10,13"}

RELATIONSHIP_COLORS = {
    "ally": "#00ff0dff",
    "friendly": "#35ffcdff",
    "neutral": "#ffffffff",
    "suspicious": "#ffc107",
    "hostile": "#f87c17ff",
    "enemy": "#f31439ff",
    "unknown": "#000000ff",
    "party": "rgba(212, 0, 255, 1)",
}

DEAD_STATUSES = ("dead", "deceased")


def parse_movement_date(raw: Any) -> Optional[datetime]:
    """dateStart as a naive datetime; None when missing or unparseable."""
    if not raw or not isinstance(raw, str):
        return None
    s = raw.strip()
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        try:
            dt = datetime.combine(date.fromisoformat(s[:10]), datetime.min.time())
        except ValueError:
            return None
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt


def sort_movements(movements: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Stable chronological order with movement_nr re-indexed 0..n-1 on copies."""
    keyed = []
    for i, m in enumerate(movements):
        dt = parse_movement_date(m.get("dateStart"))
        keyed.append(((dt is None, dt or datetime.min, i), m))
    keyed.sort(key=lambda kv: kv[0])

    out: List[Dict[str, Any]] = []
    for nr, (_, m) in enumerate(keyed):
        item = copy.deepcopy(m)
        item["movement_nr"] = nr
        out.append(item)
    return out


def _xy_to_latlng(xy: Any) -> Optional[List[float]]:
    if isinstance(xy, (list, tuple)) and len(xy) >= 2:
        x, y = xy[0], xy[1]
        if _is_number(x) and _is_number(y):
            return [float(y), float(x)]
    return None


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def resolve_movement_point(movement: Dict[str, Any], locations_doc: Dict[str, Any]) -> Optional[List[float]]:
    point = _xy_to_latlng(movement.get("coordinates"))
    if point is not None:
        return point
    name = movement.get("location")
    if name:
        return _xy_to_latlng(location_xy(locations_doc, str(name)))
    return None


def resolve_static_point(character: Dict[str, Any], locations_doc: Dict[str, Any]) -> Optional[List[float]]:
    """currentLocation -> placeOfOrigin lookup -> stored coordinates."""
    current = character.get("currentLocation")
    if isinstance(current, dict):
        point = _xy_to_latlng(current.get("coordinates"))
        if point is None and current.get("location"):
            point = _xy_to_latlng(location_xy(locations_doc, str(current["location"])))
        if point is not None:
            return point
    else:
        point = _xy_to_latlng(current)
        if point is not None:
            return point

    origin = character.get("placeOfOrigin")
    if origin:
        point = _xy_to_latlng(location_xy(locations_doc, str(origin)))
        if point is not None:
            return point

    return _xy_to_latlng(character.get("coordinates"))


def path_style(character: Dict[str, Any]) -> Dict[str, Any]:
    relationship = str(character.get("relationship") or "unknown").lower()
    status = str(character.get("status") or "unknown").lower()

    style = dict(BASE_STYLE)
    if relationship in RELATIONSHIP_COLORS:
        style["color"] = RELATIONSHIP_COLORS[relationship]
    if status in DEAD_STATUSES:
        style["opacity"] = 0.4
        style["weight"] = 3
    return style


def _base_metadata(character: Dict[str, Any], movement_count: int) -> Dict[str, Any]:
    return {
        "movementCount": movement_count,
        "relationship": character.get("relationship") or "unknown",
        "status": character.get("status") or "unknown",
    }


def build_character_path(
    character: Dict[str, Any],
    locations_doc: Dict[str, Any],
    as_of: Optional[date] = None,
) -> Optional[Dict[str, Any]]:
    """
    One character's path, or None when nothing resolves.

    as_of keeps only movements that started on or before that date; undated
    movements cannot be placed on the timeline and are dropped.
    """
    history = character.get("movementHistory") or []
    movements = sort_movements(history) if history else []
    if as_of is not None and movements:
        cutoff = datetime.combine(as_of, datetime.max.time())
        kept = []
        for m in movements:
            dt = parse_movement_date(m.get("dateStart"))
            if dt is not None and dt <= cutoff:
                kept.append(m)
        movements = kept

    if not movements:
        point = resolve_static_point(character, locations_doc)
        if point is None:
            return None
        return {
            "id": character.get("id"),
            "name": character.get("name"),
            "type": "static",
            "coordinates": [point],
            "currentLocation": point,
            "style": path_style(character),
            "metadata": _base_metadata(character, 0),
        }

    points: List[List[float]] = []
    for m in movements:
        p = resolve_movement_point(m, locations_doc)
        if p is not None:
            points.append(p)
    if not points:
        return None

    metadata = _base_metadata(character, len(movements))
    metadata.update(
        firstMovement=movements[0].get("dateStart"),
        lastMovement=movements[-1].get("dateStart"),
        movementHistory=movements,
    )
    return {
        "id": character.get("id"),
        "name": character.get("name"),
        "type": "movement",
        "coordinates": points,
        "currentLocation": points[-1],
        "style": path_style(character),
        "metadata": metadata,
    }


def generate_character_paths(characters_doc: Dict[str, Any], locations_doc: Dict[str, Any]) -> Dict[str, Any]:
    paths: Dict[str, Any] = {}
    stats = {"totalCharacters": 0, "charactersWithPaths": 0, "totalMovements": 0, "pathsGenerated": 0}

    for character in characters_doc.get("characters") or []:
        stats["totalCharacters"] += 1
        stats["totalMovements"] += len(character.get("movementHistory") or [])
        path = build_character_path(character, locations_doc)
        if path is None:
            continue
        if path["type"] == "movement":
            stats["charactersWithPaths"] += 1
        stats["pathsGenerated"] += 1
        paths[str(character.get("id"))] = path

    return {
        "paths": paths,
        "metadata": {"generated": now_iso(), "statistics": stats, "version": PATHS_VERSION},
    }
