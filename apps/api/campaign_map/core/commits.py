"""
Commit message conventions.

Write operations commit with messages shaped like
    "<Action> <type>: <name> (by <user>) - <description>"
so the changelog and activity feeds can recover who changed what from the
commit log alone.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

_DEFAULT_DESCRIPTIONS = {
    "create": "Initial {type} creation",
    "update": "Updated {type} details",
    "delete": "Removed from campaign",
}

_PATTERNS = [
    ("create", re.compile(r"^Create (location|character): (.+) \(by (.+?)\) - (.+)$", re.S)),
    ("update", re.compile(r"^Update (location|character): (.+) \(by (.+?)\) - (.+)$", re.S)),
    ("delete", re.compile(r"^Delete (location|character): (.+) \(by (.+?)\) - (.+)$", re.S)),
    # movement edits are character updates
    ("update", re.compile(r"^Add movement to (character): (.+) \(by (.+?)\) - (.+)$", re.S)),
    ("update", re.compile(r"^Update (character) movement: (.+) \(by (.+?)\) - (.+)$", re.S)),
    ("update", re.compile(r"^Delete (character) movement: (.+) \(by (.+?)\) - (.+)$", re.S)),
    ("update", re.compile(r"^Reorder movements for (character): (.+) \(by (.+?)\) - (.+)$", re.S)),
]


def build_commit_message(
    action: str,
    type_: str,
    name: str,
    user: str,
    description: Optional[str] = None,
) -> str:
    head = f"{action.capitalize()} {type_}: {name} (by {user})"
    if description:
        return f"{head} - {description}"
    default = _DEFAULT_DESCRIPTIONS.get(action, "Modified content")
    return f"{head} - {default.format(type=type_)}"


def parse_commit_message(message: str, author: str, date: str, sha: str) -> Optional[Dict[str, Any]]:
    msg = (message or "").strip()
    if not msg:
        return None

    for action, pattern in _PATTERNS:
        m = pattern.match(msg)
        if m:
            return {
                "id": sha[:7],
                "sha": sha,
                "action": action,
                "type": m.group(1),
                "itemName": m.group(2),
                "user": m.group(3),
                "description": m.group(4),
                "timestamp": date,
                "fullMessage": msg,
            }

    return {
        "id": sha[:7],
        "sha": sha,
        "action": "unknown",
        "type": "unknown",
        "itemName": "Unknown",
        "user": author,
        "description": msg,
        "timestamp": date,
        "fullMessage": msg,
    }


# -------------------------
# change detection
# -------------------------
def _text_change(label: str, old: Any, new: Any) -> Optional[str]:
    if old == new:
        return None
    if not old and new:
        return f"added {label}"
    if old and not new:
        return f"removed {label}"
    return f"updated {label}"


def detect_character_changes(old: Dict[str, Any], new: Dict[str, Any]) -> List[str]:
    changes: List[str] = []
    if old.get("name") != new.get("name"):
        changes.append("updated name")
    for key, label in (("title", "title"), ("placeOfOrigin", "place of origin"), ("description", "description")):
        c = _text_change(label, old.get(key), new.get(key))
        if c:
            changes.append(c)
    if old.get("status") != new.get("status"):
        changes.append(f"changed status to {new.get('status')}")
    c = _text_change("faction", old.get("faction"), new.get("faction"))
    if c:
        changes.append(c)
    if old.get("relationship") != new.get("relationship"):
        changes.append(f"changed relationship to {new.get('relationship')}")
    for key, label in (("firstMet", "first met date"), ("notes", "notes"), ("image", "image")):
        c = _text_change(label, old.get(key), new.get(key))
        if c:
            changes.append(c)
    return changes


def detect_location_changes(old: Dict[str, Any], new: Dict[str, Any]) -> List[str]:
    op = old.get("properties") or {}
    np_ = new.get("properties") or {}
    changes: List[str] = []
    if op.get("name") != np_.get("name"):
        changes.append("updated name")
    c = _text_change("description", op.get("description"), np_.get("description"))
    if c:
        changes.append(c)
    if op.get("region") != np_.get("region"):
        changes.append("updated region")
    if op.get("type") != np_.get("type"):
        changes.append("updated type")
    if op.get("visited") != np_.get("visited"):
        changes.append("marked as visited" if np_.get("visited") else "marked as unvisited")
    oc = list((old.get("geometry") or {}).get("coordinates") or [])[:2]
    nc = list((new.get("geometry") or {}).get("coordinates") or [])[:2]
    if oc != nc:
        changes.append("updated coordinates")
    return changes
