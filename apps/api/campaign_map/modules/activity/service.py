from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

from fastapi import HTTPException

from campaign_map.core.commits import parse_commit_message
from campaign_map.core.content_store import CHARACTERS_PATH, LOCATIONS_PATH, ContentStore

HISTORY_PATHS = {"locations": LOCATIONS_PATH, "characters": CHARACTERS_PATH}


def recent_activity(store: ContentStore, limit: int) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for c in store.list_commits(limit=limit):
        a = parse_commit_message(c.message, c.author, c.date, c.sha)
        if a is not None:
            out.append(a)
    return out


def item_history(store: ContentStore, type_: str, name: str, limit: int) -> List[Dict[str, Any]]:
    path = HISTORY_PATHS.get(type_)
    if path is None:
        raise HTTPException(status_code=400, detail="Invalid type")

    needle = name.lower()
    out: List[Dict[str, Any]] = []
    for c in store.list_commits(path=path, limit=limit):
        if needle not in c.message.lower():
            continue
        a = parse_commit_message(c.message, c.author, c.date, c.sha)
        if a is not None:
            out.append(a)
    return out


def _commit_type(message: str) -> str:
    if "location" in message or "Location" in message or "places.geojson" in message:
        return "locations"
    if "character" in message or "Character" in message or "characters.json" in message:
        return "characters"
    return "other"


def _day(date: str) -> str:
    try:
        return datetime.fromisoformat(date.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return date[:10] or "unknown"


def activity_stats(store: ContentStore, days: int) -> Dict[str, Any]:
    since = (datetime.now(timezone.utc) - timedelta(days=days)).isoformat().replace("+00:00", "Z")
    commits = store.list_commits(since=since, limit=100)

    users: Counter = Counter()
    daily: Counter = Counter()
    types = {"locations": 0, "characters": 0, "other": 0}
    for c in commits:
        users[c.author] += 1
        daily[_day(c.date)] += 1
        types[_commit_type(c.message)] += 1

    return {
        "totalChanges": len(commits),
        "userActivity": dict(users),
        "typeActivity": types,
        "dailyActivity": dict(sorted(daily.items())),
    }
