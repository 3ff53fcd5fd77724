from __future__ import annotations

from campaign_map.core.commits import (
    build_commit_message,
    detect_character_changes,
    detect_location_changes,
    parse_commit_message,
)


def test_build_defaults():
    assert build_commit_message("create", "location", "Valaris", "Mira") == (
        "Create location: Valaris (by Mira) - Initial location creation"
    )
    assert build_commit_message("delete", "character", "Roland", "gm") == (
        "Delete character: Roland (by gm) - Removed from campaign"
    )
    assert build_commit_message("update", "location", "Valaris", "Mira", description="updated region") == (
        "Update location: Valaris (by Mira) - updated region"
    )


def test_parse_structured_messages():
    a = parse_commit_message(
        "Create location: Fort (North) (by Mira) - Initial location creation",
        "Mira",
        "2026-01-01T00:00:00Z",
        "0123456789abcdef",
    )
    assert a["id"] == "0123456"
    assert a["action"] == "create"
    assert a["type"] == "location"
    assert a["itemName"] == "Fort (North)"
    assert a["user"] == "Mira"
    assert a["description"] == "Initial location creation"

    a = parse_commit_message(
        "Add movement to character: Roland (by Mira) - Valaris (1200-01-01)", "x", "", "abcdef0123"
    )
    assert (a["action"], a["type"], a["itemName"], a["user"]) == ("update", "character", "Roland", "Mira")

    a = parse_commit_message("Reorder movements for character: Roland (by gm) - 3 movements reordered", "x", "", "s")
    assert a["action"] == "update"
    assert a["user"] == "gm"


def test_parse_unstructured_messages():
    a = parse_commit_message("Merge branch 'main'", "octocat", "2026-01-01T00:00:00Z", "abc")
    assert a["action"] == "unknown"
    assert a["type"] == "unknown"
    assert a["itemName"] == "Unknown"
    assert a["user"] == "octocat"
    assert a["description"] == "Merge branch 'main'"

    assert parse_commit_message("   ", "octocat", "", "abc") is None


def test_detect_character_changes():
    old = {"name": "Roland", "title": "", "status": "alive", "relationship": "ally", "notes": "brave"}
    new = {"name": "Roland", "title": "Knight", "status": "dead", "relationship": "enemy", "notes": ""}
    assert detect_character_changes(old, new) == [
        "added title",
        "changed status to dead",
        "changed relationship to enemy",
        "removed notes",
    ]
    assert detect_character_changes(old, dict(old)) == []


def test_detect_location_changes():
    old = {"properties": {"name": "A", "description": "x", "visited": True}, "geometry": {"coordinates": [1, 2]}}
    new = {"properties": {"name": "A", "description": "y", "visited": False}, "geometry": {"coordinates": [1, 2, 0]}}
    assert detect_location_changes(old, new) == ["updated description", "marked as unvisited"]
