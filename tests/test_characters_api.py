from __future__ import annotations

from campaign_map.core.content_store import CHARACTERS_PATH

from conftest import login


def _create(client, **extra):
    body = {"name": "Sir Roland of Harak", "placeOfOrigin": "Harak", "relationship": "ally", **extra}
    r = client.post("/api/characters", json=body)
    assert r.status_code == 200, r.text
    return r.json()["character"]


def test_create_requires_login(client, seeded):
    r = client.post("/api/characters", json={"name": "Nobody"})
    assert r.status_code == 401
    body = r.json()
    assert body["error"] == "http_error"
    assert body["message"] == "Authentication required"
    assert body["details"] == {"status_code": 401}


def test_create_character_from_origin(client, seeded):
    login(client, "mira")
    ch = _create(client)

    assert ch["id"] == "sir_roland_of_harak"
    assert ch["coordinates"] == [300, 50]
    assert ch["status"] == "alive"
    assert ch["movementHistory"] == []
    assert ch["currentLocation"]["location"] == "Harak"
    assert ch["currentLocation"]["notes"] == "Initial location based on place of origin"

    r = client.post("/api/characters", json={"name": "Sir Roland of Harak"})
    assert r.status_code == 409

    r = client.get("/api/characters/sir_roland_of_harak")
    assert r.status_code == 200
    assert r.json()["name"] == "Sir Roland of Harak"
    assert client.get("/api/characters/nobody").status_code == 404

    commit = seeded.list_commits(path=CHARACTERS_PATH)[0]
    assert commit.message == "Create character: Sir Roland of Harak (by Mira) - Initial character creation"
    assert commit.author == "Mira"


def test_movements_stay_chronological(client, seeded):
    login(client, "mira")
    ch = _create(client)
    cid = ch["id"]

    r = client.post(f"/api/characters/{cid}/movements", json={"location": "Valaris", "dateStart": "1201-03-01"})
    assert r.status_code == 200, r.text
    assert r.json()["movement"]["coordinates"] == [100, 200]
    assert r.json()["movement"]["id"].startswith("movement_")

    r = client.post(
        f"/api/characters/{cid}/movements",
        json={"location": "Camp", "coordinates": [5, 6], "isCustomLocation": True, "dateStart": "1200-01-01"},
    )
    assert r.status_code == 200
    # an earlier movement is inserted first and renumbered
    assert r.json()["movement"]["movement_nr"] == 0

    r = client.post(f"/api/characters/{cid}/movements", json={"location": "upeto", "dateStart": "1202-07-01"})
    assert r.status_code == 200
    ch = r.json()["character"]

    history = ch["movementHistory"]
    assert [m["dateStart"] for m in history] == ["1200-01-01", "1201-03-01", "1202-07-01"]
    assert [m["movement_nr"] for m in history] == [0, 1, 2]
    assert ch["currentLocation"]["location"] == "upeto"
    assert ch["currentLocation"]["coordinates"] == [10, 20]
    # profile coordinates stay on the place of origin
    assert ch["coordinates"] == [300, 50]

    commit = seeded.list_commits(path=CHARACTERS_PATH)[0]
    assert commit.message == "Add movement to character: Sir Roland of Harak (by Mira) - upeto (1202-07-01)"


def test_update_and_delete_movement(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]
    first = client.post(f"/api/characters/{cid}/movements", json={"location": "Valaris", "dateStart": "1200-01-01"})
    second = client.post(f"/api/characters/{cid}/movements", json={"location": "Upeto", "dateStart": "1200-02-01"})
    first_id = first.json()["movement"]["id"]
    second_id = second.json()["movement"]["id"]

    # moving the first movement after the second flips the order
    r = client.put(
        f"/api/characters/{cid}/movements/{first_id}",
        json={"location": "Valaris", "dateStart": "1200-03-01", "notes": "came back"},
    )
    assert r.status_code == 200
    ch = r.json()["character"]
    assert [m["id"] for m in ch["movementHistory"]] == [second_id, first_id]
    assert ch["currentLocation"]["location"] == "Valaris"
    assert ch["currentLocation"]["notes"] == "came back"

    r = client.put(f"/api/characters/{cid}/movements/movement_missing", json={"location": "Valaris"})
    assert r.status_code == 404
    assert r.json()["message"] == "Movement not found"

    r = client.delete(f"/api/characters/{cid}/movements/{first_id}")
    assert r.status_code == 200
    ch = r.json()["character"]
    assert ch["currentLocation"]["location"] == "Upeto"
    assert [m["movement_nr"] for m in ch["movementHistory"]] == [0]

    r = client.delete(f"/api/characters/{cid}/movements/{second_id}")
    ch = r.json()["character"]
    assert ch["movementHistory"] == []
    assert ch["currentLocation"]["location"] == "Harak"
    assert ch["currentLocation"]["coordinates"] == [300, 50]
    assert ch["currentLocation"]["notes"] == "Fallback to place of origin after movement deletion"


def test_movement_validation(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]

    r = client.post(f"/api/characters/{cid}/movements", json={"location": "Camp", "isCustomLocation": True})
    assert r.status_code == 400
    assert r.json()["message"].startswith("Custom locations require valid coordinates")

    r = client.post(
        f"/api/characters/{cid}/movements",
        json={"coordinates": [1, 2], "isCustomLocation": True},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Custom locations require a location name."

    r = client.post(f"/api/characters/{cid}/movements", json={"location": "Atlantis"})
    assert r.status_code == 400
    assert r.json()["message"] == "Could not resolve coordinates for movement"

    r = client.post("/api/characters/nobody/movements", json={"location": "Valaris"})
    assert r.status_code == 404


def test_reorder_conflicts(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]
    ids = []
    for loc in ("Valaris", "Upeto"):
        r = client.post(f"/api/characters/{cid}/movements", json={"location": loc, "dateStart": "1200-01-01"})
        ids.append(r.json()["movement"]["id"])

    r = client.put(f"/api/characters/{cid}/movements/reorder", json={"movements": [{"id": ids[0]}]})
    assert r.status_code == 409
    details = r.json()["details"]
    assert details["currentCount"] == 2
    assert details["expectedCount"] == 1

    r = client.put(
        f"/api/characters/{cid}/movements/reorder",
        json={"movements": [{"id": ids[0]}, {"id": "movement_other"}]},
    )
    assert r.status_code == 409
    assert r.json()["details"]["reorderedIds"] == [ids[0], "movement_other"]

    # same-day movements take the client's order
    r = client.put(
        f"/api/characters/{cid}/movements/reorder",
        json={"movements": [{"id": ids[1]}, {"id": ids[0]}]},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["reorderedCount"] == 2
    assert [m["id"] for m in body["character"]["movementHistory"]] == [ids[1], ids[0]]
    assert body["character"]["currentLocation"]["location"] == "Valaris"


def test_reorder_cannot_break_chronology(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]
    early = client.post(f"/api/characters/{cid}/movements", json={"location": "Valaris", "dateStart": "1200-01-01"})
    late = client.post(f"/api/characters/{cid}/movements", json={"location": "Upeto", "dateStart": "1200-06-01"})
    early_id = early.json()["movement"]["id"]
    late_id = late.json()["movement"]["id"]

    r = client.put(
        f"/api/characters/{cid}/movements/reorder",
        json={"movements": [{"id": late_id}, {"id": early_id}]},
    )
    assert r.status_code == 200
    assert [m["id"] for m in r.json()["character"]["movementHistory"]] == [early_id, late_id]


def test_update_character_keeps_history(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]
    client.post(f"/api/characters/{cid}/movements", json={"location": "Valaris", "dateStart": "1200-01-01"})

    r = client.put(
        f"/api/characters/{cid}",
        json={"name": "Sir Roland of Harak", "placeOfOrigin": "Harak", "title": "Knight", "relationship": "ally"},
    )
    assert r.status_code == 200
    ch = r.json()["character"]
    assert ch["title"] == "Knight"
    assert len(ch["movementHistory"]) == 1
    assert ch["currentLocation"]["location"] == "Valaris"

    commit = seeded.list_commits(path=CHARACTERS_PATH)[0]
    assert commit.message == "Update character: sir_roland_of_harak (by Mira) - added title"

    _create(client, name="Other")
    r = client.put("/api/characters/other", json={"name": "Sir Roland of Harak"})
    assert r.status_code == 409
    assert client.put("/api/characters/ghost", json={"name": "Ghost"}).status_code == 404


def test_delete_character(client, seeded):
    login(client, "mira")
    cid = _create(client)["id"]
    r = client.delete(f"/api/characters/{cid}")
    assert r.status_code == 200
    assert client.get("/api/characters").json()["characters"] == []
    assert client.delete(f"/api/characters/{cid}").status_code == 404


def test_migrate_movement_numbers(client, seeded):
    doc = {
        "version": "1.0",
        "characters": [
            {
                "id": "old",
                "name": "Old",
                "movementHistory": [
                    {"id": "b", "dateStart": "1200-02-01", "coordinates": [1, 1]},
                    {"id": "a", "dateStart": "1200-01-01", "coordinates": [2, 2]},
                ],
            }
        ],
    }
    seeded.write_json(CHARACTERS_PATH, doc, message="Import", sha=None, author="seed")
    login(client, "admin")

    r = client.post("/api/characters/migrate-movement-numbers")
    assert r.status_code == 200
    body = r.json()
    assert body["changes"] == ["Renumbered 2 movements for Old"]
    assert body["commitSha"]

    ch = client.get("/api/characters/old").json()
    assert [(m["id"], m["movement_nr"]) for m in ch["movementHistory"]] == [("a", 0), ("b", 1)]
    assert ch["currentLocation"]["coordinates"] == [1, 1]

    r = client.post("/api/characters/migrate-movement-numbers")
    assert r.json()["commitSha"] is None
    assert r.json()["message"] == "No migration needed - all movements already numbered"
