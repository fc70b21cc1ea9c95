"""Play queue persistence."""

from collections.abc import Callable

from fastapi.testclient import TestClient

from conftest import ADMIN, envelope


def _song_ids(client: TestClient) -> dict[str, str]:
    result = envelope(client.get("/rest/search3", params={**ADMIN, "query": ""}))
    return {s["title"]: s["id"] for s in result["searchResult3"]["song"]}


def test_empty_queue(client: TestClient) -> None:
    queue = envelope(client.get("/rest/getPlayQueue", params=ADMIN))["playQueue"]

    assert queue == {"entry": []}


def test_save_and_restore(scanned_client: Callable[[], TestClient]) -> None:
    client = scanned_client()
    songs = _song_ids(client)

    response = client.get(
        "/rest/savePlayQueue",
        params={
            **ADMIN,
            "id": [songs["b"], songs["a"]],
            "current": songs["a"],
            "position": 1500,
            "c": "test-client",
        },
    )
    assert envelope(response)["status"] == "ok"

    queue = envelope(client.get("/rest/getPlayQueue", params=ADMIN))["playQueue"]
    assert [e["title"] for e in queue["entry"]] == ["b", "a"]
    assert queue["current"] == songs["a"]
    assert queue["position"] == 1500
    assert queue["changedBy"] == "test-client"
    assert queue["username"] == "admin"


def test_saving_replaces_previous_queue(scanned_client: Callable[[], TestClient]) -> None:
    client = scanned_client()
    songs = _song_ids(client)

    client.get("/rest/savePlayQueue", params={**ADMIN, "id": [songs["a"], songs["b"]]})
    client.get("/rest/savePlayQueue", params={**ADMIN, "id": songs["c"]})

    queue = envelope(client.get("/rest/getPlayQueue", params=ADMIN))["playQueue"]
    assert [e["title"] for e in queue["entry"]] == ["c"]


def test_unknown_song_in_queue(scanned_client: Callable[[], TestClient]) -> None:
    client = scanned_client()

    response = client.get("/rest/savePlayQueue", params={**ADMIN, "id": "missing"})

    assert envelope(response)["error"]["code"] == 50
