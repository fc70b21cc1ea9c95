"""Playlist endpoints against a scanned library."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from musicflow.config import Settings

from conftest import ADMIN, envelope, wait_for_scan


@pytest.fixture
def catalog(scanned_client: Callable[[], TestClient]) -> TestClient:
    return scanned_client()


def _song_ids(client: TestClient) -> dict[str, str]:
    songs = client.get("/rest/search3", params={**ADMIN, "query": ""})
    return {s["title"]: s["id"] for s in envelope(songs)["searchResult3"]["song"]}


def _create(client: TestClient, name: str, song_ids: list[str]) -> dict:
    response = client.get(
        "/rest/createPlaylist", params={**ADMIN, "name": name, "songId": song_ids}
    )
    assert response.status_code == 200, response.text
    return envelope(response)["playlist"]


class TestPlaylists:
    def test_create_keeps_song_order_and_stats(self, catalog: TestClient) -> None:
        songs = _song_ids(catalog)

        playlist = _create(catalog, "Road trip", [songs["c"], songs["a"]])

        assert playlist["name"] == "Road trip"
        assert playlist["owner"] == "admin"
        assert playlist["songCount"] == 2
        assert playlist["duration"] == 3
        assert [e["title"] for e in playlist["entry"]] == ["c", "a"]

    def test_update_adds_and_removes_by_index(self, catalog: TestClient) -> None:
        songs = _song_ids(catalog)
        playlist = _create(catalog, "Mix", [songs["a"], songs["b"]])

        response = catalog.get(
            "/rest/updatePlaylist",
            params={
                **ADMIN,
                "playlistId": playlist["id"],
                "name": "Renamed",
                "songIndexToRemove": 0,
                "songIdToAdd": songs["c"],
            },
        )
        assert envelope(response)["status"] == "ok"

        updated = envelope(catalog.get("/rest/getPlaylist", params={**ADMIN, "id": playlist["id"]}))
        assert updated["playlist"]["name"] == "Renamed"
        assert [e["title"] for e in updated["playlist"]["entry"]] == ["b", "c"]
        assert updated["playlist"]["songCount"] == 2

    def test_same_song_twice(self, catalog: TestClient) -> None:
        song = _song_ids(catalog)["a"]

        playlist = _create(catalog, "Repeat", [song, song])

        assert playlist["songCount"] == 2
        assert [e["id"] for e in playlist["entry"]] == [song, song]

    def test_unknown_song_is_rejected(self, catalog: TestClient) -> None:
        response = catalog.get(
            "/rest/createPlaylist", params={**ADMIN, "name": "Broken", "songId": "nope"}
        )
        assert response.status_code == 404
        assert envelope(response)["error"]["code"] == 50

    def test_list_and_delete(self, catalog: TestClient) -> None:
        playlist = _create(catalog, "Temp", [])

        listed = envelope(catalog.get("/rest/getPlaylists", params=ADMIN))
        assert [p["name"] for p in listed["playlists"]["playlist"]] == ["Temp"]
        assert "entry" not in listed["playlists"]["playlist"][0]

        catalog.get("/rest/deletePlaylist", params={**ADMIN, "id": playlist["id"]})
        listed = envelope(catalog.get("/rest/getPlaylists", params=ADMIN))
        assert listed["playlists"]["playlist"] == []

    def test_private_playlist_hidden_from_other_users(self, catalog: TestClient) -> None:
        playlist = _create(catalog, "Mine", [])
        catalog.get("/rest/createUser", params={**ADMIN, "username": "bob", "password": "pw"})
        bob = {"u": "bob", "p": "pw", "f": "json"}

        hidden = catalog.get("/rest/getPlaylist", params={**bob, "id": playlist["id"]})
        denied = catalog.get("/rest/deletePlaylist", params={**bob, "id": playlist["id"]})

        assert envelope(hidden)["error"]["code"] == 50
        assert envelope(denied)["error"]["code"] == 40

        catalog.get(
            "/rest/updatePlaylist",
            params={**ADMIN, "playlistId": playlist["id"], "public": "true"},
        )
        visible = catalog.get("/rest/getPlaylist", params={**bob, "id": playlist["id"]})
        assert envelope(visible)["playlist"]["name"] == "Mine"

    def test_deleted_songs_drop_out_of_playlists(
        self, catalog: TestClient, api_settings: Settings
    ) -> None:
        songs = _song_ids(catalog)
        playlist = _create(catalog, "Shrinking", [songs["a"], songs["c"]])

        (api_settings.storage.music_path / "Artist B" / "Album Y" / "c.wav").unlink()
        catalog.get("/rest/startScan", params=ADMIN)
        wait_for_scan(catalog)

        refreshed = envelope(catalog.get("/rest/getPlaylist", params={**ADMIN, "id": playlist["id"]}))
        assert [e["title"] for e in refreshed["playlist"]["entry"]] == ["a"]
        assert refreshed["playlist"]["songCount"] == 1
        assert refreshed["playlist"]["duration"] == 2

    def test_append_adds_to_the_end(self, catalog: TestClient) -> None:
        songs = _song_ids(catalog)
        playlist = _create(catalog, "Growing", [songs["b"]])

        response = catalog.get(
            "/rest/appendPlaylist",
            params={**ADMIN, "id": playlist["id"], "songId": [songs["a"], songs["b"]]},
        )
        assert envelope(response)["status"] == "ok"

        updated = envelope(catalog.get("/rest/getPlaylist", params={**ADMIN, "id": playlist["id"]}))
        assert [e["title"] for e in updated["playlist"]["entry"]] == ["b", "a", "b"]
        assert updated["playlist"]["songCount"] == 3
        assert updated["playlist"]["duration"] == 7

    def test_append_requires_ownership(self, catalog: TestClient) -> None:
        song = _song_ids(catalog)["a"]
        playlist = _create(catalog, "Locked", [])
        catalog.get("/rest/createUser", params={**ADMIN, "username": "bob", "password": "pw"})

        response = catalog.get(
            "/rest/appendPlaylist",
            params={"u": "bob", "p": "pw", "f": "json", "id": playlist["id"], "songId": song},
        )

        assert envelope(response)["error"]["code"] == 40
