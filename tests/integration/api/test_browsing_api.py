"""Integration tests for browsing, lists and search over a scanned library."""

from collections.abc import Callable

import pytest
from fastapi.testclient import TestClient

from conftest import ADMIN, envelope


@pytest.fixture
def catalog(scanned_client: Callable[[], TestClient]) -> TestClient:
    return scanned_client()


def _get(client: TestClient, method: str, **params: object) -> dict:
    response = client.get(f"/rest/{method}", params={**ADMIN, **params})
    assert response.status_code == 200, response.text
    return envelope(response)


def _artist_ids(client: TestClient) -> dict[str, str]:
    body = _get(client, "getArtists")
    return {a["name"]: a["id"] for index in body["artists"]["index"] for a in index["artist"]}


class TestBrowsing:
    def test_music_folders(self, catalog: TestClient) -> None:
        folders = _get(catalog, "getMusicFolders")["musicFolders"]["musicFolder"]
        assert folders == [{"id": 1, "name": "music"}]

    def test_indexes_grouped_by_letter(self, catalog: TestClient) -> None:
        indexes = _get(catalog, "getIndexes")["indexes"]

        assert [group["name"] for group in indexes["index"]] == ["A"]
        assert [a["name"] for a in indexes["index"][0]["artist"]] == ["Artist A", "Artist B"]
        assert indexes["lastModified"] > 0
        assert "The" in indexes["ignoredArticles"]

    def test_artist_album_song_walk(self, catalog: TestClient) -> None:
        artist_id = _artist_ids(catalog)["Artist A"]

        artist = _get(catalog, "getArtist", id=artist_id)["artist"]
        assert artist["albumCount"] == 1
        (album_ref,) = artist["album"]

        album = _get(catalog, "getAlbum", id=album_ref["id"])["album"]
        assert album["name"] == "Album X"
        assert album["artist"] == "Artist A"
        assert album["songCount"] == 2
        assert [s["title"] for s in album["song"]] == ["a", "b"]

        song = _get(catalog, "getSong", id=album["song"][0]["id"])["song"]
        assert song["album"] == "Album X"
        assert song["contentType"] == "audio/wav"
        assert song["suffix"] == "wav"
        assert song["duration"] == 2

    def test_music_directory_for_artist_and_album(self, catalog: TestClient) -> None:
        artist_id = _artist_ids(catalog)["Artist B"]

        artist_dir = _get(catalog, "getMusicDirectory", id=artist_id)["directory"]
        (album_child,) = artist_dir["child"]
        assert album_child["isDir"] is True

        album_dir = _get(catalog, "getMusicDirectory", id=album_child["id"])["directory"]
        assert album_dir["parent"] == artist_id
        assert [c["title"] for c in album_dir["child"]] == ["c"]

    def test_untagged_library_has_no_genres(self, catalog: TestClient) -> None:
        assert _get(catalog, "getGenres")["genres"]["genre"] == []

    def test_stream_and_download(self, catalog: TestClient) -> None:
        album = _get(catalog, "getAlbumList2", type="alphabeticalByName")["albumList2"]["album"][0]
        song_id = _get(catalog, "getAlbum", id=album["id"])["album"]["song"][0]["id"]

        streamed = catalog.get("/rest/stream", params={**ADMIN, "id": song_id})
        downloaded = catalog.get("/rest/download", params={**ADMIN, "id": song_id})

        assert streamed.status_code == 200
        assert streamed.headers["content-type"] == "audio/wav"
        assert streamed.content[:4] == b"RIFF"
        assert "attachment" in downloaded.headers["content-disposition"]

    def test_cover_art_for_album_without_cover(self, catalog: TestClient) -> None:
        album = _get(catalog, "getAlbumList2", type="newest")["albumList2"]["album"][0]

        response = catalog.get("/rest/getCoverArt", params={**ADMIN, "id": album["id"]})

        assert response.status_code == 404
        assert envelope(response)["error"]["code"] == 50

    def test_lyrics_without_match(self, catalog: TestClient) -> None:
        lyrics = _get(catalog, "getLyrics", artist="Artist A", title="a")
        assert lyrics["lyrics"] == {}

    def test_download_forbidden_without_role(self, catalog: TestClient) -> None:
        catalog.get(
            "/rest/createUser",
            params={**ADMIN, "username": "guest", "password": "pw", "downloadRole": "false"},
        )
        song_id = _get(catalog, "getRandomSongs", size=1)["randomSongs"]["song"][0]["id"]

        response = catalog.get(
            "/rest/download", params={"u": "guest", "p": "pw", "f": "json", "id": song_id}
        )

        assert response.status_code == 403


class TestLists:
    def test_alphabetical_album_list(self, catalog: TestClient) -> None:
        albums = _get(catalog, "getAlbumList", type="alphabeticalByName")["albumList"]["album"]
        assert [a["name"] for a in albums] == ["Album X", "Album Y"]

    def test_paging(self, catalog: TestClient) -> None:
        albums = _get(catalog, "getAlbumList2", type="alphabeticalByArtist", size=1, offset=1)
        assert [a["name"] for a in albums["albumList2"]["album"]] == ["Album Y"]

    def test_unknown_list_type(self, catalog: TestClient) -> None:
        response = catalog.get("/rest/getAlbumList2", params={**ADMIN, "type": "bogus"})
        assert response.status_code == 400
        assert envelope(response)["error"]["code"] == 0

    def test_by_genre_needs_genre(self, catalog: TestClient) -> None:
        response = catalog.get("/rest/getAlbumList2", params={**ADMIN, "type": "byGenre"})
        assert envelope(response)["error"]["code"] == 10

    def test_random_songs(self, catalog: TestClient) -> None:
        songs = _get(catalog, "getRandomSongs", size=10)["randomSongs"]["song"]
        assert sorted(s["title"] for s in songs) == ["a", "b", "c"]

    def test_top_songs(self, catalog: TestClient) -> None:
        songs = _get(catalog, "getTopSongs", artist="Artist A")["topSongs"]["song"]
        assert [s["title"] for s in songs] == ["a", "b"]


class TestSearch:
    def test_search3_matches_substrings(self, catalog: TestClient) -> None:
        result = _get(catalog, "search3", query="album y")["searchResult3"]

        assert result["artist"] == []
        assert [a["name"] for a in result["album"]] == ["Album Y"]
        assert result["song"] == []

    def test_empty_query_lists_everything(self, catalog: TestClient) -> None:
        result = _get(catalog, "search3", query='""')["searchResult3"]

        assert len(result["artist"]) == 2
        assert len(result["album"]) == 2
        assert len(result["song"]) == 3

    def test_search2_honours_counts(self, catalog: TestClient) -> None:
        result = _get(catalog, "search2", query="artist", artistCount=1, songCount=0)
        assert len(result["searchResult2"]["artist"]) == 1
        assert result["searchResult2"]["song"] == []

    def test_legacy_search_matches_all_given_fields(self, catalog: TestClient) -> None:
        result = _get(catalog, "search", artist="artist a", title="b")["searchResult"]

        assert result["totalHits"] == 1
        assert result["offset"] == 0
        assert [s["title"] for s in result["match"]] == ["b"]

    def test_legacy_search_any_field(self, catalog: TestClient) -> None:
        result = _get(catalog, "search", any="album y")["searchResult"]
        assert [s["title"] for s in result["match"]] == ["c"]

        paged = _get(catalog, "search", any="artist", count=1, offset=1)["searchResult"]
        assert paged["totalHits"] == 3
        assert [s["title"] for s in paged["match"]] == ["b"]

    def test_legacy_search_needs_criteria(self, catalog: TestClient) -> None:
        response = catalog.get("/rest/search", params=ADMIN)
        assert envelope(response)["error"]["code"] == 10
