"""Shared fixtures: temp catalog database, fake scanner adapters, API client."""

import time
import wave
from collections.abc import AsyncGenerator, Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from musicflow.config import Settings
from musicflow.domain.entities import CoverImage, TrackMetadata
from musicflow.domain.exceptions import ExtractionFailed
from musicflow.domain.value_objects import content_type_for
from musicflow.infrastructure.persistence import Database


def write_wav(path: Path, seconds: float = 1.0, rate: int = 8000) -> Path:
    """Write a silent mono 16-bit WAV file that mutagen can open."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(b"\x00\x00" * int(seconds * rate))
    return path


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'musicflow.db'}",
        "music_library_path": tmp_path / "music",
        "cover_art_path": tmp_path / "coverArt",
        "log_level": "WARNING",
        "scanner_extract_workers": 2,
        "scanner_batch_size": 2,
    }
    values.update(overrides)
    return Settings(**values)


class FakeExtractor:
    """Metadata extractor driven by a path -> TrackMetadata table.

    Paths missing from the table fail like a corrupt file would.
    """

    def __init__(self) -> None:
        self.tracks: dict[str, TrackMetadata] = {}
        self.calls: list[str] = []

    def add(
        self,
        path: Path,
        artist: str,
        album: str,
        title: str,
        cover: bytes | None = None,
        duration: int = 100,
        **fields: object,
    ) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        if not path.exists():
            path.write_bytes(b"not really audio")
        key = str(path.resolve())
        self.tracks[key] = TrackMetadata(
            file_path=key,
            title=title,
            artist=artist,
            album=album,
            content_type=content_type_for(path),
            duration=duration,
            cover=CoverImage("image/png", cover) if cover is not None else None,
            **fields,  # type: ignore[arg-type]
        )
        return path

    def extract(self, path: Path) -> TrackMetadata:
        key = str(path)
        self.calls.append(key)
        if key not in self.tracks:
            raise ExtractionFailed(path, "unreadable test file")
        return self.tracks[key]


class FakeCoverStore:
    """In-memory cover storage that records what the scanner stored."""

    def __init__(self, base_path: Path, fail_albums: set[str] | None = None) -> None:
        self.base_path = base_path
        self.fail_albums = fail_albums or set()
        self.originals: dict[str, bytes] = {}
        self.prewarmed: list[str] = []
        self.prewarm_error: Exception | None = None

    def cover_id_for(self, album_id: str) -> str:
        return f"al-{album_id}"

    async def write_original(self, album_id: str, mime: str, data: bytes) -> Path:
        if album_id in self.fail_albums:
            raise OSError(28, "No space left on device")
        self.originals[album_id] = data
        return self.base_path / f"{album_id}.png"

    async def prewarm(self, cover_id: str, data: bytes) -> Path:
        if self.prewarm_error is not None:
            raise self.prewarm_error
        self.prewarmed.append(cover_id)
        return self.base_path / f"{cover_id}_300.webp"


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
async def db(settings: Settings) -> AsyncGenerator[Database, None]:
    database = Database(settings)
    await database.create_tables()
    yield database
    await database.close()


@pytest.fixture
def library(tmp_path: Path) -> Path:
    root = tmp_path / "music"
    root.mkdir()
    return root


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def cover_store(tmp_path: Path) -> FakeCoverStore:
    return FakeCoverStore(tmp_path / "covers")


# --- API --------------------------------------------------------------------

ADMIN = {"u": "admin", "p": "admin", "f": "json"}


@pytest.fixture
def api_settings(tmp_path: Path) -> Settings:
    settings = make_settings(tmp_path)
    settings.storage.music_path.mkdir(parents=True, exist_ok=True)
    return settings


@pytest.fixture
def client(api_settings: Settings) -> Iterator[TestClient]:
    from musicflow.main import create_app

    with TestClient(create_app(api_settings)) as test_client:
        yield test_client


def wait_for_scan(client: TestClient, timeout: float = 15.0) -> dict:
    """Poll getScanStatus until the background scan is done."""
    deadline = time.monotonic() + timeout
    while True:
        status = client.get("/rest/getScanStatus", params=ADMIN).json()
        scan = status["subsonic-response"]["scanStatus"]
        if not scan["scanning"]:
            return scan
        if time.monotonic() > deadline:
            raise AssertionError("library scan did not finish in time")
        time.sleep(0.05)


@pytest.fixture
def scanned_client(
    client: TestClient, api_settings: Settings
) -> Callable[[], TestClient]:
    """Lay out a small WAV library and run a scan through the API.

    Artist and album come from the directory names (the files carry no tags).
    """
    music = api_settings.storage.music_path
    write_wav(music / "Artist A" / "Album X" / "a.wav", seconds=2)
    write_wav(music / "Artist A" / "Album X" / "b.wav", seconds=3)
    write_wav(music / "Artist B" / "Album Y" / "c.wav", seconds=1)

    def run() -> TestClient:
        response = client.get("/rest/startScan", params=ADMIN)
        assert response.status_code == 200
        wait_for_scan(client)
        return client

    return run


def envelope(response: object) -> dict:
    """The ``subsonic-response`` object of a JSON reply."""
    return response.json()["subsonic-response"]  # type: ignore[attr-defined]
