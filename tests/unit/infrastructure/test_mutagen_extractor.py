"""Tests for the mutagen metadata extractor."""

from pathlib import Path

import pytest
from mutagen.id3 import TALB, TCON, TDRC, TIT2, TPE1, TRCK
from mutagen.wave import WAVE

from musicflow.domain.exceptions import ExtractionFailed
from musicflow.infrastructure.metadata.mutagen_extractor import (
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    MutagenMetadataExtractor,
    parse_position,
    parse_year,
)

from conftest import write_wav


class TestParseYear:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("2004", 2004), ("2004-05-17", 2004), ("2004/05", 2004), ("c. 1969", 1969)],
    )
    def test_parses_leading_year(self, raw: str, expected: int) -> None:
        assert parse_year(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "unknown", "0000"])
    def test_rejects_garbage(self, raw: str | None) -> None:
        assert parse_year(raw) is None


class TestParsePosition:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("3", 3), ("3/12", 3), (" 7 / 9", 7), ((4, 10), 4), (5, 5)],
    )
    def test_parses_position(self, raw: object, expected: int) -> None:
        assert parse_position(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "A", "0", (0, 0), ()])
    def test_rejects_garbage(self, raw: object) -> None:
        assert parse_position(raw) is None


class TestMutagenMetadataExtractor:
    def test_untagged_file_falls_back_to_directories(self, tmp_path: Path) -> None:
        path = write_wav(tmp_path / "Some Artist" / "Some Album" / "01 Intro.wav", seconds=2)

        metadata = MutagenMetadataExtractor(library_root=tmp_path).extract(path)

        assert metadata.artist == "Some Artist"
        assert metadata.album == "Some Album"
        assert metadata.title == "01 Intro"
        assert metadata.duration == 2
        assert metadata.content_type == "audio/wav"
        assert metadata.file_size == path.stat().st_size
        assert metadata.bit_rate is not None and metadata.bit_rate > 0
        assert metadata.cover is None

    def test_file_at_library_root_gets_unknown_names(self, tmp_path: Path) -> None:
        path = write_wav(tmp_path / "loose.wav")

        metadata = MutagenMetadataExtractor(library_root=tmp_path).extract(path)

        assert metadata.artist == UNKNOWN_ARTIST
        assert metadata.album == UNKNOWN_ALBUM
        assert metadata.title == "loose"

    def test_one_level_deep_has_album_but_no_artist(self, tmp_path: Path) -> None:
        path = write_wav(tmp_path / "Mixtape" / "track.wav")

        metadata = MutagenMetadataExtractor(library_root=tmp_path).extract(path)

        assert metadata.album == "Mixtape"
        assert metadata.artist == UNKNOWN_ARTIST

    def test_id3_tags_win_over_directories(self, tmp_path: Path) -> None:
        path = write_wav(tmp_path / "dir artist" / "dir album" / "file.wav")
        audio = WAVE(path)
        audio.add_tags()
        audio.tags.add(TIT2(encoding=3, text=["Real Title"]))
        audio.tags.add(TPE1(encoding=3, text=["Real Artist"]))
        audio.tags.add(TALB(encoding=3, text=["Real Album"]))
        audio.tags.add(TRCK(encoding=3, text=["4/12"]))
        audio.tags.add(TDRC(encoding=3, text=["1997-06-01"]))
        audio.tags.add(TCON(encoding=3, text=["Electronic"]))
        audio.save()

        metadata = MutagenMetadataExtractor(library_root=tmp_path).extract(path)

        assert metadata.title == "Real Title"
        assert metadata.artist == "Real Artist"
        assert metadata.album == "Real Album"
        assert metadata.track == 4
        assert metadata.year == 1997
        assert metadata.genre == "Electronic"

    def test_not_audio_raises_extraction_failed(self, tmp_path: Path) -> None:
        path = tmp_path / "fake.flac"
        path.write_bytes(b"definitely not flac")

        with pytest.raises(ExtractionFailed) as exc_info:
            MutagenMetadataExtractor().extract(path)
        assert exc_info.value.path == path

    def test_missing_file_raises_extraction_failed(self, tmp_path: Path) -> None:
        with pytest.raises(ExtractionFailed):
            MutagenMetadataExtractor().extract(tmp_path / "gone.mp3")
