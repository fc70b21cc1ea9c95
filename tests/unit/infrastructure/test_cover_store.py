"""Tests for the filesystem cover store."""

from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image, UnidentifiedImageError

from musicflow.infrastructure.images.cover_store import (
    CoverStore,
    clamp_size,
    extension_for,
    webp_quality,
)


def _png(width: int = 640, height: int = 480) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", (width, height), (200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


class TestHelpers:
    @pytest.mark.parametrize(
        ("size", "expected"), [(10, 50), (50, 50), (300, 300), (2000, 2000), (9000, 2000)]
    )
    def test_clamp_size(self, size: int, expected: int) -> None:
        assert clamp_size(size) == expected

    def test_quality_steps_at_300(self) -> None:
        assert webp_quality(299) == 75
        assert webp_quality(300) == 80

    def test_extension_for(self) -> None:
        assert extension_for("image/png") == "png"
        assert extension_for("IMAGE/JPEG") == "jpg"
        assert extension_for("application/x-unknown") == "jpg"


class TestCoverStore:
    async def test_write_original_layout(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)

        path = await store.write_original("album-1", "image/png", b"bytes")

        assert path == tmp_path / "originals" / "album-1.png"
        assert path.read_bytes() == b"bytes"
        assert store.find_original("al-album-1") == path

    async def test_prewarm_renders_default_size(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path, prewarm_size=300)

        path = await store.prewarm("al-album-1", _png())

        assert path == tmp_path / "webp" / "al-album-1_300.webp"
        with Image.open(path) as img:
            assert img.format == "WEBP"
            assert max(img.size) == 300

    async def test_derivative_rendered_once_then_cached(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        await store.write_original("a1", "image/png", _png())

        first = await store.get_derivative("al-a1", 120)
        assert first is not None
        stamp = first.stat().st_mtime_ns
        second = await store.get_derivative("al-a1", 120)

        assert second == first
        assert second.stat().st_mtime_ns == stamp

    async def test_derivative_size_is_clamped(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        await store.write_original("a1", "image/png", _png(100, 100))

        path = await store.get_derivative("al-a1", 5)

        assert path is not None
        assert path.name == "al-a1_50.webp"

    async def test_unknown_cover_has_no_derivative(self, tmp_path: Path) -> None:
        assert await CoverStore(tmp_path).get_derivative("al-missing", 100) is None

    @pytest.mark.parametrize("cover_id", ["al-../secret", "al-", "al-.hidden"])
    def test_find_original_rejects_odd_ids(self, tmp_path: Path, cover_id: str) -> None:
        assert CoverStore(tmp_path).find_original(cover_id) is None

    async def test_corrupt_image_raises(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        with pytest.raises(UnidentifiedImageError):
            await store.prewarm("al-x", b"not an image")
