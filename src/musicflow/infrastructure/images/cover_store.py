"""Filesystem cover store with Pillow-rendered WebP derivatives.

Layout under ``settings.storage.cover_art_path``::

    originals/{album_id}.{ext}      raw embedded bytes, one per album
    webp/{cover_id}_{size}.webp     derived sizes, rendered on demand or prewarmed
"""

import asyncio
import hashlib
import logging
import os
from io import BytesIO
from pathlib import Path

from PIL import Image as PILImage

logger = logging.getLogger(__name__)

COVER_ID_PREFIX = "al-"
MIN_SIZE = 50
MAX_SIZE = 2000

_MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/gif": "gif",
}

_EXTENSION_MIMES: dict[str, str] = {
    "jpg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


def extension_for(mime: str) -> str:
    """File extension for an image MIME type, defaulting to jpg."""
    return _MIME_EXTENSIONS.get(mime.lower().strip(), "jpg")


def mime_for(path: Path) -> str:
    return _EXTENSION_MIMES.get(path.suffix.lstrip(".").lower(), "image/jpeg")


def clamp_size(size: int) -> int:
    return max(MIN_SIZE, min(MAX_SIZE, size))


def webp_quality(size: int) -> int:
    return 80 if size >= 300 else 75


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def render_webp(data: bytes, size: int) -> bytes:
    """Resize to fit ``size`` x ``size`` and encode as WebP. CPU-bound."""
    with PILImage.open(BytesIO(data)) as img:
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGB")
        img.thumbnail((size, size), PILImage.Resampling.LANCZOS)
        output = BytesIO()
        img.save(output, format="WEBP", quality=webp_quality(size), method=4)
        return output.getvalue()


def _write_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    tmp_path.write_bytes(data)
    os.replace(tmp_path, path)


class CoverStore:
    """Stores cover originals and serves cached WebP derivatives."""

    def __init__(self, base_path: Path, prewarm_size: int = 300) -> None:
        self.base_path = Path(base_path)
        self.originals_path = self.base_path / "originals"
        self.cache_path = self.base_path / "webp"
        self.prewarm_size = clamp_size(prewarm_size)
        # Hey future me - one lock per (cover_id, size) so two clients asking for the
        # same thumbnail render it once, while different thumbnails render in parallel.
        self._render_locks: dict[str, asyncio.Lock] = {}

    def cover_id_for(self, album_id: str) -> str:
        return f"{COVER_ID_PREFIX}{album_id}"

    @staticmethod
    def album_id_for(cover_id: str) -> str:
        return cover_id.removeprefix(COVER_ID_PREFIX)

    def original_path(self, album_id: str, mime: str) -> Path:
        return self.originals_path / f"{album_id}.{extension_for(mime)}"

    def derivative_path(self, cover_id: str, size: int) -> Path:
        return self.cache_path / f"{cover_id}_{size}.webp"

    async def write_original(self, album_id: str, mime: str, data: bytes) -> Path:
        """Durably write the original bytes. Raises OSError on failure."""
        path = self.original_path(album_id, mime)
        await asyncio.to_thread(_write_atomic, path, data)
        logger.debug(f"Stored cover original for album {album_id} at {path}")
        return path

    async def prewarm(self, cover_id: str, data: bytes) -> Path:
        """Render the default derivative size from in-memory bytes."""
        return await self._render(cover_id, self.prewarm_size, data)

    def find_original(self, cover_id: str) -> Path | None:
        album_id = self.album_id_for(cover_id)
        if not album_id or "/" in album_id or "\\" in album_id or album_id.startswith("."):
            return None
        for ext in _EXTENSION_MIMES:
            candidate = self.originals_path / f"{album_id}.{ext}"
            if candidate.is_file():
                return candidate
        return None

    async def get_derivative(self, cover_id: str, size: int) -> Path | None:
        """Return the cached WebP for ``size``, rendering it once if missing."""
        size = clamp_size(size)
        target = self.derivative_path(cover_id, size)
        if target.is_file():
            return target

        original = self.find_original(cover_id)
        if original is None:
            return None
        data = await asyncio.to_thread(original.read_bytes)
        return await self._render(cover_id, size, data)

    async def _render(self, cover_id: str, size: int, data: bytes) -> Path:
        target = self.derivative_path(cover_id, size)
        lock = self._render_locks.setdefault(f"{cover_id}:{size}", asyncio.Lock())
        async with lock:
            # Double check: another waiter may have rendered it while we queued
            if target.is_file():
                return target
            webp = await asyncio.to_thread(render_webp, data, size)
            await asyncio.to_thread(_write_atomic, target, webp)
        logger.debug(f"Rendered cover {cover_id} at {size}px")
        return target
