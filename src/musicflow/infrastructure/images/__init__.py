"""Album cover storage."""

from .cover_store import CoverStore

__all__ = ["CoverStore"]
