"""Audio metadata extraction."""

from .mutagen_extractor import MutagenMetadataExtractor

__all__ = ["MutagenMetadataExtractor"]
