"""Value objects shared across layers."""

from .audio_formats import AUDIO_EXTENSIONS, content_type_for, is_audio_file

__all__ = ["AUDIO_EXTENSIONS", "content_type_for", "is_audio_file"]
