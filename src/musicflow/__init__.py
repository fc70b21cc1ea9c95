"""MusicFlow - Subsonic-compatible music streaming server."""

__version__ = "1.0.0"
