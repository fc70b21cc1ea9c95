"""Subsonic protocol helpers: envelope rendering, routing and serializers."""

from .response import (
    SUBSONIC_API_VERSION,
    error_response,
    render_envelope,
    subsonic_response,
)
from .routing import subsonic_endpoint

__all__ = [
    "SUBSONIC_API_VERSION",
    "error_response",
    "render_envelope",
    "subsonic_endpoint",
    "subsonic_response",
]
