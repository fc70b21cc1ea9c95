"""Domain exceptions.

Exceptions that reach the HTTP layer carry a Subsonic error code and HTTP
status; ``api/exception_handlers.py`` turns them into failed envelopes.
"""

from pathlib import Path
from typing import Any


class MusicFlowError(Exception):
    """Base exception for all MusicFlow errors."""

    subsonic_code: int = 0
    http_status: int = 500

    # Hey future me, message is stored as an attribute so handlers can render it without
    # parsing str(exc). Never raise this base class directly, use a specific subclass.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


# --- Scanner taxonomy -------------------------------------------------------


class LibraryPathNotFound(MusicFlowError):
    """Raised when the library root directory does not exist.

    This is the only scanner error that aborts a whole scan.
    """

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Music library path not found: {path}")
        self.path = Path(path)


class ServerBusyError(MusicFlowError):
    """Raised when a scan is requested while another scan is running."""

    subsonic_code = 60
    http_status = 500

    def __init__(self, message: str = "A library scan is already in progress") -> None:
        super().__init__(message)


class ExtractionFailed(MusicFlowError):
    """Metadata extraction failed for one file. The file is skipped."""

    def __init__(self, path: Path | str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to extract metadata from {path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class BatchWriteFailed(MusicFlowError):
    """A catalog batch transaction was rolled back."""

    def __init__(self, cause: BaseException | str, file_paths: list[str] | None = None) -> None:
        super().__init__(f"Catalog batch write failed: {cause}")
        self.cause = cause
        self.file_paths = file_paths or []


class CoverWriteFailed(MusicFlowError):
    """Writing the original cover bytes for one album failed."""

    def __init__(self, album_id: str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to store cover for album {album_id}: {cause}")
        self.album_id = album_id
        self.cause = cause


class CachePrewarmFailed(MusicFlowError):
    """Rendering a derived cover size failed. Only ever logged."""

    def __init__(self, cover_id: str, cause: BaseException | str) -> None:
        super().__init__(f"Failed to prewarm cover cache for {cover_id}: {cause}")
        self.cover_id = cover_id
        self.cause = cause


# --- API-visible errors -----------------------------------------------------


class MissingParameterError(MusicFlowError):
    """A required request parameter is missing."""

    subsonic_code = 10
    http_status = 400

    def __init__(self, name: str) -> None:
        super().__init__(f"Required parameter is missing: {name}")
        self.name = name


class AuthenticationError(MusicFlowError):
    """Wrong username or password."""

    subsonic_code = 30
    http_status = 401

    def __init__(self, message: str = "Wrong username or password") -> None:
        super().__init__(message)


class AuthorizationError(MusicFlowError):
    """The authenticated user lacks the role for this operation."""

    subsonic_code = 40
    http_status = 403

    def __init__(self, message: str = "User is not authorized for the given operation") -> None:
        super().__init__(message)


class EntityNotFoundException(MusicFlowError):
    """Raised when an entity is not found."""

    subsonic_code = 50
    http_status = 404

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(MusicFlowError):
    """Raised when a request value is out of range or malformed."""

    subsonic_code = 0
    http_status = 400


__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "BatchWriteFailed",
    "CachePrewarmFailed",
    "CoverWriteFailed",
    "EntityNotFoundException",
    "ExtractionFailed",
    "LibraryPathNotFound",
    "MissingParameterError",
    "MusicFlowError",
    "ServerBusyError",
    "ValidationException",
]
