"""
Tubely error taxonomy.

Every error the service raises on purpose derives from TubelyError, which
carries the HTTP status code the API layer responds with. The FastAPI
exception handler registered in tubely.main renders them as
``{"error": message}``.

Classes:
    ClientInputError: bad or missing file, oversize, wrong type, bad ID (4xx)
    AuthenticationError: missing, malformed, invalid or expired token (401)
    ForbiddenError: record belongs to another user (403)
    NotFoundError: referenced record does not exist (404)
    ProcessingError: ffmpeg/ffprobe failure or unparseable tool output (500)
    StorageError: object-store write or metadata update failure (500)
"""

from fastapi import status


class TubelyError(Exception):
    """Base exception for all Tubely service errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ClientInputError(TubelyError):
    """Raised when the caller sent something we will not process."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthorizationError(TubelyError):
    """Base class for authentication and ownership failures."""

    status_code = status.HTTP_401_UNAUTHORIZED


class AuthenticationError(AuthorizationError):
    """Raised when the bearer token is missing, malformed, invalid or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AuthorizationError):
    """Raised when an authenticated user touches a record they do not own."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(TubelyError):
    """Raised when a referenced record does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ProcessingError(TubelyError):
    """
    Raised when an external media tool fails.

    Attributes:
        diagnostics: The tool's stderr output, kept for operator debugging.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, diagnostics: str = "") -> None:
        super().__init__(message)
        self.diagnostics = diagnostics


class StorageError(TubelyError):
    """Raised when the object store or the metadata store rejects a write."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
