"""Error taxonomy for the gallery API.

Every error carries the HTTP status it is rendered with. The handlers in
`gallery_api.main` turn them into the `{success: false, error}` envelope.
"""
from typing import Optional

from fastapi import status


class GalleryError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GalleryError):
    """Bad input shape or value."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(GalleryError):
    """Missing resource."""

    status_code = status.HTTP_404_NOT_FOUND


class AuthError(GalleryError):
    """Missing or wrong admin credential."""

    status_code = status.HTTP_401_UNAUTHORIZED


# Backend sub-codes with a more specific status than 500
BACKEND_ERROR_CODES = {
    "PGRST116": (status.HTTP_404_NOT_FOUND, "Resource not found"),
    "PGRST301": (status.HTTP_400_BAD_REQUEST, "Invalid request parameters"),
    "not_found": (status.HTTP_404_NOT_FOUND, "Resource not found"),
    "bad_params": (status.HTTP_400_BAD_REQUEST, "Invalid request parameters"),
}


class BackendError(GalleryError):
    """
    Database or storage failure.

    Wraps the underlying message. A recognized `code` maps the error to a
    more specific status and message.
    """

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code
        if code in BACKEND_ERROR_CODES:
            self.status_code, self.message = BACKEND_ERROR_CODES[code]


class StorageError(BackendError):
    """Object storage upload or removal failure."""
