"""Exceptions raised by the bookmarking service client."""

from __future__ import annotations

# Service error codes with a dedicated meaning.
ERROR_CODE_NOT_FOUND = 1241
ERROR_CODE_DUPLICATE_FOLDER = 1251
ERROR_CODE_CONTENTS_UNAVAILABLE = 1550


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code


class AuthenticationError(ServiceError):
    """Credentials were rejected."""


class NotFoundError(ServiceError):
    """The bookmark or folder does not exist on the service."""


class DuplicateFolderError(ServiceError):
    """A folder with the same title already exists."""


class ContentsUnavailableError(ServiceError):
    """The service could not produce the article's text."""


def error_for_code(
    error_code: int, message: str, status_code: int | None = None
) -> ServiceError:
    """Map a service error code to the matching exception.

    Args:
        error_code: Numeric code reported by the service.
        message: Human-readable message reported alongside.
        status_code: HTTP status of the response, if any.

    Returns:
        The exception instance to raise or wrap.
    """
    if error_code == ERROR_CODE_NOT_FOUND:
        return NotFoundError(message, status_code, error_code)
    if error_code == ERROR_CODE_DUPLICATE_FOLDER:
        return DuplicateFolderError(message, status_code, error_code)
    if error_code == ERROR_CODE_CONTENTS_UNAVAILABLE:
        return ContentsUnavailableError(message, status_code, error_code)
    return ServiceError(message, status_code, error_code)
