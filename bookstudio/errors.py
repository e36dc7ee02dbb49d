"""
Error taxonomy for Book Studio.

Validation and minimum-chapter errors are resolved client-side and never
reach the persistence service. Persistence errors carry a human message
plus the raw detail so callers can store both in component state.
"""

from typing import Optional


class BookStudioError(Exception):
    """Base exception for Book Studio"""
    pass


class ValidationError(BookStudioError):
    """Client-detected rule failure, reported inline"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class MinimumChapterError(BookStudioError):
    """Attempted deletion of the only remaining chapter"""

    def __init__(self, message: str = "A book must keep at least one chapter"):
        super().__init__(message)
        self.message = message


class PersistenceError(BookStudioError):
    """Non-2xx response or transport failure from the persistence service"""

    def __init__(
        self,
        message: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.detail = detail
        self.status_code = status_code


class ResourceNotFoundError(PersistenceError):
    """The remote resource no longer exists (HTTP 404)"""
    pass


class AuthenticationError(PersistenceError):
    """Missing or rejected credentials (HTTP 401/403)"""
    pass


class ServerRejectionError(PersistenceError):
    """Authoritative server-side refusal, e.g. at publish time"""

    def __init__(
        self,
        reason: str,
        detail: Optional[str] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(reason, detail=detail, status_code=status_code)
        self.reason = reason


class ReaderError(BookStudioError):
    """A document cannot be opened for reading"""
    pass
