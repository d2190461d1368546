"""Data layer exceptions."""

from typing import Optional


class DirectoryError(Exception):
    """Base class for errors raised by the data layer itself."""


class DatabaseNotConfiguredError(DirectoryError):
    """Neither DATABASE_URL nor the SUPABASE_URL + SUPABASE_KEY pair is set."""

    def __init__(self, message: str = 'DATABASE_URL or (SUPABASE_URL + SUPABASE_KEY) must be set'):
        super().__init__(message)


class UnsupportedOperationError(DirectoryError):
    """The active backend has no implementation for a write operation."""

    def __init__(self, operation: str, backend: str):
        super().__init__(f"No database configured for {operation} on the {backend} backend")
        self.operation = operation
        self.backend = backend


class RestBackendError(DirectoryError):
    """Non-2xx response from the REST backend."""

    def __init__(self, action: str, status: int, reason: str = '', body: Optional[str] = None):
        self.action = action
        self.status = status
        self.body = body or ''
        status_text = f"{status} {reason}".strip()
        if status in (401, 403):
            message = f"REST backend auth failed: {status_text}. Check SUPABASE_KEY. Body: {self.body}"
        else:
            message = f"Failed to {action}: {status_text}. Body: {self.body}"
        super().__init__(message)

    @property
    def is_auth_failure(self) -> bool:
        return self.status in (401, 403)
