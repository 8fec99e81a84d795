"""Cache exception hierarchy."""

from typing import Optional


class CacheError(Exception):
    """Base exception for all cache errors.

    Carries the operation and key that failed so a log line is enough to
    diagnose the problem.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 key: Optional[str] = None):
        self.operation = operation
        self.key = key
        context = []
        if operation:
            context.append(f"operation={operation}")
        if key is not None:
            context.append(f"key={key!r}")
        if context:
            message = f"{message} ({', '.join(context)})"
        super().__init__(message)


class CacheValidationError(CacheError, ValueError):
    """Invalid input rejected before touching the store."""


class CacheSerializationError(CacheError):
    """A value could not be encoded, or a payload could not be decoded."""


class CacheStoreError(CacheError):
    """The backing store rejected or failed an operation."""


class CacheUnavailableError(CacheStoreError):
    """The backing store stayed unreachable after all retry attempts."""

    def __init__(self, message: str, attempts: int, operation: Optional[str] = None,
                 key: Optional[str] = None):
        self.attempts = attempts
        super().__init__(f"{message} after {attempts} attempts", operation=operation, key=key)
