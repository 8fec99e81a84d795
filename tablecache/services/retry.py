"""Retry policy for transient store failures."""

from dataclasses import dataclass

from sqlalchemy import exc as sa_exc


# Failures that may succeed on a fresh connection
TRANSIENT_ERRORS = (
    sa_exc.OperationalError,
    sa_exc.InterfaceError,
    sa_exc.DisconnectionError,
    sa_exc.TimeoutError,
    ConnectionError,
    OSError,
)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff.

    Delay formula: min(initial_delay * (backoff_multiplier ^ attempt), max_delay)
    """
    max_attempts: int = 3
    initial_delay: float = 0.1       # seconds
    max_delay: float = 2.0           # seconds
    backoff_multiplier: float = 2.0

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay before the next attempt.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds before next attempt
        """
        delay = self.initial_delay * (self.backoff_multiplier ** attempt)
        return min(delay, self.max_delay)

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Determine if a failed attempt should be retried.

        Args:
            error: Exception raised by the attempt
            attempt: Number of attempts made so far (1-indexed)
        """
        if attempt >= self.max_attempts:
            return False
        return is_transient(error)

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
            backoff_multiplier=settings.retry_backoff_multiplier,
        )


def is_transient(error: BaseException) -> bool:
    """Check whether an error is a connectivity failure worth retrying."""
    if isinstance(error, sa_exc.DBAPIError) and error.connection_invalidated:
        return True
    return isinstance(error, TRANSIENT_ERRORS)
