"""
Exception hierarchy for the incident report service.

Messages carry internal detail for logs; `safe_message` is what may be
returned to an HTTP client.
"""

from typing import Optional


class ReportServiceError(Exception):
    """Base exception for the service."""

    def __init__(self, message: str, *, safe_message: Optional[str] = None) -> None:
        super().__init__(message)
        self._safe_message = safe_message or message

    @property
    def safe_message(self) -> str:
        return self._safe_message


class ConfigurationError(ReportServiceError):
    """Invalid settings value."""


class RemoteStoreError(ReportServiceError):
    """The remote document store could not complete a call.

    Covers network failures, auth failures, constraint violations and a
    missing database configuration.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, safe_message="Remote store unavailable")


class SubscriberLimitError(ReportServiceError):
    """The live stream already has the maximum number of subscribers."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            f"Subscriber limit of {limit} reached",
            safe_message="Too many live connections, try again later",
        )
        self.limit = limit
