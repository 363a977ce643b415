from typing import Any, Dict, Optional


class PollerError(Exception):
    """Base class for errors raised by the poller."""


class PollerConfigError(PollerError, ValueError):
    """Raised when a poller configuration is invalid."""


class MessageProcessingError(PollerError):
    """A message transform or ``message`` handler failed for a received message."""

    def __init__(self, message: str, sqs_message: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.sqs_message = sqs_message
