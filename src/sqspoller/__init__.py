"""
sqspoller: event-driven long-polling consumer for Amazon SQS
"""

from importlib.metadata import PackageNotFoundError, version

from sqspoller.errors import MessageProcessingError, PollerConfigError, PollerError
from sqspoller.events import EVENT_NAMES, Notification, PayloadNotification, PollerEvents
from sqspoller.parsers import identity_parser, json_body_parser, sns_body_parser
from sqspoller.poller import Poller
from sqspoller.utils import PollerConfig, ReceiveSettings, build_delete_entries, create_sqs_client

try:
    __version__ = version(__name__.split(".")[0])
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    # Poller
    "Poller",
    "PollerConfig",
    "ReceiveSettings",
    "create_sqs_client",
    "build_delete_entries",
    # Events
    "EVENT_NAMES",
    "Notification",
    "PayloadNotification",
    "PollerEvents",
    # Parsers
    "identity_parser",
    "json_body_parser",
    "sns_body_parser",
    # Errors
    "PollerError",
    "PollerConfigError",
    "MessageProcessingError",
]
