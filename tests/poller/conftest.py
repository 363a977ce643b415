"""Configuration and shared fixtures for poller tests."""

from tests.poller.shared_fixtures import (
    bulk_sqs_messages,
    event_recorder,
    mock_sqs_client,
    poller_config,
    queue_url,
    sample_receive_response,
    sample_sqs_message,
)

__all__ = [
    "queue_url",
    "mock_sqs_client",
    "sample_sqs_message",
    "sample_receive_response",
    "bulk_sqs_messages",
    "poller_config",
    "event_recorder",
]
