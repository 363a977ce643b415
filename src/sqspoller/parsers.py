"""
Message transform strategies.

A transform receives the raw SQS message dict returned by ``receive_message``
and returns the message that is handed to ``message`` handlers.
"""

import logging
from typing import Any, Callable, Dict

import orjson

logger = logging.getLogger(__name__)

Message = Dict[str, Any]
MessageParser = Callable[[Message], Any]


def identity_parser(message: Message) -> Message:
    """Return the message unchanged."""
    return message


def json_body_parser(message: Message) -> Message:
    """Decode the message body as JSON into a ``JSONBody`` key, keeping ``Body`` as is."""
    parsed = dict(message)
    parsed["JSONBody"] = orjson.loads(message["Body"])
    return parsed


def sns_body_parser(message: Message) -> Message:
    """Like json_body_parser, but unwrap SNS notification envelopes first."""
    parsed = dict(message)
    body = orjson.loads(message["Body"])

    # Handle SNS notification format
    if isinstance(body, dict) and "Message" in body and "Type" in body:
        inner = body["Message"]
        try:
            body = orjson.loads(inner)
        except orjson.JSONDecodeError:
            logger.debug(f"SNS message {message.get('MessageId')} is not JSON, keeping raw string")
            body = inner

    parsed["JSONBody"] = body
    return parsed
