import logging
import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import boto3

from .errors import PollerConfigError
from .parsers import Message, MessageParser, identity_parser

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 10
MAX_WAIT_TIME_SECONDS = 20
# SQS hard limit, 12 hours
MAX_VISIBILITY_TIMEOUT = 43_200

# SQS ReceiveMessage parameter name -> ReceiveSettings field
_RECEIVE_PARAM_FIELDS = {
    "MaxNumberOfMessages": "max_number_of_messages",
    "VisibilityTimeout": "visibility_timeout",
    "WaitTimeSeconds": "wait_time_seconds",
    "MessageAttributeNames": "message_attribute_names",
    "AttributeNames": "attribute_names",
}


def _as_name_tuple(name: str, value: Optional[Sequence[str]]) -> Optional[Tuple[str, ...]]:
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise PollerConfigError(f"{name} must be a list of strings, got {value!r}")
    return tuple(value)


@dataclass(frozen=True)
class ReceiveSettings:
    """Parameters passed to every ``receive_message`` call."""

    # Valid values are 1 to 10. SQS may return fewer messages.
    max_number_of_messages: int = 10
    # Seconds received messages stay hidden from subsequent receives.
    visibility_timeout: int = 30
    # Long poll duration. The call returns sooner if a message arrives.
    wait_time_seconds: int = 20
    # Normalised to tuples in __post_init__
    message_attribute_names: Optional[Sequence[str]] = None
    attribute_names: Optional[Sequence[str]] = None

    def __post_init__(self):
        for name in ("max_number_of_messages", "wait_time_seconds", "visibility_timeout"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise PollerConfigError(f"{name} must be an integer, got {value!r}")

        for name in ("message_attribute_names", "attribute_names"):
            object.__setattr__(self, name, _as_name_tuple(name, getattr(self, name)))

        if not 1 <= self.max_number_of_messages <= MAX_BATCH_SIZE:
            raise PollerConfigError(
                f"max_number_of_messages must be between 1 and {MAX_BATCH_SIZE}, "
                f"got {self.max_number_of_messages}"
            )
        if not 0 <= self.wait_time_seconds <= MAX_WAIT_TIME_SECONDS:
            raise PollerConfigError(
                f"wait_time_seconds must be between 0 and {MAX_WAIT_TIME_SECONDS}, got {self.wait_time_seconds}"
            )
        if not 0 <= self.visibility_timeout <= MAX_VISIBILITY_TIMEOUT:
            raise PollerConfigError(
                f"visibility_timeout must be between 0 and {MAX_VISIBILITY_TIMEOUT}, got {self.visibility_timeout}"
            )

    def to_receive_params(self) -> Dict[str, Any]:
        """SQS ReceiveMessage keyword arguments, without unset attribute filters."""
        params: Dict[str, Any] = {
            "MaxNumberOfMessages": self.max_number_of_messages,
            "VisibilityTimeout": self.visibility_timeout,
            "WaitTimeSeconds": self.wait_time_seconds,
        }
        if self.message_attribute_names:
            params["MessageAttributeNames"] = list(self.message_attribute_names)
        if self.attribute_names:
            params["AttributeNames"] = list(self.attribute_names)
        return params

    @classmethod
    def from_receive_params(cls, params: Optional[Mapping[str, Any]]) -> "ReceiveSettings":
        """Build settings from SQS-style keys merged over the defaults."""
        if not params:
            return cls()

        unknown = set(params) - set(_RECEIVE_PARAM_FIELDS)
        if unknown:
            raise PollerConfigError(f"Unknown receive settings: {', '.join(sorted(unknown))}")

        return cls(**{_RECEIVE_PARAM_FIELDS[key]: value for key, value in params.items() if value is not None})


@dataclass(frozen=True)
class PollerConfig:
    """Configuration for a Poller.

    If aws_access_key_id and aws_secret_access_key are not supplied, boto3's
    default credential chain (IAM role, credentials file, env) is used.
    """

    queue_url: str
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    endpoint_url: Optional[str] = None
    receive_settings: ReceiveSettings = field(default_factory=ReceiveSettings)
    on_message_parse: Optional[MessageParser] = identity_parser

    def __post_init__(self):
        if not self.queue_url:
            raise PollerConfigError("queue_url is required")
        if not self.aws_region:
            raise PollerConfigError("aws_region is required. Default is us-east-1")
        if (self.aws_access_key_id is None) != (self.aws_secret_access_key is None):
            raise PollerConfigError("aws_access_key_id and aws_secret_access_key must be supplied together")
        if not isinstance(self.receive_settings, ReceiveSettings):
            raise PollerConfigError("receive_settings must be a ReceiveSettings instance")

        if self.on_message_parse is None:
            object.__setattr__(self, "on_message_parse", identity_parser)
        elif not callable(self.on_message_parse):
            raise PollerConfigError("on_message_parse must be callable")

    @property
    def has_static_credentials(self) -> bool:
        return self.aws_access_key_id is not None and self.aws_secret_access_key is not None

    @property
    def poll_parameters(self) -> Dict[str, Any]:
        """Keyword arguments for ``sqs_client.receive_message``."""
        return {"QueueUrl": self.queue_url, **self.receive_settings.to_receive_params()}

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> "PollerConfig":
        """Build a config from a dict of options merged over the defaults.

        Receive settings are given under ``sqs_receive_settings`` using the SQS
        parameter names, e.g. ``{"MaxNumberOfMessages": 5}``.
        """
        options = dict(options)
        receive_settings = ReceiveSettings.from_receive_params(options.pop("sqs_receive_settings", None))

        known = {f.name for f in fields(cls)} - {"receive_settings"}
        unknown = set(options) - known
        if unknown:
            raise PollerConfigError(f"Unknown poller options: {', '.join(sorted(unknown))}")

        queue_url = options.pop("queue_url", None)
        return cls(queue_url=queue_url, receive_settings=receive_settings, **options)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = "SQS_POLLER_",
        on_message_parse: Optional[MessageParser] = None,
    ) -> "PollerConfig":
        """Build a config from environment variables."""
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = env.get(prefix + name)
            return value.strip() if value is not None and value.strip() else None

        def get_int(name: str) -> Optional[int]:
            value = get(name)
            if value is None:
                return None
            try:
                return int(value)
            except ValueError:
                raise PollerConfigError(f"{prefix}{name} must be an integer, got {value!r}")

        receive_settings = ReceiveSettings.from_receive_params(
            {
                "MaxNumberOfMessages": get_int("MAX_MESSAGES"),
                "VisibilityTimeout": get_int("VISIBILITY_TIMEOUT"),
                "WaitTimeSeconds": get_int("WAIT_TIME_SECONDS"),
            }
        )

        return cls(
            queue_url=get("QUEUE_URL"),
            aws_region=get("AWS_REGION") or env.get("AWS_REGION") or "us-east-1",
            aws_access_key_id=get("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=get("AWS_SECRET_ACCESS_KEY"),
            endpoint_url=get("ENDPOINT_URL"),
            receive_settings=receive_settings,
            on_message_parse=on_message_parse,
        )


def create_sqs_client(config: PollerConfig) -> Any:
    """Create a boto3 SQS client for the configured region and endpoint."""
    client_kwargs: Dict[str, Any] = {"region_name": config.aws_region}
    if config.endpoint_url:
        client_kwargs["endpoint_url"] = config.endpoint_url
    if config.has_static_credentials:
        client_kwargs["aws_access_key_id"] = config.aws_access_key_id
        client_kwargs["aws_secret_access_key"] = config.aws_secret_access_key

    logger.debug(f"Creating SQS client for region {config.aws_region}")
    return boto3.client("sqs", **client_kwargs)


def build_delete_entries(messages: List[Message]) -> List[Dict[str, str]]:
    """DeleteMessageBatch entries for the given messages, in order."""
    return [{"Id": message["MessageId"], "ReceiptHandle": message["ReceiptHandle"]} for message in messages]
