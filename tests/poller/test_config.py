"""
Tests for poller configuration and validation.
"""

from unittest.mock import MagicMock, patch

import pytest

from sqspoller import (
    Poller,
    PollerConfig,
    PollerConfigError,
    ReceiveSettings,
    build_delete_entries,
    create_sqs_client,
    identity_parser,
    json_body_parser,
)


class TestPollerConfigValidation:
    """Construction-time validation, before any network activity."""

    def test_requires_queue_url(self):
        with pytest.raises(PollerConfigError, match="queue_url is required"):
            PollerConfig(queue_url="")

    def test_requires_queue_url_in_options(self):
        with pytest.raises(PollerConfigError):
            Poller({}, sqs_client=MagicMock())

    def test_requires_region(self):
        with pytest.raises(PollerConfigError, match="aws_region is required"):
            PollerConfig(queue_url="testurl", aws_region=None)

    @pytest.mark.parametrize("max_messages", [0, 11])
    def test_max_number_of_messages_bounds(self, max_messages):
        with pytest.raises(PollerConfigError, match="max_number_of_messages"):
            PollerConfig.from_mapping(
                {"queue_url": "testurl", "sqs_receive_settings": {"MaxNumberOfMessages": max_messages}}
            )

    @pytest.mark.parametrize("max_messages", [1, 10])
    def test_max_number_of_messages_edges_are_valid(self, max_messages):
        settings = ReceiveSettings(max_number_of_messages=max_messages)
        assert settings.max_number_of_messages == max_messages

    def test_wait_time_above_twenty_rejected(self):
        with pytest.raises(PollerConfigError, match="wait_time_seconds"):
            PollerConfig.from_mapping({"queue_url": "testurl", "sqs_receive_settings": {"WaitTimeSeconds": 21}})

    def test_negative_wait_time_rejected(self):
        with pytest.raises(PollerConfigError):
            ReceiveSettings(wait_time_seconds=-1)

    def test_visibility_timeout_above_sqs_limit_rejected(self):
        with pytest.raises(PollerConfigError, match="visibility_timeout"):
            ReceiveSettings(visibility_timeout=43_201)

    @pytest.mark.parametrize("value", ["5", 5.0, True, None])
    def test_non_integer_receive_setting_rejected(self, value):
        with pytest.raises(PollerConfigError, match="must be an integer"):
            ReceiveSettings(max_number_of_messages=value)

    def test_non_integer_setting_in_options_rejected(self):
        with pytest.raises(PollerConfigError, match="max_number_of_messages must be an integer"):
            PollerConfig.from_mapping({"queue_url": "testurl", "sqs_receive_settings": {"MaxNumberOfMessages": "5"}})

    def test_attribute_names_copied_on_construction(self):
        names = ["All"]
        settings = ReceiveSettings(message_attribute_names=names, attribute_names=("ApproximateReceiveCount",))

        names.append("Extra")

        assert settings.message_attribute_names == ("All",)
        assert settings.attribute_names == ("ApproximateReceiveCount",)
        assert settings.to_receive_params()["MessageAttributeNames"] == ["All"]

    def test_attribute_names_must_be_strings(self):
        with pytest.raises(PollerConfigError, match="attribute_names"):
            ReceiveSettings(attribute_names=[1, 2])

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            PollerConfig(queue_url="")

    def test_credentials_stored_verbatim(self):
        config = PollerConfig(
            queue_url="testurl",
            aws_region="us-east-1",
            aws_access_key_id="accessKey",
            aws_secret_access_key="secretKey",
        )

        assert config.aws_access_key_id == "accessKey"
        assert config.aws_secret_access_key == "secretKey"
        assert config.has_static_credentials

    def test_partial_credentials_rejected(self):
        with pytest.raises(PollerConfigError, match="together"):
            PollerConfig(queue_url="testurl", aws_access_key_id="accessKey")

    def test_non_callable_parser_rejected(self):
        with pytest.raises(PollerConfigError, match="callable"):
            PollerConfig(queue_url="testurl", on_message_parse="not-a-function")

    def test_missing_parser_is_identity(self):
        config = PollerConfig(queue_url="testurl", on_message_parse=None)
        assert config.on_message_parse is identity_parser

    def test_invalid_config_type_rejected(self):
        with pytest.raises(PollerConfigError):
            Poller("testurl", sqs_client=MagicMock())


class TestPollParameters:
    def test_defaults(self):
        config = PollerConfig(queue_url="testurl")

        assert config.aws_region == "us-east-1"
        assert config.poll_parameters == {
            "QueueUrl": "testurl",
            "MaxNumberOfMessages": 10,
            "VisibilityTimeout": 30,
            "WaitTimeSeconds": 20,
        }

    def test_attribute_filters_included_when_set(self):
        config = PollerConfig(
            queue_url="testurl",
            receive_settings=ReceiveSettings(
                message_attribute_names=["All"],
                attribute_names=["ApproximateReceiveCount"],
            ),
        )

        params = config.poll_parameters
        assert params["MessageAttributeNames"] == ["All"]
        assert params["AttributeNames"] == ["ApproximateReceiveCount"]

    def test_poller_exposes_copy_of_parameters(self, poller_config, mock_sqs_client):
        poller = Poller(poller_config, sqs_client=mock_sqs_client)

        params = poller.poll_parameters
        params["QueueUrl"] = "changed"

        assert poller.poll_parameters["QueueUrl"] == poller_config.queue_url


class TestFromMapping:
    def test_partial_receive_settings_merged_over_defaults(self):
        config = PollerConfig.from_mapping(
            {
                "queue_url": "http://sqs.something.com",
                "sqs_receive_settings": {"MaxNumberOfMessages": 5},
                "on_message_parse": json_body_parser,
            }
        )

        assert config.receive_settings.max_number_of_messages == 5
        assert config.receive_settings.wait_time_seconds == 20
        assert config.receive_settings.visibility_timeout == 30
        assert config.on_message_parse is json_body_parser

    def test_unknown_option_rejected(self):
        with pytest.raises(PollerConfigError, match="Unknown poller options"):
            PollerConfig.from_mapping({"queue_url": "testurl", "queueUrl": "testurl"})

    def test_unknown_receive_setting_rejected(self):
        with pytest.raises(PollerConfigError, match="Unknown receive settings"):
            PollerConfig.from_mapping({"queue_url": "testurl", "sqs_receive_settings": {"MaxMessages": 5}})

    def test_poller_accepts_mapping(self, mock_sqs_client):
        poller = Poller({"queue_url": "some-queue-url"}, sqs_client=mock_sqs_client)

        assert isinstance(poller, Poller)
        assert poller.config.queue_url == "some-queue-url"


class TestFromEnv:
    def test_reads_prefixed_variables(self):
        environ = {
            "SQS_POLLER_QUEUE_URL": "http://localhost:4566/000000000000/env-queue",
            "SQS_POLLER_AWS_REGION": "eu-west-1",
            "SQS_POLLER_ENDPOINT_URL": "http://localhost:4566",
            "SQS_POLLER_MAX_MESSAGES": "5",
            "SQS_POLLER_WAIT_TIME_SECONDS": "3",
        }

        config = PollerConfig.from_env(environ)

        assert config.queue_url == "http://localhost:4566/000000000000/env-queue"
        assert config.aws_region == "eu-west-1"
        assert config.endpoint_url == "http://localhost:4566"
        assert config.receive_settings.max_number_of_messages == 5
        assert config.receive_settings.wait_time_seconds == 3
        assert config.receive_settings.visibility_timeout == 30
        assert not config.has_static_credentials

    def test_falls_back_to_standard_region_variable(self):
        config = PollerConfig.from_env({"SQS_POLLER_QUEUE_URL": "testurl", "AWS_REGION": "ap-south-1"})
        assert config.aws_region == "ap-south-1"

    def test_missing_queue_url(self):
        with pytest.raises(PollerConfigError, match="queue_url is required"):
            PollerConfig.from_env({})

    def test_non_integer_setting_rejected(self):
        with pytest.raises(PollerConfigError, match="SQS_POLLER_MAX_MESSAGES"):
            PollerConfig.from_env({"SQS_POLLER_QUEUE_URL": "testurl", "SQS_POLLER_MAX_MESSAGES": "many"})

    def test_out_of_range_setting_rejected(self):
        with pytest.raises(PollerConfigError):
            PollerConfig.from_env({"SQS_POLLER_QUEUE_URL": "testurl", "SQS_POLLER_WAIT_TIME_SECONDS": "30"})


class TestCreateSqsClient:
    def test_default_credential_chain(self):
        config = PollerConfig(queue_url="testurl", aws_region="eu-central-1")

        with patch("sqspoller.utils.boto3.client") as mock_client:
            create_sqs_client(config)

        mock_client.assert_called_once_with("sqs", region_name="eu-central-1")

    def test_static_credentials_and_endpoint(self):
        config = PollerConfig(
            queue_url="testurl",
            endpoint_url="http://localhost:4566",
            aws_access_key_id="test",
            aws_secret_access_key="secret",
        )

        with patch("sqspoller.utils.boto3.client") as mock_client:
            create_sqs_client(config)

        mock_client.assert_called_once_with(
            "sqs",
            region_name="us-east-1",
            endpoint_url="http://localhost:4566",
            aws_access_key_id="test",
            aws_secret_access_key="secret",
        )

    def test_poller_creates_client_when_none_injected(self, poller_config):
        with patch("sqspoller.poller.create_sqs_client") as mock_create:
            poller = Poller(poller_config)

        mock_create.assert_called_once_with(poller_config)
        assert poller.sqs_client is mock_create.return_value


def test_build_delete_entries(bulk_sqs_messages):
    entries = build_delete_entries(bulk_sqs_messages[:3])

    assert entries == [
        {"Id": "bulk-msg-0", "ReceiptHandle": "bulk-handle-0"},
        {"Id": "bulk-msg-1", "ReceiptHandle": "bulk-handle-1"},
        {"Id": "bulk-msg-2", "ReceiptHandle": "bulk-handle-2"},
    ]
