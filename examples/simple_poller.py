#!/usr/bin/env python3
"""
Poll an SQS queue and print every message.

Run against LocalStack:

    python examples/simple_poller.py --queue-url http://localhost:4566/000000000000/my-queue --localstack
"""

import logging

import anyio
import click

from sqspoller import Poller, PollerConfig, ReceiveSettings, json_body_parser

# AWS LocalStack configuration
LOCALSTACK_CONFIG = {
    "aws_region": "us-east-1",
    "endpoint_url": "http://localhost:4566",
    "aws_access_key_id": "test",
    "aws_secret_access_key": "test",
}


def setup_logging(name: str, level: int = logging.INFO):
    """Setup logging for CLI applications"""
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S")
    return logging.getLogger(name)


@click.command()
@click.option("--queue-url", type=str, required=True, help="URL of the SQS queue to poll")
@click.option("--region", type=str, default="us-east-1", help="AWS region of the queue")
@click.option("--max-messages", type=click.IntRange(1, 10), default=10, help="Messages per receive call")
@click.option("--wait-time", type=click.IntRange(0, 20), default=20, help="Long poll wait time in seconds")
@click.option("--json/--raw", "parse_json", default=True, help="Decode message bodies as JSON")
@click.option("--once", is_flag=True, help="Stop after the first poll cycle")
@click.option("--localstack", is_flag=True, help="Use LocalStack endpoint and test credentials")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(queue_url, region, max_messages, wait_time, parse_json, once, localstack, debug) -> int:
    logger = setup_logging("simple_poller", logging.DEBUG if debug else logging.INFO)

    aws_options = dict(LOCALSTACK_CONFIG) if localstack else {"aws_region": region}
    config = PollerConfig(
        queue_url=queue_url,
        receive_settings=ReceiveSettings(max_number_of_messages=max_messages, wait_time_seconds=wait_time),
        on_message_parse=json_body_parser if parse_json else None,
        **aws_options,
    )
    poller = Poller(config)

    @poller.on("message")
    def handle_message(message):
        body = message.get("JSONBody", message["Body"])
        logger.info(f"Message {message['MessageId']}: {body}")

    @poller.on("messages_received_count")
    def handle_count(count):
        logger.info(f"Processed and deleted {count} messages")

    @poller.on("error")
    def handle_error(error):
        logger.error(f"Poller error: {error}")

    if once:
        poller.on("before_poll", poller.stop)

    try:
        anyio.run(poller.run)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    main()
