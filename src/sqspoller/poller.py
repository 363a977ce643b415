# src/sqspoller/poller.py
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import anyio
import anyio.lowlevel
import anyio.to_thread
from anyio.abc import TaskGroup

from .errors import MessageProcessingError, PollerConfigError
from .events import PollerEvents
from .parsers import Message
from .utils import PollerConfig, build_delete_entries, create_sqs_client

logger = logging.getLogger(__name__)


class Poller:
    """
    Long-polling SQS consumer.

    Each cycle receives a batch of messages, emits every message to the
    ``message`` handlers and then deletes the whole batch with one
    ``delete_message_batch`` call. Only one cycle is ever in flight.

    Handlers that need to act on the batch before it is deleted must do so
    synchronously: once all ``message`` handlers have returned, the batch is
    acknowledged.
    """

    def __init__(self, config: Union[PollerConfig, Mapping[str, Any]], sqs_client: Any = None):
        if isinstance(config, Mapping):
            config = PollerConfig.from_mapping(config)
        elif not isinstance(config, PollerConfig):
            raise PollerConfigError("config must be a PollerConfig or a mapping of options")

        self.config = config
        self.sqs_client = sqs_client if sqs_client is not None else create_sqs_client(config)
        self.events = PollerEvents()

        self._poll_parameters = config.poll_parameters
        self._active = False
        self._loop_running = False
        self._loop_exited: Optional[anyio.Event] = None

    @property
    def poll_parameters(self) -> Dict[str, Any]:
        """The parameters used for every receive_message call."""
        return dict(self._poll_parameters)

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def is_running(self) -> bool:
        """True while a poll loop task exists, including one draining after stop()."""
        return self._loop_running

    def on(self, name: str, handler: Optional[Callable[..., Any]] = None):
        """Register a handler for the named notification. Usable as a decorator."""
        return self.events.connect(name, handler)

    def off(self, name: str, handler: Callable[..., Any]) -> None:
        self.events.get(name).disconnect(handler)

    def start(self, task_group: TaskGroup) -> None:
        """
        Begin polling on the given task group. Returns immediately.

        Calling start() while already active does nothing.
        """
        if self._active:
            return

        self._active = True
        logger.info(f"Starting SQS poller for {self.config.queue_url}")
        self.events.start.emit()

        # A loop stopped earlier may still be finishing its cycle; it picks
        # the active flag back up instead of a second loop being started.
        if not self._loop_running:
            self._loop_running = True
            self._loop_exited = anyio.Event()
            task_group.start_soon(self._poll_loop)

    def stop(self) -> None:
        """Stop polling once the in-flight cycle completes."""
        self._active = False
        logger.info(f"Stopping SQS poller for {self.config.queue_url}")
        self.events.stopped.emit()

    async def run(self) -> None:
        """Start polling and return once the loop has exited after stop()."""
        async with anyio.create_task_group() as tg:
            self.start(tg)

        # The loop may belong to another task group when start() found one
        # still draining after stop().
        if self._loop_running and self._loop_exited is not None:
            await self._loop_exited.wait()

    async def _poll_loop(self) -> None:
        try:
            while True:
                await self._poll()

                # check if we continue to poll or not
                if not self._active:
                    break
                await anyio.lowlevel.checkpoint()
        except anyio.get_cancelled_exc_class():
            logger.info("SQS poll loop cancelled")
            raise
        finally:
            # Loops ending on cancellation or a handler fault leave the poller inactive
            self._active = False
            self._loop_running = False
            if self._loop_exited is not None:
                self._loop_exited.set()

        logger.debug("SQS poll loop exited")

    async def _poll(self) -> None:
        """Run a single poll cycle."""
        self.events.before_poll.emit()

        try:
            response = await self._receive_messages()
        except Exception as e:
            logger.debug(f"Error receiving messages from SQS: {e}")
            self.events.error.emit(e)
        else:
            await self._process_messages(response)

        self.events.after_poll.emit()

    async def _receive_messages(self) -> Optional[Dict[str, Any]]:
        params = self._poll_parameters
        return await anyio.to_thread.run_sync(lambda: self.sqs_client.receive_message(**params))

    async def _process_messages(self, response: Optional[Dict[str, Any]]) -> None:
        messages: List[Message] = (response or {}).get("Messages") or []
        if not messages:
            logger.debug("No messages received")
            return

        logger.debug(f"Received {len(messages)} messages")

        try:
            for message in messages:
                self._emit_message(message)
        except MessageProcessingError as e:
            # The rest of the batch is left on the queue and redelivered
            # after the visibility timeout.
            self.events.error.emit(e)
            return

        try:
            delete_response = await self._delete_messages(messages)
        except Exception as e:
            logger.debug(f"Error deleting messages from SQS: {e}")
            self.events.error.emit(e)
            return

        self.events.messages_deleted.emit(delete_response)
        self.events.messages_received_count.emit(len(messages))

    def _emit_message(self, message: Message) -> None:
        try:
            self.events.message.emit(self.config.on_message_parse(message))
        except Exception as e:
            raise MessageProcessingError(
                f"Error processing SQS message {message.get('MessageId')}: {e}", sqs_message=message
            ) from e

    async def _delete_messages(self, messages: List[Message]) -> Dict[str, Any]:
        """Batch delete processed messages from the SQS queue."""
        entries = build_delete_entries(messages)
        queue_url = self.config.queue_url

        response = await anyio.to_thread.run_sync(
            lambda: self.sqs_client.delete_message_batch(QueueUrl=queue_url, Entries=entries)
        )

        failed = response.get("Failed") if isinstance(response, dict) else None
        if failed:
            for entry in failed:
                logger.warning(
                    f"Failed to delete SQS message {entry.get('Id')}: {entry.get('Code')} {entry.get('Message', '')}"
                )
        logger.debug(f"Deleted {len(entries) - len(failed or [])} of {len(entries)} messages")

        return response
