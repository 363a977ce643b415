"""
Notification surface of the poller.

Each notification kind is its own typed list of handlers, so a ``message``
handler and an ``error`` handler cannot be confused with each other. Handlers
are synchronous callables and run in registration order.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar, Union

from .parsers import Message

logger = logging.getLogger(__name__)

T = TypeVar("T")

NotificationHandler = Callable[[], Any]
PayloadHandler = Callable[[T], Any]


class Notification:
    """Handlers for a notification without payload."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[NotificationHandler] = []

    def connect(self, handler: NotificationHandler) -> NotificationHandler:
        self._handlers.append(handler)
        return handler

    def disconnect(self, handler: NotificationHandler) -> None:
        self._handlers.remove(handler)

    def emit(self) -> None:
        for handler in list(self._handlers):
            handler()

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, handlers={len(self)})"


class PayloadNotification(Generic[T]):
    """Handlers for a notification carrying a payload of type T."""

    def __init__(self, name: str):
        self.name = name
        self._handlers: List[PayloadHandler[T]] = []

    def connect(self, handler: PayloadHandler[T]) -> PayloadHandler[T]:
        self._handlers.append(handler)
        return handler

    def disconnect(self, handler: PayloadHandler[T]) -> None:
        self._handlers.remove(handler)

    def emit(self, payload: T) -> None:
        for handler in list(self._handlers):
            handler(payload)

    def __len__(self) -> int:
        return len(self._handlers)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r}, handlers={len(self)})"


class ErrorNotification(PayloadNotification[BaseException]):
    """The ``error`` notification. Errors nobody listens to are logged, not dropped."""

    def emit(self, payload: BaseException) -> None:
        if not len(self):
            logger.error(f"Unhandled poller error: {payload!r}", exc_info=payload)
            return
        super().emit(payload)


AnyNotification = Union[Notification, PayloadNotification[Any]]


@dataclass
class PollerEvents:
    """All notifications a Poller emits."""

    start: Notification = field(default_factory=lambda: Notification("start"))
    stopped: Notification = field(default_factory=lambda: Notification("stopped"))
    before_poll: Notification = field(default_factory=lambda: Notification("before_poll"))
    after_poll: Notification = field(default_factory=lambda: Notification("after_poll"))
    message: PayloadNotification[Message] = field(default_factory=lambda: PayloadNotification("message"))
    messages_received_count: PayloadNotification[int] = field(
        default_factory=lambda: PayloadNotification("messages_received_count")
    )
    messages_deleted: PayloadNotification[Dict[str, Any]] = field(
        default_factory=lambda: PayloadNotification("messages_deleted")
    )
    error: ErrorNotification = field(default_factory=lambda: ErrorNotification("error"))

    def get(self, name: str) -> AnyNotification:
        """Look up a notification by name."""
        if name not in EVENT_NAMES:
            raise KeyError(f"Unknown poller event: {name!r}. Expected one of: {', '.join(EVENT_NAMES)}")
        return getattr(self, name)

    def connect(self, name: str, handler: Optional[Callable[..., Any]] = None):
        """Register a handler by notification name; usable as a decorator."""
        notification = self.get(name)
        if handler is None:
            return notification.connect
        return notification.connect(handler)


EVENT_NAMES = (
    "start",
    "stopped",
    "before_poll",
    "after_poll",
    "message",
    "messages_received_count",
    "messages_deleted",
    "error",
)
