"""Notification events.

The sender reports the outcome of each send to an optional event
dispatcher: any object exposing ``dispatch(event_name, event)``. The
``EventDispatcher`` below is a simple in-process implementation.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from .exceptions import SendError
from .message import Message

logger = logging.getLogger(__name__)


class NotificationEvents:
    """Names of the events dispatched by the notification sender."""
    SEND_MESSAGE_COMPLETE = "apnpush.notification.send_message_complete"
    SEND_MESSAGE_ERROR = "apnpush.notification.send_message_error"


@dataclass
class SendMessageCompleteEvent:
    """A message was written and no error response was observed."""
    message: Message


@dataclass
class SendMessageErrorEvent:
    """The gateway rejected a message."""
    message: Message
    error: SendError


Listener = Callable[[Any], None]


class EventDispatcher:
    """Dispatches named events to registered listeners, in registration order."""

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def add_listener(self, event_name: str, listener: Listener) -> None:
        self._listeners[event_name].append(listener)

    def remove_listener(self, event_name: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_name)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def has_listeners(self, event_name: Optional[str] = None) -> bool:
        if event_name is None:
            return any(self._listeners.values())
        return bool(self._listeners.get(event_name))

    def dispatch(self, event_name: str, event: Any) -> Any:
        """
        Call every listener registered for ``event_name`` with ``event``.

        A listener that raises is logged and skipped; the remaining listeners
        still run and the exception does not reach the caller.

        Returns:
            The event, for chaining
        """
        listeners = list(self._listeners.get(event_name, ()))
        logger.debug(f"Dispatching {event_name} to {len(listeners)} listener(s)")
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Listener {listener!r} failed for {event_name}: {e}")
        return event
