"""
Notification sender for the binary push gateway.

This module provides the NotificationSender class, which validates a
message, lazily opens the gateway connection, writes the encoded frame and
briefly polls for an error response. Outcomes are reported to an optional
logger and an optional event dispatcher.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Union

from .config import ApnConfig, config
from .connection import Connection, SocketConnection
from .events import NotificationEvents, SendMessageCompleteEvent, SendMessageErrorEvent
from .exceptions import (
    ApnConnectionError,
    ConnectionUndefinedError,
    DeviceTokenNotFoundError,
    PayloadFactoryUndefinedError,
    SendError,
)
from .message import Message
from .payload import PayloadFactory
from .response import ERROR_RESPONSE_SIZE, parse_error_response

logger = logging.getLogger(__name__)


@dataclass
class SendMetrics:
    """Counters for send operations."""
    total_attempts: int = 0
    completed_sends: int = 0
    failed_sends: int = 0
    partial_writes: int = 0
    last_send_time: Optional[datetime] = None


class NotificationSender:
    """
    Sends push notifications over a single gateway connection.

    One sender owns one connection; calls from several threads must be
    serialized by the caller.
    """

    def __init__(
        self,
        connection: Optional[Connection] = None,
        payload_factory: Optional[PayloadFactory] = None,
        logger: Optional[logging.Logger] = None,
        event_dispatcher: Optional[Any] = None,
        config_override: Optional[ApnConfig] = None,
    ):
        """
        Initialize the sender.

        Args:
            connection: Gateway connection (may be set later)
            payload_factory: Frame encoder; a default one is built from config
            logger: Optional logger receiving send-pipeline messages
            event_dispatcher: Optional object with dispatch(event_name, event)
            config_override: Optional configuration override
        """
        self.config = config_override or config
        self.connection = connection
        self.payload_factory = payload_factory or PayloadFactory(config_override=self.config)
        self.logger = logger
        self.event_dispatcher = event_dispatcher
        self.check_for_errors = self.config.check_for_errors
        self.metrics = SendMetrics()

    def set_connection(self, connection: Optional[Connection]) -> "NotificationSender":
        self.connection = connection
        return self

    def get_connection(self) -> Optional[Connection]:
        return self.connection

    def set_payload_factory(self, payload_factory: Optional[PayloadFactory]) -> "NotificationSender":
        self.payload_factory = payload_factory
        return self

    def get_payload_factory(self) -> Optional[PayloadFactory]:
        return self.payload_factory

    def set_logger(self, logger: Optional[logging.Logger]) -> "NotificationSender":
        self.logger = logger
        return self

    def get_logger(self) -> Optional[logging.Logger]:
        return self.logger

    def set_event_dispatcher(self, event_dispatcher: Optional[Any]) -> "NotificationSender":
        self.event_dispatcher = event_dispatcher
        return self

    def get_event_dispatcher(self) -> Optional[Any]:
        return self.event_dispatcher

    def set_check_for_errors(self, check: bool) -> "NotificationSender":
        """Enable or disable polling for an error response after each write."""
        self.check_for_errors = bool(check)
        return self

    def send(self, message: Message) -> bool:
        """
        Send a message to the gateway.

        A True result means the whole frame was written and no error response
        arrived within the connection's poll window; it does not guarantee
        delivery. A partial write returns False.

        Failures raised by the event dispatcher or the injected logger are
        logged on the module logger and never change the outcome.

        Args:
            message: Message to send

        Returns:
            bool: True if the full frame was written

        Raises:
            PayloadFactoryUndefinedError: If no payload factory is set
            ConnectionUndefinedError: If no connection is set
            DeviceTokenNotFoundError: If the message has no device token
            EncodingError: If the message cannot be encoded
            ApnConnectionError: If the connection fails
            SendError: If the gateway rejects the message
        """
        if self.payload_factory is None:
            raise PayloadFactoryUndefinedError()

        if self.connection is None:
            raise ConnectionUndefinedError()

        if not message.device_token:
            raise DeviceTokenNotFoundError()

        self.metrics.total_attempts += 1

        payload = self.payload_factory.create_payload(message)

        try:
            if not self.connection.is_open():
                self._log("debug", "Create connection...")
                self.connection.create()

            response = len(payload) == self.connection.write(payload)
            self.metrics.last_send_time = datetime.now()

            if self.check_for_errors and self.connection.is_ready_read():
                self._handle_error_response(message)
        except ApnConnectionError:
            self.metrics.failed_sends += 1
            raise

        if response:
            self.metrics.completed_sends += 1
        else:
            self.metrics.partial_writes += 1

        self._dispatch(
            NotificationEvents.SEND_MESSAGE_COMPLETE,
            SendMessageCompleteEvent(message),
        )
        self._log(
            "info",
            f'Success send notification to device "{message.device_token}" '
            f'by message identifier "{message.identifier}".'
        )

        return response

    def _handle_error_response(self, message: Message) -> None:
        """Read and decode the pending error response, close, and raise."""
        data = self.connection.read(ERROR_RESPONSE_SIZE)

        if len(data) != ERROR_RESPONSE_SIZE:
            self._log(
                "error",
                f"Connection closed by gateway after {len(data)} byte(s) of error response."
            )
            self._log("debug", "Close connection...")
            self.connection.close()
            raise ApnConnectionError(
                f"Incomplete error response: expected {ERROR_RESPONSE_SIZE} bytes, got {len(data)}"
            )

        error = SendError(parse_error_response(data), message)
        self.metrics.failed_sends += 1

        try:
            self._dispatch(
                NotificationEvents.SEND_MESSAGE_ERROR,
                SendMessageErrorEvent(message, error),
            )
            self._log("error", str(error))
            self._log("debug", "Close connection...")
        finally:
            self.connection.close()

        raise error

    def _dispatch(self, event_name: str, event: Any) -> None:
        """Hand an event to the dispatcher; dispatcher failures are logged only."""
        if not self.event_dispatcher:
            return

        try:
            self.event_dispatcher.dispatch(event_name, event)
        except Exception as e:
            logger.error(f"Event dispatcher failed for {event_name}: {e}")

    def _log(self, level: str, msg: str) -> None:
        if not self.logger:
            return

        try:
            getattr(self.logger, level)(msg)
        except Exception as e:
            logger.error(f"Injected logger failed: {e}")

    def send_message(
        self,
        device_token: str,
        body: str,
        identifier: Optional[int] = None,
        badge: Optional[int] = None,
        sound: Optional[str] = None,
    ) -> bool:
        """
        Build a message from the given fields and send it.

        Args:
            device_token: Device token, 64 hexadecimal characters
            body: Alert text
            identifier: Correlation identifier echoed in error responses
            badge: Badge number
            sound: Sound file name in the application bundle

        Returns:
            bool: Result of send()
        """
        message = self.create_message(
            device_token=device_token,
            body=body,
            identifier=identifier or 0,
            badge=badge,
            sound=sound,
        )

        return self.send(message)

    def create_message(self, **fields: Any) -> Message:
        """Create a new message."""
        return Message(**fields)

    def get_metrics(self) -> Dict[str, Any]:
        """
        Get current sender metrics.

        Returns:
            Dict containing send counters
        """
        return {
            'total_attempts': self.metrics.total_attempts,
            'completed_sends': self.metrics.completed_sends,
            'failed_sends': self.metrics.failed_sends,
            'partial_writes': self.metrics.partial_writes,
            'last_send_time': self.metrics.last_send_time.isoformat() if self.metrics.last_send_time else None,
            'check_for_errors': self.check_for_errors,
        }

    def reset_metrics(self) -> None:
        """Reset all metrics counters."""
        self.metrics = SendMetrics()


def create_sender(
    connection: Union[Connection, str, None] = None,
    payload_factory: Optional[PayloadFactory] = None,
    config_override: Optional[ApnConfig] = None,
    **kwargs: Any,
) -> NotificationSender:
    """
    Create a sender from a connection or a certificate path.

    Args:
        connection: A Connection, or the path of a client certificate used to
            build a SocketConnection from configuration. When None, the
            configured certificate file is used if there is one.
        payload_factory: Optional frame encoder
        config_override: Optional configuration override
        **kwargs: Passed through to NotificationSender (logger, event_dispatcher)

    Returns:
        NotificationSender
    """
    settings = config_override or config

    if isinstance(connection, str):
        connection = SocketConnection.from_config(connection, config_override=settings)
    elif connection is None and settings.certificate_file:
        connection = SocketConnection.from_config(config_override=settings)
    elif connection is not None and not isinstance(connection, Connection):
        raise TypeError(
            f"connection must be a Connection or a certificate path, got {type(connection).__name__}"
        )

    return NotificationSender(
        connection=connection,
        payload_factory=payload_factory,
        config_override=settings,
        **kwargs,
    )
