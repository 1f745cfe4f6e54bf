"""
Feedback service client.

The feedback gateway streams the devices that no longer accept
notifications for the application, as repeated 38-byte tuples:

    time (4, big-endian) | token length (2, big-endian) | token (32)

and closes the connection once the list is exhausted.
"""

import logging
import struct
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union

from .config import ApnConfig, config
from .connection import Connection, SocketConnection
from .exceptions import ConnectionUndefinedError, ErrorResponseDecodeError
from .payload import DEVICE_TOKEN_LENGTH

logger = logging.getLogger(__name__)

FEEDBACK_HEADER_FMT = "!IH"
FEEDBACK_HEADER_SIZE = struct.calcsize(FEEDBACK_HEADER_FMT)
FEEDBACK_TUPLE_SIZE = FEEDBACK_HEADER_SIZE + DEVICE_TOKEN_LENGTH


@dataclass(frozen=True)
class Device:
    """A device reported by the feedback service."""
    device_token: str
    timestamp: datetime


class FeedbackConnection(SocketConnection):
    """TLS connection to the feedback gateway."""

    PRODUCTION_HOST = "feedback.push.apple.com"
    SANDBOX_HOST = "feedback.sandbox.push.apple.com"
    PORT = 2196


def parse_feedback_tuple(data: bytes) -> Device:
    """
    Decode one feedback tuple.

    Raises:
        ErrorResponseDecodeError: If the tuple is truncated or malformed
    """
    if len(data) != FEEDBACK_TUPLE_SIZE:
        raise ErrorResponseDecodeError(
            f"Feedback tuple must be {FEEDBACK_TUPLE_SIZE} bytes, got {len(data)}"
        )

    timestamp, token_length = struct.unpack(FEEDBACK_HEADER_FMT, data[:FEEDBACK_HEADER_SIZE])
    if token_length != DEVICE_TOKEN_LENGTH:
        raise ErrorResponseDecodeError(f"Unexpected feedback token length {token_length}")

    token = data[FEEDBACK_HEADER_SIZE:]
    return Device(
        device_token=token.hex(),
        timestamp=datetime.fromtimestamp(timestamp, tz=timezone.utc),
    )


class Feedback:
    """Reads invalid devices from the feedback service."""

    def __init__(self, connection: Optional[Connection] = None):
        self.connection = connection

    def get_invalid_devices(self) -> List[Device]:
        """
        Read every device reported by the feedback service.

        The connection is opened if needed and always closed afterwards.

        Returns:
            List of Device entries, in the order they were received

        Raises:
            ConnectionUndefinedError: If no connection is set
            ApnConnectionError: If the connection fails
            ErrorResponseDecodeError: If the stream ends inside a tuple
        """
        if self.connection is None:
            raise ConnectionUndefinedError()

        if not self.connection.is_open():
            self.connection.create()

        devices = []
        try:
            while True:
                data = self.connection.read(FEEDBACK_TUPLE_SIZE)
                if not data:
                    break
                devices.append(parse_feedback_tuple(data))
        finally:
            self.connection.close()

        logger.info(f"Feedback service reported {len(devices)} invalid device(s)")
        return devices


def create_feedback(
    connection: Union[Connection, str, None] = None,
    config_override: Optional[ApnConfig] = None,
) -> Feedback:
    """Create a feedback client from a connection or a certificate path."""
    settings = config_override or config

    if isinstance(connection, str) or (connection is None and settings.certificate_file):
        connection = FeedbackConnection.from_config(connection, config_override=settings)

    return Feedback(connection)
