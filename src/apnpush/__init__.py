"""
Client for the legacy binary push notification gateway.

This package encodes notifications into the gateway's binary frame format,
writes them over a persistent TLS connection and decodes the asynchronous
error responses. It also reads the feedback service.
"""

from .message import Message
from .payload import PayloadFactory, device_token_to_bytes
from .connection import Connection, SocketConnection
from .response import StatusCode, ErrorResponse, parse_error_response
from .events import (
    EventDispatcher,
    NotificationEvents,
    SendMessageCompleteEvent,
    SendMessageErrorEvent,
)
from .sender import NotificationSender, SendMetrics, create_sender
from .feedback import Device, Feedback, FeedbackConnection, create_feedback
from .config import ApnConfig, load_config
from .logger_config import setup_logging
from .exceptions import (
    ApnPushError,
    PayloadFactoryUndefinedError,
    ConnectionUndefinedError,
    DeviceTokenNotFoundError,
    EncodingError,
    InvalidDeviceTokenError,
    PayloadTooLargeError,
    ApnConnectionError,
    ErrorResponseDecodeError,
    SendError,
)

__all__ = [
    # Messages and encoding
    'Message',
    'PayloadFactory',
    'device_token_to_bytes',

    # Connections
    'Connection',
    'SocketConnection',

    # Error responses
    'StatusCode',
    'ErrorResponse',
    'parse_error_response',

    # Events
    'EventDispatcher',
    'NotificationEvents',
    'SendMessageCompleteEvent',
    'SendMessageErrorEvent',

    # Sending
    'NotificationSender',
    'SendMetrics',
    'create_sender',

    # Feedback
    'Device',
    'Feedback',
    'FeedbackConnection',
    'create_feedback',

    # Configuration
    'ApnConfig',
    'load_config',
    'setup_logging',

    # Exceptions
    'ApnPushError',
    'PayloadFactoryUndefinedError',
    'ConnectionUndefinedError',
    'DeviceTokenNotFoundError',
    'EncodingError',
    'InvalidDeviceTokenError',
    'PayloadTooLargeError',
    'ApnConnectionError',
    'ErrorResponseDecodeError',
    'SendError',
]
