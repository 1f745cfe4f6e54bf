"""
Custom exceptions for the apnpush package.

This module defines all custom exceptions raised by the notification
pipeline, providing clear error types for precondition failures, encoding
problems, transport faults and gateway-reported delivery errors.
"""


class ApnPushError(Exception):
    """Base exception for all apnpush errors."""
    pass


class PayloadFactoryUndefinedError(ApnPushError):
    """Raised when sending without a configured payload factory."""

    def __init__(self, message: str = "Payload factory is not defined."):
        super().__init__(message)


class ConnectionUndefinedError(ApnPushError):
    """Raised when sending without a configured connection."""

    def __init__(self, message: str = "Connection is not defined."):
        super().__init__(message)


class DeviceTokenNotFoundError(ApnPushError):
    """Raised when a message has no device token."""

    def __init__(self, message: str = "Device token not found in message."):
        super().__init__(message)


class EncodingError(ApnPushError):
    """Raised when a message cannot be encoded into a gateway frame."""
    pass


class InvalidDeviceTokenError(EncodingError):
    """Raised when a device token is not 64 hexadecimal characters."""
    pass


class PayloadTooLargeError(EncodingError):
    """Raised when the serialized payload exceeds the gateway size limit."""
    pass


class ApnConnectionError(ApnPushError):
    """Raised when the gateway connection cannot be opened, written or read."""
    pass


class ErrorResponseDecodeError(ApnPushError):
    """Raised when bytes received from the gateway are not a valid frame."""
    pass


class SendError(ApnPushError):
    """
    Raised when the gateway reports that a notification was rejected.

    The connection has already been closed when this is raised; callers must
    reopen it (the sender does so lazily) before sending again.
    """

    def __init__(self, error_response, message=None):
        self.error_response = error_response
        self.message = message
        super().__init__(self._describe())

    @property
    def status(self):
        return self.error_response.status

    @property
    def identifier(self) -> int:
        return self.error_response.identifier

    @property
    def command(self) -> int:
        return self.error_response.command

    def _describe(self) -> str:
        response = self.error_response
        return (
            f"Gateway rejected message #{response.identifier} "
            f"with status {response.raw_status} ({response.status.description})"
        )
