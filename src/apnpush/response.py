"""Error response decoding.

After a rejected notification the gateway writes a single 6-byte frame and
closes the connection:

    command (1) | status (1) | identifier (4, big-endian)
"""

import struct
from dataclasses import dataclass
from enum import IntEnum

from .exceptions import ErrorResponseDecodeError

COMMAND_ERROR_RESPONSE = 8

ERROR_RESPONSE_FMT = "!BBI"
ERROR_RESPONSE_SIZE = struct.calcsize(ERROR_RESPONSE_FMT)


class StatusCode(IntEnum):
    """Status codes returned in gateway error responses."""
    NO_ERRORS = 0
    PROCESSING_ERROR = 1
    MISSING_DEVICE_TOKEN = 2
    MISSING_TOPIC = 3
    MISSING_PAYLOAD = 4
    INVALID_TOKEN_SIZE = 5
    INVALID_TOPIC_SIZE = 6
    INVALID_PAYLOAD_SIZE = 7
    INVALID_TOKEN = 8
    SHUTDOWN = 10
    PROTOCOL_ERROR = 128
    UNKNOWN = 255

    @classmethod
    def from_code(cls, code: int) -> "StatusCode":
        """Map a raw status byte, falling back to UNKNOWN."""
        try:
            return cls(code)
        except ValueError:
            return cls.UNKNOWN

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    StatusCode.NO_ERRORS: "No errors encountered",
    StatusCode.PROCESSING_ERROR: "Processing error",
    StatusCode.MISSING_DEVICE_TOKEN: "Missing device token",
    StatusCode.MISSING_TOPIC: "Missing topic",
    StatusCode.MISSING_PAYLOAD: "Missing payload",
    StatusCode.INVALID_TOKEN_SIZE: "Invalid token size",
    StatusCode.INVALID_TOPIC_SIZE: "Invalid topic size",
    StatusCode.INVALID_PAYLOAD_SIZE: "Invalid payload size",
    StatusCode.INVALID_TOKEN: "Invalid token",
    StatusCode.SHUTDOWN: "Shutdown",
    StatusCode.PROTOCOL_ERROR: "Protocol error",
    StatusCode.UNKNOWN: "None (unknown)",
}


@dataclass(frozen=True)
class ErrorResponse:
    """Decoded gateway error response."""
    command: int
    status: StatusCode
    identifier: int
    raw_status: int

    def __str__(self) -> str:
        return f"{self.status.description} (status {self.raw_status}, message #{self.identifier})"


def parse_error_response(data: bytes) -> ErrorResponse:
    """
    Decode a 6-byte gateway error response.

    Args:
        data: Raw bytes read from the connection

    Returns:
        ErrorResponse with the command, status and echoed identifier

    Raises:
        ErrorResponseDecodeError: If data is not exactly 6 bytes
    """
    if data is None or len(data) != ERROR_RESPONSE_SIZE:
        length = 0 if data is None else len(data)
        raise ErrorResponseDecodeError(
            f"Error response must be {ERROR_RESPONSE_SIZE} bytes, got {length}"
        )

    command, status, identifier = struct.unpack(ERROR_RESPONSE_FMT, data)

    return ErrorResponse(
        command=command,
        status=StatusCode.from_code(status),
        identifier=identifier,
        raw_status=status,
    )
