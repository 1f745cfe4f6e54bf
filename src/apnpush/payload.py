"""
Payload factory for the binary gateway protocol.

Builds the "enhanced" notification frame:

    command (1) | identifier (4) | expiry (4) | token length (2) | token
    | payload length (2) | payload

All integers are big-endian. The payload is compact JSON holding the
``aps`` dictionary and any custom keys.
"""

import json
import logging
import re
import struct
from typing import Any, Dict, Optional

from .config import ApnConfig, MAX_PAYLOAD_SIZE, config
from .exceptions import EncodingError, InvalidDeviceTokenError, PayloadTooLargeError
from .message import Message

logger = logging.getLogger(__name__)

COMMAND_ENHANCED_NOTIFICATION = 1

DEVICE_TOKEN_LENGTH = 32

# Header up to and including the token length field
FRAME_HEADER_FMT = "!BIIH"
FRAME_HEADER_SIZE = struct.calcsize(FRAME_HEADER_FMT)

_DEVICE_TOKEN_PATTERN = re.compile(r'^[0-9a-fA-F]{64}$')

_MAX_IDENTIFIER = 0xFFFFFFFF


def device_token_to_bytes(device_token: str) -> bytes:
    """
    Convert a hex device token to its 32 raw bytes.

    Raises:
        InvalidDeviceTokenError: If the token is not 64 hex characters
    """
    if not isinstance(device_token, str) or not _DEVICE_TOKEN_PATTERN.match(device_token):
        raise InvalidDeviceTokenError(
            f"Invalid device token {device_token!r}: expected 64 hexadecimal characters"
        )
    return bytes.fromhex(device_token)


class PayloadFactory:
    """Encodes messages into gateway frames."""

    def __init__(
        self,
        max_payload_size: Optional[int] = None,
        json_unescaped_unicode: Optional[bool] = None,
        config_override: Optional[ApnConfig] = None,
    ):
        settings = config_override or config
        self.max_payload_size = (
            max_payload_size if max_payload_size is not None else settings.max_payload_size
        )
        self.json_unescaped_unicode = (
            json_unescaped_unicode
            if json_unescaped_unicode is not None
            else settings.json_unescaped_unicode
        )
        if not 0 < self.max_payload_size <= MAX_PAYLOAD_SIZE:
            raise ValueError(f"max_payload_size must be between 1 and {MAX_PAYLOAD_SIZE}")

    def create_payload_data(self, message: Message) -> Dict[str, Any]:
        """Build the payload dictionary, omitting absent optional fields."""
        aps: Dict[str, Any] = {"alert": message.body}

        if message.badge is not None:
            aps["badge"] = message.badge

        if message.sound is not None:
            aps["sound"] = message.sound

        if message.content_available:
            aps["content-available"] = 1

        data: Dict[str, Any] = {"aps": aps}
        for key, value in message.custom_data.items():
            if key == "aps":
                raise EncodingError("Custom data cannot override the 'aps' key")
            data[key] = value

        return data

    def create_json(self, message: Message) -> str:
        """Serialize the payload dictionary to compact JSON."""
        try:
            return json.dumps(
                self.create_payload_data(message),
                separators=(",", ":"),
                ensure_ascii=not self.json_unescaped_unicode,
            )
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Payload is not JSON serializable: {e}") from e

    def create_payload(self, message: Message) -> bytes:
        """
        Encode a message into one binary gateway frame.

        Args:
            message: Message to encode

        Returns:
            bytes: The complete frame

        Raises:
            InvalidDeviceTokenError: If the device token is malformed
            PayloadTooLargeError: If the JSON payload exceeds the size limit
            EncodingError: If the identifier does not fit in 32 bits
        """
        token = device_token_to_bytes(message.device_token)

        identifier = message.identifier or 0
        if not 0 <= identifier <= _MAX_IDENTIFIER:
            raise EncodingError(f"Identifier {identifier} does not fit in 32 unsigned bits")

        payload = self.create_json(message).encode("utf-8")
        if len(payload) > self.max_payload_size:
            raise PayloadTooLargeError(
                f"Payload size {len(payload)} exceeds limit of {self.max_payload_size} bytes"
            )

        frame = (
            struct.pack(
                FRAME_HEADER_FMT,
                COMMAND_ENHANCED_NOTIFICATION,
                identifier,
                self._expiry_timestamp(message),
                len(token),
            )
            + token
            + struct.pack("!H", len(payload))
            + payload
        )

        logger.debug(f"Encoded message #{identifier} into {len(frame)} byte frame")
        return frame

    @staticmethod
    def _expiry_timestamp(message: Message) -> int:
        if message.expires is None:
            return 0
        timestamp = int(message.expires.timestamp())
        return max(0, min(timestamp, _MAX_IDENTIFIER))


def parse_frame_header(frame: bytes) -> Dict[str, Any]:
    """
    Read the header fields back out of an encoded frame.

    Returns:
        dict with command, identifier, expiry, device_token, payload_length
        and payload
    """
    if len(frame) < FRAME_HEADER_SIZE:
        raise EncodingError(f"Frame too short: {len(frame)} bytes")

    command, identifier, expiry, token_length = struct.unpack(
        FRAME_HEADER_FMT, frame[:FRAME_HEADER_SIZE]
    )
    offset = FRAME_HEADER_SIZE
    token = frame[offset:offset + token_length]
    offset += token_length

    if len(frame) < offset + 2:
        raise EncodingError("Frame truncated before payload length")
    (payload_length,) = struct.unpack("!H", frame[offset:offset + 2])
    offset += 2
    payload = frame[offset:offset + payload_length]
    if len(payload) != payload_length:
        raise EncodingError("Frame truncated inside payload")

    return {
        "command": command,
        "identifier": identifier,
        "expiry": expiry,
        "device_token": token.hex(),
        "payload_length": payload_length,
        "payload": payload,
    }
