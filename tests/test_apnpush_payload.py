"""
Unit tests for the payload factory.

Covers the binary frame layout, JSON payload contents and encoding errors.
"""

import json
import struct
from datetime import datetime, timezone

import pytest

from src.apnpush.config import ApnConfig
from src.apnpush.exceptions import EncodingError, InvalidDeviceTokenError, PayloadTooLargeError
from src.apnpush.message import Message
from src.apnpush.payload import (
    COMMAND_ENHANCED_NOTIFICATION,
    PayloadFactory,
    device_token_to_bytes,
    parse_frame_header,
)


TOKEN = "0123456789abcdef" * 4


class TestDeviceToken:
    """Test device token conversion."""

    def test_valid_token(self):
        assert device_token_to_bytes(TOKEN) == bytes.fromhex(TOKEN)
        assert len(device_token_to_bytes(TOKEN)) == 32

    def test_uppercase_token(self):
        assert device_token_to_bytes(TOKEN.upper()) == bytes.fromhex(TOKEN)

    def test_invalid_tokens(self):
        invalid_tokens = [
            "",
            "abc",
            "a" * 63,
            "a" * 65,
            "g" * 64,
            " " + "a" * 63,
            None,
        ]

        for token in invalid_tokens:
            with pytest.raises(InvalidDeviceTokenError):
                device_token_to_bytes(token)


class TestFrameLayout:
    """Test the binary frame layout."""

    def setup_method(self):
        self.factory = PayloadFactory(config_override=ApnConfig())

    @pytest.mark.parametrize("identifier", [0, 1, 42, 0xFFFFFFFF])
    def test_header_fields_round_trip(self, identifier):
        message = Message(device_token=TOKEN, body="Hello", identifier=identifier, badge=1)

        frame = self.factory.create_payload(message)
        header = parse_frame_header(frame)

        assert header["command"] == COMMAND_ENHANCED_NOTIFICATION
        assert header["identifier"] == identifier
        assert header["device_token"] == TOKEN
        assert header["payload_length"] == len(self.factory.create_json(message).encode("utf-8"))

    def test_exact_bytes(self):
        message = Message(device_token=TOKEN, body="Foo", identifier=7)

        frame = self.factory.create_payload(message)

        payload = b'{"aps":{"alert":"Foo"}}'
        expected = (
            struct.pack("!BIIH", 1, 7, 0, 32)
            + bytes.fromhex(TOKEN)
            + struct.pack("!H", len(payload))
            + payload
        )
        assert frame == expected

    def test_frame_length(self):
        message = Message(device_token=TOKEN, body="Foo")
        frame = self.factory.create_payload(message)
        payload = self.factory.create_json(message).encode("utf-8")
        assert len(frame) == 1 + 4 + 4 + 2 + 32 + 2 + len(payload)

    def test_expiry(self):
        expires = datetime(2030, 1, 1, tzinfo=timezone.utc)
        message = Message(device_token=TOKEN, body="Foo", expires=expires)

        header = parse_frame_header(self.factory.create_payload(message))

        assert header["expiry"] == int(expires.timestamp())

    def test_deterministic(self):
        message = Message(device_token=TOKEN, body="Foo", badge=2, sound="default")
        assert self.factory.create_payload(message) == self.factory.create_payload(message)

    def test_message_not_mutated(self):
        message = Message(device_token=TOKEN, body="Foo", custom_data={"k": "v"})
        before = message.to_dict()
        self.factory.create_payload(message)
        assert message.to_dict() == before


class TestJsonPayload:
    """Test the JSON payload contents."""

    def setup_method(self):
        self.factory = PayloadFactory(config_override=ApnConfig())

    def test_minimal_payload(self):
        message = Message(device_token=TOKEN, body="Foo")
        assert self.factory.create_json(message) == '{"aps":{"alert":"Foo"}}'

    def test_empty_body(self):
        message = Message(device_token=TOKEN, body="")
        assert json.loads(self.factory.create_json(message)) == {"aps": {"alert": ""}}

    def test_all_fields(self):
        message = Message(
            device_token=TOKEN,
            body="Foo",
            badge=3,
            sound="bingbong.aiff",
            content_available=True,
            custom_data={"thread": "abc"},
        )

        data = json.loads(self.factory.create_json(message))

        assert data == {
            "aps": {
                "alert": "Foo",
                "badge": 3,
                "sound": "bingbong.aiff",
                "content-available": 1,
            },
            "thread": "abc",
        }

    def test_zero_badge_is_kept(self):
        message = Message(device_token=TOKEN, body="Foo", badge=0)
        assert json.loads(self.factory.create_json(message))["aps"]["badge"] == 0

    def test_unicode_unescaped(self):
        message = Message(device_token=TOKEN, body="Привет")
        assert "Привет" in self.factory.create_json(message)

    def test_unicode_escaped(self):
        factory = PayloadFactory(json_unescaped_unicode=False, config_override=ApnConfig())
        message = Message(device_token=TOKEN, body="Привет")
        assert "\\u041f" in factory.create_json(message)

    def test_custom_data_cannot_override_aps(self):
        message = Message(device_token=TOKEN, body="Foo", custom_data={"aps": {}})
        with pytest.raises(EncodingError):
            self.factory.create_json(message)

    def test_unserializable_custom_data(self):
        message = Message(device_token=TOKEN, body="Foo", custom_data={"obj": object()})
        with pytest.raises(EncodingError):
            self.factory.create_payload(message)


class TestEncodingErrors:
    """Test encoding failures."""

    def setup_method(self):
        self.factory = PayloadFactory(config_override=ApnConfig())

    def test_invalid_token(self):
        with pytest.raises(InvalidDeviceTokenError):
            self.factory.create_payload(Message(device_token="zz", body="Foo"))

    def test_payload_too_large(self):
        message = Message(device_token=TOKEN, body="x" * 2048)
        with pytest.raises(PayloadTooLargeError):
            self.factory.create_payload(message)

    def test_payload_at_limit(self):
        overhead = len('{"aps":{"alert":""}}')
        message = Message(device_token=TOKEN, body="x" * (2048 - overhead))
        frame = self.factory.create_payload(message)
        assert parse_frame_header(frame)["payload_length"] == 2048

    def test_multibyte_characters_count_as_bytes(self):
        factory = PayloadFactory(max_payload_size=30, config_override=ApnConfig())
        # 10 characters, 20 bytes of UTF-8
        message = Message(device_token=TOKEN, body="ж" * 10)
        with pytest.raises(PayloadTooLargeError):
            factory.create_payload(message)

    def test_identifier_out_of_range(self):
        for identifier in (-1, 0x100000000):
            with pytest.raises(EncodingError):
                self.factory.create_payload(
                    Message(device_token=TOKEN, body="Foo", identifier=identifier)
                )

    def test_max_payload_size_bounds(self):
        with pytest.raises(ValueError):
            PayloadFactory(max_payload_size=0, config_override=ApnConfig())
        with pytest.raises(ValueError):
            PayloadFactory(max_payload_size=4096, config_override=ApnConfig())

    def test_encoding_errors_are_exceptions_of_one_family(self):
        assert issubclass(InvalidDeviceTokenError, EncodingError)
        assert issubclass(PayloadTooLargeError, EncodingError)


class TestParseFrameHeader:
    """Test reading frame headers."""

    def test_truncated_frames(self):
        frame = PayloadFactory(config_override=ApnConfig()).create_payload(
            Message(device_token=TOKEN, body="Foo")
        )
        for length in (5, 11 + 32, len(frame) - 1):
            with pytest.raises(EncodingError):
                parse_frame_header(frame[:length])
