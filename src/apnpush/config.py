"""
Configuration management for the apnpush package.

This module handles the settings shared by the gateway connection, the
payload factory and the notification sender, including validation and
loading from environment variables.
"""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Hard limit of the legacy binary gateway
MAX_PAYLOAD_SIZE = 2048


class ApnConfig(BaseModel):
    """Configuration model for gateway and sender settings."""

    # Certificate settings
    certificate_file: Optional[str] = Field(
        default=None,
        description="Path to the PEM file holding the client certificate and key"
    )

    passphrase: Optional[str] = Field(
        default=None,
        description="Passphrase protecting the certificate private key"
    )

    sandbox: bool = Field(
        default=False,
        description="Use the sandbox (development) gateway"
    )

    # Timeout settings
    connect_timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for opening the gateway connection in seconds"
    )

    read_timeout_seconds: float = Field(
        default=1.0,
        description="How long to wait for an error response after each send"
    )

    # Sender settings
    check_for_errors: bool = Field(
        default=True,
        description="Whether to poll for an error response after each send"
    )

    # Payload settings
    max_payload_size: int = Field(
        default=MAX_PAYLOAD_SIZE,
        description="Maximum size of the JSON payload in bytes"
    )

    json_unescaped_unicode: bool = Field(
        default=True,
        description="Keep non-ASCII characters as UTF-8 instead of \\u escapes"
    )

    @field_validator('connect_timeout_seconds')
    @classmethod
    def validate_connect_timeout(cls, v):
        if v <= 0:
            raise ValueError("connect_timeout_seconds must be positive")
        if v > 300:
            raise ValueError("connect_timeout_seconds cannot exceed 300 seconds")
        return v

    @field_validator('read_timeout_seconds')
    @classmethod
    def validate_read_timeout(cls, v):
        if v < 0:
            raise ValueError("read_timeout_seconds must be non-negative")
        if v > 60:
            raise ValueError("read_timeout_seconds cannot exceed 60 seconds")
        return v

    @field_validator('max_payload_size')
    @classmethod
    def validate_max_payload_size(cls, v):
        if v <= 0:
            raise ValueError("max_payload_size must be positive")
        if v > MAX_PAYLOAD_SIZE:
            raise ValueError(f"max_payload_size cannot exceed {MAX_PAYLOAD_SIZE} bytes")
        return v


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def load_config(env_file: Optional[str] = None) -> ApnConfig:
    """
    Load configuration from environment variables or defaults.

    A ``.env`` file is loaded first (without overriding variables that are
    already set).

    Environment variables supported:
    - APN_CERTIFICATE_FILE: Path to the client certificate
    - APN_PASSPHRASE: Certificate passphrase
    - APN_SANDBOX: Use the sandbox gateway (true/false)
    - APN_CONNECT_TIMEOUT: Connect timeout in seconds
    - APN_READ_TIMEOUT: Error response poll window in seconds
    - APN_CHECK_FOR_ERRORS: Poll for error responses (true/false)
    - APN_MAX_PAYLOAD_SIZE: Maximum JSON payload size in bytes
    - APN_JSON_UNESCAPED_UNICODE: Keep UTF-8 in payloads (true/false)

    Args:
        env_file: Optional path to a .env file

    Returns:
        ApnConfig: Configured settings instance
    """
    load_dotenv(env_file)

    config_data = {}

    if certificate_file := os.getenv('APN_CERTIFICATE_FILE'):
        config_data['certificate_file'] = certificate_file

    if passphrase := os.getenv('APN_PASSPHRASE'):
        config_data['passphrase'] = passphrase

    if sandbox := os.getenv('APN_SANDBOX'):
        config_data['sandbox'] = _as_bool(sandbox)

    if connect_timeout := os.getenv('APN_CONNECT_TIMEOUT'):
        config_data['connect_timeout_seconds'] = float(connect_timeout)

    if read_timeout := os.getenv('APN_READ_TIMEOUT'):
        config_data['read_timeout_seconds'] = float(read_timeout)

    if check_for_errors := os.getenv('APN_CHECK_FOR_ERRORS'):
        config_data['check_for_errors'] = _as_bool(check_for_errors)

    if max_payload_size := os.getenv('APN_MAX_PAYLOAD_SIZE'):
        config_data['max_payload_size'] = int(max_payload_size)

    if unescaped := os.getenv('APN_JSON_UNESCAPED_UNICODE'):
        config_data['json_unescaped_unicode'] = _as_bool(unescaped)

    return ApnConfig(**config_data)


# Global configuration instance
config = load_config()
