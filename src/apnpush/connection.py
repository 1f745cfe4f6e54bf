"""
Gateway connections.

This module defines the small contract the notification sender relies on
and the default implementation, a blocking TLS socket authenticated with a
client certificate.
"""

import logging
import select
import socket
import ssl
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from .config import ApnConfig, config
from .exceptions import ApnConnectionError

logger = logging.getLogger(__name__)


class Connection(ABC):
    """Minimal contract for a gateway connection."""

    @abstractmethod
    def is_open(self) -> bool:
        """Whether the connection is currently established."""

    @abstractmethod
    def create(self) -> None:
        """Open the connection. Raises ApnConnectionError on failure."""

    @abstractmethod
    def close(self) -> None:
        """Close the connection. Calling it on a closed connection is a no-op."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """Write data and return the number of bytes accepted."""

    @abstractmethod
    def is_ready_read(self, timeout: Optional[float] = None) -> bool:
        """Wait up to ``timeout`` seconds for readable data."""

    @abstractmethod
    def read(self, length: int) -> bytes:
        """Read ``length`` bytes; fewer are returned only at end of stream."""

    def __enter__(self) -> "Connection":
        if not self.is_open():
            self.create()
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


class SocketConnection(Connection):
    """
    TLS socket connection to the notification gateway.

    The client certificate (PEM, certificate and private key in one file)
    authenticates the provider; the gateway's certificate is verified against
    the system trust store.
    """

    PRODUCTION_HOST = "gateway.push.apple.com"
    SANDBOX_HOST = "gateway.sandbox.push.apple.com"
    PORT = 2195

    def __init__(
        self,
        certificate_file: str,
        passphrase: Optional[str] = None,
        sandbox: bool = False,
        host: Optional[str] = None,
        port: Optional[int] = None,
        connect_timeout: float = 30.0,
        read_timeout: float = 1.0,
    ):
        self.certificate_file = certificate_file
        self.passphrase = passphrase
        self.sandbox = sandbox
        self.host = host or (self.SANDBOX_HOST if sandbox else self.PRODUCTION_HOST)
        self.port = port or self.PORT
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._socket: Optional[ssl.SSLSocket] = None

    @classmethod
    def from_config(
        cls, certificate_file: Optional[str] = None, config_override: Optional[ApnConfig] = None
    ) -> "SocketConnection":
        """Build a connection from configuration settings."""
        settings = config_override or config
        certificate_file = certificate_file or settings.certificate_file
        if not certificate_file:
            raise ApnConnectionError("No certificate file configured")

        return cls(
            certificate_file,
            passphrase=settings.passphrase,
            sandbox=settings.sandbox,
            connect_timeout=settings.connect_timeout_seconds,
            read_timeout=settings.read_timeout_seconds,
        )

    def _create_ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
        context.load_cert_chain(self.certificate_file, password=self.passphrase)
        context.minimum_version = ssl.TLSVersion.TLSv1_2
        return context

    def is_open(self) -> bool:
        return self._socket is not None

    def create(self) -> None:
        if self.is_open():
            return

        if not Path(self.certificate_file).exists():
            raise ApnConnectionError(f"Certificate not found: {self.certificate_file}")

        logger.debug(f"Connecting to {self.host}:{self.port}")

        try:
            context = self._create_ssl_context()
            raw_socket = socket.create_connection(
                (self.host, self.port), timeout=self.connect_timeout
            )
            try:
                tls_socket = context.wrap_socket(raw_socket, server_hostname=self.host)
            except OSError:
                raw_socket.close()
                raise
        except OSError as e:
            raise ApnConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}") from e

        # Blocking I/O from here on; reads are bounded by is_ready_read()
        tls_socket.settimeout(None)
        self._socket = tls_socket
        logger.info(f"Connected to {self.host}:{self.port}")

    def close(self) -> None:
        if self._socket is None:
            return

        tls_socket, self._socket = self._socket, None
        try:
            tls_socket.close()
        except OSError as e:
            logger.debug(f"Error while closing connection to {self.host}: {e}")
        logger.debug(f"Closed connection to {self.host}:{self.port}")

    def write(self, data: bytes) -> int:
        if self._socket is None:
            raise ApnConnectionError("Cannot write to a closed connection")

        try:
            return self._socket.send(data)
        except OSError as e:
            raise ApnConnectionError(f"Write to {self.host} failed: {e}") from e

    def is_ready_read(self, timeout: Optional[float] = None) -> bool:
        if self._socket is None:
            return False

        if timeout is None:
            timeout = self.read_timeout

        # Decrypted bytes already buffered by the TLS layer are invisible to select()
        if self._socket.pending():
            return True

        try:
            readable, _, _ = select.select([self._socket], [], [], timeout)
        except (OSError, ValueError) as e:
            raise ApnConnectionError(f"Polling {self.host} failed: {e}") from e

        return bool(readable)

    def read(self, length: int) -> bytes:
        if self._socket is None:
            raise ApnConnectionError("Cannot read from a closed connection")

        chunks = []
        remaining = length
        try:
            while remaining > 0:
                chunk = self._socket.recv(remaining)
                if not chunk:
                    break
                chunks.append(chunk)
                remaining -= len(chunk)
        except OSError as e:
            raise ApnConnectionError(f"Read from {self.host} failed: {e}") from e

        return b"".join(chunks)
