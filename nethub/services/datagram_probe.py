"""
UDP Health Probe Client

Connectionless request/response client for the health server. Each call
sends one datagram and waits, bounded by the socket timeout, for exactly
one reply. There is no background thread.
"""

import logging
import socket
from typing import Optional, Union

from nethub.shared.config import ProbeServiceConfig
from nethub.shared.exceptions import InitError, CommunicationError, CommunicationTimeoutError
from nethub.shared.models import ProbeCommand


logger = logging.getLogger(__name__)


class DatagramProbeClient:
    """
    Client for the UDP health server.

    Replies carry no correlation token, so a late reply to an earlier,
    timed-out request is indistinguishable from the reply to the current
    one and is returned as such.
    """

    def __init__(self, config: Optional[ProbeServiceConfig] = None) -> None:
        """
        Initialize the client. No socket is allocated until ``initialize``.

        Args:
            config: Probe endpoint configuration.
        """
        self.config = config or ProbeServiceConfig()
        self._socket: Optional[socket.socket] = None
        self._server_address: Optional[str] = None

    @property
    def address(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    def initialize(self) -> None:
        """
        Allocate the local endpoint and resolve the server host.

        Raises:
            InitError: If the socket cannot be created or the host resolved.
        """
        self.close()

        sock = None
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            sock.settimeout(self.config.timeout)
            server_address = socket.gethostbyname(self.config.host)
        except OSError as e:
            if sock is not None:
                sock.close()
            logger.error(f"Failed to initialize probe client for {self.address}: {e}")
            raise InitError(f"Failed to initialize probe client for {self.address}: {e}", address=self.address) from e

        self._socket = sock
        self._server_address = server_address
        logger.info(f"Probe client ready for {self.address} ({server_address})")

    def send_command(self, command: Union[str, ProbeCommand]) -> str:
        """
        Send one command datagram and return the single reply.

        Args:
            command: Command token, e.g. ``PING``, ``STATUS`` or ``INFO``.

        Returns:
            Reply payload decoded as text, at most ``buffer_size`` bytes.

        Raises:
            CommunicationTimeoutError: If no reply arrives within the timeout.
            CommunicationError: If the client is not initialized or I/O fails.
        """
        token = command.value if isinstance(command, ProbeCommand) else command

        if not self.is_active():
            raise CommunicationError("Socket not initialized", command=token, address=self.address)

        try:
            self._socket.sendto(token.encode('utf-8'), (self._server_address, self.config.port))
            logger.debug(f"Sent probe {token!r} to {self.address}")
            data, _ = self._socket.recvfrom(self.config.buffer_size)
        except socket.timeout as e:
            logger.warning(f"Probe {token!r} to {self.address} timed out after {self.config.timeout}s")
            raise CommunicationTimeoutError(
                f"No response from {self.address} within {self.config.timeout}s",
                command=token,
                address=self.address
            ) from e
        except OSError as e:
            logger.warning(f"Probe {token!r} to {self.address} failed: {e}")
            raise CommunicationError(f"Probe {token} failed: {e}", command=token, address=self.address) from e

        logger.debug(f"Received {len(data)} byte probe reply from {self.address}")
        return data.decode('utf-8', errors='replace')

    def close(self) -> None:
        """Release the local endpoint. Safe to call repeatedly."""
        if self._socket is not None:
            try:
                self._socket.close()
            except OSError:
                pass  # Socket already closed
            finally:
                self._socket = None
            logger.debug(f"Probe client for {self.address} closed")

    def is_active(self) -> bool:
        """True iff the local endpoint exists and is open."""
        return self._socket is not None and self._socket.fileno() != -1

    def __enter__(self) -> "DatagramProbeClient":
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
