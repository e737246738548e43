"""
TCP Chat Stream Client

Maintains one persistent newline-delimited text connection to the chat
server and runs a background receive loop. Every notification (inbound
line or status change) is posted through a dispatcher onto the front
end's context; callbacks are never invoked from the receive thread.
"""

import logging
import socket
import threading
from dataclasses import dataclass
from typing import Callable, Optional, TextIO

from nethub.shared.config import ChatServiceConfig
from nethub.shared.constants import (
    LINE_DELIMITER,
    STATUS_CONNECTED,
    STATUS_DISCONNECTED,
    STATUS_CONNECTION_LOST,
    STATUS_DISCONNECT_ERROR,
    STATUS_SEND_FAILED,
)
from nethub.shared.exceptions import ConnectionError
from nethub.shared.models import ConnectionState
from nethub.shared.protocols import CallbackDispatcher


logger = logging.getLogger(__name__)

MessageCallback = Callable[[str], None]
StatusCallback = Callable[[str], None]


@dataclass
class _Session:
    """One live connection: its socket, reader, flag and receive thread."""
    sock: socket.socket
    reader: TextIO
    running: threading.Event
    thread: Optional[threading.Thread] = None


class StreamChatClient:
    """
    Client for the line-oriented TCP chat server.

    State is Connected exactly while the current session's running flag is
    set. The flag is a ``threading.Event`` created per connection, so a
    receive thread left over from an earlier connection can never observe
    the flag of a newer one.
    """

    def __init__(self, dispatcher: CallbackDispatcher, config: Optional[ChatServiceConfig] = None) -> None:
        """
        Initialize the client.

        Args:
            dispatcher: Marshals callbacks onto the front end's context.
            config: Chat endpoint configuration.
        """
        self.config = config or ChatServiceConfig()
        self._dispatcher = dispatcher
        self._session: Optional[_Session] = None
        self._on_message: Optional[MessageCallback] = None
        self._on_status: Optional[StatusCallback] = None
        self._receiver: Optional[threading.Thread] = None

    @property
    def address(self) -> str:
        return f"{self.config.host}:{self.config.port}"

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        session = self._session
        if session is not None and session.running.is_set():
            return ConnectionState.CONNECTED
        return ConnectionState.DISCONNECTED

    def connect(self, identity: str, on_message: MessageCallback, on_status: StatusCallback) -> None:
        """
        Open the stream, announce ``identity`` and start receiving.

        An already-live connection is disconnected first.

        Args:
            identity: First line sent to the server (the chat username).
            on_message: Receives each inbound line.
            on_status: Receives connection status notices.

        Raises:
            ConnectionError: If the connection cannot be established.
        """
        if self.is_connected():
            self.disconnect()
        # A session lost by the receive loop has already released its socket
        self._session = None

        self._on_message = on_message
        self._on_status = on_status

        logger.info(f"Connecting to chat server at {self.address}")
        try:
            sock = socket.create_connection(
                (self.config.host, self.config.port),
                timeout=self.config.connect_timeout
            )
        except OSError as e:
            logger.warning(f"Chat connection to {self.address} failed: {e}")
            raise ConnectionError(f"Failed to connect to {self.address}: {e}", address=self.address) from e

        try:
            # Reads block until data arrives or the socket is shut down
            sock.settimeout(None)
            sock.sendall(self._encode(identity))
            reader = sock.makefile('r', encoding=self.config.encoding, errors='replace', newline='')
        except OSError as e:
            self._close_quietly(sock)
            logger.warning(f"Chat handshake with {self.address} failed: {e}")
            raise ConnectionError(f"Failed to send identity to {self.address}: {e}", address=self.address) from e

        session = _Session(sock=sock, reader=reader, running=threading.Event())
        session.running.set()
        self._session = session

        logger.info(f"Connected to chat server at {self.address} as {identity!r}")
        self._post_status(STATUS_CONNECTED)

        session.thread = threading.Thread(
            target=self._receive_loop,
            args=(session,),
            name=f"ChatReceiver-{self.address}",
            daemon=True
        )
        self._receiver = session.thread
        session.thread.start()

    def send_line(self, text: str) -> None:
        """
        Send one chat line. Does nothing when not connected.

        A write failure on a live connection is reported through the
        status callback instead of being raised.
        """
        session = self._session
        if session is None or not session.running.is_set():
            logger.debug("Dropping outbound line: not connected")
            return

        try:
            session.sock.sendall(self._encode(text))
            logger.debug(f"Sent {len(text)} character line to {self.address}")
        except OSError as e:
            logger.warning(f"Failed to send line to {self.address}: {e}")
            self._post_status(STATUS_SEND_FAILED.format(e))

    def disconnect(self) -> None:
        """
        Close the connection. Safe to call repeatedly.

        Close-time transport errors become an "Error disconnecting" status
        notice instead of propagating.
        """
        session = self._session
        if session is None:
            return
        self._session = None
        if not session.running.is_set():
            # Lost connection; the receive loop already released the socket
            return
        session.running.clear()

        try:
            try:
                # Unblocks the receive thread's in-flight read
                session.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                # Already reset by the peer; closing is still required
                pass
            session.sock.close()
        except OSError as e:
            logger.warning(f"Error while closing chat connection to {self.address}: {e}")
            self._post_status(STATUS_DISCONNECT_ERROR.format(e))
            return

        logger.info(f"Disconnected from chat server at {self.address}")
        self._post_status(STATUS_DISCONNECTED)

    def is_connected(self) -> bool:
        """True iff the running flag is set and the socket is still open."""
        session = self._session
        return (
            session is not None
            and session.running.is_set()
            and session.sock.fileno() != -1
        )

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the most recent receive thread to finish."""
        if self._receiver is not None:
            self._receiver.join(timeout)

    def _receive_loop(self, session: _Session) -> None:
        """Read lines until the stream ends or the session is stopped."""
        reason = "server closed the connection"
        try:
            while session.running.is_set():
                line = session.reader.readline()
                if not line:
                    break
                if not session.running.is_set():
                    break
                self._post_message(line.rstrip('\r\n'))
        except (OSError, ValueError) as e:
            # ValueError: reader closed underneath us during teardown
            reason = str(e) or e.__class__.__name__
        finally:
            try:
                session.reader.close()
            except OSError:
                pass

        if not session.running.is_set():
            logger.debug(f"Receive loop for {self.address} stopped after disconnect")
            return

        # Lost while still connected
        session.running.clear()
        self._close_quietly(session.sock)
        logger.warning(f"Chat connection to {self.address} lost: {reason}")
        self._post_status(STATUS_CONNECTION_LOST.format(reason))

    def _post_message(self, line: str) -> None:
        if self._on_message is not None:
            self._dispatcher.post(self._on_message, line)

    def _post_status(self, status: str) -> None:
        if self._on_status is not None:
            self._dispatcher.post(self._on_status, status)

    def _encode(self, text: str) -> bytes:
        return (text + LINE_DELIMITER).encode(self.config.encoding)

    @staticmethod
    def _close_quietly(sock: socket.socket) -> None:
        try:
            sock.close()
        except OSError:
            pass

    def close(self) -> None:
        """Alias of ``disconnect`` for uniform teardown."""
        self.disconnect()

    def __enter__(self) -> "StreamChatClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()
