"""
Unit tests for the TCP chat stream client.
"""

import threading
from unittest.mock import Mock

import pytest

from conftest import drain_until, wait_for
from nethub.services.stream_chat import StreamChatClient
from nethub.shared.config import ChatServiceConfig
from nethub.shared.exceptions import ConnectionError
from nethub.shared.models import ConnectionState


class Recorder:
    """Collects callback invocations together with the calling thread."""

    def __init__(self):
        self.messages = []
        self.statuses = []
        self.threads = set()

    def on_message(self, line):
        self.threads.add(threading.get_ident())
        self.messages.append(line)

    def on_status(self, status):
        self.threads.add(threading.get_ident())
        self.statuses.append(status)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def client(dispatcher, chat_config):
    chat = StreamChatClient(dispatcher, chat_config)
    yield chat
    chat.disconnect()
    chat.join(timeout=1.0)


class TestStreamChatConnect:
    """Test establishing the stream."""

    def test_initial_state(self, client):
        assert client.state == ConnectionState.DISCONNECTED
        assert not client.is_connected()

    def test_connect_sends_identity_and_reports_connected(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)

        assert line_server.next_line() == "alice"
        assert client.is_connected()
        assert client.state == ConnectionState.CONNECTED
        assert drain_until(dispatcher, lambda: recorder.statuses == ["Connected to TCP Chat Server"])

    def test_connect_failure_raises(self, dispatcher, closed_port, recorder):
        chat = StreamChatClient(dispatcher, ChatServiceConfig(host="127.0.0.1", port=closed_port, connect_timeout=1.0))

        with pytest.raises(ConnectionError) as exc_info:
            chat.connect("alice", recorder.on_message, recorder.on_status)

        assert exc_info.value.address == f"127.0.0.1:{closed_port}"
        assert chat.state == ConnectionState.DISCONNECTED
        dispatcher.process_pending()
        assert recorder.statuses == []

    def test_reconnect_disconnects_first(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        assert line_server.next_line() == "alice"
        client.connect("bob", recorder.on_message, recorder.on_status)

        assert line_server.next_line() == "bob"
        assert drain_until(dispatcher, lambda: len(recorder.statuses) == 3)
        assert recorder.statuses == [
            "Connected to TCP Chat Server",
            "Disconnected",
            "Connected to TCP Chat Server",
        ]
        assert client.is_connected()


class TestStreamChatReceive:
    """Test the background receive loop."""

    def test_lines_are_delivered_in_order(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()

        for text in ("bob: hi", "carol: hello", "dave: hey"):
            line_server.send_line(text)

        assert drain_until(dispatcher, lambda: len(recorder.messages) == 3)
        assert recorder.messages == ["bob: hi", "carol: hello", "dave: hey"]

    def test_crlf_is_stripped(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()
        line_server.send_raw(b"windows line\r\n")

        assert drain_until(dispatcher, lambda: recorder.messages == ["windows line"])

    def test_partial_line_waits_for_delimiter(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()

        line_server.send_raw(b"split ")
        dispatcher.process_pending(timeout=0.2)
        assert recorder.messages == []

        line_server.send_raw(b"message\n")
        assert drain_until(dispatcher, lambda: recorder.messages == ["split message"])

    def test_callbacks_run_on_dispatching_thread(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()
        line_server.send_line("hello")

        # Nothing runs until the owner thread pumps the dispatcher
        wait_for(lambda: dispatcher.pending_count() >= 2)
        assert recorder.messages == []
        assert recorder.statuses == []

        assert drain_until(dispatcher, lambda: recorder.messages == ["hello"])
        assert recorder.threads == {threading.get_ident()}

    def test_connected_precedes_first_message(self, client, line_server, dispatcher):
        events = []
        client.connect("alice", lambda line: events.append(("msg", line)), lambda s: events.append(("status", s)))
        line_server.wait_for_client()
        line_server.send_line("welcome")

        assert drain_until(dispatcher, lambda: len(events) == 2)
        assert events == [("status", "Connected to TCP Chat Server"), ("msg", "welcome")]

    def test_server_close_reports_connection_lost(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()
        line_server.close_client()

        assert drain_until(dispatcher, lambda: len(recorder.statuses) == 2)
        assert recorder.statuses[1].startswith("Connection lost: ")
        assert client.state == ConnectionState.DISCONNECTED
        assert not client.is_connected()

        # The lost session is already torn down; no further notice
        client.disconnect()
        dispatcher.process_pending(timeout=0.1)
        assert len(recorder.statuses) == 2


class TestStreamChatSend:
    """Test sending lines."""

    def test_send_line(self, client, line_server, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        assert line_server.next_line() == "alice"

        client.send_line("hello everyone")
        assert line_server.next_line() == "hello everyone"

    def test_send_utf8(self, client, line_server, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.next_line()

        client.send_line("héllo ✓")
        assert line_server.next_line() == "héllo ✓"

    def test_send_when_disconnected_is_noop(self, client, dispatcher, recorder):
        client.send_line("nobody hears this")
        dispatcher.process_pending()
        assert recorder.statuses == []

    def test_send_failure_reports_status(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()

        session = client._session
        session.sock = Mock(wraps=session.sock)
        session.sock.sendall.side_effect = OSError("broken pipe")

        client.send_line("lost")

        assert drain_until(dispatcher, lambda: "Send failed: broken pipe" in recorder.statuses)


class TestStreamChatDisconnect:
    """Test closing the stream."""

    def test_disconnect_reports_disconnected(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()

        client.disconnect()

        assert client.state == ConnectionState.DISCONNECTED
        assert drain_until(dispatcher, lambda: recorder.statuses[-1:] == ["Disconnected"])
        client.join(timeout=1.0)
        assert not client._receiver.is_alive()

    def test_disconnect_is_idempotent(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        client.disconnect()
        client.disconnect()

        dispatcher.process_pending(timeout=0.1)
        assert recorder.statuses == ["Connected to TCP Chat Server", "Disconnected"]

    def test_disconnect_without_connect(self, client, dispatcher):
        client.disconnect()
        assert dispatcher.pending_count() == 0

    def test_no_messages_after_disconnect(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()
        client.disconnect()
        client.join(timeout=1.0)

        try:
            line_server.send_line("too late")
        except OSError:
            pass
        dispatcher.process_pending(timeout=0.1)
        assert recorder.messages == []
        assert not any(s.startswith("Connection lost") for s in recorder.statuses)

    def test_close_error_reports_status(self, client, line_server, dispatcher, recorder):
        client.connect("alice", recorder.on_message, recorder.on_status)
        line_server.wait_for_client()

        session = client._session
        real_sock = session.sock
        session.sock = Mock(wraps=real_sock)
        session.sock.close.side_effect = OSError("close failed")

        client.disconnect()
        client.join(timeout=1.0)
        real_sock.close()

        assert drain_until(dispatcher, lambda: "Error disconnecting: close failed" in recorder.statuses)
        assert "Disconnected" not in recorder.statuses
        assert client.state == ConnectionState.DISCONNECTED

    def test_context_manager_disconnects(self, dispatcher, chat_config, line_server, recorder):
        with StreamChatClient(dispatcher, chat_config) as chat:
            chat.connect("alice", recorder.on_message, recorder.on_status)
            line_server.wait_for_client()
        assert chat.state == ConnectionState.DISCONNECTED
        chat.join(timeout=1.0)
