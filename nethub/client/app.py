"""
NetHub Application

Composes the chat, probe and link clients behind the terminal front end.
Owns the callback dispatcher; everything that touches the view runs on the
thread that created the application.
"""

import logging
import time
from concurrent.futures import Future
from typing import Any, Dict, Optional, Union

from rich.console import Console

from nethub.client.dispatch import CallbackDispatcher
from nethub.client.executor import BackgroundExecutor
from nethub.client.ui import EventView, InputHandler
from nethub.client.ui.input_handler import InputAction, InputResult
from nethub.services import DatagramProbeClient, LinkValidationClient, StreamChatClient
from nethub.shared.config import ClientConfig
from nethub.shared.exceptions import ConnectionError, CommunicationError, InitError
from nethub.shared.models import ProbeCommand, ProbeResult


logger = logging.getLogger(__name__)


class NetHubApp:
    """
    Front-end composition of the three service clients.

    Blocking calls (probes, link checks) run on the background executor;
    their results come back through the dispatcher and are rendered when
    the owner thread calls ``pump``.
    """

    def __init__(self, config: Optional[ClientConfig] = None, console: Optional[Console] = None) -> None:
        """
        Initialize the application.

        Args:
            config: Client configuration.
            console: Console the event view prints to.
        """
        self.config = config or ClientConfig()
        self.dispatcher = CallbackDispatcher()
        self.executor = BackgroundExecutor(self.dispatcher, max_workers=self.config.worker_threads)
        # One probe in flight at a time on the shared datagram socket
        self.probe_executor = BackgroundExecutor(self.dispatcher, max_workers=1)

        self.chat = StreamChatClient(self.dispatcher, self.config.chat)
        self.probe = DatagramProbeClient(self.config.probe)
        self.links = LinkValidationClient(self.config.link)

        self.view = EventView(console)
        self.input_handler = InputHandler()
        self.identity: Optional[str] = None
        self.is_running = True
        # Future started by the most recent input, if any
        self.pending_future: Optional[Future] = None

        self._setup_callbacks()

    def _setup_callbacks(self) -> None:
        """Wire input actions to handlers."""
        self.input_handler.set_callback(InputAction.SEND_MESSAGE, lambda r: self.send_chat(r.data))
        self.input_handler.set_callback(InputAction.CONNECT, lambda r: self.connect_chat(r.args))
        self.input_handler.set_callback(InputAction.DISCONNECT, lambda r: self.disconnect_chat())
        self.input_handler.set_callback(InputAction.PROBE, lambda r: self.run_probe(r.args))
        self.input_handler.set_callback(InputAction.CHECK_LINK, lambda r: self.check_link(r.args))
        self.input_handler.set_callback(InputAction.HELP, lambda r: self.view.add_info(r.data))
        self.input_handler.set_callback(InputAction.INVALID, lambda r: self.view.add_error(r.error))
        self.input_handler.set_callback(InputAction.QUIT, self._on_quit_requested)

    def handle_input(self, line: str) -> InputResult:
        """
        Parse and act on one line of user input.

        Returns:
            The parsed InputResult.
        """
        result = self.input_handler.handle_line(line)
        self.pending_future = None
        self.input_handler.process_input_result(result)
        return result

    # Chat
    def connect_chat(self, identity: str) -> bool:
        """
        Join the chat as ``identity``.

        Returns:
            True if the connection was established.
        """
        try:
            self.chat.connect(identity, self.view.add_chat_line, self.view.add_status)
        except ConnectionError as e:
            self.view.add_error(f"Could not connect: {e}")
            return False

        self.identity = identity
        return True

    def send_chat(self, text: str) -> bool:
        """
        Send a chat line if connected.

        Returns:
            True if the line was handed to the connection.
        """
        if not self.chat.is_connected():
            self.view.add_error("Not connected to chat. Use /connect <name> first.")
            return False

        self.chat.send_line(text)
        self.view.add_own_line(self.identity or "me", text)
        return True

    def disconnect_chat(self) -> None:
        self.chat.disconnect()

    # Probes
    def run_probe(self, command: Union[str, ProbeCommand]) -> Future:
        """
        Send a probe command on the probe worker.

        The probe client is initialized lazily on the worker, so host
        resolution never blocks the front end.

        Returns:
            Future resolving to the ProbeResult.
        """
        token = command.value if isinstance(command, ProbeCommand) else command

        self.pending_future = self.probe_executor.submit(
            self._timed_probe,
            token,
            on_success=self.view.add_probe_result,
            on_error=lambda error: self._on_probe_error(token, error)
        )
        return self.pending_future

    def _timed_probe(self, token: str) -> ProbeResult:
        if not self.probe.is_active():
            self.probe.initialize()

        started = time.monotonic()
        response = self.probe.send_command(token)
        elapsed = max(0, int((time.monotonic() - started) * 1000))
        return ProbeResult(command=token, response=response, response_time_ms=elapsed)

    def _on_probe_error(self, token: str, error: BaseException) -> None:
        if isinstance(error, (CommunicationError, InitError)):
            self.view.add_error(f"[{token}] {error}")
        else:
            self.view.add_error(f"[{token}] unexpected error: {error}")

    # Links
    def check_link(self, url: str) -> Future:
        """
        Validate ``url`` on a worker thread.

        Returns:
            Future resolving to the LinkCheckResult.
        """
        self.pending_future = self.executor.submit(
            self.links.check_link,
            url,
            on_success=self.view.add_link_result,
            on_error=lambda error: self.view.add_error(f"Link check failed: {error}")
        )
        return self.pending_future

    # Main context
    def pump(self, timeout: float = 0.0) -> int:
        """
        Run callbacks queued by background threads.

        Args:
            timeout: Seconds to wait for the first callback.

        Returns:
            Number of callbacks executed.
        """
        return self.dispatcher.process_pending(timeout=timeout)

    def wait_for(self, future: Optional[Future], timeout: float) -> bool:
        """
        Pump the dispatcher until ``future`` is done and its callback ran.

        Returns:
            True if the future finished within ``timeout``.
        """
        if future is None:
            return False

        deadline = time.monotonic() + timeout
        while not future.done():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return False
            self.pump(timeout=min(remaining, 0.05))
        # The completion callback is posted just after the future resolves
        self.pump(timeout=0.05)
        return True

    def _on_quit_requested(self, result: InputResult) -> None:
        self.is_running = False

    def get_client_info(self) -> Dict[str, Any]:
        """Snapshot of the front end's state."""
        executor_stats = self.executor.get_stats()
        return {
            "identity": self.identity,
            "chat_state": self.chat.state.value,
            "chat_endpoint": self.chat.address,
            "probe_active": self.probe.is_active(),
            "probe_endpoint": self.probe.address,
            "pending_callbacks": self.dispatcher.pending_count(),
            "background_tasks_pending": executor_stats.pending,
            "events_shown": self.view.get_stats().total_events,
        }

    def shutdown(self) -> None:
        """Tear down all clients. Safe to call more than once."""
        logger.info("Shutting down NetHub client")
        self.is_running = False
        self.chat.disconnect()
        self.executor.shutdown(wait=False)
        self.probe_executor.shutdown(wait=False)
        self.probe.close()
        # Render whatever the teardown reported
        self.pump()
        self.dispatcher.shutdown()
