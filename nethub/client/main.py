"""
NetHub Client Main Entry Point

Interactive terminal front end for the chat, probe and link services.
"""

import argparse
import logging
import sys
import threading
from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt

from nethub.client.app import NetHubApp
from nethub.client.ui.input_handler import HELP_TEXT
from nethub.shared.config import ClientConfig, ConfigurationLoader
from nethub.shared.constants import DEFAULT_PUMP_INTERVAL
from nethub.shared.exceptions import ConfigurationError
from nethub.shared.logging_config import configure_from_env


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="NetHub terminal client")
    parser.add_argument("--config", help="Path to a JSON or YAML configuration file")
    parser.add_argument("--chat-host", help="Chat server host")
    parser.add_argument("--chat-port", type=int, help="Chat server port")
    parser.add_argument("--probe-host", help="Health server host")
    parser.add_argument("--probe-port", type=int, help="Health server port")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> ClientConfig:
    """
    Load configuration from file and environment, then apply command line
    overrides.
    """
    config = ConfigurationLoader.load_client_config(args.config)

    if args.chat_host:
        config.chat.host = args.chat_host
    if args.chat_port is not None:
        config.chat.port = args.chat_port
    if args.probe_host:
        config.probe.host = args.probe_host
    if args.probe_port is not None:
        config.probe.port = args.probe_port
    if args.log_level:
        config.log_level = args.log_level

    config.validate()
    return config


class PromptReader:
    """
    Reads prompt lines on a daemon thread.

    Each line is handed to the application through its dispatcher, so input
    is handled on the same thread that renders events. The reader waits for
    a line to be handled before prompting again.
    """

    def __init__(self, app: NetHubApp, console: Console) -> None:
        self._app = app
        self._console = console
        self._handled = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.interrupted = False
        self.error: Optional[BaseException] = None

    def start(self) -> None:
        self._thread = threading.Thread(target=self._read_loop, name="PromptReader", daemon=True)
        self._thread.start()

    def _read_loop(self) -> None:
        try:
            while self._app.is_running:
                label = self._app.identity if self._app.chat.is_connected() else "nethub"
                line = Prompt.ask(f"[cyan]{label}[/cyan]", console=self._console, default="", show_default=False)

                self._handled.clear()
                self._app.dispatcher.post(self._handle_line, line)
                while not self._handled.wait(DEFAULT_PUMP_INTERVAL):
                    if not self._app.is_running:
                        return
        except (KeyboardInterrupt, EOFError):
            self.interrupted = True
            self._app.dispatcher.post(self._stop)
        except Exception as e:
            self.error = e
            self._app.dispatcher.post(self._stop)

    def _handle_line(self, line: str) -> None:
        try:
            self._app.handle_input(line)
        finally:
            self._handled.set()

    def _stop(self) -> None:
        self._app.is_running = False


def run(app: NetHubApp, console: Console) -> None:
    """
    Render events continuously while a background reader collects input.

    Raises:
        KeyboardInterrupt: If input was interrupted or closed.
    """
    reader = PromptReader(app, console)
    reader.start()

    while app.is_running:
        app.pump(timeout=DEFAULT_PUMP_INTERVAL)

    if reader.error is not None:
        raise reader.error
    if reader.interrupted:
        raise KeyboardInterrupt


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the NetHub client."""
    console = Console()
    args = parse_args(argv)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error: {e}[/bold red]")
        return 2

    configure_from_env(default_level=config.log_level)
    logger = logging.getLogger(__name__)

    console.print(Panel("[bold cyan]Welcome to the NetHub Client![/bold cyan]", border_style="cyan"))
    console.print(f"[dim]{HELP_TEXT}[/dim]")

    app = NetHubApp(config, console=console)
    logger.info(
        f"NetHub client started (chat {config.chat.host}:{config.chat.port}, "
        f"probe {config.probe.host}:{config.probe.port})"
    )

    try:
        run(app, console)
    except (KeyboardInterrupt, EOFError):
        console.print("\n[bold blue]Interrupted.[/bold blue]")
    except Exception:
        logger.exception("Unexpected client error")
        return 1
    finally:
        app.shutdown()
        console.print("[bold blue]Goodbye![/bold blue]")

    return 0


if __name__ == "__main__":
    sys.exit(main())
