"""
Event View

Keeps a bounded history of front-end events and prints them to a rich
console. All methods are expected to run on the front end's context.
"""

from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Deque, List, Optional

from rich.console import Console
from rich.text import Text

from nethub.shared.models import EventKind, LinkCheckResult, ProbeResult


@dataclass
class ViewStats:
    """Counters for rendered events."""
    total_events: int = 0
    chat_lines: int = 0
    status_notices: int = 0
    probe_replies: int = 0
    link_results: int = 0
    errors: int = 0
    last_event_time: Optional[datetime] = None


class EventView:
    """
    Renders chat lines, status notices, probe replies and link results.
    """

    STYLES = {
        EventKind.CHAT: "cyan",
        EventKind.STATUS: "yellow italic",
        EventKind.PROBE: "magenta",
        EventKind.ERROR: "bold red",
    }

    def __init__(self, console: Optional[Console] = None, max_history: int = 500) -> None:
        """
        Initialize the view.

        Args:
            console: Console to print to; a new one is created if omitted.
            max_history: Number of events kept for ``get_history``.
        """
        self.console = console or Console()
        self._history: Deque[Text] = deque(maxlen=max_history)
        self._stats = ViewStats()

    def add_chat_line(self, line: str) -> None:
        self._add(Text(line, self.STYLES[EventKind.CHAT]), EventKind.CHAT)

    def add_own_line(self, identity: str, line: str) -> None:
        self._add(Text(f"{identity}: {line}", "bright_blue"), EventKind.CHAT)

    def add_status(self, status: str) -> None:
        self._add(Text(f"=> {status}", self.STYLES[EventKind.STATUS]), EventKind.STATUS)

    def add_probe_result(self, result: ProbeResult) -> None:
        text = Text()
        text.append(f"[{result.command}] ", style="bold magenta")
        text.append(result.response, style=self.STYLES[EventKind.PROBE])
        text.append(f" ({result.response_time_ms}ms)", style="dim")
        self._add(text, EventKind.PROBE)

    def add_link_result(self, result: LinkCheckResult) -> None:
        self._add(Text(str(result), "green" if result.valid else "red"), EventKind.LINK)

    def add_error(self, message: str) -> None:
        self._add(Text(message, self.STYLES[EventKind.ERROR]), EventKind.ERROR)

    def add_info(self, message: str) -> None:
        """Print help or other informational text without recording it."""
        self.console.print(Text(message, "dim"))

    def _add(self, text: Text, kind: EventKind) -> None:
        self._history.append(text)
        self._stats.total_events += 1
        self._stats.last_event_time = datetime.now()

        if kind is EventKind.CHAT:
            self._stats.chat_lines += 1
        elif kind is EventKind.STATUS:
            self._stats.status_notices += 1
        elif kind is EventKind.PROBE:
            self._stats.probe_replies += 1
        elif kind is EventKind.LINK:
            self._stats.link_results += 1
        elif kind is EventKind.ERROR:
            self._stats.errors += 1

        self.console.print(text)

    def get_history(self) -> List[str]:
        """Plain-text copy of the recorded events, oldest first."""
        return [text.plain for text in self._history]

    def get_stats(self) -> ViewStats:
        return self._stats
