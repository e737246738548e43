"""
Input Handler

Turns lines typed at the prompt into front-end actions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from nethub.shared.constants import (
    QUIT_COMMAND,
    HELP_COMMAND,
    CONNECT_COMMAND,
    DISCONNECT_COMMAND,
    PROBE_COMMAND,
    CHECK_COMMAND,
)
from nethub.shared.models import ProbeCommand


class InputAction(Enum):
    """Enumeration of input actions."""
    NO_ACTION = "no_action"
    SEND_MESSAGE = "send_message"
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    PROBE = "probe"
    CHECK_LINK = "check_link"
    HELP = "help"
    QUIT = "quit"
    INVALID = "invalid"


@dataclass
class InputResult:
    """Result of input processing."""
    action: InputAction
    data: Optional[str] = None
    command: Optional[str] = None
    args: Optional[str] = None
    error: Optional[str] = None


HELP_TEXT = (
    f"{CONNECT_COMMAND} <name>   join the chat as <name>\n"
    f"{DISCONNECT_COMMAND}       leave the chat\n"
    f"/ping, /status, /info    probe the health server\n"
    f"{PROBE_COMMAND} <command>  send any probe command\n"
    f"{CHECK_COMMAND} <url>      validate a link with an HTTP HEAD request\n"
    f"{HELP_COMMAND}             show this help\n"
    f"{QUIT_COMMAND}             exit\n"
    "anything else is sent to the chat"
)

# Shortcuts that expand to a probe command
_PROBE_SHORTCUTS = {f"/{command.value.lower()}": command.value for command in ProbeCommand}


class InputHandler:
    """
    Parses prompt input and dispatches it to registered callbacks.
    """

    def __init__(self) -> None:
        self._input_callbacks: Dict[InputAction, Callable[[InputResult], None]] = {}

    def set_callback(self, action: InputAction, callback: Callable[[InputResult], None]) -> None:
        """
        Set a callback for a specific input action.

        Args:
            action: The input action to handle.
            callback: The callback function.
        """
        self._input_callbacks[action] = callback

    def remove_callback(self, action: InputAction) -> None:
        """Remove the callback for an input action, if any."""
        self._input_callbacks.pop(action, None)

    def parse_command(self, message: str) -> Tuple[Optional[str], Optional[str]]:
        """
        Parse a command from a message string.

        Returns:
            Tuple of (command, args) or (None, None) if not a command.
        """
        if not message.startswith('/'):
            return None, None

        parts = message.split(' ', 1)
        command = parts[0].lower()
        args = parts[1].strip() if len(parts) > 1 and parts[1].strip() else None

        return command, args

    def handle_line(self, line: str) -> InputResult:
        """
        Classify one line of input.

        Args:
            line: Raw text from the prompt.

        Returns:
            The parsed InputResult.
        """
        text = line.strip()
        if not text:
            return InputResult(action=InputAction.NO_ACTION)

        command, args = self.parse_command(text)
        if command is None:
            return InputResult(action=InputAction.SEND_MESSAGE, data=text)

        if command == QUIT_COMMAND:
            return InputResult(action=InputAction.QUIT, command=command)

        if command == HELP_COMMAND:
            return InputResult(action=InputAction.HELP, command=command, data=HELP_TEXT)

        if command == DISCONNECT_COMMAND:
            return InputResult(action=InputAction.DISCONNECT, command=command)

        if command == CONNECT_COMMAND:
            is_valid, error = self.validate_identity(args or "")
            if not is_valid:
                return InputResult(action=InputAction.INVALID, command=command, args=args, error=error)
            return InputResult(action=InputAction.CONNECT, command=command, args=args.strip())

        if command in _PROBE_SHORTCUTS:
            return InputResult(action=InputAction.PROBE, command=command, args=_PROBE_SHORTCUTS[command])

        if command == PROBE_COMMAND:
            if not args:
                return InputResult(action=InputAction.INVALID, command=command,
                                   error="Usage: /probe <command>")
            return InputResult(action=InputAction.PROBE, command=command, args=args.upper())

        if command == CHECK_COMMAND:
            if not args:
                return InputResult(action=InputAction.INVALID, command=command,
                                   error="Usage: /check <url>")
            return InputResult(action=InputAction.CHECK_LINK, command=command, args=args)

        return InputResult(action=InputAction.INVALID, command=command, args=args,
                           error=f"Unknown command: {command} (type {HELP_COMMAND})")

    def process_input_result(self, result: InputResult) -> None:
        """
        Process an input result by calling the matching callback.

        Args:
            result: The input result to process.
        """
        callback = self._input_callbacks.get(result.action)
        if callback is not None:
            callback(result)

    def validate_identity(self, identity: str) -> Tuple[bool, Optional[str]]:
        """
        Validate a chat identity (username).

        Returns:
            Tuple of (is_valid, error_message).
        """
        if not identity or not identity.strip():
            return False, "Name cannot be empty"

        identity = identity.strip()

        if len(identity) > 50:
            return False, "Name too long (max 50 characters)"

        # The identity is sent as a single line
        for char in ('\n', '\r', '\t'):
            if char in identity:
                return False, f"Name contains invalid character: {char!r}"

        return True, None
