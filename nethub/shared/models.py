"""
Data Models

Defines data classes and enumerations shared by the NetHub client components.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class ConnectionState(Enum):
    """Enumeration of stream connection states."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class ProbeCommand(str, Enum):
    """Command tokens understood by the UDP health server."""
    PING = "PING"
    STATUS = "STATUS"
    INFO = "INFO"
    
    @classmethod
    def parse(cls, token: str) -> "ProbeCommand":
        """
        Look up a command by its token, ignoring case and surrounding space.
        
        Raises:
            ValueError: If the token is not a known command.
        """
        return cls(token.strip().upper())


@dataclass(frozen=True)
class LinkCheckResult:
    """Outcome of a single link check. Never mutated after construction."""
    url: str
    valid: bool
    status_code: int
    message: str
    response_time_ms: int
    
    def __str__(self) -> str:
        mark = "✓" if self.valid else "✗"
        return (
            f"[{mark}] {self.url} - {self.message} "
            f"(Status: {self.status_code}, Time: {self.response_time_ms}ms)"
        )


@dataclass(frozen=True)
class ProbeResult:
    """A probe reply as presented to the front end."""
    command: str
    response: str
    response_time_ms: int
    received_at: datetime = field(default_factory=datetime.now)


class EventKind(Enum):
    """Kinds of events rendered by the front end."""
    CHAT = "chat"
    STATUS = "status"
    PROBE = "probe"
    LINK = "link"
    ERROR = "error"
