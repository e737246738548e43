"""
Custom Exceptions

Defines custom exception classes for the NetHub client.
"""

from typing import Optional


class NetHubError(Exception):
    """Base exception class for all NetHub client errors."""
    pass


class NetworkError(NetHubError):
    """Raised when network-related errors occur."""
    
    def __init__(self, message: str, operation: Optional[str] = None, address: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.address = address


class ConnectionError(NetworkError):
    """Raised when a stream connection cannot be established."""
    
    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="connect", address=address)


class InitError(NetworkError):
    """Raised when the probe socket cannot be set up."""
    
    def __init__(self, message: str, address: Optional[str] = None):
        super().__init__(message, operation="initialize", address=address)


class CommunicationError(NetworkError):
    """Raised when a probe request/response cycle fails."""
    
    def __init__(self, message: str, command: Optional[str] = None, address: Optional[str] = None):
        super().__init__(message, operation="send_command", address=address)
        self.command = command


class CommunicationTimeoutError(CommunicationError):
    """Raised when no probe reply arrives within the bounded wait."""
    pass


class ConfigurationError(NetHubError):
    """Raised when configuration-related errors occur."""
    
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details


class ExecutorError(NetHubError):
    """Raised when background executor operations fail."""
    pass
