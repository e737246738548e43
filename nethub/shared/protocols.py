"""
Type Protocols and Interfaces

Defines protocol interfaces for structural typing across the client layer.
"""

from abc import abstractmethod
from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class CallbackDispatcher(Protocol):
    """Anything that can queue a callback onto the front end's context."""
    
    @abstractmethod
    def post(self, callback: Callable[..., Any], *args: Any) -> None:
        """
        Queue ``callback(*args)`` for execution on the owning context.
        
        Must be safe to call from any thread and must never run the
        callback in place.
        """
        ...


@runtime_checkable
class ServiceClient(Protocol):
    """Protocol for clients that own a transport endpoint."""
    
    @abstractmethod
    def close(self) -> None:
        """Release the transport endpoint."""
        ...
