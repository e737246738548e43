"""
NetHub Client Package

Front-end composition of the service clients: callback dispatching,
background execution and the terminal UI.
"""

from .app import NetHubApp
from .dispatch import CallbackDispatcher
from .executor import BackgroundExecutor

__all__ = ["NetHubApp", "CallbackDispatcher", "BackgroundExecutor"]
