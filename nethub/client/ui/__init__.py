"""
Client UI Components

Terminal input parsing and event rendering for the NetHub client.
"""

from .event_view import EventView
from .input_handler import InputHandler

__all__ = ["EventView", "InputHandler"]
