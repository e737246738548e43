"""
Service Clients

One client per backend transport: TCP chat stream, UDP health probe and
HTTP link validation.
"""

from .stream_chat import StreamChatClient
from .datagram_probe import DatagramProbeClient
from .link_validation import LinkValidationClient

__all__ = ["StreamChatClient", "DatagramProbeClient", "LinkValidationClient"]
