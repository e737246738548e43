"""
NetHub Client

Client-side network layer for the NetHub services: TCP chat, UDP health
probes and HTTP link validation.
"""

__version__ = "1.0.0"
