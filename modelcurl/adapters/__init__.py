"""
Transports for chat-completion endpoints.

Protocol defines WHAT, implementations define HOW.
"""

from .base import Transport
from .http import HttpTransport

__all__ = ["Transport", "HttpTransport"]
