"""
Nodes module for dreamflows.

Provides long-running timing nodes:
- Transport: musical clock for repeating callbacks
- SecondTicker: wall-clock one-second ticks
"""

from .base import Node
from .timing import SecondTicker, Transport

__all__ = [
    "Node",
    "SecondTicker",
    "Transport",
]
