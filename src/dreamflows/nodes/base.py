"""
Base node class for dreamflows.
"""

from abc import ABC, abstractmethod


class Node(ABC):
    """
    Base class for long-running components.

    Nodes are async components that:
    - Run as a task on the application's event loop
    - Keep running until stopped or cancelled
    """

    @abstractmethod
    async def start(self) -> None:
        """Start the node. Should run until cancelled."""
        pass

    def stop(self) -> None:
        """Stop the node. Override for cleanup."""
        pass
