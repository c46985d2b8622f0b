"""
Abstract base class for message processors.
"""

from abc import ABC, abstractmethod

from incident_processors.core.models import ProcessingResult


class BaseProcessor(ABC):
    """Abstract processor interface for inbound bus messages."""

    @abstractmethod
    def process(self, body: str, routing_key: str | None = None) -> ProcessingResult:
        """
        Process one message to completion.

        Args:
            body: Raw message body
            routing_key: Routing key the message was published with

        Returns:
            ProcessingResult describing what was done
        """
        pass
