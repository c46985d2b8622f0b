"""
Abstract base class for incident notification handlers.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from incident_processors.core.models import IncidentNotification, ProcessingResult, Topic

if TYPE_CHECKING:
    from incident_processors.processors.incorg import IncOrgProcessor


class BaseHandler(ABC):
    """Abstract handler interface for routed incident notifications."""

    @abstractmethod
    def can_handle(self, topic: Topic) -> bool:
        """
        Check if this handler can process the given topic.

        Args:
            topic: Topic the routing key was classified as

        Returns:
            True if this handler can process this topic
        """
        pass

    @abstractmethod
    def handle(
        self,
        notification: IncidentNotification,
        processor: "IncOrgProcessor",
    ) -> ProcessingResult:
        """
        Process the notification.

        Args:
            notification: Parsed incident notification
            processor: Started processor owning the em-api client, org cache and room provisioner

        Returns:
            ProcessingResult with success status and details
        """
        pass
