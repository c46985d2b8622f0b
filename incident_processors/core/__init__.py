"""Core modules for the incident processors."""

from .logging import configure_logging, get_logger
from .exceptions import EmApiError, EmailFormatError, ProcessorError, StartupError
from .models import (
    CollabRoom,
    IncidentNotification,
    IncidentOrg,
    Organization,
    ProcessingResult,
    RoomConfig,
    RoomTemplate,
    Topic,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "EmApiError",
    "EmailFormatError",
    "ProcessorError",
    "StartupError",
    "CollabRoom",
    "IncidentNotification",
    "IncidentOrg",
    "Organization",
    "ProcessingResult",
    "RoomConfig",
    "RoomTemplate",
    "Topic",
]
