"""Incident notification handlers."""

from .base import BaseHandler
from .registry import register_handler, get_handler
from .routing import classify

# Import handlers to trigger registration via @register_handler decorator
from .incident_added import IncidentAddedHandler
from .incident_orgs import IncidentOrgsHandler
from .escalation import EscalationHandler

__all__ = [
    "BaseHandler",
    "register_handler",
    "get_handler",
    "classify",
    "IncidentAddedHandler",
    "IncidentOrgsHandler",
    "EscalationHandler",
]
