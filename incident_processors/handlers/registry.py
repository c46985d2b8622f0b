"""
Handler registry for routing incident notifications to handlers.
"""

from typing import Type

from incident_processors.core.logging import get_logger
from incident_processors.core.models import Topic
from incident_processors.handlers.base import BaseHandler

log = get_logger(__name__)

# Global handler registry
_handlers: list[BaseHandler] = []


def register_handler(handler_class: Type[BaseHandler]) -> Type[BaseHandler]:
    """
    Decorator to register a handler class.

    Usage:
        @register_handler
        class IncidentAddedHandler(BaseHandler):
            ...
    """
    _handlers.append(handler_class())
    log.debug("handler_registered", handler=handler_class.__name__)
    return handler_class


def get_handler(topic: Topic) -> BaseHandler | None:
    """
    Get the appropriate handler for a topic.

    Args:
        topic: Classified routing key

    Returns:
        Handler that can process this topic, or None
    """
    for handler in _handlers:
        if handler.can_handle(topic):
            return handler
    return None


def get_all_handlers() -> list[BaseHandler]:
    """Get all registered handlers."""
    return _handlers.copy()


def clear_handlers() -> None:
    """Clear all registered handlers (for testing)."""
    _handlers.clear()
