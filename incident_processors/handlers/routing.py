"""
Routing key classification.
"""

import re

from incident_processors.config import Settings
from incident_processors.core.models import Topic


def _matches(routing_key: str, topic: str, pattern: str) -> bool:
    return routing_key == topic or bool(pattern and re.fullmatch(pattern, routing_key))


def classify(routing_key: str, settings: Settings) -> Topic:
    """
    Classify a routing key by the configured topics and patterns.

    A key matches a topic when it equals the exact topic string or fully
    matches its pattern. Escalation keys only need to contain the marker.
    """
    if _matches(routing_key, settings.incident_added_topic, settings.incident_added_pattern) or _matches(
        routing_key, settings.incident_added_topic_super, settings.incident_added_pattern_super
    ):
        return Topic.INCIDENT_ADDED
    if _matches(routing_key, settings.incident_updated_topic, settings.incident_updated_pattern):
        return Topic.INCIDENT_UPDATED
    if _matches(routing_key, settings.incident_org_added_topic, settings.incident_org_added_pattern):
        return Topic.INCIDENT_ORG_ADDED
    if settings.incident_escalation_marker and settings.incident_escalation_marker in routing_key:
        return Topic.INCIDENT_ESCALATED
    return Topic.UNSUPPORTED
