"""
Handler for incident escalation notifications.

Parents of the organizations on the incident get joint parent/child rooms.
"""

from typing import TYPE_CHECKING

from incident_processors.core.exceptions import EmApiError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import (
    IncidentNotification,
    Organization,
    ProcessingResult,
    Topic,
)
from incident_processors.handlers.base import BaseHandler
from incident_processors.handlers.registry import register_handler

if TYPE_CHECKING:
    from incident_processors.processors.incorg import IncOrgProcessor

log = get_logger(__name__)


@register_handler
class EscalationHandler(BaseHandler):
    """Creates parent/child rooms when an incident is escalated."""

    def can_handle(self, topic: Topic) -> bool:
        return topic == Topic.INCIDENT_ESCALATED

    def handle(
        self,
        notification: IncidentNotification,
        processor: "IncOrgProcessor",
    ) -> ProcessingResult:
        if not notification.is_complete:
            return ProcessingResult(success=False, action="dropped", error="Missing ids in notification")

        workspace_id = notification.workspaceid
        incident_id = notification.incidentid
        log.debug("escalating_incident")

        try:
            incident_orgs = processor.client.get_incident_orgs(workspace_id, incident_id)
        except EmApiError as e:
            log.error("incident_orgs_lookup_failed", status=e.status_code)
            return ProcessingResult(success=False, action="dropped", error=str(e))

        if not incident_orgs:
            log.info("no_incident_orgs_to_escalate")
            return ProcessingResult(success=True, action="no_op")

        pairs = self.parent_child_pairs(workspace_id, [inc_org.org_id for inc_org in incident_orgs], processor)
        if not pairs:
            log.debug("no_parent_orgs")
            return ProcessingResult(success=True, action="no_op")

        parents: list[Organization] = []
        children: list[Organization] = []
        for child, parent in pairs:
            if parent not in parents:
                parents.append(parent)
            children.append(child)

        rooms = processor.provisioner.create_rooms(workspace_id, incident_id, parents, children)
        return ProcessingResult(
            success=True,
            action="rooms_created" if rooms else "no_rooms_created",
            details={"rooms": [room.name for room in rooms]},
        )

    @staticmethod
    def parent_child_pairs(
        workspace_id: int,
        org_ids: list[int],
        processor: "IncOrgProcessor",
    ) -> list[tuple[Organization, Organization]]:
        """(child, parent) for every org on the incident that has a resolvable parent."""
        pairs = []
        for org_id in dict.fromkeys(org_ids):
            child = processor.org_cache.resolve(workspace_id, org_id)
            if child is None or not child.has_parent:
                continue
            parent = processor.org_cache.resolve(workspace_id, child.parent_org_id)
            if parent is None:
                log.warning("parent_org_not_found", org_id=org_id, parent_org_id=child.parent_org_id)
                continue
            pairs.append((child, parent))
        return pairs
