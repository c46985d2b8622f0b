"""
Handler for "incident updated" and "incident org added" notifications.
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
class IncidentOrgsHandler(BaseHandler):
    """Creates the configured rooms for every organization on the incident."""

    HANDLED_TOPICS = {Topic.INCIDENT_UPDATED, Topic.INCIDENT_ORG_ADDED}

    def can_handle(self, topic: Topic) -> bool:
        return topic in self.HANDLED_TOPICS

    def handle(
        self,
        notification: IncidentNotification,
        processor: "IncOrgProcessor",
    ) -> ProcessingResult:
        if not notification.is_complete:
            log.debug("invalid_ids_in_notification")
            return ProcessingResult(success=False, action="dropped", error="Missing ids in notification")

        workspace_id = notification.workspaceid
        incident_id = notification.incidentid

        orgs = self._collect_orgs(workspace_id, incident_id, processor)
        rooms = processor.provisioner.create_rooms(workspace_id, incident_id, orgs)
        return ProcessingResult(
            success=True,
            action="rooms_created" if rooms else "no_rooms_created",
            details={"rooms": [room.name for room in rooms]},
        )

    def _collect_orgs(
        self,
        workspace_id: int,
        incident_id: int,
        processor: "IncOrgProcessor",
    ) -> list[Organization]:
        """
        Registered orgs, plus every associated org when so configured.

        A failed lookup contributes no orgs; the other lookup still runs.
        """
        try:
            orgs = list(processor.client.get_registered_orgs(workspace_id, incident_id))
        except EmApiError as e:
            log.error("registered_orgs_lookup_failed", endpoint=e.endpoint, status=e.status_code)
            orgs = []

        if not processor.settings.create_rooms_regardless_of_registration:
            return orgs

        try:
            incident_orgs = processor.client.get_incident_orgs(workspace_id, incident_id)
        except EmApiError as e:
            log.error("incident_orgs_lookup_failed", endpoint=e.endpoint, status=e.status_code)
            return orgs

        seen = {org.org_id for org in orgs}
        for inc_org in incident_orgs:
            if inc_org.org_id in seen:
                continue
            org = processor.org_cache.resolve(workspace_id, inc_org.org_id)
            if org is not None:
                orgs.append(org)
                seen.add(org.org_id)
        return orgs
