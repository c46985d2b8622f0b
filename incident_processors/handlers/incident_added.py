"""
Handler for "incident added" notifications.

Associates the organizations registered for the incident's types with the
incident. Rooms are created later, when the org-added notifications arrive.
"""

from typing import TYPE_CHECKING

from incident_processors.core.exceptions import EmApiError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import (
    IncidentNotification,
    IncidentOrg,
    ProcessingResult,
    Topic,
)
from incident_processors.handlers.base import BaseHandler
from incident_processors.handlers.registry import register_handler

if TYPE_CHECKING:
    from incident_processors.processors.incorg import IncOrgProcessor

log = get_logger(__name__)


@register_handler
class IncidentAddedHandler(BaseHandler):
    """Adds incident-org associations for registered organizations."""

    def can_handle(self, topic: Topic) -> bool:
        return topic == Topic.INCIDENT_ADDED

    def handle(
        self,
        notification: IncidentNotification,
        processor: "IncOrgProcessor",
    ) -> ProcessingResult:
        if not notification.is_complete:
            return ProcessingResult(success=False, action="dropped", error="Missing ids in notification")

        workspace_id = notification.workspaceid
        incident_id = notification.incidentid
        client = processor.client

        try:
            orgs = client.get_registered_orgs(workspace_id, incident_id)
        except EmApiError as e:
            log.error("registered_orgs_lookup_failed", status=e.status_code)
            return ProcessingResult(success=False, action="dropped", error=str(e))

        if not orgs:
            log.info("no_registered_orgs")
            return ProcessingResult(success=True, action="no_registered_orgs")

        user = client.get_user_by_session(workspace_id, notification.usersessionid)
        if user is None:
            log.error("incident_user_not_found", usersession_id=notification.usersessionid)
            return ProcessingResult(success=False, action="dropped", error="User not found for usersession")

        incident_orgs = [
            IncidentOrg(org_id=org.org_id, incident_id=incident_id, user_id=user.user_id)
            for org in orgs
        ]
        try:
            count = client.add_incident_orgs(workspace_id, incident_id, incident_orgs)
        except EmApiError as e:
            log.error("add_incident_orgs_failed", status=e.status_code, response_body=e.body)
            return ProcessingResult(success=False, action="dropped", error=str(e))

        # count can be lower than requested when some were already associated
        log.info("incident_orgs_added", added=count, requested=len(incident_orgs))
        return ProcessingResult(
            success=True,
            action="incident_orgs_added",
            details={"added": count, "org_ids": [org.org_id for org in orgs]},
        )
