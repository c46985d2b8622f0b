"""
Incident-org processor.

Routes incident lifecycle notifications to the handlers that associate
organizations with incidents and provision their collaboration rooms.
"""

from pydantic import ValidationError

from incident_processors.config import Settings, settings as default_settings
from incident_processors.core.exceptions import EmApiError, StartupError
from incident_processors.core.logging import bind_context, clear_context, get_logger
from incident_processors.core.models import (
    IncidentNotification,
    ProcessingResult,
    RoomConfig,
)
from incident_processors.handlers import classify, get_handler
from incident_processors.processors.base import BaseProcessor
from incident_processors.services.emapi import EmApiClient
from incident_processors.services.org_cache import OrganizationCache
from incident_processors.services.rooms import RoomProvisioner

log = get_logger(__name__)


class IncOrgProcessor(BaseProcessor):
    """
    Incident-org processor.

    Must be started before processing: start() resolves the identity user,
    parses the room configuration and fills the organization cache.
    """

    def __init__(
        self,
        client: EmApiClient | None = None,
        org_cache: OrganizationCache | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or default_settings
        self.client = client or EmApiClient()
        self.org_cache = org_cache or OrganizationCache(self.client)
        self.provisioner: RoomProvisioner | None = None

    @property
    def started(self) -> bool:
        return self.provisioner is not None

    def start(self) -> None:
        """
        Prepare the processor.

        Raises:
            StartupError: if the identity user, room config or organizations
                cannot be loaded
        """
        workspace_id = self.settings.identity_workspace_id

        try:
            userorg = self.client.get_user_org(
                workspace_id, self.settings.identity_org_id, self.settings.identity_user
            )
        except EmApiError as e:
            raise StartupError(f"Cannot look up identity user: {e}") from e
        if userorg is None or userorg.userorg_id <= 0:
            raise StartupError(
                f"Identity user {self.settings.identity_user!r} has no userorg "
                f"in org {self.settings.identity_org_id}"
            )

        room_config = RoomConfig.parse(self.settings.rooms_config)
        log.info("room_config_loaded", rooms=[room.room_name for room in room_config.rooms])

        try:
            count = self.org_cache.refresh(workspace_id)
        except EmApiError as e:
            raise StartupError(f"Cannot fetch organizations: {e}") from e
        if count == 0:
            raise StartupError("em-api returned no organizations")

        self.provisioner = RoomProvisioner(self.client, room_config, userorg.userorg_id)
        log.info("incorg_processor_started", identity_userorg_id=userorg.userorg_id, orgs=count)

    def process(self, body: str, routing_key: str | None = None) -> ProcessingResult:
        if not self.started:
            raise RuntimeError("IncOrgProcessor.start() must be called first")

        routing_key = routing_key or ""
        topic = classify(routing_key, self.settings)
        handler = get_handler(topic)
        if handler is None:
            log.warning("unsupported_topic", routing_key=routing_key)
            return ProcessingResult(success=False, action="unsupported", details={"routing_key": routing_key})

        try:
            notification = IncidentNotification.model_validate_json(body)
        except ValidationError as e:
            log.error("invalid_notification", routing_key=routing_key, error_count=e.error_count())
            return ProcessingResult(success=False, action="dropped", error="Invalid notification")

        bind_context(routing_key=routing_key, topic=topic.value, incident_id=notification.incidentid)
        try:
            log.info("processing_notification", handler=type(handler).__name__)
            result = handler.handle(notification, self)
        except EmApiError as e:
            log.error("notification_failed", endpoint=e.endpoint, status=e.status_code)
            result = ProcessingResult(success=False, action="dropped", error=str(e))
        finally:
            clear_context()

        return result

    def close(self) -> None:
        self.client.close()

