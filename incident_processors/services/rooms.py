"""
Collaboration room provisioning for organizations on an incident.
"""

from incident_processors.core.exceptions import EmApiError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import (
    CollabRoom,
    Organization,
    RoomConfig,
    RoomTemplate,
)
from incident_processors.services.emapi import EmApiClient

log = get_logger(__name__)


class RoomProvisioner:
    """Builds the configured rooms for a set of organizations and posts them as one batch."""

    def __init__(
        self,
        client: EmApiClient,
        room_config: RoomConfig,
        identity_userorg_id: int,
    ):
        self.client = client
        self.room_config = room_config
        self.identity_userorg_id = identity_userorg_id

    @staticmethod
    def dedup_key(template: RoomTemplate, org: Organization) -> str:
        return f"{template.room_name}-{org.label}"

    def create_rooms(
        self,
        workspace_id: int,
        incident_id: int,
        orgs: list[Organization],
        child_orgs: list[Organization] | None = None,
    ) -> list[CollabRoom]:
        """
        Create every configured room for each organization.

        With child_orgs, a joint room is built for each org and each child
        whose parent it is. A room is built at most once per (template, org)
        pair in a call; rooms that fail to build are skipped.

        Returns:
            The rooms submitted in the batch.
        """
        created: set[str] = set()
        rooms: list[CollabRoom] = []

        for org in orgs:
            log.debug("creating_rooms_for_org", org_id=org.org_id)
            for template in self.room_config.rooms:
                if child_orgs:
                    pairs = [child for child in child_orgs if child.parent_org_id == org.org_id]
                else:
                    pairs = [None]

                for child in pairs:
                    key = self.dedup_key(template, org)
                    if key in created:
                        log.debug("room_already_created", room=key)
                        continue

                    room = self.build_room(workspace_id, incident_id, org, template, child)
                    if room is None:
                        continue
                    rooms.append(room)
                    created.add(key)

        if not rooms:
            log.info("no_rooms_to_create", incident_id=incident_id)
            return rooms

        try:
            self.client.post_rooms_batch(workspace_id, incident_id, self.identity_userorg_id, rooms)
        except EmApiError as e:
            log.error(
                "room_batch_failed",
                incident_id=incident_id,
                status=e.status_code,
                response_body=e.body,
            )
            return []

        log.info("rooms_created", incident_id=incident_id, count=len(rooms))
        return rooms

    def build_room(
        self,
        workspace_id: int,
        incident_id: int,
        org: Organization,
        template: RoomTemplate,
        child: Organization | None = None,
    ) -> CollabRoom | None:
        """
        Build one room entity for an organization.

        Secure rooms get the identity user as admin and the organization's
        active members as read-write users.

        Returns:
            The room, or None when it cannot be built.
        """
        try:
            user = self.client.get_user_with_session(workspace_id, self.identity_userorg_id)
        except EmApiError as e:
            log.warning("identity_user_lookup_failed", status=e.status_code)
            return None

        if org.org_id <= 0:
            log.warning("invalid_org_id", org_id=org.org_id)
            return None
        if user.usersession_id <= 0:
            log.warning("identity_usersession_missing", userorg_id=self.identity_userorg_id)
            return None
        if not org.name:
            log.error("org_name_missing", org_id=org.org_id)
            return None
        if child is not None and not child.name:
            log.error("org_name_missing", org_id=child.org_id)
            return None

        room = CollabRoom(
            incident_id=incident_id,
            usersession_id=user.usersession_id,
            name=self.room_config.full_room_name(template.room_name, org, child),
        )

        if template.is_secure:
            # em-api only secures a room that has an admin
            room.admin_users = [user.user_id]
            try:
                members = self.client.get_enabled_user_ids(workspace_id, org.org_id)
            except EmApiError as e:
                log.warning("org_members_lookup_failed", org_id=org.org_id, status=e.status_code)
                members = []
            if members:
                room.read_write_users = members

        log.debug("room_built", name=room.name, secure=template.is_secure)
        return room
