"""
Data models for the incident processors.

Uses dataclasses for em-api entities and pydantic models for inbound messages.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from incident_processors.core.exceptions import StartupError

DEFAULT_ROOM_NAME_TEMPLATE = "%s (%s)"


class Topic(str, Enum):
    """Incident lifecycle event a routing key maps to."""

    INCIDENT_ADDED = "incident_added"
    INCIDENT_UPDATED = "incident_updated"
    INCIDENT_ORG_ADDED = "incident_org_added"
    INCIDENT_ESCALATED = "incident_escalated"
    UNSUPPORTED = "unsupported"


class BodyFormat(str, Enum):
    """Body format of an XML email."""

    HTML = "HTML"
    TEXT = "TEXT"


class ImageLocation(str, Enum):
    """Where an XML email image goes."""

    EMBED = "embed"
    ATTACH = "attach"


# em-api entities


@dataclass
class Organization:
    """Organization as returned by em-api."""

    org_id: int
    name: str = ""
    prefix: str = ""
    parent_org_id: int | None = None

    @property
    def label(self) -> str:
        """Prefix when set, else the full name."""
        return self.prefix or self.name

    @property
    def has_parent(self) -> bool:
        return self.parent_org_id is not None and self.parent_org_id > 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Organization":
        return cls(
            org_id=int(data.get("orgId", -1)),
            name=data.get("name") or "",
            prefix=data.get("prefix") or "",
            parent_org_id=data.get("parentorgid"),
        )


@dataclass
class IncidentOrg:
    """Association of an organization with an incident."""

    org_id: int
    incident_id: int
    user_id: int | None = None
    created: int = field(default_factory=lambda: int(time.time()))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IncidentOrg":
        created = data.get("created")
        return cls(
            org_id=int(data["orgid"]),
            incident_id=int(data.get("incidentid", -1)),
            user_id=data.get("userid"),
            created=int(created) if created is not None else int(time.time()),
        )

    def to_dict(self) -> dict[str, Any]:
        """Payload for POST /incidents/{ws}/orgs/{incidentId}; created in epoch seconds."""
        return {
            "orgid": self.org_id,
            "incidentid": self.incident_id,
            "userid": self.user_id,
            "created": self.created,
        }


@dataclass
class User:
    """em-api user, optionally carrying the id of its current session."""

    user_id: int
    username: str = ""
    usersession_id: int = -1

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            user_id=int(data["userId"]),
            username=data.get("username") or "",
            usersession_id=int(data.get("usersessionid", -1)),
        )


@dataclass
class UserOrg:
    """Membership of a user in an organization."""

    userorg_id: int
    org_id: int
    user_id: int = -1

    @classmethod
    def from_dict(cls, data: dict[str, Any], user_id: int = -1) -> "UserOrg":
        return cls(
            userorg_id=int(data.get("userorgid", -1)),
            org_id=int(data["orgid"]),
            user_id=user_id,
        )


@dataclass
class RoomTemplate:
    """One configured room created for every associated organization."""

    room_name: str
    is_secure: bool = False


@dataclass
class RoomConfig:
    """Room templates plus the printf-style full room name template."""

    rooms: list[RoomTemplate] = field(default_factory=list)
    template: str = DEFAULT_ROOM_NAME_TEMPLATE

    @classmethod
    def parse(cls, raw: str) -> "RoomConfig":
        """
        Parse the rooms configuration document.

        Raises:
            StartupError: if the document is not valid
        """
        try:
            data = json.loads(raw)
            rooms = [
                RoomTemplate(
                    room_name=str(room["roomName"]),
                    is_secure=bool(room.get("isSecure", room.get("isSecured", False))),
                )
                for room in data["rooms"]
            ]
            template = data.get("template") or DEFAULT_ROOM_NAME_TEMPLATE
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise StartupError(f"Invalid rooms configuration: {e}") from e

        if template.count("%s") != 2:
            raise StartupError(f"Room name template needs two %s placeholders: {template!r}")
        return cls(rooms=rooms, template=template)

    def full_room_name(
        self,
        room_name: str,
        org: Organization,
        child: Organization | None = None,
    ) -> str:
        """
        Build the name of the room created for an org.

        "Working Map (FD)" for a plain room, "Working Map (FD, PD)" when
        created for a parent org FD and its child PD.
        """
        label = org.label
        if child is not None:
            label = f"{label}, {child.label}"
        return self.template % (room_name, label)


@dataclass
class CollabRoom:
    """Collaboration room to be submitted in a batch."""

    incident_id: int
    usersession_id: int
    name: str
    admin_users: list[int] | None = None
    read_write_users: list[int] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "incidentid": self.incident_id,
            "usersessionid": self.usersession_id,
            "name": self.name,
        }
        if self.admin_users is not None:
            data["adminUsers"] = self.admin_users
        if self.read_write_users:
            data["readWriteUsers"] = self.read_write_users
        return data


# Inbound messages


class IncidentNotification(BaseModel):
    """Incident lifecycle notification published by em-api."""

    model_config = ConfigDict(extra="ignore")

    incidentid: int | None = None
    workspaceid: int | None = None
    usersessionid: int | None = None
    incidentname: str | None = None

    @property
    def is_complete(self) -> bool:
        return None not in (self.incidentid, self.workspaceid, self.usersessionid)


class SimpleEmail(BaseModel):
    """Plain-text email request: {to, from, subject, body}."""

    model_config = ConfigDict(populate_by_name=True)

    to: str
    from_: str = Field(alias="from")
    subject: str
    body: str


@dataclass
class EmailHeader:
    from_: str = ""
    to: str = ""
    cc: str | None = None
    subject: str = ""


@dataclass
class EmailImage:
    location: ImageLocation
    data: bytes


@dataclass
class XmlEmail:
    """Structured email document."""

    header: EmailHeader
    body_text: str = ""
    body_format: BodyFormat | None = None
    image: EmailImage | None = None


@dataclass
class ProcessingResult:
    """Result from processing one message."""

    success: bool
    action: str  # e.g., "email_sent", "rooms_created", "dropped"
    error: str | None = None
    details: dict[str, Any] = field(default_factory=dict)
