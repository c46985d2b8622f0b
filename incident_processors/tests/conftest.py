"""
Shared pytest fixtures for incident_processors tests.
"""

import json

import pytest
from unittest.mock import MagicMock

from incident_processors.config import Settings
from incident_processors.core.models import (
    IncidentOrg,
    Organization,
    RoomConfig,
    User,
    UserOrg,
)
from incident_processors.processors.incorg import IncOrgProcessor
from incident_processors.services.emapi import EmApiClient

ROOMS_CONFIG = json.dumps({
    "rooms": [
        {"roomName": "Working Map", "isSecure": False},
        {"roomName": "Command", "isSecure": True},
    ],
})


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(
        _env_file=None,
        emapi_url="http://emapi.test/em-api/v1",
        identity_header="x-remote-user",
        identity_user="svc@example.com",
        identity_org_id=1,
        identity_workspace_id=1,
        rooms_config=ROOMS_CONFIG,
        create_rooms_regardless_of_registration=False,
    )


@pytest.fixture
def fire_dept() -> Organization:
    return Organization(org_id=1, name="Fire Department", prefix="FD")


@pytest.fixture
def police_dept() -> Organization:
    """Child of the fire department."""
    return Organization(org_id=2, name="Police Department", prefix="PD", parent_org_id=1)


@pytest.fixture
def medical() -> Organization:
    """Organization without a prefix."""
    return Organization(org_id=3, name="Emergency Medical", prefix="")


@pytest.fixture
def room_config() -> RoomConfig:
    return RoomConfig.parse(ROOMS_CONFIG)


@pytest.fixture
def mock_client(fire_dept, police_dept, medical):
    """em-api client returning a small org tree and an identity user with a session."""
    client = MagicMock(spec=EmApiClient)
    client.get_user_org.return_value = UserOrg(userorg_id=10, org_id=1, user_id=5)
    client.get_all_orgs.return_value = [fire_dept, police_dept, medical]
    client.get_user_with_session.return_value = User(user_id=5, username="svc@example.com", usersession_id=700)
    client.get_user_by_session.return_value = User(user_id=42, username="creator@example.com")
    client.get_enabled_user_ids.return_value = [21, 22]
    client.get_registered_orgs.return_value = []
    client.get_incident_orgs.return_value = []
    client.get_org.return_value = None
    client.add_incident_orgs.return_value = 0
    client.post_rooms_batch.return_value = {}
    return client


@pytest.fixture
def processor(mock_client, test_settings) -> IncOrgProcessor:
    """Started incident-org processor backed by the mock client."""
    processor = IncOrgProcessor(client=mock_client, settings=test_settings)
    processor.start()
    return processor


@pytest.fixture
def notification_body() -> str:
    return json.dumps({
        "incidentid": 395,
        "usersessionid": 25,
        "incidentname": "Some Name",
        "workspaceid": 1,
        "incidentIncidenttypes": [{"incidenttypeid": 17, "incidentid": 395}],
    })


@pytest.fixture
def make_incident_orgs():
    """Factory for incident-org associations on incident 395."""
    def _make(*org_ids: int) -> list[IncidentOrg]:
        return [IncidentOrg(org_id=org_id, incident_id=395, user_id=4) for org_id in org_ids]
    return _make
