"""Unit tests for collaboration room provisioning."""

import pytest
import requests
from unittest.mock import MagicMock

from incident_processors.core.exceptions import EmApiError
from incident_processors.core.models import Organization, User
from incident_processors.services.emapi import EmApiClient
from incident_processors.services.rooms import RoomProvisioner


@pytest.fixture
def provisioner(mock_client, room_config) -> RoomProvisioner:
    return RoomProvisioner(mock_client, room_config, identity_userorg_id=10)


def posted_rooms(mock_client) -> list:
    """Rooms passed to the single batch POST."""
    assert mock_client.post_rooms_batch.call_count == 1
    return mock_client.post_rooms_batch.call_args.args[3]


class TestCreateRooms:
    """Tests for RoomProvisioner.create_rooms."""

    def test_creates_every_template_per_org(self, provisioner, mock_client, fire_dept, medical):
        rooms = provisioner.create_rooms(1, 395, [fire_dept, medical])

        assert [room.name for room in rooms] == [
            "Working Map (FD)",
            "Command (FD)",
            "Working Map (Emergency Medical)",
            "Command (Emergency Medical)",
        ]
        assert posted_rooms(mock_client) == rooms
        mock_client.post_rooms_batch.assert_called_once_with(1, 395, 10, rooms)

    def test_same_pair_created_once(self, provisioner, mock_client, fire_dept):
        """The same (template, org) pair in one batch causes one room build."""
        rooms = provisioner.create_rooms(1, 395, [fire_dept, fire_dept])

        assert len(rooms) == 2
        # one identity lookup per room built
        assert mock_client.get_user_with_session.call_count == 2
        assert mock_client.get_enabled_user_ids.call_count == 1

    def test_secure_room_members(self, provisioner, mock_client, fire_dept):
        rooms = provisioner.create_rooms(1, 395, [fire_dept])

        working_map, command = rooms
        assert working_map.admin_users is None
        assert working_map.read_write_users is None
        assert command.admin_users == [5]
        assert command.read_write_users == [21, 22]
        assert command.usersession_id == 700
        mock_client.get_enabled_user_ids.assert_called_once_with(1, fire_dept.org_id)

    def test_secure_room_without_members(self, provisioner, mock_client, fire_dept):
        mock_client.get_enabled_user_ids.side_effect = EmApiError("/users/1/enabled/1", 500)

        command = provisioner.create_rooms(1, 395, [fire_dept])[1]

        assert command.admin_users == [5]
        assert command.read_write_users is None

    def test_no_orgs_skips_batch(self, provisioner, mock_client):
        assert provisioner.create_rooms(1, 395, []) == []
        mock_client.post_rooms_batch.assert_not_called()

    def test_batch_failure_returns_empty(self, provisioner, mock_client, fire_dept):
        mock_client.post_rooms_batch.side_effect = EmApiError("/collabroom/395/batch", 500, "boom")
        assert provisioner.create_rooms(1, 395, [fire_dept]) == []

    def test_failed_room_does_not_stop_batch(self, provisioner, mock_client, fire_dept, medical):
        identity = User(user_id=5, usersession_id=700)
        mock_client.get_user_with_session.side_effect = [
            EmApiError("/users/1/userWithSession/userorg/10", 503),
            identity,
            identity,
            identity,
        ]

        rooms = provisioner.create_rooms(1, 395, [fire_dept, medical])

        assert [room.name for room in rooms] == [
            "Command (FD)",
            "Working Map (Emergency Medical)",
            "Command (Emergency Medical)",
        ]

    def test_parent_child_rooms(self, provisioner, mock_client, fire_dept, police_dept, medical):
        rooms = provisioner.create_rooms(1, 395, [fire_dept], [police_dept, medical])

        assert [room.name for room in rooms] == ["Working Map (FD, PD)", "Command (FD, PD)"]

    def test_parent_without_matching_child(self, provisioner, mock_client, medical, police_dept):
        assert provisioner.create_rooms(1, 395, [medical], [police_dept]) == []
        mock_client.post_rooms_batch.assert_not_called()


class TestBuildRoom:
    """Tests for RoomProvisioner.build_room."""

    def test_identity_session_missing(self, provisioner, mock_client, fire_dept, room_config):
        mock_client.get_user_with_session.return_value = User(user_id=5, usersession_id=-1)
        assert provisioner.build_room(1, 395, fire_dept, room_config.rooms[0]) is None

    def test_org_without_name(self, provisioner, room_config):
        org = Organization(org_id=9, name="", prefix="X")
        assert provisioner.build_room(1, 395, org, room_config.rooms[0]) is None

    def test_invalid_org_id(self, provisioner, room_config):
        org = Organization(org_id=-1, name="Broken")
        assert provisioner.build_room(1, 395, org, room_config.rooms[0]) is None

    def test_child_without_name(self, provisioner, fire_dept, room_config):
        child = Organization(org_id=8, name="", parent_org_id=1)
        assert provisioner.build_room(1, 395, fire_dept, room_config.rooms[0], child) is None

    def test_uses_current_identity_session(self, provisioner, mock_client, fire_dept, room_config):
        mock_client.get_user_with_session.side_effect = [
            User(user_id=5, usersession_id=700),
            User(user_id=5, usersession_id=701),
        ]

        first = provisioner.build_room(1, 395, fire_dept, room_config.rooms[0])
        second = provisioner.build_room(1, 395, fire_dept, room_config.rooms[0])

        assert (first.usersession_id, second.usersession_id) == (700, 701)


class TestMalformedResponses:
    """Room building against a real client whose em-api answers are malformed."""

    @pytest.fixture
    def session(self):
        session = MagicMock(spec=requests.Session)
        session.headers = {}
        return session

    @staticmethod
    def respond(json_data) -> MagicMock:
        response = MagicMock()
        response.status_code = 200
        response.content = b"{}"
        response.json.return_value = json_data
        response.text = str(json_data)
        return response

    def test_malformed_members_keeps_batch(self, session, room_config, fire_dept, medical):
        def route(method, url, **kwargs):
            if "/userWithSession/" in url:
                return self.respond({"users": [{"userId": 5, "currentusersessions": [{"usersessionid": 700}]}]})
            if "/enabled/" in url:
                return self.respond({"data": [{"id": 21}]})
            return self.respond({})

        session.request.side_effect = route
        client = EmApiClient(url="http://emapi.test/em-api/v1", identity_user="svc@example.com", session=session)
        provisioner = RoomProvisioner(client, room_config, identity_userorg_id=10)

        rooms = provisioner.create_rooms(1, 395, [fire_dept, medical])

        assert [room.name for room in rooms] == [
            "Working Map (FD)",
            "Command (FD)",
            "Working Map (Emergency Medical)",
            "Command (Emergency Medical)",
        ]
        assert all(room.read_write_users is None for room in rooms)
        assert rooms[1].admin_users == [5]
        methods = [call.args[0] for call in session.request.call_args_list]
        assert methods.count("POST") == 1
