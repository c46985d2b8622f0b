"""
em-api client for organization, user and collaboration room operations.
"""

from contextlib import contextmanager
from typing import Any

import requests

from incident_processors.config import settings
from incident_processors.core.exceptions import EmApiError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import (
    CollabRoom,
    IncidentOrg,
    Organization,
    User,
    UserOrg,
)

log = get_logger(__name__)


class EmApiClient:
    """Client for em-api calls made on behalf of the identity user.

    One pooled requests.Session is shared by every call.
    """

    def __init__(
        self,
        url: str | None = None,
        identity_header: str | None = None,
        identity_user: str | None = None,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        self.url = (url or settings.emapi_url).rstrip("/")
        self.identity_header = identity_header or settings.identity_header
        self.identity_user = identity_user or settings.identity_user
        self.timeout = timeout or settings.emapi_timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def close(self) -> None:
        self.session.close()

    def _headers(self, user: str | None = None) -> dict[str, str]:
        return {self.identity_header: user or self.identity_user}

    def _request(
        self,
        method: str,
        endpoint: str,
        params: dict | None = None,
        json_body: Any = None,
        user: str | None = None,
    ) -> dict[str, Any]:
        """Make a request and return the decoded body; non-200 raises EmApiError."""
        try:
            response = self.session.request(
                method,
                f"{self.url}{endpoint}",
                params=params,
                json=json_body,
                headers=self._headers(user),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            log.error("emapi_request_error", method=method, endpoint=endpoint, error=str(e))
            raise EmApiError(endpoint) from e

        log.debug("emapi_response", method=method, endpoint=endpoint, status=response.status_code)
        if response.status_code != 200:
            raise EmApiError(endpoint, response.status_code, response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise EmApiError(endpoint, response.status_code, response.text) from e

    def _get(self, endpoint: str, params: dict | None = None, user: str | None = None) -> dict[str, Any]:
        return self._request("GET", endpoint, params=params, user=user)

    def _post(self, endpoint: str, data: Any, params: dict | None = None) -> dict[str, Any]:
        return self._request("POST", endpoint, params=params, json_body=data)

    @contextmanager
    def _parsing(self, endpoint: str, result: Any):
        """Raise EmApiError when a 200 response does not have the expected shape."""
        try:
            yield
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            log.error("emapi_malformed_response", endpoint=endpoint, error=repr(e))
            raise EmApiError(endpoint, 200, str(result)) from e

    # User Operations

    def get_user_org(self, workspace_id: int, org_id: int, username: str) -> UserOrg | None:
        """
        Find the userorg of a user in the given organization.

        Returns:
            The matching UserOrg decorated with the user's id, or None.
        """
        endpoint = f"/users/{workspace_id}/userOrgs"
        result = self._get(endpoint, params={"userName": username}, user=username)
        with self._parsing(endpoint, result):
            user_id = int(result.get("userId", -1))
            for userorg in result.get("userOrgs") or []:
                if int(userorg.get("orgid", -1)) == org_id:
                    return UserOrg.from_dict(userorg, user_id=user_id)
        return None

    def get_user_with_session(self, workspace_id: int, userorg_id: int) -> User:
        """
        Fetch the user of a userorg along with its current usersession id.

        The usersession id is -1 when the user has no current session.
        """
        endpoint = f"/users/{workspace_id}/userWithSession/userorg/{userorg_id}"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            users = result.get("users") or []
            if not users:
                raise EmApiError(endpoint, 200, "no user in response")

            user = users[0]
            sessions = user.get("currentusersessions") or []
            usersession_id = -1
            if sessions:
                usersession_id = int(sessions[0].get("usersessionid", -1))
            return User.from_dict({**user, "usersessionid": usersession_id})

    def get_user_by_session(self, workspace_id: int, usersession_id: int) -> User | None:
        """
        Find the user owning a usersession, current or past.

        Returns:
            The User, or None when neither lookup finds one.
        """
        endpoints = (
            f"/users/{workspace_id}/usersessionId/{usersession_id}",
            f"/users/{workspace_id}/pastUsersessionId/{usersession_id}",
        )
        for endpoint in endpoints:
            try:
                result = self._get(endpoint)
                with self._parsing(endpoint, result):
                    users = result.get("users") or []
                    if users:
                        return User.from_dict(users[0])
            except EmApiError as e:
                log.debug("user_session_lookup_failed", endpoint=endpoint, status=e.status_code)
        return None

    def get_enabled_user_ids(self, workspace_id: int, org_id: int) -> list[int]:
        """Ids of the active members of an organization."""
        endpoint = f"/users/{workspace_id}/enabled/{org_id}"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            return [int(user["userid"]) for user in result.get("data") or []]

    # Organization Operations

    def get_all_orgs(self, workspace_id: int) -> list[Organization]:
        """All organizations (em-api ignores the workspace here)."""
        endpoint = f"/orgs/{workspace_id}/all"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            return [Organization.from_dict(org) for org in result.get("organizations") or []]

    def get_org(self, workspace_id: int, org_id: int) -> Organization | None:
        """Fetch a single organization; None unless exactly one comes back."""
        endpoint = f"/orgs/{workspace_id}/org/id/{org_id}"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            orgs = result.get("organizations") or []
            if len(orgs) == 1:
                return Organization.from_dict(orgs[0])
        return None

    def get_registered_orgs(self, workspace_id: int, incident_id: int) -> list[Organization]:
        """Organizations registered for the incident types of an incident."""
        endpoint = f"/orgs/{workspace_id}/incidenttype/{incident_id}/org"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            return [Organization.from_dict(org) for org in result.get("organizations") or []]

    # Incident Org Operations

    def get_incident_orgs(self, workspace_id: int, incident_id: int) -> list[IncidentOrg]:
        endpoint = f"/incidents/{workspace_id}/orgs/{incident_id}"
        result = self._get(endpoint)
        with self._parsing(endpoint, result):
            return [IncidentOrg.from_dict(inc_org) for inc_org in result.get("incidentOrgs") or []]

    def add_incident_orgs(
        self,
        workspace_id: int,
        incident_id: int,
        incident_orgs: list[IncidentOrg],
    ) -> int:
        """
        Associate organizations with an incident.

        Returns:
            Number of associations em-api reports as added.
        """
        endpoint = f"/incidents/{workspace_id}/orgs/{incident_id}"
        result = self._post(endpoint, [inc_org.to_dict() for inc_org in incident_orgs])
        with self._parsing(endpoint, result):
            return int(result.get("count", 0))

    # Collaboration Room Operations

    def post_rooms_batch(
        self,
        workspace_id: int,
        incident_id: int,
        userorg_id: int,
        rooms: list[CollabRoom],
    ) -> dict[str, Any]:
        """Create a batch of collaboration rooms on an incident."""
        return self._post(
            f"/collabroom/{incident_id}/batch",
            [room.to_dict() for room in rooms],
            params={"userOrgId": userorg_id, "workspaceId": workspace_id},
        )
