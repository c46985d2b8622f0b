"""
Process-wide organization cache.
"""

import threading

from incident_processors.core.exceptions import EmApiError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import Organization
from incident_processors.services.emapi import EmApiClient

log = get_logger(__name__)


class OrganizationCache:
    """Organization id -> Organization mapping shared by all messages.

    Entries never expire; a miss is fetched from em-api and cached.
    """

    def __init__(self, client: EmApiClient):
        self.client = client
        self._orgs: dict[int, Organization] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._orgs)

    def __contains__(self, org_id: int) -> bool:
        with self._lock:
            return org_id in self._orgs

    def refresh(self, workspace_id: int) -> int:
        """
        Replace the cache contents with all organizations from em-api.

        Returns:
            Number of organizations cached.

        Raises:
            EmApiError: if em-api cannot be queried
        """
        orgs = self.client.get_all_orgs(workspace_id)
        fresh = {org.org_id: org for org in orgs if org.org_id > 0}
        with self._lock:
            self._orgs = fresh
        log.info("org_cache_refreshed", count=len(fresh))
        return len(fresh)

    def put(self, org: Organization) -> None:
        if org.org_id > 0:
            with self._lock:
                self._orgs[org.org_id] = org

    def get(self, org_id: int) -> Organization | None:
        with self._lock:
            return self._orgs.get(org_id)

    def resolve(self, workspace_id: int, org_id: int) -> Organization | None:
        """Look up an organization, fetching and caching it on a miss."""
        org = self.get(org_id)
        if org is not None:
            return org

        try:
            org = self.client.get_org(workspace_id, org_id)
        except EmApiError as e:
            log.warning("org_fetch_failed", org_id=org_id, status=e.status_code)
            return None

        if org is None:
            log.warning("org_not_found", org_id=org_id)
            return None
        self.put(org)
        return org
