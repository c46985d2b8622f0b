"""
Centralized configuration using Pydantic Settings.

All environment variables are loaded and validated here.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # em-api
    emapi_url: str = "http://localhost:8080/em-api/v1"
    emapi_timeout: float = 30.0

    # Identity user (service account used for every em-api call)
    identity_header: str = "x-remote-user"
    identity_user: str = ""
    identity_org_id: int = 1
    identity_workspace_id: int = 1

    # Rooms to create per organization
    rooms_config: str = (
        '{"rooms": [{"roomName": "Working Map", "isSecure": false},'
        ' {"roomName": "Command", "isSecure": true}]}'
    )

    # Routing keys (exact topic or full-match pattern)
    incident_added_topic: str = "iweb.NICS.incident.new"
    incident_added_pattern: str = r"iweb\.NICS\.ws\.\d+\.newIncident"
    incident_added_topic_super: str = "iweb.NICS.incident.super.new"
    incident_added_pattern_super: str = r"iweb\.NICS\.ws\.\d+\.super\.newIncident"
    incident_updated_topic: str = "iweb.NICS.incident.updated"
    incident_updated_pattern: str = r"iweb\.NICS\.ws\.\d+\.updateIncident"
    incident_org_added_topic: str = "iweb.NICS.incident.org.added"
    incident_org_added_pattern: str = r"iweb\.NICS\.incident\.\d+\.org\.added"
    incident_escalation_marker: str = "incidentEscalation"

    # Create rooms for every associated org, not only registered ones
    create_rooms_regardless_of_registration: bool = False

    # SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_starttls: bool = False
    smtp_ssl: bool = False
    smtp_auth: bool = False
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_timeout: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def identity_headers(self) -> dict[str, str]:
        """Header naming the service-acting user on em-api calls."""
        return {self.identity_header: self.identity_user}


# Global settings instance
settings = Settings()
