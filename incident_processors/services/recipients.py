"""
Recipient list validation.
"""

import json
import re

from incident_processors.core.logging import get_logger

log = get_logger(__name__)

EMAIL_PATTERN = re.compile(
    r"^[_A-Za-z0-9-]+(\.[_A-Za-z0-9-]+)*@[A-Za-z0-9-]+(\.[A-Za-z0-9]+)*(\.[A-Za-z]{2,})$"
)


def _split_recipients(recipients: str) -> list[str]:
    """Candidates from a JSON array string or a comma-separated list."""
    if recipients.startswith("["):
        try:
            values = json.loads(recipients)
        except ValueError:
            log.debug("invalid_recipient_array", recipients=recipients)
            return []
        if not isinstance(values, list):
            return []
        return [str(value) for value in values]
    return recipients.split(",")


def validate_recipients(recipients: str | None) -> str:
    """
    Drop every address that is not shaped like an email address.

    Accepts a single address, a comma-separated list or a JSON array.

    Returns:
        The valid addresses joined with ",".
    """
    if not recipients:
        return ""

    valid = []
    for candidate in _split_recipients(recipients.strip()):
        address = candidate.strip()
        if EMAIL_PATTERN.match(address):
            valid.append(address)
        else:
            log.debug("invalid_address_removed", address=candidate)
    return ",".join(valid)
