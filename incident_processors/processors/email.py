"""
Email dispatch processor.

Turns a notification body into an outbound email. A body that parses as a
JSON object is a simple {to, from, subject, body} request; anything else is
treated as an XML email document.
"""

import json
import smtplib
from email.errors import MessageError
from email.message import Message

from pydantic import ValidationError

from incident_processors.core.exceptions import EmailFormatError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import ProcessingResult, SimpleEmail
from incident_processors.processors.base import BaseProcessor
from incident_processors.services.mailer import (
    SmtpMailer,
    build_simple_message,
    build_xml_message,
)
from incident_processors.services.xml_email import parse_xml_email

log = get_logger(__name__)


def is_simple_email(body: str) -> bool:
    """True when the body is a JSON object."""
    try:
        return isinstance(json.loads(body), dict)
    except ValueError:
        return False


class EmailProcessor(BaseProcessor):
    """Builds and sends email for each message. Failures are logged, never retried."""

    def __init__(self, mailer: SmtpMailer | None = None):
        self.mailer = mailer or SmtpMailer()

    def process(self, body: str, routing_key: str | None = None) -> ProcessingResult:
        log.debug("processing_email_message", routing_key=routing_key)

        try:
            message = self.build_message(body)
        except EmailFormatError as e:
            log.error("email_parse_failed", error=str(e))
            return ProcessingResult(success=False, action="dropped", error=str(e))

        if not message["To"]:
            log.error("no_valid_recipients", subject=message["Subject"])
            return ProcessingResult(success=False, action="dropped", error="No valid recipients")

        try:
            self.mailer.send(message)
        except (smtplib.SMTPException, MessageError, OSError) as e:
            log.error("email_send_failed", to=message["To"], error=str(e))
            return ProcessingResult(success=False, action="dropped", error=str(e))

        return ProcessingResult(
            success=True,
            action="email_sent",
            details={"to": message["To"], "subject": message["Subject"]},
        )

    def build_message(self, body: str) -> Message:
        """
        Build the MIME message for a notification body.

        Raises:
            EmailFormatError: if the body is not a valid email request
        """
        if is_simple_email(body):
            log.debug("message_is_json")
            try:
                email = SimpleEmail.model_validate_json(body)
            except ValidationError as e:
                raise EmailFormatError(f"Invalid JSON email: {e.error_count()} field error(s)")
            return build_simple_message(email)

        log.debug("message_not_json")
        return build_xml_message(parse_xml_email(body))
