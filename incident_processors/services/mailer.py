"""
SMTP mailer and MIME message building for outbound email.
"""

import smtplib
from email.message import Message
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from incident_processors.config import settings
from incident_processors.core.exceptions import EmailFormatError
from incident_processors.core.logging import get_logger
from incident_processors.core.models import (
    BodyFormat,
    ImageLocation,
    SimpleEmail,
    XmlEmail,
)
from incident_processors.services.recipients import validate_recipients

log = get_logger(__name__)

EMBEDDED_IMAGE_ID = "embedded_image"
EMBEDDED_IMAGE_TAG = f'<br/><br/><img src="cid:{EMBEDDED_IMAGE_ID}">'


def _header_value(name: str, value: str) -> str:
    """Header values must be a single line."""
    if "\r" in value or "\n" in value:
        raise EmailFormatError(f"{name} header contains a line break")
    return value


def _embed_in_html(html: str) -> str:
    """Insert the embedded image tag before the closing body tag."""
    index = html.rfind("</body>")
    if index == -1:
        return html + EMBEDDED_IMAGE_TAG
    return html[:index] + EMBEDDED_IMAGE_TAG + html[index:]


def _body_part(email: XmlEmail) -> MIMEText:
    is_html = email.body_format == BodyFormat.HTML
    embed = email.image is not None and email.image.location == ImageLocation.EMBED

    if embed and is_html:
        return MIMEText(_embed_in_html(email.body_text), "html", "utf-8")
    if embed:
        # plain text becomes html so the image can be referenced inline
        return MIMEText(f"<html><body>{email.body_text}{EMBEDDED_IMAGE_TAG}</body></html>", "html", "utf-8")
    return MIMEText(email.body_text, "html" if is_html else "plain", "utf-8")


def build_simple_message(email: SimpleEmail) -> MIMEText:
    """Plain-text message for a JSON email request."""
    message = MIMEText(email.body, "plain", "utf-8")
    message["From"] = _header_value("From", email.from_.strip())
    message["To"] = validate_recipients(email.to)
    message["Subject"] = _header_value("Subject", email.subject.strip())
    return message


def build_xml_message(email: XmlEmail) -> Message:
    """
    MIME message for an XML email document.

    Without an image the body is sent as a single text/plain or text/html
    part. With an image a multipart/related (embed) or multipart/mixed
    (attach) message carries the body and the JPEG.
    """
    if email.image is None:
        message: Message = _body_part(email)
    else:
        embed = email.image.location == ImageLocation.EMBED
        message = MIMEMultipart("related") if embed else MIMEMultipart()

        image_part = MIMEImage(email.image.data, "jpeg")
        if embed:
            image_part.add_header("Content-ID", f"<{EMBEDDED_IMAGE_ID}>")
        else:
            image_part.add_header("Content-Disposition", "attachment", filename="image.jpg")

        if email.body_format is not None:
            message.attach(_body_part(email))
            message.attach(image_part)

    message["From"] = _header_value("From", email.header.from_)
    message["To"] = validate_recipients(email.header.to)
    if email.header.cc:
        cc = validate_recipients(email.header.cc)
        if cc:
            message["Cc"] = cc
    message["Subject"] = _header_value("Subject", email.header.subject)
    return message


class SmtpMailer:
    """Sends messages through the configured SMTP server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        starttls: bool | None = None,
        ssl: bool | None = None,
        auth: bool | None = None,
        username: str | None = None,
        password: str | None = None,
        timeout: float | None = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.starttls = settings.smtp_starttls if starttls is None else starttls
        self.ssl = settings.smtp_ssl if ssl is None else ssl
        self.auth = settings.smtp_auth if auth is None else auth
        self.username = username or settings.smtp_username
        self.password = password or settings.smtp_password
        self.timeout = timeout or settings.smtp_timeout

    def _connect(self) -> smtplib.SMTP:
        # STARTTLS takes precedence over implicit SSL
        if self.ssl and not self.starttls:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def send(self, message: Message) -> None:
        """
        Send a message.

        Raises:
            smtplib.SMTPException: on SMTP errors
            email.errors.MessageError: when the message cannot be serialized
            OSError: when the server cannot be reached
        """
        server = self._connect()
        try:
            if self.starttls:
                server.starttls()
            if self.auth:
                server.login(self.username, self.password)
            server.send_message(message)
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                pass

        log.info("email_sent", to=message["To"], subject=message["Subject"])
