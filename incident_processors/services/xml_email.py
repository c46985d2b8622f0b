"""
Parser for structured XML email documents.

Expected shape (namespaces are ignored)::

    <email>
      <header><from/><to/><cc/><subject/></header>
      <content>
        <body format="HTML"><text>...</text></body>
        <image location="embed"><JPEGPicture>BASE64 JPEG</JPEGPicture></image>
      </content>
    </email>
"""

import base64
import binascii
import xml.etree.ElementTree as ET

from incident_processors.core.exceptions import EmailFormatError
from incident_processors.core.models import (
    BodyFormat,
    EmailHeader,
    EmailImage,
    ImageLocation,
    XmlEmail,
)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element | None, name: str) -> ET.Element | None:
    if element is None:
        return None
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _text(element: ET.Element | None, name: str) -> str | None:
    child = _child(element, name)
    if child is None or child.text is None:
        return None
    return child.text.strip()


def _parse_image(content: ET.Element | None) -> EmailImage | None:
    image = _child(content, "image")
    if image is None:
        return None

    location = (image.get("location") or _text(image, "location") or "").strip()
    if not location:
        return None
    # any location other than embed is an attachment
    placement = ImageLocation.EMBED if location == "embed" else ImageLocation.ATTACH

    picture = _child(image, "JPEGPicture")
    encoded = (picture.text if picture is not None else image.text) or ""
    try:
        data = base64.b64decode("".join(encoded.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise EmailFormatError(f"Image is not valid base64: {e}")
    if not data:
        raise EmailFormatError("Image has no data")
    return EmailImage(location=placement, data=data)


def parse_xml_email(document: str) -> XmlEmail:
    """
    Parse an XML email document.

    Raises:
        EmailFormatError: if the document is not a valid email
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as e:
        raise EmailFormatError(f"Message is neither JSON nor XML: {e}")

    header = _child(root, "header")
    if header is None:
        raise EmailFormatError("Email has no header")

    email_header = EmailHeader(
        from_=_text(header, "from") or "",
        to=_text(header, "to") or "",
        cc=_text(header, "cc"),
        subject=_text(header, "subject") or "",
    )
    if not email_header.to:
        raise EmailFormatError("Email has no recipients")

    content = _child(root, "content")
    body = _child(content, "body")
    body_format = None
    body_text = ""
    if body is not None:
        fmt = body.get("format") or _text(body, "format")
        if fmt:
            body_format = BodyFormat.HTML if fmt == "HTML" else BodyFormat.TEXT
        text = _child(body, "text")
        if text is not None:
            body_text = text.text or ""
        else:
            body_text = body.text or ""

    return XmlEmail(
        header=email_header,
        body_text=body_text,
        body_format=body_format,
        image=_parse_image(content),
    )
