"""XML response parsing for the identity and PIN endpoints.

Plex answers in XML with everything of interest carried as attributes of
the root element::

    <MediaContainer size="0" machineIdentifier="abc123" version="1.40.0"/>

    <pin id="1234" code="XYZ9" expiresIn="1800" authToken="" .../>

Error bodies use an ``<errors>`` root::

    <errors>
      <error code="1020" message="Code not found or expired" status="404"/>
    </errors>

Every function here takes the already-decoded body text and raises
:class:`~plexpin.exceptions.ParseError` when the document is malformed or
lacks a required attribute.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional

from plexpin.exceptions import ParseError
from plexpin.models import Pin


def _parse_root(text: str, what: str) -> ET.Element:
    """Parse *text* and return its root element."""
    if not text.strip():
        raise ParseError(f"Empty {what} response")
    try:
        return ET.fromstring(text)
    except ET.ParseError as exc:
        raise ParseError(f"Malformed {what} response: {exc}") from exc


def parse_identity(text: str) -> str:
    """Extract the ``machineIdentifier`` from an ``/identity`` response.

    Args:
        text: The response body.

    Returns:
        The machine identifier, used as the client identity.

    Raises:
        ParseError: If the body is not XML or the attribute is missing or empty.
    """
    root = _parse_root(text, "identity")
    identifier = root.get("machineIdentifier", "")
    if not identifier:
        raise ParseError("Identity response missing 'machineIdentifier'")
    return identifier


def parse_pin(text: str) -> Pin:
    """Build a :class:`~plexpin.models.Pin` from a ``/api/v2/pins`` response.

    Args:
        text: The response body.

    Returns:
        The parsed PIN. ``auth_token`` is empty while the PIN is pending.

    Raises:
        ParseError: If the body is not XML, the root is not a ``<pin>``
            element, or ``id``/``code`` are missing.
    """
    root = _parse_root(text, "PIN")
    if root.tag != "pin":
        raise ParseError(f"Expected a <pin> element, got <{root.tag}>")

    pin_id = root.get("id", "")
    code = root.get("code", "")
    if not pin_id:
        raise ParseError("PIN response missing 'id'")
    if not code:
        raise ParseError("PIN response missing 'code'")

    expires_in: Optional[int] = None
    raw_expires = root.get("expiresIn")
    if raw_expires:
        try:
            expires_in = int(raw_expires)
        except ValueError as exc:
            raise ParseError(f"PIN response has invalid 'expiresIn': {raw_expires!r}") from exc

    return Pin(
        id=pin_id,
        code=code,
        auth_token=root.get("authToken") or "",
        expires_in=expires_in,
        client_identifier=root.get("clientIdentifier") or None,
    )


def parse_error_message(text: str) -> str:
    """Return the first ``<error message=...>`` from an error body, or ``""``.

    Never raises: error bodies are best-effort detail for another exception.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError:
        return ""
    error = root if root.tag == "error" else root.find("error")
    if error is None:
        return ""
    return error.get("message", "")
