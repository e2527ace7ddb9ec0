"""Client-identity fields for plex.tv requests.

plex.tv expects the same device description twice: as ``X-Plex-*`` request
headers on API calls, and as ``context[device][...]`` query parameters on
the authorization URL. Both variants are generated from :data:`FIELDS`, a
single table mapping each :class:`~plexpin.models.ClientMetadata`
attribute to its header and query names.
"""

from __future__ import annotations

from typing import NamedTuple, Optional

from plexpin.models import ClientMetadata


class Field(NamedTuple):
    """One metadata attribute and the names it travels under."""

    attr: str
    header: str
    query: Optional[str]


FIELDS: tuple[Field, ...] = (
    Field("product", "X-Plex-Product", "context[device][product]"),
    Field("version", "X-Plex-Version", "context[device][version]"),
    Field("platform", "X-Plex-Platform", "context[device][platform]"),
    Field("platform_version", "X-Plex-Platform-Version", "context[device][platformVersion]"),
    Field("device", "X-Plex-Device", "context[device][device]"),
    Field("device_name", "X-Plex-Device-Name", "context[device][deviceName]"),
    Field("model", "X-Plex-Model", "context[device][model]"),
    Field(
        "screen_resolution",
        "X-Plex-Device-Screen-Resolution",
        "context[device][screenResolution]",
    ),
    # Header-only fields
    Field("layout", "X-Plex-Layout", None),
    Field("language", "X-Plex-Language", None),
)

CLIENT_ID_HEADER = "X-Plex-Client-Identifier"


def build_headers(client_id: str, metadata: ClientMetadata) -> dict[str, str]:
    """Return the request headers identifying this client to plex.tv.

    Args:
        client_id: The client identity (machine identifier).
        metadata: Product and device description.

    Returns:
        An ordered mapping starting with ``X-Plex-Client-Identifier``,
        followed by one ``X-Plex-*`` header per entry in :data:`FIELDS`,
        and ``Accept: application/xml``.
    """
    headers = {CLIENT_ID_HEADER: client_id}
    for field in FIELDS:
        headers[field.header] = getattr(metadata, field.attr)
    headers["Accept"] = "application/xml"
    return headers


def build_query(
    client_id: str,
    code: str,
    metadata: ClientMetadata,
    forward_url: Optional[str] = None,
) -> dict[str, str]:
    """Return the query parameters for the plex.tv authorization page.

    Args:
        client_id: The client identity (machine identifier).
        code: The PIN code the user is approving.
        metadata: Product and device description.
        forward_url: Optional page the auth app redirects to after approval.

    Returns:
        An ordered mapping: ``clientID``, the ``context[device][...]``
        fields, ``code``, then ``forwardUrl`` when given.
    """
    query = {"clientID": client_id}
    for field in FIELDS:
        if field.query is not None:
            query[field.query] = getattr(metadata, field.attr)
    query["code"] = code
    if forward_url:
        query["forwardUrl"] = forward_url
    return query
