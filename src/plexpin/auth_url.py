"""Authorization URL for the plex.tv web auth app."""

from __future__ import annotations

from typing import Optional
from urllib.parse import urlencode

from plexpin.headers import build_query
from plexpin.models import ClientMetadata

DEFAULT_AUTH_APP_URL = "https://app.plex.tv/auth/"


def build_auth_url(
    client_id: str,
    code: str,
    metadata: ClientMetadata,
    base_url: str = DEFAULT_AUTH_APP_URL,
    forward_url: Optional[str] = None,
) -> str:
    """Build the URL the user opens to approve a PIN.

    The auth app is a single-page application routed on the fragment, so
    the query string follows ``#!?`` rather than a plain ``?``. Bracketed
    keys such as ``context[device][product]`` are form-encoded and decoded
    back by the app's router.

    The result depends only on the arguments: identical inputs always give
    an identical URL.

    Args:
        client_id: The client identity (machine identifier).
        code: The PIN code to approve.
        metadata: Product and device description shown on the approval page.
        base_url: Location of the auth app.
        forward_url: Optional page to redirect to after approval.

    Returns:
        The authorization URL.
    """
    query = build_query(client_id, code, metadata, forward_url=forward_url)
    return f"{base_url}#!?{urlencode(query)}"
