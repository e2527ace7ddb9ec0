"""HTTP client module for plexpin.

Provides :class:`PlexClient`, a blocking client backed by
:class:`httpx.Client` that talks to the local media server's identity
endpoint and to the plex.tv PIN endpoints, mapping transport failures and
error statuses onto :mod:`plexpin.exceptions`.

Example::

    from plexpin.client import PlexClient

    with PlexClient(settings) as client:
        client_id = client.get_identity()
        pin = client.request_pin(client_id)
"""

from plexpin.client.sync_client import PlexClient

__all__ = ["PlexClient"]
