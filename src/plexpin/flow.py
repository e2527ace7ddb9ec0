"""End-to-end PIN flow: identity, PIN, authorization URL, token.

:func:`run_pin_flow` is the programmatic entry point. It takes fully
resolved :class:`~plexpin.models.Settings` (see
:func:`plexpin.config.resolve_settings`) and reports the authorization URL
through a callback before it starts blocking on the poller, so callers can
show or open the URL while the user approves it.

Example::

    settings = resolve_settings()
    result = run_pin_flow(settings, on_auth_url=print)
    print(result.token)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from plexpin.auth_url import build_auth_url
from plexpin.client import PlexClient
from plexpin.models import Pin, Settings
from plexpin.poller import TickCallback, TokenPoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PinFlowResult:
    """Outcome of a successful PIN flow."""

    client_id: str
    pin: Pin
    auth_url: str
    token: str


def start_pin(client: PlexClient, settings: Settings) -> tuple[str, Pin, str]:
    """Resolve the client identity, request a PIN, and build its URL.

    Uses ``settings.client_id`` when set instead of asking the local server.

    Args:
        client: An open client.
        settings: Resolved settings.

    Returns:
        ``(client_id, pin, auth_url)``.

    Raises:
        NetworkError, TransportError, ParseError: From the identity or PIN
            request. Nothing is retried.
    """
    client_id = settings.client_id or client.get_identity()
    pin = client.request_pin(client_id)
    auth_url = build_auth_url(
        client_id,
        pin.code,
        settings.metadata,
        base_url=settings.auth_app_url,
        forward_url=settings.forward_url,
    )
    return client_id, pin, auth_url


def run_pin_flow(
    settings: Settings,
    on_auth_url: Optional[Callable[[str], None]] = None,
    on_tick: Optional[TickCallback] = None,
    cancel: Optional[threading.Event] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> PinFlowResult:
    """Run the whole PIN flow and return the granted token.

    Args:
        settings: Resolved settings.
        on_auth_url: Called with the authorization URL before polling
            starts.
        on_tick: Progress callback forwarded to the poller.
        cancel: Event that aborts polling when set.
        transport: Optional :mod:`httpx` transport, mainly for tests.

    Returns:
        A :class:`PinFlowResult` with the token.

    Raises:
        PlexPinError: The first unrecoverable error; see
            :func:`start_pin` and :meth:`TokenPoller.poll`.
    """
    with PlexClient(settings, transport=transport) as client:
        client_id, pin, auth_url = start_pin(client, settings)
        logger.debug("Authorization URL for PIN %s: %s", pin.id, auth_url)
        if on_auth_url is not None:
            on_auth_url(auth_url)

        poller = TokenPoller(
            client,
            client_id,
            config=settings.poll,
            cancel=cancel,
            on_tick=on_tick,
        )
        token = poller.poll(pin)

    return PinFlowResult(client_id=client_id, pin=pin, auth_url=auth_url, token=token)
