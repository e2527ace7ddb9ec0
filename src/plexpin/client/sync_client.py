"""Synchronous client for the identity and PIN endpoints.

This module provides :class:`PlexClient`, which wraps :class:`httpx.Client`
and layers on:

- **Client identification** -- the ``X-Plex-*`` headers from
  :func:`~plexpin.headers.build_headers` on every plex.tv request.
- **Error mapping** -- ``httpx`` transport failures become
  :class:`~plexpin.exceptions.NetworkError`, non-2xx statuses and
  undecodable bodies become :class:`~plexpin.exceptions.TransportError`,
  and unexpected XML becomes :class:`~plexpin.exceptions.ParseError`.

No request is retried here. The only retry in the flow is the token
poller's bounded loop, which reuses one open ``PlexClient`` for every tick.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from plexpin.exceptions import NetworkError, TransportError
from plexpin.headers import build_headers
from plexpin.models import Pin, Settings
from plexpin.parser import parse_error_message, parse_identity, parse_pin

logger = logging.getLogger(__name__)


class PlexClient:
    """Blocking HTTP client for the PIN flow.

    Must be used as a context manager so that the underlying connection
    pool is opened once and closed when the flow ends.

    Args:
        settings: Endpoint URLs, request timeout, SSL verification, and
            the client metadata sent with every plex.tv request.
        transport: Optional :mod:`httpx` transport, mainly for tests
            (:class:`httpx.MockTransport`).

    Example::

        with PlexClient(settings) as client:
            pin = client.request_pin("abc123")
            pin = client.check_pin(pin.id, "abc123")
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> PlexClient:
        kwargs: dict[str, Any] = {
            "timeout": self._settings.request_timeout,
            "verify": self._settings.verify_ssl,
            "follow_redirects": True,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.Client(**kwargs)
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def get_identity(self) -> str:
        """Fetch the local media server's machine identifier.

        Returns:
            The ``machineIdentifier`` to use as the client identity.

        Raises:
            NetworkError: If the server cannot be reached.
            TransportError: On a non-2xx status or undecodable body.
            ParseError: If the body is not the expected XML.
        """
        url = self._settings.identity_url
        response = self._send("GET", url, headers={"Accept": "application/xml"})
        identifier = parse_identity(self._decode(response))
        logger.debug("Resolved client identity %s from %s", identifier, url)
        return identifier

    def request_pin(self, client_id: str) -> Pin:
        """Request a new strong PIN from plex.tv.

        The PIN is live server-side from this point and expires after
        ``Pin.expires_in`` seconds.

        Args:
            client_id: The client identity sent as ``X-Plex-Client-Identifier``.

        Returns:
            The new, still pending, :class:`~plexpin.models.Pin`.

        Raises:
            NetworkError: If plex.tv cannot be reached.
            TransportError: On a non-2xx status or undecodable body.
            ParseError: If the body is not a ``<pin>`` document.
        """
        response = self._send(
            "POST",
            self._pins_url(),
            headers=build_headers(client_id, self._settings.metadata),
            params={"strong": "true"},
        )
        pin = parse_pin(self._decode(response))
        logger.debug("Created PIN id=%s code=%s expires_in=%s", pin.id, pin.code, pin.expires_in)
        return pin

    def check_pin(
        self, pin_id: str, client_id: str, timeout: Optional[float] = None
    ) -> Pin:
        """Fetch the current state of a PIN.

        Args:
            pin_id: The PIN id returned by :meth:`request_pin`.
            client_id: The same client identity the PIN was requested with.
            timeout: Time budget in seconds for this request. Capped at
                ``Settings.request_timeout``.

        Returns:
            The PIN as plex.tv currently sees it; ``auth_token`` is set once
            the user has approved it.

        Raises:
            NetworkError: If plex.tv cannot be reached.
            TransportError: On a non-2xx status (404 once the PIN has
                expired) or undecodable body.
            ParseError: If the body is not a ``<pin>`` document.
        """
        response = self._send(
            "GET",
            f"{self._pins_url()}/{pin_id}",
            headers=build_headers(client_id, self._settings.metadata),
            timeout=timeout,
        )
        return parse_pin(self._decode(response))

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _pins_url(self) -> str:
        return f"{self._settings.plex_url.rstrip('/')}/api/v2/pins"

    def _send(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        params: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """Send one request and raise a typed exception for failures."""
        assert self._client is not None, "Client not initialised -- use as context manager"

        kwargs: dict[str, Any] = {"headers": headers, "params": params}
        if timeout is not None:
            kwargs["timeout"] = min(timeout, self._settings.request_timeout)

        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc

        self._map_response_error(response)
        return response

    def _map_response_error(self, response: httpx.Response) -> None:
        """Raise :class:`TransportError` for non-2xx status codes."""
        status = response.status_code
        if 200 <= status < 300:
            return

        msg = parse_error_message(response.text) if response.content else ""
        prefix = f"HTTP {status} from {response.request.url}"
        full_msg = f"{prefix}: {msg}" if msg else prefix
        raise TransportError(full_msg, status_code=status)

    def _decode(self, response: httpx.Response) -> str:
        """Decode the body strictly, raising :class:`TransportError` on bad bytes."""
        encoding = response.charset_encoding or "utf-8"
        try:
            return response.content.decode(encoding)
        except (UnicodeDecodeError, LookupError) as exc:
            raise TransportError(
                f"Unreadable response body from {response.request.url}: {exc}",
                status_code=response.status_code,
            ) from exc
