"""Bounded, cancellable polling for PIN approval.

The user approves a PIN out-of-band in a browser, so the only way to learn
about it is to ask plex.tv repeatedly. :class:`TokenPoller` does this in an
explicit loop with three exits besides success:

* the deadline -- :attr:`PollConfig.timeout`, shortened to the PIN's own
  ``expires_in`` when plex.tv reports one;
* the attempt limit -- :attr:`PollConfig.max_attempts`, when set;
* a cancellation event -- a :class:`threading.Event` that another thread
  (or a signal handler) may set at any time.

Requests that fail with a transport, parse, or network error count as a
pending tick and are retried within the same bounds. Each request gets
at most the time left before the deadline. If the final tick before
giving up got a 404, plex.tv has dropped the PIN and the poller reports
:class:`PinExpiredError` instead of a plain timeout.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from plexpin.client import PlexClient
from plexpin.exceptions import (
    NetworkError,
    ParseError,
    PinExpiredError,
    PlexPinError,
    PollCancelledError,
    TimeoutError_,
    TransportError,
)
from plexpin.models import Pin, PollConfig

logger = logging.getLogger(__name__)

# Floor for the per-request timeout of the tick that lands on the deadline.
_MIN_REQUEST_TIMEOUT = 1.0

TickCallback = Callable[[int, Optional[Pin]], None]
"""Called after every request with the 1-based attempt number and the
polled PIN (``None`` when the request failed)."""


class TokenPoller:
    """Poll a PIN until plex.tv issues a token.

    Args:
        client: An open :class:`~plexpin.client.PlexClient`. The same
            connection pool is reused for every tick.
        client_id: The client identity the PIN was requested with.
        config: Interval, timeout, and optional attempt limit.
        clock: Monotonic clock in seconds; injectable for tests.
        cancel: Event that aborts polling when set. Waits between ticks
            use ``cancel.wait`` so cancellation is noticed immediately.
        on_tick: Optional progress callback, see :data:`TickCallback`.
    """

    def __init__(
        self,
        client: PlexClient,
        client_id: str,
        config: Optional[PollConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        cancel: Optional[threading.Event] = None,
        on_tick: Optional[TickCallback] = None,
    ) -> None:
        self._client = client
        self._client_id = client_id
        self._config = config or PollConfig()
        self._clock = clock
        self._cancel = cancel if cancel is not None else threading.Event()
        self._on_tick = on_tick

    def poll(self, pin: Pin) -> str:
        """Block until *pin* is approved and return its token.

        Returns immediately if *pin* already carries a token.

        Args:
            pin: The PIN returned by :meth:`PlexClient.request_pin`.

        Returns:
            The access token.

        Raises:
            TimeoutError_: If the deadline or attempt limit is reached.
                Chained from the last failed tick, if any.
            PinExpiredError: If a bound is reached and the final tick got a
                404 from plex.tv.
            PollCancelledError: If the cancellation event is set.
        """
        if pin.granted:
            return pin.auth_token

        interval = self._config.interval
        timeout = self._config.timeout
        if pin.expires_in is not None and pin.expires_in < timeout:
            timeout = float(pin.expires_in)
        deadline = self._clock() + timeout
        max_attempts = self._config.max_attempts

        attempt = 0
        last_error: Optional[PlexPinError] = None

        logger.debug(
            "Polling PIN %s every %ss for up to %ss", pin.id, interval, timeout
        )

        while True:
            if self._cancel.is_set():
                raise PollCancelledError(f"Polling for PIN {pin.id} was cancelled")

            attempt += 1
            budget = max(deadline - self._clock(), _MIN_REQUEST_TIMEOUT)
            current = self._tick(pin.id, attempt, budget)
            if isinstance(current, PlexPinError):
                last_error = current
            elif current.granted:
                logger.debug("PIN %s granted after %d attempt(s)", pin.id, attempt)
                return current.auth_token

            if max_attempts is not None and attempt >= max_attempts:
                raise _give_up(
                    f"PIN {pin.id} was not approved after {attempt} attempt(s)", current
                ) from last_error

            remaining = deadline - self._clock()
            if remaining < interval:
                # Another request would land past the deadline.
                self._wait(max(remaining, 0.0), pin.id)
                raise _give_up(
                    f"PIN {pin.id} was not approved within {timeout:g}s", current
                ) from last_error

            self._wait(interval, pin.id)

    def _tick(self, pin_id: str, attempt: int, budget: float) -> Pin | PlexPinError:
        """Run one poll request, returning the PIN or the transient error."""
        try:
            current = self._client.check_pin(pin_id, self._client_id, timeout=budget)
        except (TransportError, ParseError, NetworkError) as exc:
            logger.warning("Poll attempt %d failed: %s", attempt, exc)
            self._notify(attempt, None)
            return exc

        self._notify(attempt, current)
        return current

    def _notify(self, attempt: int, pin: Optional[Pin]) -> None:
        if self._on_tick is not None:
            self._on_tick(attempt, pin)

    def _wait(self, seconds: float, pin_id: str) -> None:
        if self._cancel.wait(seconds):
            raise PollCancelledError(f"Polling for PIN {pin_id} was cancelled")


def _give_up(message: str, last_result: Pin | PlexPinError) -> TimeoutError_:
    """Build the exception for a poll that hit its deadline or attempt limit."""
    if isinstance(last_result, TransportError) and last_result.status_code == 404:
        return PinExpiredError(f"{message}; plex.tv no longer knows it (expired?)")
    return TimeoutError_(message)
