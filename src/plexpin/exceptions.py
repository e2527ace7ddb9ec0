"""Exception hierarchy for plexpin.

All exceptions inherit from :class:`PlexPinError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`plexpin.exit_codes`.
The top-level error handler in :func:`plexpin.app.main` catches
``PlexPinError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    PlexPinError (exit 1)
    +-- ConfigError          (exit 2)
    +-- TransportError       (exit 5)
    +-- NetworkError         (exit 6)
    +-- ParseError           (exit 7)
    +-- TimeoutError_        (exit 8)
    |   +-- PinExpiredError  (exit 8)
    +-- PollCancelledError   (exit 130)
"""

from plexpin.exit_codes import (
    EXIT_CANCELLED,
    EXIT_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NETWORK_ERROR,
    EXIT_PARSE_ERROR,
    EXIT_TIMEOUT,
    EXIT_TRANSPORT_ERROR,
)


class PlexPinError(Exception):
    """Base exception for all plexpin errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`plexpin.exit_codes`, and a short ``kind`` label
    shown to the user next to the message.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    kind: str = "error"

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(PlexPinError):
    """Raised for configuration problems (invalid JSON, bad values in env or flags)."""

    exit_code = EXIT_CONFIG_ERROR
    kind = "config error"


class NetworkError(PlexPinError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused)."""

    exit_code = EXIT_NETWORK_ERROR
    kind = "network error"


class TransportError(PlexPinError):
    """Raised when a server answers with a non-2xx status or a body that cannot be decoded.

    Args:
        message: Human-readable error description.
        status_code: The HTTP status, when one was received.
    """

    exit_code = EXIT_TRANSPORT_ERROR
    kind = "transport error"

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(PlexPinError):
    """Raised when a response is not well-formed XML or lacks an expected attribute."""

    exit_code = EXIT_PARSE_ERROR
    kind = "parse error"


class TimeoutError_(PlexPinError):
    """Raised when polling reaches its deadline or attempt limit without a token.

    Named with a trailing underscore to avoid shadowing the built-in
    ``TimeoutError``.
    """

    exit_code = EXIT_TIMEOUT
    kind = "timeout"


class PinExpiredError(TimeoutError_):
    """Raised when plex.tv reports that the PIN no longer exists."""

    kind = "pin expired"


class PollCancelledError(PlexPinError):
    """Raised when the poll loop is cancelled through its cancellation event."""

    exit_code = EXIT_CANCELLED
    kind = "cancelled"
