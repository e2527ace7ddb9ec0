"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~plexpin.exceptions.PlexPinError` subclass.
Shell wrappers can inspect the exit code to tell a refused connection
from an expired PIN without parsing stderr.

Example::

    $ plexpin login --timeout 60
    $ echo $?
    8   # EXIT_TIMEOUT -- the PIN was never approved
"""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_CONFIG_ERROR = 2
"""The configuration (flags, environment, config file) is invalid."""

EXIT_TRANSPORT_ERROR = 5
"""A server answered with a non-2xx status or an unreadable body."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_PARSE_ERROR = 7
"""A response body was not the expected XML document."""

EXIT_TIMEOUT = 8
"""The PIN was not approved before the polling deadline."""

EXIT_CANCELLED = 130
"""Polling was cancelled (Ctrl-C or an explicit cancellation signal)."""
