"""plexpin -- obtain a Plex access token through the PIN (device) flow.

The flow registers this machine as a Plex client, requests a short-lived
pairing PIN from ``plex.tv``, shows the user an authorization URL bound to
that PIN, and polls until the user approves it in a browser.

Typical workflow::

    plexpin login            # prints the auth URL, then the token
    plexpin login --open     # also opens the URL in the default browser

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the package.
    config: XDG-aware settings resolution.
    client: HTTP client for the identity and PIN endpoints.
    poller: Bounded, cancellable token poller.
    flow: End-to-end orchestration of the PIN flow.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
