"""PIN flow commands.

``login`` runs the whole flow; ``identity``, ``pin`` and ``check`` expose
its individual steps, which is handy when the polling happens in another
process or the token is fetched later by hand.

Typical workflow::

    plexpin login --open            # approve in the browser, print the token
    plexpin pin --json              # request a PIN only
    plexpin check 1234 --client-id abc123
"""

from __future__ import annotations

import webbrowser
from typing import Optional

import typer

from plexpin.commands.common import handle_errors
from plexpin.models import Pin
from plexpin.output import (
    OutputFormat,
    format_response,
    get_output,
    info,
    print_data,
    progress,
    prompt,
    success,
    suggest,
    warning,
)


def _emit(data: dict[str, object], text: str) -> None:
    """Print *data* as JSON in ``--json`` mode, otherwise *text* as raw data."""
    if get_output().format == OutputFormat.JSON:
        format_response(data)
    else:
        print_data(text)


def login_command(
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Client identifier; skips the local identity lookup."
    ),
    identity_url: Optional[str] = typer.Option(
        None, "--identity-url", help="Local media server identity endpoint."
    ),
    plex_url: Optional[str] = typer.Option(
        None, "--plex-url", help="plex.tv base URL."
    ),
    forward_url: Optional[str] = typer.Option(
        None, "--forward-url", help="Page to open after approval."
    ),
    interval: Optional[float] = typer.Option(
        None, "--interval", help="Seconds between poll requests."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for approval."
    ),
    max_attempts: Optional[int] = typer.Option(
        None, "--max-attempts", help="Stop after this many poll requests."
    ),
    open_browser: bool = typer.Option(
        False, "--open", help="Open the authorization URL in the default browser."
    ),
) -> None:
    """Run the PIN flow and print the access token.

    The authorization URL is printed first. The command then waits until
    the PIN is approved, the timeout passes, or Ctrl-C is pressed.

    Example::

        plexpin login
        plexpin login --timeout 300 --open
        plexpin --json login
    """
    from plexpin.config import resolve_settings
    from plexpin.flow import run_pin_flow

    json_mode = get_output().format == OutputFormat.JSON

    def _on_auth_url(url: str) -> None:
        info("Open this URL and approve the request:")
        if json_mode:
            prompt(url)
        else:
            print_data(url)
        if open_browser and not webbrowser.open(url):
            warning("Could not open a browser; open the URL manually.")
        info("Waiting for approval...")

    def _on_tick(attempt: int, pin: Optional[Pin]) -> None:
        if pin is not None and not pin.granted:
            progress(f"Still waiting (attempt {attempt})")

    with handle_errors():
        settings = resolve_settings(
            {
                "client_id": client_id,
                "identity_url": identity_url,
                "plex_url": plex_url,
                "forward_url": forward_url,
                "poll.interval": interval,
                "poll.timeout": timeout,
                "poll.max_attempts": max_attempts,
            }
        )
        result = run_pin_flow(settings, on_auth_url=_on_auth_url, on_tick=_on_tick)

    success("PIN approved.")
    if json_mode:
        format_response(
            {
                "client_id": result.client_id,
                "pin_id": result.pin.id,
                "auth_url": result.auth_url,
                "token": result.token,
            }
        )
    else:
        info("Token:")
        print_data(result.token)


def identity_command(
    identity_url: Optional[str] = typer.Option(
        None, "--identity-url", help="Local media server identity endpoint."
    ),
) -> None:
    """Print the local media server's machine identifier.

    Example::

        plexpin identity
    """
    from plexpin.client import PlexClient
    from plexpin.config import resolve_settings

    with handle_errors():
        settings = resolve_settings({"identity_url": identity_url})
        with PlexClient(settings) as client:
            identifier = client.get_identity()

    _emit({"client_id": identifier}, identifier)


def pin_command(
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Client identifier; skips the local identity lookup."
    ),
    forward_url: Optional[str] = typer.Option(
        None, "--forward-url", help="Page to open after approval."
    ),
) -> None:
    """Request a PIN and print its authorization URL without polling.

    Example::

        plexpin pin
        plexpin --json pin --client-id abc123
    """
    from plexpin.client import PlexClient
    from plexpin.config import resolve_settings
    from plexpin.flow import start_pin

    with handle_errors():
        settings = resolve_settings({"client_id": client_id, "forward_url": forward_url})
        with PlexClient(settings) as client:
            resolved_id, pin, auth_url = start_pin(client, settings)

    _emit(
        {
            "client_id": resolved_id,
            "pin_id": pin.id,
            "code": pin.code,
            "expires_in": pin.expires_in,
            "auth_url": auth_url,
        },
        auth_url,
    )
    info(f"PIN {pin.id} (code {pin.code})")
    suggest(f"Check it: plexpin check {pin.id} --client-id {resolved_id}")


def check_command(
    pin_id: str = typer.Argument(help="PIN id returned by 'plexpin pin'."),
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="Client identifier the PIN was requested with."
    ),
) -> None:
    """Poll a PIN once and print its token if approved.

    Exits 0 whether or not the PIN has been approved yet; only errors
    produce a non-zero exit.

    Example::

        plexpin check 1234 --client-id abc123
    """
    from plexpin.client import PlexClient
    from plexpin.config import resolve_settings

    with handle_errors():
        settings = resolve_settings({"client_id": client_id})
        with PlexClient(settings) as client:
            resolved_id = settings.client_id or client.get_identity()
            pin = client.check_pin(pin_id, resolved_id)

    if pin.granted:
        _emit({"pin_id": pin.id, "granted": True, "token": pin.auth_token}, pin.auth_token)
    else:
        if get_output().format == OutputFormat.JSON:
            format_response({"pin_id": pin.id, "granted": False, "token": None})
        info(f"PIN {pin.id} is still pending.")
