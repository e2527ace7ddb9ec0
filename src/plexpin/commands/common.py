"""Helpers shared by the command modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import typer

from plexpin.exceptions import PlexPinError
from plexpin.output import error


@contextmanager
def handle_errors() -> Iterator[None]:
    """Report a :class:`PlexPinError` and exit with its code.

    Example::

        with handle_errors():
            settings = resolve_settings(...)
    """
    try:
        yield
    except PlexPinError as exc:
        error(f"{exc.kind}: {exc}")
        raise typer.Exit(code=exc.exit_code) from None
