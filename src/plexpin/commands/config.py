"""Config commands -- inspect the effective settings.

Provides the ``plexpin config`` sub-command group. Settings are read-only
here: edit ``config.json`` in the config directory, or use environment
variables and flags.
"""

from __future__ import annotations

import typer

from plexpin.commands.common import handle_errors
from plexpin.output import format_response, info, print_data


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the settings after applying the config file and environment.

    Example::

        plexpin config show
        plexpin --json config show
    """
    from plexpin.config import config_file_path, resolve_settings

    with handle_errors():
        settings = resolve_settings()
    info(f"Config file: {config_file_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("path")
def config_path() -> None:
    """Print the location of the config file (it may not exist yet)."""
    from plexpin.config import config_file_path

    print_data(str(config_file_path()))
