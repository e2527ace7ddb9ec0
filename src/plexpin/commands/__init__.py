"""Built-in CLI sub-commands for plexpin.

* :mod:`~plexpin.commands.login` -- ``login``, ``pin``, ``check`` and
  ``identity``, the steps of the PIN flow.
* :mod:`~plexpin.commands.config` -- view the effective settings.

Single commands are plain callback functions registered directly on the
root app; multi-command groups export a :class:`typer.Typer` sub-application.
"""
