"""Main CLI application: registers all subcommands and global options."""

from __future__ import annotations

from pathlib import Path

import typer

app = typer.Typer(
    name="darkheim",
    help="darkheim - service container and core service runtime.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


class _GlobalState:
    """Shared state set by the top-level callback, consumed by subcommands."""

    config_path: Path | None = None
    verbose: bool = False
    quiet: bool = False


state = _GlobalState()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show DEBUG-level logs."),  # noqa: B008
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress logs below WARNING."),  # noqa: B008
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to config.json."),  # noqa: B008
) -> None:
    """darkheim - service container and core service runtime."""
    state.verbose = verbose
    state.quiet = quiet
    state.config_path = config


# Register subcommands (imported last, they read the module-level state)
from darkheim.cli.services_cmd import check_command, services_command  # noqa: E402

app.command(name="services", help="List registered service bindings.")(services_command)
app.command(name="check", help="Build every core service and report failures.")(check_command)
