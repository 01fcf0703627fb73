"""darkheim services and darkheim check: inspect the service wiring."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from darkheim.bootstrap import bootstrap
from darkheim.config import load_config
from darkheim.di import describe
from darkheim.provider import CORE_SERVICES, ServiceProvider

console = Console()


def _provider() -> ServiceProvider:
    from darkheim.cli.app import state

    config = load_config(state.config_path)
    return bootstrap(config, verbose=state.verbose, quiet=state.quiet)


def services_command() -> None:
    """Show every binding: abstract, concrete and lifetime."""
    container = _provider().container

    table = Table(title="Service bindings")
    table.add_column("Abstract", style="bold")
    table.add_column("Concrete")
    table.add_column("Lifetime")
    table.add_column("Built", justify="center")

    for abstract, binding in container.bindings().items():
        concrete = describe(binding.concrete)
        if binding.is_factory:
            concrete = f"factory {concrete}"
        table.add_row(
            describe(abstract),
            concrete,
            "singleton" if binding.singleton else "new instance",
            "yes" if container.resolved(abstract) else "",
        )
    console.print(table)


def check_command() -> None:
    """Construct every core service and exit non-zero if any fails."""
    provider = _provider()
    report = provider.check()
    names = dict(CORE_SERVICES)

    table = Table(title="Core services")
    table.add_column("Service", style="bold")
    table.add_column("Abstract")
    table.add_column("Status")

    for name, error in report.items():
        status = "[green]ok[/green]" if error is None else f"[red]{escape(f'{type(error).__name__}: {error}')}[/red]"
        table.add_row(name, describe(names[name]), status)
    console.print(table)

    failed = [name for name, error in report.items() if error is not None]
    if failed:
        console.print(f"[red]{len(failed)} service(s) failed to build[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]All {len(report)} core services built[/green]")
