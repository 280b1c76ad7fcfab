"""
Typer-based CLI for schemaconf.

Inspect config files and bring them up to the version of a bundled default
without writing any Python:

- ``schemaconf version FILE``: print the file's config version
- ``schemaconf show FILE``: print every setting as a dotpath table
- ``schemaconf reconcile DEFAULT FILE``: merge the user's file into a newer
  default, keeping the user's values and comments
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from schemaconf.core.config.formats import FormatRegistry
from schemaconf.core.config.merge import flatten
from schemaconf.core.config.persistence import read_config_file
from schemaconf.core.config.update import UpdateCoordinator
from schemaconf.core.config.version import find_version
from schemaconf.core.errors import ConfigError
from schemaconf.core.utils.logger import setup_logging

from .exit_codes import CliExit

console = Console()

app = typer.Typer(
    name="schemaconf",
    help="Inspect and update typed config files",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


@app.callback()
def callback(
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """Inspect and update typed config files."""
    setup_logging(level=log_level)


def _parse(path: Path) -> dict:
    fmt = FormatRegistry.standard().for_path(path)
    return fmt.parse(read_config_file(path), str(path))


@app.command("version")
def version_command(
    file: Path = typer.Argument(..., help="Config file to inspect"),
) -> None:
    """Print the config version recorded in FILE."""
    try:
        document = _parse(file)
    except ConfigError as e:
        raise CliExit.config_error(str(e))
    console.print(find_version(document))


@app.command("show")
def show_command(
    file: Path = typer.Argument(..., help="Config file to inspect"),
) -> None:
    """Print every setting in FILE as a dotpath table."""
    try:
        document = _parse(file)
    except ConfigError as e:
        raise CliExit.config_error(str(e))

    table = Table(title=str(file))
    table.add_column("Key", style="cyan")
    table.add_column("Value", style="green")
    for key, value in flatten(document).items():
        table.add_row(key, repr(value))
    console.print(table)


@app.command("reconcile")
def reconcile_command(
    default: Path = typer.Argument(..., help="Bundled default config"),
    file: Path = typer.Argument(..., help="User config file to update"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Report what would change without writing"
    ),
) -> None:
    """Update FILE to the version of DEFAULT, keeping user values."""
    coordinator = UpdateCoordinator()
    try:
        if dry_run:
            plan = coordinator.plan(default, file)
            if not plan.needed:
                console.print(
                    f"[green]Up-to-date[/green] (version {plan.current_version} "
                    f">= {plan.default_version})"
                )
                return
            added = sorted(set(flatten(plan.document)) - set(flatten(_parse(file))))
            console.print(
                f"[yellow]Would update[/yellow] {file} from {plan.current_version} "
                f"to {plan.default_version}"
            )
            for key in added:
                console.print(f"  + {key}")
            return
        updated = coordinator.reconcile(default, file)
    except ConfigError as e:
        raise CliExit.config_error(str(e))
    except OSError as e:
        raise CliExit.error(str(e))

    if updated:
        console.print(f"[green]Updated[/green] {file} to version {find_version(_parse(file))}")
    else:
        console.print(f"[green]Up-to-date[/green] {file}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
