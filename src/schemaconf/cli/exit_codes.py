"""
Standardized exit codes for schemaconf CLI commands.

Every command exits through `CliExit` so scripts can tell a broken config
file (exit 2) from any other failure (exit 1).
"""

from typing import Optional

import typer
from rich.console import Console

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2

_err_console = Console(stderr=True)


class CliExit(typer.Exit):
    """
    Typer exit with a standard code and an optional message.

    Usage:
        raise CliExit.success()
        raise CliExit.config_error("Config root must be a mapping")
    """

    def __init__(self, code: int, message: Optional[str] = None):
        self.message = message
        super().__init__(code)
        if message:
            if code == EXIT_SUCCESS:
                print(message)
            else:
                _err_console.print(f"[red]{message}[/red]")

    @classmethod
    def success(cls, message: Optional[str] = None) -> "CliExit":
        return cls(EXIT_SUCCESS, message)

    @classmethod
    def error(cls, message: Optional[str] = None) -> "CliExit":
        return cls(EXIT_ERROR, message)

    @classmethod
    def config_error(cls, message: Optional[str] = None) -> "CliExit":
        return cls(EXIT_CONFIG_ERROR, message)
