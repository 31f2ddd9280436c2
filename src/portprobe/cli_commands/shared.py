"""Shared CLI app objects."""

import typer
from rich.console import Console

app = typer.Typer(
    name="portprobe",
    help="Behavioral TCP port scanner with service fingerprinting",
    no_args_is_help=True,
)
console = Console()

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_HIGH = 2
EXIT_CRITICAL = 3
