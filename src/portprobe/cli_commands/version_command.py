"""Version CLI command."""

from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as pkg_version

from portprobe import __version__

from .shared import app, console


@app.command()
def version() -> None:
    """Show the installed portprobe version."""
    try:
        installed = pkg_version("portprobe")
    except PackageNotFoundError:
        installed = __version__
    console.print(f"portprobe {installed}")
