"""Version command - displays heatrank version information."""

import platform

import click
import psutil

from heatrank import __version__


def run_version(verbose: bool = False) -> None:
    """Display heatrank version information.

    Args:
        verbose: If True, also show interpreter, platform and psutil versions.
    """
    click.echo(f"heatrank {__version__}")
    if verbose:
        click.echo("\nDetailed version information:")
        click.echo(f"  Python:   {platform.python_version()}")
        click.echo(f"  Platform: {platform.system()} {platform.release()}")
        click.echo(f"  psutil:   {psutil.__version__}")
