#!/usr/bin/env python3
"""heatrank CLI - Command-line interface for heatrank."""

import click

from heatrank.models.constants import ENV_LOG_LEVEL
from heatrank.report import OutputFormat
from heatrank.utils.env import get_env
from heatrank.utils.logger import Logger


@click.group()
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write log messages to this file instead of stderr",
)
def heatrank(log_file):
    """Rank the processes most likely to be heating this machine."""
    # Configure logger at startup if not already configured
    if not Logger.is_configured() or log_file:
        # WARNING keeps the live cycle output readable; --verbose lowers it
        try:
            Logger.configure(
                level=get_env(ENV_LOG_LEVEL, default="WARNING"),
                output=log_file or "stderr",
                timestamps=True,
            )
        except ValueError as e:
            raise click.ClickException(f"{ENV_LOG_LEVEL}: {e}") from e


@heatrank.command()
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Seconds between sampling cycles (default 10)",
)
@click.option(
    "--duration",
    "-d",
    type=float,
    default=None,
    help="Session length in seconds (default 300)",
)
@click.option(
    "--top-k",
    type=int,
    default=None,
    help="Processes kept per cycle (default 10)",
)
@click.option(
    "--top",
    "-n",
    "top_n",
    type=int,
    default=None,
    help="Processes in the final ranking (default 5)",
)
@click.option(
    "--no-gpu",
    is_flag=True,
    default=False,
    help="Skip per-process GPU sampling",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="YAML config file",
)
@click.option(
    "--output",
    "-o",
    "outputs",
    multiple=True,
    type=click.Path(dir_okay=False),
    help="Write the report to a .json, .yaml or .csv file (repeatable)",
)
@click.option(
    "--format",
    "-f",
    "stdout_format",
    type=click.Choice([f.value for f in OutputFormat]),
    default=OutputFormat.TEXT.value,
    show_default=True,
    help="Format of the report printed to stdout",
)
@click.option("--quiet", "-q", is_flag=True, help="Do not print per-cycle lines")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def monitor(
    interval,
    duration,
    top_k,
    top_n,
    no_gpu,
    config_path,
    outputs,
    stdout_format,
    quiet,
    verbose,
):
    """Sample processes for a fixed session and rank the heat-causing ones.

    \b
    Examples:
      heatrank monitor                       # 5 minutes, every 10 seconds
      heatrank monitor -i 5 -d 60 -n 3       # 1 minute, top 3
      heatrank monitor -o heat.json -o heat.csv
      heatrank monitor -q -f json > heat.json
    """
    from heatrank.commands.monitor_cmd import run_monitor

    if verbose:
        Logger.set_level("DEBUG")

    overrides = {
        "interval_seconds": interval,
        "duration_seconds": duration,
        "top_k": top_k,
        "top_n": top_n,
        "include_gpu": False if no_gpu else None,
    }
    report = run_monitor(
        overrides,
        config_path=config_path,
        outputs=outputs,
        stdout_format=OutputFormat(stdout_format),
        quiet=quiet,
    )
    if report is None:
        raise SystemExit(130)


@heatrank.command()
@click.option("--no-gpu", is_flag=True, default=False, help="Skip the NVML probe")
def sources(no_gpu):
    """List metric sources and whether each one returns data."""
    from heatrank.commands.sources_cmd import run_sources

    run_sources(include_gpu=not no_gpu)


@heatrank.command()
@click.option("--verbose", "-v", is_flag=True, help="Show detailed version information")
def version(verbose):
    """Display heatrank version information."""
    from heatrank.commands.version_cmd import run_version

    run_version(verbose=verbose)


if __name__ == "__main__":
    heatrank()
