"""Monitor command helper that drives one heat-ranking session."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import datetime
from typing import Any

import click

from heatrank.backends.factory import MetricProvider, create_metric_provider
from heatrank.config import ConfigError, MonitorConfig, build_config
from heatrank.core.temperature import celsius_to_fahrenheit
from heatrank.models.report_models import HeatReport
from heatrank.models.sample_models import CycleEvent, ResultStatus
from heatrank.monitoring import HeatMonitor
from heatrank.report import OutputFormat, emit_report, format_for_path
from heatrank.utils.env import EnvVarError
from heatrank.utils.logger import Logger

LIVE_PROCESS_LINES = 5


def run_monitor(
    overrides: dict[str, Any],
    config_path: str | None = None,
    outputs: Sequence[str] = (),
    stdout_format: OutputFormat = OutputFormat.TEXT,
    quiet: bool = False,
    provider: MetricProvider | None = None,
) -> HeatReport | None:
    """Run a monitoring session and emit the report.

    Args:
        overrides: CLI option values; None entries fall through to config/env.
        config_path: Optional YAML config file.
        outputs: Files to write the report to (format from suffix).
        stdout_format: Format of the report printed to stdout.
        quiet: Suppress the per-cycle live lines.
        provider: Metric provider; created for this platform when None.

    Returns
    -------
        The report, or None if the session was interrupted.

    Raises:
        click.ClickException: On invalid configuration or output paths.
    """
    try:
        config = build_config(config_path, overrides)
    except (ConfigError, EnvVarError) as e:
        raise click.ClickException(str(e)) from e

    for path in outputs:
        try:
            format_for_path(path)
        except ValueError as e:
            raise click.ClickException(str(e)) from e

    log = Logger.get("commands.monitor")
    if provider is None:
        provider = create_metric_provider(include_gpu=config.include_gpu)

    _print_header(config)
    listener = None if quiet else _print_cycle
    monitor = HeatMonitor(provider, config, cycle_listener=listener)

    try:
        report = monitor.run()
    except KeyboardInterrupt:
        click.echo("\nSession aborted; no report produced.", err=True)
        log.warning("Session interrupted by user")
        return None

    emit_report(report, sys.stdout, stdout_format)
    for path in outputs:
        emit_report(report, path)
        click.echo(f"Report written to {path}", err=True)
        log.info(f"Report written to {path}")
    return report


def _print_header(config: MonitorConfig) -> None:
    """Announce the session on stderr so stdout stays machine-readable."""
    click.echo(
        f"Monitoring for {config.duration_seconds:g}s "
        f"({config.total_cycles} cycles, every {config.interval_seconds:g}s). "
        "Press Ctrl+C to abort.",
        err=True,
    )


def _print_cycle(event: CycleEvent) -> None:
    click.echo(_format_cycle(event), err=True)


def _format_cycle(event: CycleEvent) -> str:
    """Render one cycle as a short multi-line block.

    Args:
        event: Cycle to render.

    Returns
    -------
        Multi-line string: header, temperature, clock, top processes.
    """
    timestamp = (
        datetime.fromtimestamp(event.timestamp).strftime("%H:%M:%S")
        if event.timestamp
        else "--:--:--"
    )
    lines = [f"[{timestamp}] Cycle {event.cycle_index + 1}/{event.total_cycles}"]

    if event.temperature is not None:
        temp_c = event.temperature.average_c
        lines.append(
            f"  Temp:  {temp_c:.1f}°C ({celsius_to_fahrenheit(temp_c):.1f}°F) "
            f"max {event.temperature.max_c:.1f}°C"
        )
    else:
        lines.append("  Temp:  N/A")

    clock_line = f"  Clock: {_format_percent(event.clock_ratio_percent)} of max"
    if event.throttling:
        clock_line += "  THROTTLING"
    lines.append(clock_line)

    if event.process_status is ResultStatus.DEGRADED:
        lines.append("  (CPU percent unavailable; ordered by CPU time)")
    elif event.process_status is ResultStatus.UNAVAILABLE:
        lines.append("  (no process data this cycle)")

    for sample in event.samples[:LIVE_PROCESS_LINES]:
        line = f"    {sample.name[:28]:<28} CPU {_format_percent(sample.cpu_percent):>6}"
        line += f"  Mem {sample.memory_mb:8.1f} MB"
        if sample.gpu_percent is not None:
            line += f"  GPU {_format_percent(sample.gpu_percent)}"
        lines.append(line)

    return "\n".join(lines)


def _format_percent(value: float | None) -> str:
    """Format a percentage value for display.

    Args:
        value: Percentage value or None.

    Returns
    -------
        Formatted percentage string or 'N/A'.
    """
    return f"{value:.1f}%" if value is not None else "N/A"
