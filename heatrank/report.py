"""Heat report emission.

Supports JSON, YAML, CSV and human-readable text.

Usage:
    from heatrank.report import OutputFormat, emit_report

    emit_report(report, "heat.json", OutputFormat.JSON)
    emit_report(report, sys.stdout, OutputFormat.TEXT)
"""

import csv
import json
import sys
from enum import Enum
from io import StringIO
from pathlib import Path
from typing import TextIO

import yaml  # type: ignore[import-untyped, unused-ignore]

from heatrank.core.temperature import NO_SENSORS_REASON
from heatrank.models.report_models import HeatReport

NO_CLOCK_DATA = "no clock speed data available"

CSV_COLUMNS = [
    "rank",
    "name",
    "heat_score",
    "avg_cpu",
    "max_cpu",
    "avg_memory_mb",
    "frequency_percent",
    "sample_count",
    "avg_gpu",
]


class OutputFormat(Enum):
    """Supported output formats for the heat report."""

    JSON = "json"
    YAML = "yaml"
    CSV = "csv"
    TEXT = "text"  # Human-readable text for stdout


_SUFFIX_FORMATS = {
    ".json": OutputFormat.JSON,
    ".yaml": OutputFormat.YAML,
    ".yml": OutputFormat.YAML,
    ".csv": OutputFormat.CSV,
}


def format_for_path(path: str | Path) -> OutputFormat:
    """Infer the output format from a file suffix.

    Raises:
        ValueError: If the suffix is not .json, .yaml, .yml or .csv.
    """
    suffix = Path(path).suffix.lower()
    if suffix not in _SUFFIX_FORMATS:
        raise ValueError(
            f"Cannot infer format from '{path}'; use .json, .yaml, .yml or .csv"
        )
    return _SUFFIX_FORMATS[suffix]


def to_json(report: HeatReport, indent: int = 2) -> str:
    """Serialize the report to JSON."""
    return json.dumps(report.to_dict(), indent=indent)


def to_yaml(report: HeatReport, indent: int = 2) -> str:
    """Serialize the report to YAML, keeping field order."""
    result: str = yaml.safe_dump(
        report.to_dict(), indent=indent, default_flow_style=False, sort_keys=False
    )
    return result


def to_csv(report: HeatReport) -> str:
    """One row per ranked process."""
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for entry in report.processes:
        writer.writerow(entry.model_dump(include=set(CSV_COLUMNS)))
    return output.getvalue()


def render_text(report: HeatReport) -> str:
    """Render the report for the terminal.

    Returns
    -------
        Multi-line text with ranked processes, temperature and throttling.
    """
    output = StringIO()
    info = report.session

    output.write("\n" + "=" * 60 + "\n")
    output.write("  HEAT-CAUSING PROCESSES\n")
    output.write("=" * 60 + "\n\n")

    output.write(
        f"Cycles:   {info.cycles_recorded}/{info.total_cycles}"
        + (f" every {info.interval_seconds:g}s" if info.interval_seconds else "")
        + "\n"
    )
    if info.started_at:
        output.write(f"Started:  {info.started_at}\n")
    if info.finished_at:
        output.write(f"Finished: {info.finished_at}\n")
    if info.degraded_cycles:
        output.write(
            f"Degraded: {info.degraded_cycles} cycle(s) without CPU percent\n"
        )
    output.write("\n")

    output.write("-" * 60 + "\n")
    if report.processes:
        output.write(
            f"{'#':>2}  {'Process':<24} {'Score':>7} {'AvgCPU':>7} "
            f"{'MaxCPU':>7} {'Mem MB':>8} {'Seen':>6}\n"
        )
        for entry in report.processes:
            output.write(
                f"{entry.rank:>2}  {entry.name[:24]:<24} {entry.heat_score:>7.2f} "
                f"{entry.avg_cpu:>6.1f}% {entry.max_cpu:>6.1f}% "
                f"{entry.avg_memory_mb:>8.1f} {entry.frequency_percent:>5.0f}%"
            )
            if entry.avg_gpu is not None:
                output.write(f"  GPU {entry.avg_gpu:.1f}%")
            output.write("\n")
    else:
        output.write("No process accumulated a positive heat score\n")
    output.write("-" * 60 + "\n\n")

    temp = report.temperature
    output.write("Temperature\n")
    if temp.available:
        output.write(
            f"  Average: {temp.average_c:.1f}°C ({temp.average_f:.1f}°F)\n"
            f"  Max:     {temp.max_c:.1f}°C ({temp.max_f:.1f}°F)\n"
        )
        if temp.peak_c is not None:
            output.write(f"  Hottest zone: {temp.peak_c:.1f}°C\n")
        if temp.high_temperature:
            output.write(f"  WARNING: above {temp.threshold_c:g}°C\n")
    else:
        output.write(f"  {NO_SENSORS_REASON}\n")
    output.write("\n")

    throttle = report.throttling
    output.write("Throttling\n")
    if throttle.clock_data_available:
        output.write(
            f"  Events: {throttle.event_count} "
            f"({throttle.rate_percent:.1f}% of cycles, "
            f"clock below {throttle.threshold_percent:g}% of max)\n"
        )
    else:
        output.write(f"  {NO_CLOCK_DATA}\n")

    output.write("=" * 60 + "\n")
    return output.getvalue()


def emit_report(
    report: HeatReport,
    output: str | Path | TextIO,
    format: OutputFormat | None = None,
) -> None:
    """Emit the report to a file or stream.

    Args:
        report: Report to write.
        output: File path or file-like object (e.g., sys.stdout).
        format: Output format; inferred from the suffix for paths, TEXT for
            streams, when None.

    Raises:
        ValueError: If the format cannot be inferred from a path.
    """
    if format is None:
        format = (
            format_for_path(output)
            if isinstance(output, str | Path)
            else OutputFormat.TEXT
        )

    if format == OutputFormat.JSON:
        content = to_json(report) + "\n"
    elif format == OutputFormat.YAML:
        content = to_yaml(report)
    elif format == OutputFormat.CSV:
        content = to_csv(report)
    elif format == OutputFormat.TEXT:
        content = render_text(report)
    else:
        raise ValueError(f"Unknown format: {format}")

    if isinstance(output, str | Path):
        Path(output).write_text(content, encoding="utf-8")
    else:
        output.write(content)
        if output is not sys.stdout and output is not sys.stderr:
            output.flush()
