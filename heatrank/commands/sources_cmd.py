"""Sources command - shows which metric providers work on this host."""

from __future__ import annotations

import click

from heatrank.backends.factory import (
    MetricProvider,
    create_metric_provider,
    probe_sources,
)


def run_sources(include_gpu: bool = True, provider: MetricProvider | None = None) -> None:
    """Probe every provider once and print a status table.

    Args:
        include_gpu: Whether to try NVML.
        provider: Metric provider to probe; created for this platform when None.
    """
    if provider is None:
        provider = create_metric_provider(include_gpu=include_gpu)

    try:
        statuses = probe_sources(provider)
    finally:
        provider.cleanup()

    click.echo(f"Logical CPUs: {provider.logical_cpu_count}")
    click.echo(f"{'Category':<28} {'Source':<22} {'Status':<12} Detail")
    click.echo("-" * 78)
    for status in statuses:
        state = "available" if status.available else "unavailable"
        click.echo(
            f"{status.category:<28} {status.name:<22} {state:<12} {status.detail}"
        )
