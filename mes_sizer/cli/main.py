"""
CLI interface for MES Sizer.

Collects sizing inputs, runs the estimators and renders the summaries.
"""

import logging
import sys
from dataclasses import replace
from typing import List, Optional

import typer
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from mes_sizer.config.loader import (
    SizingConfig,
    default_sizing_config,
    load_scenario,
    load_sizing_config,
)
from mes_sizer.core.compute import ComputeInputs, ComputeResult, estimate_compute
from mes_sizer.core.formatting import (
    format_approx_tb,
    format_count,
    format_float,
    format_half_step,
)
from mes_sizer.core.storage import StorageInputs, StorageResult, estimate_storage

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


def _configure_logging(verbose: bool) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(message: str) -> None:
    console.print(f"[red]Error:[/] {escape(message)}")
    sys.exit(EXIT_CODE_FAIL)


def _get_config(ctx: typer.Context) -> SizingConfig:
    if ctx.obj is None:
        return default_sizing_config()
    return ctx.obj


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file overriding the built-in sizing tables"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    ),
):
    """MES Sizer CLI."""
    _configure_logging(verbose)

    if config:
        try:
            ctx.obj = load_sizing_config(config)
        except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
            _fail(str(e))
    else:
        ctx.obj = default_sizing_config()

    if ctx.invoked_subcommand is None:
        console.print("MES Sizer - Use --help to see available commands")


@app.command()
def modules(ctx: typer.Context):
    """List the MES modules and their resource factors."""
    config = _get_config(ctx)

    table = Table(title="MES Modules")
    table.add_column("ID")
    table.add_column("Module")
    table.add_column("Description", style="dim")
    table.add_column("Core factor", justify="right")
    table.add_column("RAM factor", justify="right")
    table.add_column("Storage MB/asset", justify="right")

    for module in config.catalog:
        name = escape(module.name)
        if module.mandatory:
            name += " [bold](always on)[/]"
        table.add_row(
            escape(module.id),
            name,
            escape(module.description),
            format_float(module.core_factor),
            format_float(module.ram_factor),
            format_count(module.added_storage_per_asset),
        )

    console.print(table)


@app.command()
def storage(
    ctx: typer.Context,
    assets: Optional[float] = typer.Option(None, "--assets", "-a", help="Number of assets"),
    tags_per_asset: Optional[float] = typer.Option(None, "--tags-per-asset", help="Tags per asset"),
    updates_per_minute: Optional[float] = typer.Option(
        None, "--updates-per-minute", help="Updates per minute per tag"
    ),
    retention: Optional[float] = typer.Option(
        None, "--retention", "-r", help="Historian retention in months"
    ),
    row_size: Optional[float] = typer.Option(None, "--row-size", help="Row size in bytes"),
    compression: Optional[float] = typer.Option(
        None, "--compression", help="Compressed size as a fraction of raw size"
    ),
):
    """Estimate historian storage for the tag load."""
    config = _get_config(ctx)
    inputs = _storage_inputs(
        config.storage.to_inputs(),
        assets=assets,
        tags_per_asset=tags_per_asset,
        updates_per_minute=updates_per_minute,
        retention=retention,
        row_size=row_size,
        compression=compression,
    )
    _display_storage_result(estimate_storage(inputs, config.storage))


@app.command()
def compute(
    ctx: typer.Context,
    assets: Optional[float] = typer.Option(None, "--assets", "-a", help="Number of assets"),
    retention: Optional[float] = typer.Option(
        None, "--retention", "-r", help="Process data retention in months"
    ),
    environment: Optional[str] = typer.Option(
        None, "--environment", "-e", help="Environment preset name or factor"
    ),
    module: Optional[List[str]] = typer.Option(
        None, "--module", "-m", help="Module id to enable (repeatable)"
    ),
):
    """Estimate cores, RAM and process storage for the enabled modules."""
    config = _get_config(ctx)
    try:
        inputs = _compute_inputs(
            config,
            _default_compute_inputs(config, config.storage.asset_count),
            assets=assets,
            retention=retention,
            environment=environment,
            module_ids=module,
        )
    except ValueError as e:
        _fail(str(e))
    _display_compute_result(_run_compute(inputs, config))


@app.command()
def estimate(
    ctx: typer.Context,
    inputs_file: Optional[str] = typer.Option(
        None, "--inputs", "-i", help="YAML scenario file with storage and compute inputs"
    ),
    assets: Optional[float] = typer.Option(None, "--assets", "-a", help="Number of assets"),
    tags_per_asset: Optional[float] = typer.Option(None, "--tags-per-asset", help="Tags per asset"),
    updates_per_minute: Optional[float] = typer.Option(
        None, "--updates-per-minute", help="Updates per minute per tag"
    ),
    storage_retention: Optional[float] = typer.Option(
        None, "--storage-retention", help="Historian retention in months"
    ),
    row_size: Optional[float] = typer.Option(None, "--row-size", help="Row size in bytes"),
    compression: Optional[float] = typer.Option(
        None, "--compression", help="Compressed size as a fraction of raw size"
    ),
    compute_retention: Optional[float] = typer.Option(
        None, "--compute-retention", help="Process data retention in months"
    ),
    environment: Optional[str] = typer.Option(
        None, "--environment", "-e", help="Environment preset name or factor"
    ),
    module: Optional[List[str]] = typer.Option(
        None, "--module", "-m", help="Module id to enable (repeatable)"
    ),
):
    """
    Run both the storage and the compute estimate.

    Values from --inputs are used first; any option given on the command
    line overrides them. The asset count is shared by both estimates.
    """
    config = _get_config(ctx)
    try:
        if inputs_file:
            scenario = load_scenario(inputs_file, config)
            base_storage, base_compute = scenario.storage, scenario.compute
        else:
            base_storage = config.storage.to_inputs()
            base_compute = _default_compute_inputs(config, base_storage.asset_count)

        storage_inputs = _storage_inputs(
            base_storage,
            assets=assets,
            tags_per_asset=tags_per_asset,
            updates_per_minute=updates_per_minute,
            retention=storage_retention,
            row_size=row_size,
            compression=compression,
        )
        compute_inputs = _compute_inputs(
            config,
            base_compute,
            assets=storage_inputs.asset_count,
            retention=compute_retention,
            environment=environment,
            module_ids=module,
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        _fail(str(e))

    _display_storage_result(estimate_storage(storage_inputs, config.storage))
    _display_compute_result(_run_compute(compute_inputs, config))


def _default_compute_inputs(config: SizingConfig, asset_count: float) -> ComputeInputs:
    return ComputeInputs(
        asset_count=asset_count,
        retention_months=config.compute.retention_months,
        environment_factor=config.compute.environment_factor,
    )


def _storage_inputs(
    base: StorageInputs,
    assets: Optional[float],
    tags_per_asset: Optional[float],
    updates_per_minute: Optional[float],
    retention: Optional[float],
    row_size: Optional[float],
    compression: Optional[float],
) -> StorageInputs:
    """Apply command-line overrides on top of base storage inputs."""
    overrides = {
        "asset_count": assets,
        "tags_per_asset": tags_per_asset,
        "updates_per_minute_per_tag": updates_per_minute,
        "retention_months": retention,
        "row_size_bytes": row_size,
        "compression_ratio": compression,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def _compute_inputs(
    config: SizingConfig,
    base: ComputeInputs,
    assets: Optional[float],
    retention: Optional[float],
    environment: Optional[str],
    module_ids: Optional[List[str]],
) -> ComputeInputs:
    """Apply command-line overrides on top of base compute inputs.

    Raises:
        ValueError: If a module id or environment preset is unknown
    """
    inputs = base
    if assets is not None:
        inputs = replace(inputs, asset_count=assets)
    if retention is not None:
        inputs = replace(inputs, retention_months=retention)
    if environment is not None:
        inputs = replace(inputs, environment_factor=config.resolve_environment(environment))
    if module_ids:
        for module_id in module_ids:
            config.catalog.get_module(module_id)
        inputs = replace(inputs, enabled_module_ids=frozenset(module_ids))
    return inputs


def _run_compute(inputs: ComputeInputs, config: SizingConfig) -> ComputeResult:
    return estimate_compute(
        inputs,
        catalog=config.catalog,
        base=config.compute,
        cpu_tiers=config.cpu_tiers,
    )


def _display_storage_result(result: StorageResult) -> None:
    """Display the historian storage summary."""
    table = Table(title="Historian Storage Estimate", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Total tags", format_count(result.total_tags))
    table.add_row("Events per day", format_count(result.events_per_day))
    table.add_row("Total rows", format_count(result.total_rows))
    table.add_row("Uncompressed (GB)", format_float(result.uncompressed_gb, 2))
    table.add_row("Uncompressed (TB)", format_approx_tb(result.uncompressed_tb))
    table.add_row("Compressed (GB)", format_float(result.compressed_gb, 2))
    table.add_row("Compressed (TB)", format_approx_tb(result.compressed_tb))

    console.print(table)


def _display_compute_result(result: ComputeResult) -> None:
    """Display the compute summary with the enabled modules."""
    console.print("\n[bold]Enabled modules[/bold]")
    for module in result.enabled_modules:
        console.print(f"• {escape(module.name)}")

    table = Table(title="Compute Estimate", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")

    table.add_row("Base cores", format_float(result.base_cores))
    table.add_row("Core multiplier", format_float(result.core_multiplier))
    table.add_row("Base RAM (GB)", format_float(result.base_ram_gb))
    table.add_row("RAM multiplier", format_float(result.ram_multiplier))
    table.add_row("CPU cores", format_half_step(result.cores))
    table.add_row("RAM (GB)", format_half_step(result.ram_gb))
    table.add_row("Process storage (GB)", format_half_step(result.process_storage_gb))
    table.add_row("Recommended CPU", escape(result.recommended_cpu_label))

    console.print(table)


if __name__ == "__main__":
    app()
