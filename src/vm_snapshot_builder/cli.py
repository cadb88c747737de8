"""CLI tool for checking snapshot build configurations."""

import json
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from vm_snapshot_builder.config.loader import (
    ConfigDecodeError,
    load_raw_config,
    parse_override,
)
from vm_snapshot_builder.models.config import BuildSnapshotConfig, format_duration
from vm_snapshot_builder.models.enums import TargetMatchPolicy
from vm_snapshot_builder.models.report import PrepareReport
from vm_snapshot_builder.observability.logging import setup_logging
from vm_snapshot_builder.preparer import prepare_config
from vm_snapshot_builder.providers.base import TreeFetchError
from vm_snapshot_builder.providers.yaml_file import YamlSnapshotTreeProvider
from vm_snapshot_builder.validation.snapshots import SnapshotInvariantError


EXIT_INVALID = 1
EXIT_INTERNAL = 2

app = typer.Typer(help="VM Snapshot Builder CLI")


@app.callback()
def main(
    log_level: Annotated[
        Optional[str],
        typer.Option(help="Log level (defaults to LOG_LEVEL or INFO)"),
    ] = None,
    json_logs: Annotated[
        bool, typer.Option(help="Write logs as JSON lines instead of plain text")
    ] = True,
):
    """Validates snapshot-based VM build configurations."""
    setup_logging(log_level, json_format=json_logs)


def _print_report(report: PrepareReport):
    for warning in report.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    for issue in report.errors:
        typer.echo(f"Error [{issue.kind}/{issue.code}]: {issue.message}", err=True)


@app.command("validate")
def validate(
    config_file: Annotated[
        Path, typer.Argument(help="Path to the builder configuration YAML")
    ],
    snapshots: Annotated[
        Path,
        typer.Option(help="Path to the snapshot inventory YAML"),
    ],
    var: Annotated[
        Optional[list[str]],
        typer.Option(help="Override a configuration key (key=value)"),
    ] = None,
    require_all_children: Annotated[
        bool,
        typer.Option(
            help="Require every existing target snapshot to be a direct "
            "child of the attach point"
        ),
    ] = False,
):
    """Checks a configuration against the VM's snapshot tree."""
    try:
        raw = load_raw_config(config_file)
        overrides = dict(parse_override(assignment) for assignment in var or [])
    except ConfigDecodeError as e:
        for issue in e.issues:
            typer.echo(f"Error [{issue.kind}/{issue.code}]: {issue.message}", err=True)
        raise typer.Exit(code=EXIT_INVALID)

    policy = TargetMatchPolicy.ALL if require_all_children else TargetMatchPolicy.ANY
    provider = YamlSnapshotTreeProvider(snapshots)
    try:
        report = prepare_config(provider, raw, overrides, match_policy=policy)
    except SnapshotInvariantError as e:
        if e.report is not None:
            _print_report(e.report)
        else:
            typer.echo(f"Internal error: {e}", err=True)
        raise typer.Exit(code=EXIT_INTERNAL)

    _print_report(report)

    if not report.ok:
        typer.echo(f"{len(report.errors)} error(s) found.", err=True)
        raise typer.Exit(code=EXIT_INVALID)

    config = report.config
    typer.echo("Configuration is valid.")
    typer.echo(
        f"VM {config.vm_name}: shutdown timeout "
        f"{format_duration(config.shutdown_timeout)}, post-shutdown delay "
        f"{format_duration(config.post_shutdown_delay)}"
    )


@app.command("show-tree")
def show_tree(
    snapshots: Annotated[
        Path, typer.Argument(help="Path to the snapshot inventory YAML")
    ],
    vm: Annotated[
        Optional[str],
        typer.Option(help="Name of the virtual machine; omit to list machines"),
    ] = None,
):
    """Prints the snapshot tree of a VM, or the inventory's machines without --vm."""
    provider = YamlSnapshotTreeProvider(snapshots)
    try:
        if vm is None:
            for name in provider.list_machines():
                typer.echo(name)
            return
        tree = provider.load_snapshot_tree(vm)
    except TreeFetchError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=EXIT_INVALID)

    if tree is None:
        typer.echo(f"No snapshots defined on VM {vm}.")
        return

    for depth, node in tree.walk():
        marker = " *" if node.uuid == tree.current_uuid else ""
        typer.echo(f"{'  ' * depth}{node.name} ({node.uuid}){marker}")


@app.command("schema")
def schema():
    """Prints the JSON schema of the builder configuration."""
    typer.echo(
        json.dumps(BuildSnapshotConfig.model_json_schema(by_alias=True), indent=2)
    )


if __name__ == "__main__":
    app()
