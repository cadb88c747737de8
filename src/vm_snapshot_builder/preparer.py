"""Preparation of a builder configuration.

Runs decoding, defaulting, field checks, warning generation and snapshot
constraint validation in that order, and gathers everything they find into
one PrepareReport so the user sees every mistake at once.
"""

from typing import Any, Mapping, Optional

from vm_snapshot_builder.config.defaults import apply_defaults
from vm_snapshot_builder.config.fields import validate_fields
from vm_snapshot_builder.config.loader import ConfigDecodeError, decode_config
from vm_snapshot_builder.models.enums import ErrorKind, TargetMatchPolicy
from vm_snapshot_builder.models.report import PrepareReport, ValidationIssue
from vm_snapshot_builder.observability.logging import get_logger, vm_event
from vm_snapshot_builder.providers.base import SnapshotTreeProvider, TreeFetchError
from vm_snapshot_builder.validation.snapshots import (
    SnapshotInvariantError,
    check_distinct_names,
    validate_snapshot_constraints,
)
from vm_snapshot_builder.validation.warnings import collect_warnings


logger = get_logger(__name__)


def prepare_config(
    provider: SnapshotTreeProvider,
    *raws: Optional[Mapping[str, Any]],
    match_policy: TargetMatchPolicy = TargetMatchPolicy.ANY,
) -> PrepareReport:
    """Decodes, defaults and validates a builder configuration.

    Args:
        provider: Source of the VM's snapshot tree.
        *raws: Raw configuration mappings, merged left to right.
        match_policy: How existing target snapshots are judged.

    Returns:
        The report. `report.ok` is False whenever any error was found.

    Raises:
        SnapshotInvariantError: If the snapshot validator hits a logic bug.
            Its `report` holds everything collected up to that point, plus
            an `internal` issue describing the failure.
    """
    report = PrepareReport()

    try:
        config = decode_config(*raws)
    except ConfigDecodeError as e:
        report.errors.extend(e.issues)
        return report

    config = apply_defaults(config)
    report.config = config
    logger.info(f"PostShutdownDelay: {config.post_shutdown_delay}")

    report.errors.extend(validate_fields(config))
    report.warnings.extend(collect_warnings(config))

    if not config.vm_name:
        logger.info("No vm_name configured, skipping snapshot checks")
        report.errors.extend(
            check_distinct_names(config.attach_snapshot, config.target_snapshot)
        )
        return report

    try:
        tree = provider.load_snapshot_tree(config.vm_name)
    except TreeFetchError as e:
        report.errors.append(
            ValidationIssue(
                kind=ErrorKind.TREE_FETCH,
                code="tree_fetch_failed",
                message=f"Failed to load snapshots for VM {config.vm_name}: {e}",
                field="vm_name",
            )
        )
        report.errors.extend(
            check_distinct_names(config.attach_snapshot, config.target_snapshot)
        )
        return report

    try:
        report.errors.extend(
            validate_snapshot_constraints(
                tree,
                config.attach_snapshot,
                config.target_snapshot,
                config.overwrite_target,
                vm_name=config.vm_name,
                match_policy=match_policy,
            )
        )
    except SnapshotInvariantError as e:
        report.errors.append(
            ValidationIssue(
                kind=ErrorKind.INTERNAL,
                code="invariant_violated",
                message=str(e),
                field="target_snapshot",
            )
        )
        e.report = report
        logger.error(
            f"Snapshot validation failed for VM {config.vm_name}: {e}",
            extra=vm_event(
                "config_prepare_failed", config.vm_name, errors=len(report.errors)
            ),
        )
        raise

    logger.info(
        f"Prepared configuration for VM {config.vm_name}",
        extra=vm_event(
            "config_prepared",
            config.vm_name,
            errors=len(report.errors),
            warnings=len(report.warnings),
        ),
    )
    return report
