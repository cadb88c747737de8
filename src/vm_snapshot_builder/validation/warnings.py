"""Non-blocking notices about risky but legal configurations."""

from vm_snapshot_builder.models.config import BuildSnapshotConfig


LOST_CHANGES_WARNING = (
    "No target snapshot is specified (target_snapshot empty) and no export "
    "will be created (skip_export=true).\n"
    "You might lose all changes applied by this run, the next time you "
    "execute the builder."
)

FORCED_HALT_WARNING = (
    "A shutdown_command was not specified. Without a shutdown command, the "
    "builder\nwill forcibly halt the virtual machine, which may result in "
    "data loss."
)


def collect_warnings(config: BuildSnapshotConfig) -> list[str]:
    warnings = []
    if not config.target_snapshot and config.skip_export:
        warnings.append(LOST_CHANGES_WARNING)
    if not config.shutdown_command:
        warnings.append(FORCED_HALT_WARNING)
    return warnings
