"""Validation of the requested attach/target snapshot operation.

Given the VM's snapshot tree and the configured attach and target snapshot
names, decide whether the build can roll the VM to the attach point and
save its result as the target without clobbering unrelated snapshots.

Every applicable problem is reported in one pass. The only exception is a
broken internal invariant, which is raised as `SnapshotInvariantError`
because it indicates a bug rather than a configuration mistake.
"""

from typing import Optional

from vm_snapshot_builder.models.enums import (
    ErrorKind,
    SnapshotErrorCode,
    TargetMatchPolicy,
)
from vm_snapshot_builder.models.report import PrepareReport, ValidationIssue
from vm_snapshot_builder.models.snapshot import SnapshotNode, SnapshotTree
from vm_snapshot_builder.observability.logging import get_logger


logger = get_logger(__name__)


class SnapshotInvariantError(RuntimeError):
    """Raised when the validator reaches a state its logic rules out.

    Attributes:
        report: The partial PrepareReport collected before the failure, set
            when the error passes through configuration preparation.
    """

    report: Optional[PrepareReport] = None


def _constraint(
    code: SnapshotErrorCode, message: str, field: str
) -> ValidationIssue:
    return ValidationIssue(
        kind=ErrorKind.SNAPSHOT_CONSTRAINT,
        code=code.value,
        message=message,
        field=field,
    )


def _label(node: SnapshotNode) -> str:
    return f"{node.name}/{node.uuid}"


def check_distinct_names(attach_name: str, target_name: str) -> list[ValidationIssue]:
    """Rejects an attach and target snapshot with the same name.

    Needs no tree, so it also runs when the tree cannot be fetched.
    """
    if attach_name and target_name and attach_name == target_name:
        return [
            _constraint(
                SnapshotErrorCode.SAME_ATTACH_AND_TARGET,
                f"Attach snapshot {attach_name} and target snapshot "
                f"{target_name} cannot be the same",
                "target_snapshot",
            )
        ]
    return []


def resolve_attach_point(
    tree: SnapshotTree, attach_name: str, vm_name: str, errors: list[ValidationIssue]
) -> Optional[SnapshotNode]:
    """Finds the snapshot the build starts from.

    An empty `attach_name` means the snapshot the VM is attached to now.
    Resolution problems are appended to `errors` and yield None.
    """
    if not attach_name:
        current = tree.current_snapshot()
        if current is not None:
            logger.info(
                f"VM {vm_name} is currently attached to snapshot: {_label(current)}"
            )
        return current

    logger.info(f"Checking configuration attach_snapshot [{attach_name}]")
    matches = tree.find_by_name(attach_name)
    if not matches:
        errors.append(
            _constraint(
                SnapshotErrorCode.ATTACH_SNAPSHOT_NOT_FOUND,
                f"Snapshot {attach_name} does not exist on VM {vm_name}",
                "attach_snapshot",
            )
        )
        return None
    if len(matches) > 1:
        errors.append(
            _constraint(
                SnapshotErrorCode.ATTACH_SNAPSHOT_AMBIGUOUS,
                f"Multiple Snapshots with name {attach_name} exist on VM {vm_name}",
                "attach_snapshot",
            )
        )
        return None
    return matches[0]


def _is_child_of_attach_point(
    tree: SnapshotTree,
    matches: list[SnapshotNode],
    attach: SnapshotNode,
    match_policy: TargetMatchPolicy,
) -> bool:
    results = []
    for snapshot in matches:
        is_child = tree.is_direct_child(snapshot, attach)
        logger.debug(
            f"Checking if target snapshot {_label(snapshot)} is child of "
            f"{_label(attach)}: {is_child}"
        )
        results.append(is_child)
    if match_policy == TargetMatchPolicy.ALL:
        return all(results)
    return any(results)


def validate_snapshot_constraints(
    tree: Optional[SnapshotTree],
    attach_name: str,
    target_name: str,
    overwrite: bool,
    vm_name: str = "",
    match_policy: TargetMatchPolicy = TargetMatchPolicy.ANY,
) -> list[ValidationIssue]:
    """Checks that the attach/target snapshot request is structurally valid.

    Args:
        tree: The VM's snapshot tree, None if the VM has no snapshots.
        attach_name: Snapshot to attach to; empty for the current state.
        target_name: Snapshot to create after provisioning; empty for none.
        overwrite: Whether an existing target snapshot may be replaced.
        vm_name: Name of the VM, used in messages.
        match_policy: Whether any or all existing snapshots named like the
            target must be direct children of the attach point.

    Returns:
        Every snapshot constraint violation found; empty if the request is
        valid against `tree`.

    Raises:
        SnapshotInvariantError: If existing target snapshots need to be
            checked against an attach point that was never resolved, with no
            attach error to explain it.
    """
    errors: list[ValidationIssue] = check_distinct_names(attach_name, target_name)

    attach: Optional[SnapshotNode] = None
    attach_failed = False
    if tree is None:
        if attach_name:
            errors.append(
                _constraint(
                    SnapshotErrorCode.NO_SNAPSHOTS_DEFINED,
                    f"No snapshots defined on VM {vm_name}. Unable to attach "
                    f"to {attach_name}",
                    "attach_snapshot",
                )
            )
    else:
        error_count = len(errors)
        attach = resolve_attach_point(tree, attach_name, vm_name, errors)
        attach_failed = len(errors) > error_count

    if not target_name:
        return errors

    logger.info(f"Checking configuration target_snapshot [{target_name}]")
    if tree is None:
        logger.info(f"Currently no snapshots defined in VM {vm_name}")
        return errors

    if attach is not None and target_name == attach.name:
        errors.append(
            _constraint(
                SnapshotErrorCode.TARGET_EQUALS_ATTACH,
                f"Target snapshot {target_name} cannot be the same as the "
                f"snapshot to which the builder shall attach: {attach.name}",
                "target_snapshot",
            )
        )
        return errors

    matches = tree.find_by_name(target_name)
    if not matches:
        logger.info(f"No snapshot with name {target_name} defined in VM {vm_name}")
        return errors

    if attach is None:
        if attach_failed:
            # The attach error already explains why the child check is moot.
            logger.info(
                f"Skipping child check for target snapshot {target_name}: "
                f"attach point unresolved"
            )
            return errors
        raise SnapshotInvariantError(
            f"Internal error. Target snapshot {target_name} exists on VM "
            f"{vm_name} but no attach point was resolved"
        )

    if not _is_child_of_attach_point(tree, matches, attach, match_policy):
        errors.append(
            _constraint(
                SnapshotErrorCode.TARGET_NOT_DIRECT_CHILD,
                f"Target snapshot {target_name} already exists and is not a "
                f"direct child of {attach.name}",
                "target_snapshot",
            )
        )
    elif not overwrite:
        errors.append(
            _constraint(
                SnapshotErrorCode.TARGET_ALREADY_EXISTS,
                f"Target snapshot {target_name} already exists as direct child "
                f"of {attach.name} for VM {vm_name}. Use "
                f"force_delete_snapshot = true to overwrite snapshot",
                "target_snapshot",
            )
        )

    return errors
