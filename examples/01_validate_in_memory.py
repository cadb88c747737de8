"""Example of validating a snapshot build configuration in code.

This example demonstrates how to:
1. Describe a VM's snapshot tree without a virtualization host.
2. Prepare several configurations against it.
3. Read the warnings and errors from the report.
"""

from vm_snapshot_builder.models.snapshot import SnapshotTree
from vm_snapshot_builder.preparer import prepare_config
from vm_snapshot_builder.providers.in_memory import InMemorySnapshotTreeProvider


def print_report(title, report):
    print(f"--- {title} ---")
    for warning in report.warnings:
        print(f"WARNING: {warning}")
    for error in report.errors:
        print(f"ERROR [{error.code}]: {error.message}")
    print("VALID" if report.ok else "INVALID")
    print()


def run_example():
    # 1. A VM with a clean install and one provisioned child snapshot
    tree = SnapshotTree.from_nested(
        [
            {
                "name": "clean-install",
                "uuid": "u1",
                "children": [{"name": "provisioned", "uuid": "u2"}],
            }
        ],
        current="u1",
    )
    provider = InMemorySnapshotTreeProvider({"base-vm": tree, "fresh-vm": None})

    base = {"vm_name": "base-vm", "shutdown_command": "shutdown -P now"}

    # 2. Re-running a build that already produced its target
    print_report(
        "Target already exists",
        prepare_config(
            provider,
            base,
            {"attach_snapshot": "clean-install", "target_snapshot": "provisioned"},
        ),
    )

    # 3. Same build, accepting that the old target is replaced
    print_report(
        "Overwrite allowed",
        prepare_config(
            provider,
            base,
            {
                "attach_snapshot": "clean-install",
                "target_snapshot": "provisioned",
                "force_delete_snapshot": True,
            },
        ),
    )

    # 4. A VM without snapshots cannot be attached to a named one
    print_report(
        "No snapshots",
        prepare_config(
            provider, {"vm_name": "fresh-vm", "attach_snapshot": "clean-install"}
        ),
    )


if __name__ == "__main__":
    run_example()
