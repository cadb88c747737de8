"""Example of validating a configuration file against a snapshot inventory.

This mirrors what `vm-snapshot-builder validate` does, using the YAML
files next to this script.
"""

from pathlib import Path

from vm_snapshot_builder.config.loader import load_raw_config
from vm_snapshot_builder.preparer import prepare_config
from vm_snapshot_builder.providers.yaml_file import YamlSnapshotTreeProvider


HERE = Path(__file__).parent


def run_example():
    provider = YamlSnapshotTreeProvider(HERE / "inventory.yaml")
    raw = load_raw_config(HERE / "build.yaml")

    report = prepare_config(provider, raw)
    for warning in report.warnings:
        print(f"Warning: {warning}")
    for error in report.errors:
        print(f"Error [{error.kind}/{error.code}]: {error.message}")

    if report.ok:
        config = report.config
        print(
            f"Build on {config.vm_name} attaches to "
            f"{config.attach_snapshot or 'the current snapshot'} and saves "
            f"{config.target_snapshot or 'nothing'}"
        )


if __name__ == "__main__":
    run_example()
