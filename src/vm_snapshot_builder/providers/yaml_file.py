"""Snapshot trees read from a YAML inventory file.

The inventory describes the snapshot trees of one or more machines:

    machines:
      base-vm:
        current: 6a1c...
        snapshots:
          - name: clean-install
            uuid: 0b2f...
            children:
              - name: provisioned
                uuid: 6a1c...
      fresh-vm: null

A machine mapped to null (or with an empty `snapshots` list) has no
snapshots yet.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from vm_snapshot_builder.models.snapshot import SnapshotTree
from vm_snapshot_builder.observability.logging import get_logger, vm_event
from vm_snapshot_builder.providers.base import SnapshotTreeProvider, TreeFetchError


logger = get_logger(__name__)


def tree_from_inventory_entry(entry: Optional[Mapping[str, Any]]) -> Optional[SnapshotTree]:
    """Builds a SnapshotTree from one machine entry of an inventory.

    Raises:
        ValueError: If the entry is malformed.
    """
    if entry is None:
        return None
    if not isinstance(entry, Mapping):
        raise ValueError(f"machine entry must be a mapping, got {type(entry).__name__}")
    snapshots = entry.get("snapshots") or []
    if not isinstance(snapshots, list):
        raise ValueError("snapshots must be a list")
    if not snapshots:
        return None
    current = entry.get("current")
    if current is None:
        raise ValueError("current snapshot UUID is required when snapshots exist")
    return SnapshotTree.from_nested(snapshots, current=str(current))


class YamlSnapshotTreeProvider(SnapshotTreeProvider):
    """Reads snapshot trees from a YAML inventory file.

    The file is re-read on every call, so each validation run sees the
    inventory as it is at that moment.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_machines(self) -> Mapping[str, Any]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                document = yaml.safe_load(f)
        except OSError as e:
            raise TreeFetchError(f"Cannot read snapshot inventory {self.path}: {e}") from e
        except yaml.YAMLError as e:
            raise TreeFetchError(f"Error parsing YAML in {self.path}: {e}") from e

        if not isinstance(document, Mapping):
            raise TreeFetchError(f"Snapshot inventory {self.path} must contain a mapping")
        machines = document.get("machines") or {}
        if not isinstance(machines, Mapping):
            raise TreeFetchError(f"'machines' in {self.path} must be a mapping")
        return machines

    def list_machines(self) -> list[str]:
        return [str(name) for name in self._read_machines()]

    def load_snapshot_tree(self, vm_name: str) -> Optional[SnapshotTree]:
        machines = self._read_machines()
        if vm_name not in machines:
            raise TreeFetchError(f"VM {vm_name} is not listed in {self.path}")
        try:
            tree = tree_from_inventory_entry(machines[vm_name])
        except (ValueError, ValidationError) as e:
            raise TreeFetchError(f"Invalid snapshot tree for VM {vm_name}: {e}") from e
        logger.info(
            f"Snapshots loaded from VM {vm_name}",
            extra=vm_event(
                "snapshot_tree_loaded",
                vm_name,
                snapshot_count=len(tree) if tree is not None else 0,
            ),
        )
        return tree
