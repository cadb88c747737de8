"""Interface for retrieving a VM's snapshot tree from a virtualization host."""

from abc import ABC, abstractmethod
from typing import Optional

from vm_snapshot_builder.models.snapshot import SnapshotTree


class TreeFetchError(RuntimeError):
    """Raised when the snapshot tree of a VM cannot be retrieved."""


class SnapshotTreeProvider(ABC):
    """Source of point-in-time snapshot trees."""

    @abstractmethod
    def load_snapshot_tree(self, vm_name: str) -> Optional[SnapshotTree]:
        """Retrieves the snapshot tree of a virtual machine.

        Args:
            vm_name: Name of the virtual machine.

        Returns:
            The VM's snapshot tree, or None if the VM has no snapshots.

        Raises:
            TreeFetchError: If the host is unreachable or the VM is unknown.
        """
        pass  # pragma: no cover
