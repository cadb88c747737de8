from typing import Optional

from vm_snapshot_builder.models.snapshot import SnapshotTree
from vm_snapshot_builder.providers.base import SnapshotTreeProvider, TreeFetchError


class InMemorySnapshotTreeProvider(SnapshotTreeProvider):
    """Serves snapshot trees from a dictionary.

    A VM mapped to None is known but has no snapshots; a VM missing from the
    dictionary is unknown.
    """

    def __init__(self, trees: Optional[dict[str, Optional[SnapshotTree]]] = None):
        self.trees: dict[str, Optional[SnapshotTree]] = dict(trees or {})

    def add_machine(self, vm_name: str, tree: Optional[SnapshotTree] = None):
        self.trees[vm_name] = tree

    def load_snapshot_tree(self, vm_name: str) -> Optional[SnapshotTree]:
        if vm_name not in self.trees:
            raise TreeFetchError(f"VM {vm_name} is not known")
        return self.trees[vm_name]
