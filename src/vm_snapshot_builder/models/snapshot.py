"""Data model for a virtual machine's snapshot hierarchy.

The hierarchy is stored as an arena of nodes keyed by UUID. Parent and
child relationships are expressed as UUID references resolved through the
owning tree, so nodes never hold references to each other.
"""

from typing import Any, Iterator, Mapping, Optional, Sequence

from pydantic import Field, model_validator

from vm_snapshot_builder.models.base import ModelBase, SnapshotName, SnapshotUUID


class SnapshotNode(ModelBase):
    """A single saved state of a virtual machine.

    Attributes:
        name: Display name of the snapshot. Not unique within a tree.
        uuid: Stable identifier assigned by the virtualization host.
        parent_uuid: UUID of the parent snapshot, None for a root.
        children_uuids: Ordered UUIDs of the direct children.
    """

    name: SnapshotName = Field(..., description="Display name of the snapshot.")
    uuid: SnapshotUUID = Field(
        ...,
        min_length=1,
        description="Stable identifier assigned by the virtualization host.",
    )
    parent_uuid: Optional[SnapshotUUID] = Field(
        default=None, description="UUID of the parent snapshot, None for a root."
    )
    children_uuids: list[SnapshotUUID] = Field(
        default_factory=list, description="Ordered UUIDs of the direct children."
    )


class SnapshotTree(ModelBase):
    """Point-in-time view of a VM's snapshot forest.

    The tree is read-only once built. All queries resolve relationships
    through `nodes`, the UUID-keyed arena.

    Attributes:
        nodes: All snapshots, keyed by UUID.
        root_uuids: Ordered UUIDs of the snapshots without a parent.
        current_uuid: UUID of the snapshot the VM is attached to.
    """

    nodes: dict[SnapshotUUID, SnapshotNode] = Field(
        default_factory=dict, description="All snapshots, keyed by UUID."
    )
    root_uuids: list[SnapshotUUID] = Field(
        default_factory=list,
        description="Ordered UUIDs of the snapshots without a parent.",
    )
    current_uuid: Optional[SnapshotUUID] = Field(
        default=None,
        description="UUID of the snapshot the VM is currently attached to.",
    )

    @model_validator(mode="after")
    def _check_references(self) -> "SnapshotTree":
        for key, node in self.nodes.items():
            if key != node.uuid:
                raise ValueError(
                    f"Snapshot {node.name} is stored under UUID {key} "
                    f"but carries UUID {node.uuid}"
                )
            if node.parent_uuid is None and key not in self.root_uuids:
                raise ValueError(
                    f"Snapshot {node.name}/{node.uuid} has no parent and is "
                    f"not listed as a root"
                )
            if node.parent_uuid is not None and node.parent_uuid not in self.nodes:
                raise ValueError(
                    f"Snapshot {node.name}/{node.uuid} references unknown "
                    f"parent {node.parent_uuid}"
                )
            if (
                node.parent_uuid is not None
                and key not in self.nodes[node.parent_uuid].children_uuids
            ):
                raise ValueError(
                    f"Snapshot {node.name}/{node.uuid} is missing from the "
                    f"children of its parent {node.parent_uuid}"
                )
            if len(set(node.children_uuids)) != len(node.children_uuids):
                raise ValueError(
                    f"Snapshot {node.name}/{node.uuid} lists a child more than once"
                )
            for child_uuid in node.children_uuids:
                child = self.nodes.get(child_uuid)
                if child is None:
                    raise ValueError(
                        f"Snapshot {node.name}/{node.uuid} references unknown "
                        f"child {child_uuid}"
                    )
                if child.parent_uuid != node.uuid:
                    raise ValueError(
                        f"Snapshot {child.name}/{child.uuid} is listed as a "
                        f"child of {node.uuid} but names parent "
                        f"{child.parent_uuid}"
                    )
        if len(set(self.root_uuids)) != len(self.root_uuids):
            raise ValueError("A root snapshot is listed more than once")
        for root_uuid in self.root_uuids:
            root = self.nodes.get(root_uuid)
            if root is None:
                raise ValueError(f"Unknown root snapshot {root_uuid}")
            if root.parent_uuid is not None:
                raise ValueError(
                    f"Root snapshot {root.name}/{root.uuid} has a parent"
                )
        if self.current_uuid is not None and self.current_uuid not in self.nodes:
            raise ValueError(f"Unknown current snapshot {self.current_uuid}")
        return self

    @classmethod
    def from_nested(
        cls,
        snapshots: Sequence[Mapping[str, Any]],
        current: Optional[SnapshotUUID] = None,
    ) -> "SnapshotTree":
        """Builds a tree from nested snapshot mappings.

        Args:
            snapshots: Root snapshots, each a mapping with `name`, `uuid` and
                an optional `children` list of mappings of the same shape.
            current: UUID of the snapshot the VM is attached to.

        Returns:
            The assembled SnapshotTree.

        Raises:
            ValueError: If a UUID occurs twice or an entry is malformed.
        """
        nodes: dict[SnapshotUUID, SnapshotNode] = {}

        def add(entry: Mapping[str, Any], parent_uuid: Optional[str]) -> str:
            if not isinstance(entry, Mapping):
                raise ValueError(f"Snapshot entry must be a mapping, got {entry!r}")
            uuid = str(entry.get("uuid") or "")
            if uuid in nodes:
                raise ValueError(f"Duplicate snapshot UUID {uuid}")
            node = SnapshotNode(
                name=str(entry.get("name", "")),
                uuid=uuid,
                parent_uuid=parent_uuid,
            )
            nodes[uuid] = node
            for child in entry.get("children") or []:
                node.children_uuids.append(add(child, uuid))
            return uuid

        root_uuids = [add(entry, None) for entry in snapshots]
        return cls(nodes=nodes, root_uuids=root_uuids, current_uuid=current)

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, uuid: SnapshotUUID) -> Optional[SnapshotNode]:
        return self.nodes.get(uuid)

    def current_snapshot(self) -> Optional[SnapshotNode]:
        """Returns the snapshot the VM is attached to, if any."""
        if self.current_uuid is None:
            return None
        return self.nodes.get(self.current_uuid)

    def parent_of(self, node: SnapshotNode) -> Optional[SnapshotNode]:
        if node.parent_uuid is None:
            return None
        return self.nodes.get(node.parent_uuid)

    def children_of(self, node: SnapshotNode) -> list[SnapshotNode]:
        return [self.nodes[uuid] for uuid in node.children_uuids]

    def walk(self) -> Iterator[tuple[int, SnapshotNode]]:
        """Yields `(depth, node)` pairs in depth-first pre-order.

        Roots are visited in `root_uuids` order and children in
        `children_uuids` order, so the traversal is deterministic.
        """
        stack: list[tuple[int, SnapshotUUID]] = [
            (0, uuid) for uuid in reversed(self.root_uuids)
        ]
        while stack:
            depth, uuid = stack.pop()
            node = self.nodes[uuid]
            yield depth, node
            stack.extend(
                (depth + 1, child) for child in reversed(node.children_uuids)
            )

    def find_by_name(self, name: SnapshotName) -> list[SnapshotNode]:
        """Returns every snapshot called `name`, in depth-first order.

        More than one result means the name is ambiguous; callers must not
        silently pick one.
        """
        return [node for _, node in self.walk() if node.name == name]

    def is_direct_child(
        self, candidate: SnapshotNode, ancestor: SnapshotNode
    ) -> bool:
        """Whether `candidate`'s immediate parent is `ancestor`."""
        parent = self.parent_of(candidate)
        return parent is not None and parent.uuid == ancestor.uuid
