import logging

import pytest

from vm_snapshot_builder.models.snapshot import SnapshotTree


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def single_root_tree():
    """One root snapshot 'root' (u1) which is current."""
    return SnapshotTree.from_nested([{"name": "root", "uuid": "u1"}], current="u1")


@pytest.fixture
def root_and_child_tree():
    """Root 'root' (u1), child 'built' (u2); the VM is attached to the root."""
    return SnapshotTree.from_nested(
        [
            {
                "name": "root",
                "uuid": "u1",
                "children": [{"name": "built", "uuid": "u2"}],
            }
        ],
        current="u1",
    )


@pytest.fixture
def branching_tree():
    """
    base (u1)
      built (u2)
      side (u3)
        built (u4)
        deeper (u5)
    """
    return SnapshotTree.from_nested(
        [
            {
                "name": "base",
                "uuid": "u1",
                "children": [
                    {"name": "built", "uuid": "u2"},
                    {
                        "name": "side",
                        "uuid": "u3",
                        "children": [
                            {"name": "built", "uuid": "u4"},
                            {"name": "deeper", "uuid": "u5"},
                        ],
                    },
                ],
            }
        ],
        current="u5",
    )
