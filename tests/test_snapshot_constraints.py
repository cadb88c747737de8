import pytest

from vm_snapshot_builder.models.enums import (
    ErrorKind,
    SnapshotErrorCode,
    TargetMatchPolicy,
)
from vm_snapshot_builder.models.snapshot import SnapshotTree
from vm_snapshot_builder.validation.snapshots import (
    SnapshotInvariantError,
    check_distinct_names,
    validate_snapshot_constraints,
)


def codes(errors):
    return [e.code for e in errors]


class TestScenarios:
    def test_no_tree_fresh_target(self):
        errors = validate_snapshot_constraints(None, "", "base", False)
        assert errors == []

    def test_target_equals_current_snapshot(self, single_root_tree):
        errors = validate_snapshot_constraints(single_root_tree, "", "root", False)
        assert codes(errors) == [SnapshotErrorCode.TARGET_EQUALS_ATTACH.value]

    def test_existing_child_target_without_overwrite(self, root_and_child_tree):
        errors = validate_snapshot_constraints(
            root_and_child_tree, "root", "built", False, vm_name="vm1"
        )
        assert codes(errors) == [SnapshotErrorCode.TARGET_ALREADY_EXISTS.value]
        assert errors[0].kind == ErrorKind.SNAPSHOT_CONSTRAINT.value
        assert errors[0].field == "target_snapshot"
        assert "force_delete_snapshot = true" in errors[0].message
        assert "vm1" in errors[0].message

    def test_existing_child_target_with_overwrite(self, root_and_child_tree):
        errors = validate_snapshot_constraints(root_and_child_tree, "root", "built", True)
        assert errors == []

    def test_ambiguous_attach(self):
        tree = SnapshotTree.from_nested(
            [{"name": "dup", "uuid": "a", "children": [{"name": "dup", "uuid": "b"}]}],
            current="b",
        )
        errors = validate_snapshot_constraints(tree, "dup", "", False)
        assert codes(errors) == [SnapshotErrorCode.ATTACH_SNAPSHOT_AMBIGUOUS.value]


class TestAttachResolution:
    def test_same_attach_and_target_always_reported(self, root_and_child_tree):
        for tree in (None, root_and_child_tree):
            errors = validate_snapshot_constraints(tree, "x", "x", True)
            assert SnapshotErrorCode.SAME_ATTACH_AND_TARGET.value in codes(errors)

    def test_same_name_with_existing_snapshot_also_equals_attach(self, root_and_child_tree):
        errors = validate_snapshot_constraints(root_and_child_tree, "built", "built", False)
        assert codes(errors) == [
            SnapshotErrorCode.SAME_ATTACH_AND_TARGET.value,
            SnapshotErrorCode.TARGET_EQUALS_ATTACH.value,
        ]

    def test_no_tree_with_attach_name(self):
        errors = validate_snapshot_constraints(None, "root", "", False, vm_name="vm1")
        assert codes(errors) == [SnapshotErrorCode.NO_SNAPSHOTS_DEFINED.value]
        assert errors[0].message == (
            "No snapshots defined on VM vm1. Unable to attach to root"
        )

    def test_no_tree_with_attach_and_target(self):
        errors = validate_snapshot_constraints(None, "root", "built", False)
        assert codes(errors) == [SnapshotErrorCode.NO_SNAPSHOTS_DEFINED.value]

    def test_attach_not_found(self, root_and_child_tree):
        errors = validate_snapshot_constraints(root_and_child_tree, "missing", "", False)
        assert codes(errors) == [SnapshotErrorCode.ATTACH_SNAPSHOT_NOT_FOUND.value]
        assert errors[0].field == "attach_snapshot"

    def test_attach_not_found_skips_child_check(self, root_and_child_tree):
        errors = validate_snapshot_constraints(
            root_and_child_tree, "missing", "built", False
        )
        assert codes(errors) == [SnapshotErrorCode.ATTACH_SNAPSHOT_NOT_FOUND.value]

    def test_nothing_requested(self, root_and_child_tree):
        assert validate_snapshot_constraints(root_and_child_tree, "", "", False) == []
        assert validate_snapshot_constraints(None, "", "", False) == []

    def test_attach_only(self, root_and_child_tree):
        assert validate_snapshot_constraints(root_and_child_tree, "built", "", False) == []


class TestTargetChecks:
    def test_fresh_target_accepted(self, root_and_child_tree):
        assert validate_snapshot_constraints(root_and_child_tree, "root", "new", False) == []

    def test_target_not_direct_child(self, branching_tree):
        errors = validate_snapshot_constraints(branching_tree, "side", "deeper", True)
        assert codes(errors) == []

        errors = validate_snapshot_constraints(branching_tree, "base", "deeper", True)
        assert codes(errors) == [SnapshotErrorCode.TARGET_NOT_DIRECT_CHILD.value]
        assert errors[0].message == (
            "Target snapshot deeper already exists and is not a direct child of base"
        )

    def test_grandchild_is_not_direct_child(self):
        tree = SnapshotTree.from_nested(
            [
                {
                    "name": "root",
                    "uuid": "u1",
                    "children": [
                        {
                            "name": "mid",
                            "uuid": "u2",
                            "children": [{"name": "built", "uuid": "u3"}],
                        }
                    ],
                }
            ],
            current="u3",
        )
        errors = validate_snapshot_constraints(tree, "root", "built", False)
        assert codes(errors) == [SnapshotErrorCode.TARGET_NOT_DIRECT_CHILD.value]

    def test_target_resolved_against_current_snapshot(self, branching_tree):
        # Current snapshot is 'deeper' (u5); 'built' exists but not below it
        errors = validate_snapshot_constraints(branching_tree, "", "built", True)
        assert codes(errors) == [SnapshotErrorCode.TARGET_NOT_DIRECT_CHILD.value]

    def test_any_policy_accepts_one_child_among_duplicates(self, branching_tree):
        # 'built' exists under base (u2) and under side (u4)
        errors = validate_snapshot_constraints(branching_tree, "base", "built", False)
        assert codes(errors) == [SnapshotErrorCode.TARGET_ALREADY_EXISTS.value]

        errors = validate_snapshot_constraints(branching_tree, "side", "built", True)
        assert errors == []

    def test_any_policy_independent_of_match_order(self, branching_tree):
        # The matching child comes last for 'side' and first for 'base'
        for attach in ("base", "side"):
            errors = validate_snapshot_constraints(branching_tree, attach, "built", True)
            assert errors == []

    def test_all_policy_rejects_stray_duplicate(self, branching_tree):
        errors = validate_snapshot_constraints(
            branching_tree,
            "base",
            "built",
            True,
            match_policy=TargetMatchPolicy.ALL,
        )
        assert codes(errors) == [SnapshotErrorCode.TARGET_NOT_DIRECT_CHILD.value]

    def test_all_policy_accepts_single_child(self, root_and_child_tree):
        errors = validate_snapshot_constraints(
            root_and_child_tree,
            "root",
            "built",
            False,
            match_policy=TargetMatchPolicy.ALL,
        )
        assert codes(errors) == [SnapshotErrorCode.TARGET_ALREADY_EXISTS.value]

    def test_missing_current_snapshot_is_internal_error(self):
        tree = SnapshotTree.from_nested([{"name": "root", "uuid": "u1"}])
        with pytest.raises(SnapshotInvariantError, match="Internal error"):
            validate_snapshot_constraints(tree, "", "root", False)

    def test_missing_current_snapshot_with_fresh_target(self):
        tree = SnapshotTree.from_nested([{"name": "root", "uuid": "u1"}])
        assert validate_snapshot_constraints(tree, "", "new", False) == []


def test_check_distinct_names():
    assert check_distinct_names("", "") == []
    assert check_distinct_names("a", "") == []
    assert check_distinct_names("a", "b") == []
    issues = check_distinct_names("a", "a")
    assert codes(issues) == [SnapshotErrorCode.SAME_ATTACH_AND_TARGET.value]
    assert issues[0].message == "Attach snapshot a and target snapshot a cannot be the same"
