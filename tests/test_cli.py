import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from vm_snapshot_builder.cli import EXIT_INTERNAL, EXIT_INVALID, app
from vm_snapshot_builder.models.snapshot import SnapshotTree
from vm_snapshot_builder.providers.yaml_file import YamlSnapshotTreeProvider

runner = CliRunner()


INVENTORY = """
machines:
  vm1:
    current: u1
    snapshots:
      - name: root
        uuid: u1
        children:
          - name: built
            uuid: u2
  fresh: null
"""


class TestCLI:
    @pytest.fixture(autouse=True)
    def files(self, tmp_path):
        self.inventory = tmp_path / "inventory.yaml"
        self.inventory.write_text(INVENTORY)
        self.config = tmp_path / "build.yaml"
        self.config.write_text(
            "vm_name: vm1\n"
            "attach_snapshot: root\n"
            "target_snapshot: built\n"
            "shutdown_command: shutdown -P now\n"
        )
        self.tmp_path = tmp_path

    def invoke(self, *args):
        return runner.invoke(app, ["--log-level", "WARNING", *args])

    def test_validate_reports_existing_target(self):
        result = self.invoke("validate", str(self.config), "--snapshots", str(self.inventory))
        assert result.exit_code == EXIT_INVALID
        assert "Error [snapshot_constraint/target_already_exists]" in result.output
        assert "1 error(s) found." in result.output

    def test_validate_with_override(self):
        result = self.invoke(
            "validate",
            str(self.config),
            "--snapshots",
            str(self.inventory),
            "--var",
            "force_delete_snapshot=true",
        )
        assert result.exit_code == 0
        assert "Configuration is valid." in result.output
        assert "VM vm1: shutdown timeout 5m, post-shutdown delay 2s" in result.output

    def test_validate_prints_warnings(self):
        self.config.write_text("vm_name: fresh\nskip_export: true\n")
        result = self.invoke("validate", str(self.config), "--snapshots", str(self.inventory))
        assert result.exit_code == 0
        assert result.output.count("Warning: ") == 2
        assert "Configuration is valid." in result.output

    def test_validate_prints_every_error(self):
        self.config.write_text(
            "vm_name: fresh\nguest_additions_mode: mount\nattach_snapshot: root\n"
        )
        result = self.invoke("validate", str(self.config), "--snapshots", str(self.inventory))
        assert result.exit_code == EXIT_INVALID
        assert "Error [config/invalid_value]" in result.output
        assert "Error [snapshot_constraint/no_snapshots_defined]" in result.output
        assert "2 error(s) found." in result.output

    def test_validate_unknown_vm(self):
        self.config.write_text("vm_name: ghost\n")
        result = self.invoke("validate", str(self.config), "--snapshots", str(self.inventory))
        assert result.exit_code == EXIT_INVALID
        assert "Error [tree_fetch/tree_fetch_failed]" in result.output

    def test_validate_bad_config_file(self):
        result = self.invoke(
            "validate", str(self.tmp_path / "missing.yaml"), "--snapshots", str(self.inventory)
        )
        assert result.exit_code == EXIT_INVALID
        assert "Cannot read configuration file" in result.output

    def test_validate_bad_override(self):
        result = self.invoke(
            "validate", str(self.config), "--snapshots", str(self.inventory), "--var", "oops"
        )
        assert result.exit_code == EXIT_INVALID
        assert "must have the form key=value" in result.output

    def test_require_all_children(self):
        inventory = self.tmp_path / "dups.yaml"
        inventory.write_text(
            "machines:\n"
            "  vm1:\n"
            "    current: u1\n"
            "    snapshots:\n"
            "      - name: root\n"
            "        uuid: u1\n"
            "        children:\n"
            "          - name: built\n"
            "            uuid: u2\n"
            "            children:\n"
            "              - {name: built, uuid: u3}\n"
        )
        args = ["validate", str(self.config), "--snapshots", str(inventory),
                "--var", "force_delete_snapshot=true"]
        assert self.invoke(*args).exit_code == 0

        result = self.invoke(*args, "--require-all-children")
        assert result.exit_code == EXIT_INVALID
        assert "target_not_direct_child" in result.output

    def test_internal_error_exit_code(self):
        tree = SnapshotTree.from_nested([{"name": "built", "uuid": "u2"}])
        self.config.write_text("vm_name: vm1\ntarget_snapshot: built\n")
        with patch.object(
            YamlSnapshotTreeProvider, "load_snapshot_tree", return_value=tree
        ):
            result = self.invoke(
                "validate", str(self.config), "--snapshots", str(self.inventory)
            )
        assert result.exit_code == EXIT_INTERNAL
        assert "Internal error" in result.output

    def test_internal_error_keeps_collected_report(self):
        tree = SnapshotTree.from_nested([{"name": "root", "uuid": "u1"}])
        self.config.write_text("vm_name: vm\ntarget_snapshot: root\nformat: zip\n")
        with patch.object(
            YamlSnapshotTreeProvider, "load_snapshot_tree", return_value=tree
        ):
            result = self.invoke(
                "validate", str(self.config), "--snapshots", str(self.inventory)
            )
        assert result.exit_code == EXIT_INTERNAL
        assert "Error [config/invalid_value]: format is invalid" in result.output
        assert "Warning: A shutdown_command was not specified" in result.output
        assert "Error [internal/invariant_violated]" in result.output

    def test_show_tree(self):
        result = self.invoke("show-tree", str(self.inventory), "--vm", "vm1")
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines == ["root (u1) *", "  built (u2)"]

    def test_show_tree_lists_machines(self):
        result = self.invoke("show-tree", str(self.inventory))
        assert result.exit_code == 0
        assert result.output.splitlines() == ["vm1", "fresh"]

    def test_show_tree_no_snapshots(self):
        result = self.invoke("show-tree", str(self.inventory), "--vm", "fresh")
        assert result.exit_code == 0
        assert "No snapshots defined on VM fresh." in result.output

    def test_show_tree_unknown_vm(self):
        result = self.invoke("show-tree", str(self.inventory), "--vm", "ghost")
        assert result.exit_code == EXIT_INVALID
        assert "not listed" in result.output

    def test_text_logs(self):
        result = runner.invoke(
            app,
            ["--log-level", "INFO", "--no-json-logs", "show-tree", str(self.inventory), "--vm", "vm1"],
        )
        assert result.exit_code == 0
        assert "event=snapshot_tree_loaded vm_name=vm1 snapshot_count=2" in result.output

    def test_schema(self):
        result = self.invoke("schema")
        assert result.exit_code == 0
        schema = json.loads(result.output)
        assert "force_delete_snapshot" in schema["properties"]
        assert "vm_name" in schema["properties"]
