import json
from pathlib import Path

from vm_snapshot_builder.models.config import BuildSnapshotConfig
from vm_snapshot_builder.models.report import PrepareReport, ValidationIssue
from vm_snapshot_builder.models.snapshot import SnapshotTree


OUTPUT_DIR = Path("docs/schemas")


MODELS = {
    "build_snapshot_config.schema.json": BuildSnapshotConfig,
    "snapshot_tree.schema.json": SnapshotTree,
    "validation_issue.schema.json": ValidationIssue,
    "prepare_report.schema.json": PrepareReport,
}


def main() -> None:
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    for filename, model in MODELS.items():
        schema = model.model_json_schema(by_alias=True)
        (OUTPUT_DIR / filename).write_text(
            json.dumps(schema, indent=2),
            encoding="utf-8",
        )


if __name__ == "__main__":
    main()
