"""Field-level checks that run on a defaulted configuration."""

import re
from datetime import timedelta

from vm_snapshot_builder.models.config import BuildSnapshotConfig
from vm_snapshot_builder.models.enums import (
    ConfigErrorCode,
    ErrorKind,
    ExportFormat,
    GuestAdditionsMode,
)
from vm_snapshot_builder.models.report import ValidationIssue


_SHA256 = re.compile(r"[0-9a-f]{64}")


def _issue(code: ConfigErrorCode, field: str, message: str) -> ValidationIssue:
    return ValidationIssue(
        kind=ErrorKind.CONFIG, code=code.value, message=message, field=field
    )


def validate_fields(config: BuildSnapshotConfig) -> list[ValidationIssue]:
    """Checks required fields and allowed values.

    All problems are collected; nothing stops at the first one.

    Args:
        config: The defaulted configuration.

    Returns:
        The config issues found, empty if every field is acceptable.
    """
    issues: list[ValidationIssue] = []

    if not config.vm_name:
        issues.append(
            _issue(ConfigErrorCode.MISSING_FIELD, "vm_name", "vm_name is required")
        )

    valid_modes = [mode.value for mode in GuestAdditionsMode]
    if config.guest_additions_mode not in valid_modes:
        issues.append(
            _issue(
                ConfigErrorCode.INVALID_VALUE,
                "guest_additions_mode",
                f"guest_additions_mode is invalid. Must be one of: {valid_modes}",
            )
        )

    valid_formats = [fmt.value for fmt in ExportFormat]
    if config.format not in valid_formats:
        issues.append(
            _issue(
                ConfigErrorCode.INVALID_VALUE,
                "format",
                f"format is invalid. Must be one of: {valid_formats}",
            )
        )

    if config.guest_additions_sha256 and not _SHA256.fullmatch(
        config.guest_additions_sha256
    ):
        issues.append(
            _issue(
                ConfigErrorCode.INVALID_VALUE,
                "guest_additions_sha256",
                "guest_additions_sha256 must be 64 hexadecimal characters",
            )
        )

    for field in ("shutdown_timeout", "post_shutdown_delay"):
        if getattr(config, field) < timedelta(0):
            issues.append(
                _issue(
                    ConfigErrorCode.INVALID_VALUE,
                    field,
                    f"{field} must not be negative",
                )
            )

    return issues
