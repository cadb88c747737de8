"""Decoding of raw builder configuration.

Raw configuration arrives as one or more mappings (typically parsed YAML
plus command-line overrides). They are merged left to right and decoded
into a `BuildSnapshotConfig`. Every decoding problem is reported, not just
the first one.
"""

from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from vm_snapshot_builder.models.config import BuildSnapshotConfig
from vm_snapshot_builder.models.enums import ConfigErrorCode, ErrorKind
from vm_snapshot_builder.models.report import ValidationIssue
from vm_snapshot_builder.observability.logging import get_logger


logger = get_logger(__name__)

_ERROR_CODES = {
    "missing": ConfigErrorCode.MISSING_FIELD,
    "extra_forbidden": ConfigErrorCode.UNKNOWN_FIELD,
}


class ConfigDecodeError(ValueError):
    """Raised when raw configuration cannot be turned into a config object.

    Attributes:
        issues: One config issue per problem found.
    """

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("; ".join(issue.message for issue in issues))


def _decode_failure(message: str, field: Optional[str] = None) -> ConfigDecodeError:
    return ConfigDecodeError(
        [
            ValidationIssue(
                kind=ErrorKind.CONFIG,
                code=ConfigErrorCode.DECODE_FAILED.value,
                message=message,
                field=field,
            )
        ]
    )


def merge_raw_configs(*raws: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Merges raw configuration mappings, later ones taking precedence.

    Keys whose value is None never override an earlier value.

    Raises:
        ConfigDecodeError: If one of the inputs is not a mapping.
    """
    merged: dict[str, Any] = {}
    for index, raw in enumerate(raws):
        if raw is None:
            continue
        if not isinstance(raw, Mapping):
            raise _decode_failure(
                f"Configuration source #{index + 1} must be a mapping, "
                f"got {type(raw).__name__}"
            )
        for key, value in raw.items():
            if value is None:
                continue
            merged[str(key)] = value
    return merged


def issues_from_validation_error(exc: ValidationError) -> list[ValidationIssue]:
    """Converts a pydantic ValidationError into config issues."""
    issues = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or None
        code = _ERROR_CODES.get(error["type"], ConfigErrorCode.INVALID_VALUE)
        if code is ConfigErrorCode.UNKNOWN_FIELD:
            message = f"unknown configuration key {field}"
        elif field:
            message = f"{field}: {error['msg']}"
        else:
            message = error["msg"]
        issues.append(
            ValidationIssue(
                kind=ErrorKind.CONFIG,
                code=code.value,
                message=message,
                field=field,
            )
        )
    return issues


def decode_config(*raws: Optional[Mapping[str, Any]]) -> BuildSnapshotConfig:
    """Merges and decodes raw configuration mappings.

    Args:
        *raws: Raw configuration mappings, merged left to right.

    Returns:
        The decoded, not yet defaulted, configuration.

    Raises:
        ConfigDecodeError: If any key is unknown or any value malformed.
    """
    merged = merge_raw_configs(*raws)
    try:
        config = BuildSnapshotConfig.model_validate(merged)
    except ValidationError as e:
        issues = issues_from_validation_error(e)
        logger.info(
            f"Configuration decoding failed with {len(issues)} error(s)",
            extra={"extra_fields": {"event": "config_decode_failed"}},
        )
        raise ConfigDecodeError(issues) from e
    return config


def load_raw_config(path: Union[str, Path]) -> dict[str, Any]:
    """Reads a raw configuration mapping from a YAML file.

    An empty file yields an empty mapping.

    Raises:
        ConfigDecodeError: If the file cannot be read or parsed, or does not
            hold a mapping.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise _decode_failure(f"Cannot read configuration file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise _decode_failure(f"Error parsing YAML in {path}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise _decode_failure(
            f"Configuration file {path} must contain a mapping, "
            f"got {type(raw).__name__}"
        )
    return dict(raw)


def parse_override(assignment: str) -> tuple[str, Any]:
    """Parses a `key=value` override.

    The value is read as a YAML scalar, so `true`, `10` or `null` get their
    natural types while anything else stays a string.

    Raises:
        ConfigDecodeError: If the assignment has no `=` or an empty key.
    """
    key, sep, value = assignment.partition("=")
    key = key.strip()
    if not sep or not key:
        raise _decode_failure(
            f"Override {assignment!r} must have the form key=value"
        )
    try:
        parsed = yaml.safe_load(value) if value.strip() else ""
    except yaml.YAMLError:
        parsed = value
    if isinstance(parsed, (dict, list)):
        parsed = value
    return key, parsed
