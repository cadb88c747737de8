"""Enumeration definitions for the VM snapshot builder.

This module contains the Enum classes used across the application for
configuration choices and for classifying validation problems.
"""

from enum import Enum


class GuestAdditionsMode(str, Enum):
    """Defines how guest additions are made available to the guest.

    Attributes:
        UPLOAD: The ISO is uploaded to `guest_additions_path` in the guest.
        ATTACH: The ISO is attached as a CD device.
        DISABLE: Guest additions are neither downloaded nor delivered.
    """

    UPLOAD = "upload"
    ATTACH = "attach"
    DISABLE = "disable"


class ExportFormat(str, Enum):
    """Defines the supported export formats.

    Attributes:
        OVF: Open Virtualization Format directory.
        OVA: Single-file Open Virtualization Appliance.
    """

    OVF = "ovf"
    OVA = "ova"


class ErrorKind(str, Enum):
    """Defines the category of a validation problem.

    Attributes:
        CONFIG: A field is missing, malformed, or outside its allowed values.
        TREE_FETCH: The snapshot tree could not be retrieved for the VM.
        SNAPSHOT_CONSTRAINT: The requested attach/target operation is invalid
            against the current snapshot tree.
        INTERNAL: A logic invariant of the validator was violated.
    """

    CONFIG = "config"
    TREE_FETCH = "tree_fetch"
    SNAPSHOT_CONSTRAINT = "snapshot_constraint"
    INTERNAL = "internal"


class SnapshotErrorCode(str, Enum):
    """Machine-readable codes for snapshot constraint violations."""

    SAME_ATTACH_AND_TARGET = "same_attach_and_target"
    ATTACH_SNAPSHOT_NOT_FOUND = "attach_snapshot_not_found"
    ATTACH_SNAPSHOT_AMBIGUOUS = "attach_snapshot_ambiguous"
    NO_SNAPSHOTS_DEFINED = "no_snapshots_defined"
    TARGET_EQUALS_ATTACH = "target_equals_attach"
    TARGET_NOT_DIRECT_CHILD = "target_not_direct_child"
    TARGET_ALREADY_EXISTS = "target_already_exists"


class ConfigErrorCode(str, Enum):
    """Machine-readable codes for configuration errors.

    Attributes:
        MISSING_FIELD: A required field was not provided.
        INVALID_VALUE: A value is outside the allowed set or malformed.
        UNKNOWN_FIELD: The configuration contains an unrecognized key.
        DECODE_FAILED: The raw configuration could not be decoded at all.
    """

    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"
    UNKNOWN_FIELD = "unknown_field"
    DECODE_FAILED = "decode_failed"


class TargetMatchPolicy(str, Enum):
    """Defines how existing snapshots named like the target are judged.

    Attributes:
        ANY: At least one same-named snapshot must be a direct child of the
            attach point.
        ALL: Every same-named snapshot must be a direct child of the attach
            point.
    """

    ANY = "any"
    ALL = "all"
