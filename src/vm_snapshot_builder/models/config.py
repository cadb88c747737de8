"""Configuration model for building an image from an existing VM.

Field names match the keys users write in their builder configuration.
Values arrive already decoded (no template interpolation happens here);
defaults are filled in by `vm_snapshot_builder.config.defaults`, not by the
model, so an unset field can be told apart from an explicit one.
"""

import math
import re
from datetime import timedelta
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from vm_snapshot_builder.models.base import ModelBase


_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_PLAIN_SECONDS = re.compile(r"[+-]?(\d+(\.\d*)?|\.\d+)")

_DURATION_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}


def parse_duration(value: Any) -> timedelta:
    """Parses a duration in the `1h2m3.5s` notation.

    Plain numbers (and numeric strings) are taken as seconds, and
    `timedelta` instances pass through unchanged.

    Args:
        value: The raw duration value.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the value is not a recognizable duration or
            outside the range of `timedelta`.
    """
    try:
        return _to_timedelta(value)
    except OverflowError as e:
        raise ValueError(f"invalid duration {value!r}") from e


def _to_timedelta(value: Any) -> timedelta:
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid duration {value!r}")
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError(f"invalid duration {value!r}")
        return timedelta(seconds=value)
    if not isinstance(value, str):
        raise ValueError(f"invalid duration {value!r}")

    text = value.strip()
    if text in ("", "0"):
        return timedelta(0)
    if _PLAIN_SECONDS.fullmatch(text):
        return timedelta(seconds=float(text))

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    total = timedelta(0)
    pos = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text) or pos == 0:
        raise ValueError(f"invalid duration {value!r}")
    return sign * total


def format_duration(value: timedelta) -> str:
    """Formats a duration the way `parse_duration` reads it (e.g. `1m30s`)."""
    seconds = value.total_seconds()
    if seconds == 0:
        return "0s"
    sign = "-" if seconds < 0 else ""
    seconds = abs(seconds)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    out = sign
    if hours:
        out += f"{int(hours)}h"
    if minutes:
        out += f"{int(minutes)}m"
    if secs:
        out += f"{secs:g}s"
    return out


class BuildSnapshotConfig(ModelBase):
    """User configuration for a snapshot-based VM build.

    Attributes:
        vm_name: Name of the virtual machine the builder attaches to.
        attach_snapshot: Existing snapshot to roll the VM to before
            provisioning. Empty means start from the current state.
        target_snapshot: Snapshot to save after provisioning. Empty means no
            snapshot is saved.
        overwrite_target: Whether an existing target snapshot may be replaced
            (configured as `force_delete_snapshot`).
        keep_registered: Keep the VM attached to the build snapshot afterwards.
        skip_export: Do not export the VM after the build.
        guest_additions_mode: How guest additions reach the guest.
        guest_additions_path: Upload path of the guest additions ISO.
        guest_additions_sha256: Expected checksum of the guest additions ISO.
        guest_additions_url: Where to fetch the guest additions ISO from.
        shutdown_command: Command used to gracefully shut the guest down.
        shutdown_timeout: How long to wait for a graceful shutdown.
        post_shutdown_delay: Pause after shutdown before touching the VM.
        format: Export format.
        output_directory: Directory the export is written to.
    """

    model_config = ConfigDict(populate_by_name=True)

    vm_name: str = Field(
        default="",
        description="Name of the virtual machine the builder attaches to.",
    )
    attach_snapshot: str = Field(
        default="",
        description="Existing snapshot to roll the VM to before provisioning.",
    )
    target_snapshot: str = Field(
        default="",
        description="Snapshot to save after all provisioners have run.",
    )
    overwrite_target: bool = Field(
        default=False,
        alias="force_delete_snapshot",
        description="Overwrite an existing target snapshot instead of failing.",
    )
    keep_registered: bool = Field(
        default=False,
        description="Keep the VM attached to the build snapshot afterwards.",
    )
    skip_export: bool = Field(
        default=False, description="Do not export the VM after the build."
    )
    guest_additions_mode: str = Field(
        default="",
        description="How guest additions reach the guest: upload, attach or disable.",
    )
    guest_additions_path: str = Field(
        default="", description="Upload path of the guest additions ISO."
    )
    guest_additions_sha256: str = Field(
        default="", description="Expected SHA-256 of the guest additions ISO."
    )
    guest_additions_url: str = Field(
        default="", description="Where to fetch the guest additions ISO from."
    )
    shutdown_command: str = Field(
        default="",
        description="Command used to gracefully shut the guest down.",
    )
    shutdown_timeout: timedelta = Field(
        default=timedelta(0),
        description="How long to wait for a graceful shutdown.",
    )
    post_shutdown_delay: timedelta = Field(
        default=timedelta(0),
        description="Pause after shutdown before the VM is modified.",
    )
    format: str = Field(default="", description="Export format: ovf or ova.")
    output_directory: str = Field(
        default="", description="Directory the export is written to."
    )

    @field_validator("shutdown_timeout", "post_shutdown_delay", mode="before")
    @classmethod
    def _parse_duration(cls, value: Any) -> timedelta:
        return parse_duration(value)

    @field_validator("guest_additions_sha256")
    @classmethod
    def _lower_checksum(cls, value: str) -> str:
        return value.lower()

    @field_validator("guest_additions_mode", "format")
    @classmethod
    def _lower_choice(cls, value: str) -> str:
        return value.strip().lower()
