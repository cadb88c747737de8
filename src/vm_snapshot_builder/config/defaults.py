"""Default values for builder configuration.

Defaulting is pure: it never rejects input and never modifies the config it
is given.
"""

from datetime import timedelta

from vm_snapshot_builder.models.config import BuildSnapshotConfig
from vm_snapshot_builder.models.enums import ExportFormat, GuestAdditionsMode


DEFAULT_GUEST_ADDITIONS_MODE = GuestAdditionsMode.UPLOAD.value
DEFAULT_GUEST_ADDITIONS_PATH = "VBoxGuestAdditions.iso"
DEFAULT_POST_SHUTDOWN_DELAY = timedelta(seconds=2)
DEFAULT_SHUTDOWN_TIMEOUT = timedelta(minutes=5)
DEFAULT_EXPORT_FORMAT = ExportFormat.OVF.value
DEFAULT_BUILD_NAME = "virtualbox-vm"


def apply_defaults(config: BuildSnapshotConfig) -> BuildSnapshotConfig:
    """Returns a copy of `config` with every unset field defaulted.

    Args:
        config: The decoded configuration.

    Returns:
        A new BuildSnapshotConfig; `config` itself is left untouched.
    """
    updates = {}

    if not config.guest_additions_mode:
        updates["guest_additions_mode"] = DEFAULT_GUEST_ADDITIONS_MODE
    if not config.guest_additions_path:
        updates["guest_additions_path"] = DEFAULT_GUEST_ADDITIONS_PATH
    if not config.post_shutdown_delay:
        updates["post_shutdown_delay"] = DEFAULT_POST_SHUTDOWN_DELAY
    if not config.shutdown_timeout:
        updates["shutdown_timeout"] = DEFAULT_SHUTDOWN_TIMEOUT
    if not config.format:
        updates["format"] = DEFAULT_EXPORT_FORMAT
    if not config.output_directory:
        updates["output_directory"] = f"output-{config.vm_name or DEFAULT_BUILD_NAME}"

    return config.model_copy(update=updates)
