"""Data models for reporting the outcome of configuration preparation."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from vm_snapshot_builder.models.config import BuildSnapshotConfig
from vm_snapshot_builder.models.enums import ErrorKind


class ValidationIssue(BaseModel):
    """A single problem found while preparing a configuration.

    Attributes:
        kind: Category of the problem (config, tree_fetch, ...).
        code: Machine-readable error code (e.g., 'target_already_exists').
        message: Human-readable explanation of the problem.
        field: Configuration key the problem relates to, if any.
    """

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    kind: ErrorKind = Field(..., description="Category of the problem.")
    code: str = Field(
        ...,
        description="Machine-readable error code (e.g., 'target_already_exists').",
    )
    message: str = Field(
        ..., description="Human-readable explanation of the problem."
    )
    field: Optional[str] = Field(
        default=None,
        description="Configuration key the problem relates to, if any.",
    )

    def __str__(self) -> str:
        return self.message


class PrepareReport(BaseModel):
    """Everything preparation found out about one configuration.

    Attributes:
        config: The defaulted configuration, None if it could not be decoded.
        warnings: Non-blocking notices, in the order they were raised.
        errors: Blocking problems, in the order they were found.
    """

    config: Optional[BuildSnapshotConfig] = Field(
        default=None,
        description="The defaulted configuration, None if decoding failed.",
    )
    warnings: list[str] = Field(
        default_factory=list, description="Non-blocking notices."
    )
    errors: list[ValidationIssue] = Field(
        default_factory=list, description="Blocking problems."
    )

    @property
    def ok(self) -> bool:
        """Whether the configuration may be used for a build."""
        return not self.errors

    def errors_of_kind(self, kind: ErrorKind) -> list[ValidationIssue]:
        return [e for e in self.errors if e.kind == kind.value]
