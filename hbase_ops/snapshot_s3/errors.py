"""
Error taxonomy for the snapshot S3 utility.

Every failure that crosses a component boundary is expressed as one of
these types so that the orchestrator can log it with consistent context
and map it to a process exit status.

Invariants:
    - No type here triggers a retry; retry policy belongs to the scheduler
    - Messages never contain credentials
    - RetentionItemFailed is recorded, never raised past the sweeper

How to change safely:
    - Add new subclasses rather than overloading existing ones
    - Keep __str__ stable, operators grep for it in cron mail
"""

from __future__ import annotations

from typing import Any


class SnapshotToolError(Exception):
    """Base exception for all snapshot utility failures.

    Attributes:
        message: Human-readable error message
        operation: Name of the operation that failed (create, export, ...)
        snapshot_name: Snapshot involved, if known
        context: Additional key/value diagnostics
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        snapshot_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.snapshot_name = snapshot_name
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"Operation: {self.operation}")
        if self.snapshot_name:
            parts.append(f"Snapshot: {self.snapshot_name}")
        if self.context:
            parts.append(f"Context: {self.context}")
        return " | ".join(parts)


class InvalidRequest(SnapshotToolError):
    """Bad or missing flags, or a name/table combination the cluster rejects."""


class ConfigurationError(SnapshotToolError):
    """Required cluster addressing information could not be determined."""


class CreationFailed(SnapshotToolError):
    """The cluster refused to create the snapshot."""


class CopyFailed(SnapshotToolError):
    """The copy engine finished with a non-zero exit status.

    Additional Attributes:
        exit_status: Status reported by the engine
    """

    def __init__(
        self,
        message: str,
        exit_status: int,
        operation: str | None = None,
        snapshot_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, operation, snapshot_name, context)
        self.exit_status = exit_status


class RetentionItemFailed(SnapshotToolError):
    """Deleting a single expired snapshot failed.

    Additional Attributes:
        age_seconds: Age of the snapshot when deletion was attempted
        cause: Underlying exception
    """

    def __init__(
        self,
        message: str,
        snapshot_name: str,
        age_seconds: int,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, "retention", snapshot_name, {"age_seconds": age_seconds})
        self.age_seconds = age_seconds
        self.cause = cause


class RemoteStoreError(SnapshotToolError):
    """The remote bucket could not be reached with the given credentials."""


class UnknownFailure(SnapshotToolError):
    """Unexpected exception from a collaborator.

    Additional Attributes:
        cause: The original exception
    """

    def __init__(
        self,
        message: str,
        cause: BaseException,
        operation: str | None = None,
        snapshot_name: str | None = None,
    ) -> None:
        super().__init__(
            message,
            operation,
            snapshot_name,
            {"cause": f"{type(cause).__name__}: {cause}"},
        )
        self.cause = cause
