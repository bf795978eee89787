"""
Base protocol and types for the cluster snapshot administration API.

This module defines the SnapshotAdmin protocol that all admin backends
implement, the SnapshotDescriptor they return, and the backend factory.

Invariants:
    - Descriptors are produced by the cluster and only read by this tool
    - Every admin handle is closed by the code that opened it
    - create_snapshot raises InvalidRequest or CreationFailed for the two
      failure classes the cluster distinguishes, SnapshotAdminError otherwise

How to change safely:
    - Protocol changes require updating all implementations
    - Keep error classification in the backend, not in callers
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import (
    Callable,
    Protocol,
    runtime_checkable,
    TYPE_CHECKING,
)
import logging

if TYPE_CHECKING:
    from ..config import ToolConfig

logger = logging.getLogger(__name__)


class SnapshotAdminError(Exception):
    """Base exception for admin backend failures that are not classified."""
    pass


@dataclass(frozen=True)
class SnapshotDescriptor:
    """A snapshot as reported by the cluster.

    Attributes:
        name: Snapshot name
        table: Table the snapshot was taken of
        creation_time_ms: Creation time (Unix milliseconds)
    """
    name: str
    table: str
    creation_time_ms: int

    def age_seconds(self, now_ms: int) -> int:
        """Whole seconds elapsed since creation."""
        return (now_ms - self.creation_time_ms) // 1000

    def __str__(self) -> str:
        return f"{self.name} ({self.table}, created {self.creation_time_ms})"


@runtime_checkable
class SnapshotAdmin(Protocol):
    """Protocol for cluster snapshot administration.

    Example:
        >>> admin = HBaseShellAdmin(config.hbase)
        >>> try:
        ...     admin.create_snapshot("orders", "orders-snapshot-20261019_120000")
        ... finally:
        ...     admin.close()
    """

    @abstractmethod
    def create_snapshot(self, table: str, name: str) -> None:
        """Create snapshot `name` of `table`, blocking until it completes.

        Raises:
            InvalidRequest: The cluster rejected the name/table combination
            CreationFailed: The cluster refused to take the snapshot
            SnapshotAdminError: Any other backend failure
        """
        ...

    @abstractmethod
    def list_snapshots(self) -> list[SnapshotDescriptor]:
        """List every snapshot visible to the cluster.

        Raises:
            SnapshotAdminError: If the listing could not be obtained
        """
        ...

    @abstractmethod
    def delete_snapshot(self, name: str) -> None:
        """Delete a snapshot by name.

        Raises:
            SnapshotAdminError: If the deletion failed
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Release the admin handle."""
        ...


AdminFactory = Callable[[], SnapshotAdmin]


def create_snapshot_admin(config: ToolConfig) -> SnapshotAdmin:
    """Factory function to create an admin handle from configuration.

    Args:
        config: Tool configuration

    Returns:
        SnapshotAdmin implementation backed by the HBase shell
    """
    from .shell import HBaseShellAdmin
    return HBaseShellAdmin(config.hbase)
