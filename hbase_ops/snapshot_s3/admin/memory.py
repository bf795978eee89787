"""
In-memory snapshot admin for testing.

Keeps a dictionary of snapshots and lets tests inject failures into each
operation. Several handles can share one InMemoryCluster so that the
open/close accounting of every handle is visible to the test.

Invariants:
    - All data is lost on process exit
    - Raises the same exception types as the shell backend
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from ..errors import CreationFailed, InvalidRequest
from .base import SnapshotAdminError, SnapshotDescriptor

logger = logging.getLogger(__name__)


@dataclass
class InMemoryCluster:
    """Shared state behind one or more InMemorySnapshotAdmin handles.

    Attributes:
        snapshots: Snapshots by name
        calls: Ordered log of ("create" | "list" | "delete", name) tuples
        opened: Number of handles opened
        closed: Number of handles closed
        create_error: Raised by the next create_snapshot calls when set
        list_error: Raised by list_snapshots when set
        delete_errors: Per-snapshot exceptions raised by delete_snapshot
    """
    snapshots: dict[str, SnapshotDescriptor] = field(default_factory=dict)
    calls: list[tuple[str, str | None]] = field(default_factory=list)
    opened: int = 0
    closed: int = 0
    create_error: Exception | None = None
    list_error: Exception | None = None
    delete_errors: dict[str, Exception] = field(default_factory=dict)

    def add(self, name: str, table: str, creation_time_ms: int) -> SnapshotDescriptor:
        """Seed a snapshot directly (test helper)."""
        descriptor = SnapshotDescriptor(name=name, table=table, creation_time_ms=creation_time_ms)
        self.snapshots[name] = descriptor
        return descriptor

    def handle(self) -> InMemorySnapshotAdmin:
        """Open a new admin handle on this cluster; usable as an admin factory."""
        return InMemorySnapshotAdmin(self)

    @property
    def open_handles(self) -> int:
        return self.opened - self.closed


class InMemorySnapshotAdmin:
    """In-memory implementation of SnapshotAdmin.

    Example:
        >>> cluster = InMemoryCluster()
        >>> admin = cluster.handle()
        >>> admin.create_snapshot("orders", "orders-snap")
        >>> [s.name for s in admin.list_snapshots()]
        ['orders-snap']
    """

    def __init__(self, cluster: InMemoryCluster | None = None, clock=time.time) -> None:
        self.cluster = cluster or InMemoryCluster()
        self._clock = clock
        self._closed = False
        self.cluster.opened += 1

    def create_snapshot(self, table: str, name: str) -> None:
        self._check_open()
        self.cluster.calls.append(("create", name))
        if self.cluster.create_error is not None:
            raise self.cluster.create_error
        if not table or not name:
            raise InvalidRequest("Snapshot name and table must be non-empty", snapshot_name=name)
        if name in self.cluster.snapshots:
            raise CreationFailed(f"Snapshot '{name}' already exists", snapshot_name=name)
        self.cluster.add(name, table, int(self._clock() * 1000))
        logger.debug(f"InMemorySnapshotAdmin created {name} of {table}")

    def list_snapshots(self) -> list[SnapshotDescriptor]:
        self._check_open()
        self.cluster.calls.append(("list", None))
        if self.cluster.list_error is not None:
            raise self.cluster.list_error
        return sorted(self.cluster.snapshots.values(), key=lambda s: s.creation_time_ms)

    def delete_snapshot(self, name: str) -> None:
        self._check_open()
        self.cluster.calls.append(("delete", name))
        error = self.cluster.delete_errors.get(name)
        if error is not None:
            raise error
        if name not in self.cluster.snapshots:
            raise SnapshotAdminError(f"Snapshot '{name}' does not exist")
        del self.cluster.snapshots[name]

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.cluster.closed += 1

    def _check_open(self) -> None:
        if self._closed:
            raise SnapshotAdminError("Admin handle is closed")
