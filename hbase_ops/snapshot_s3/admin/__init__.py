"""
Cluster snapshot administration for the snapshot S3 utility.

This module provides a pluggable admin interface supporting:
- HBase shell (production)
- In-memory (for testing)

Invariants:
    - Admin handles are opened per operation and always closed
    - Snapshot descriptors are re-listed for every sweep, never cached
"""

from .base import (
    AdminFactory,
    SnapshotAdmin,
    SnapshotAdminError,
    SnapshotDescriptor,
    create_snapshot_admin,
)
from .memory import InMemoryCluster, InMemorySnapshotAdmin
from .shell import HBaseShellAdmin, parse_snapshot_listing

__all__ = [
    # Protocol and types
    "SnapshotAdmin",
    "SnapshotDescriptor",
    "SnapshotAdminError",
    "AdminFactory",
    # Factory
    "create_snapshot_admin",
    # Implementations
    "HBaseShellAdmin",
    "InMemorySnapshotAdmin",
    "InMemoryCluster",
    "parse_snapshot_listing",
]
