"""
HBase snapshot S3 utility.

Creates snapshots of HBase tables and moves them to and from S3 for
durable backup, with TTL-based cleanup of old snapshots on the cluster.

Architecture:
    ┌──────────┐     ┌──────────────┐     ┌──────────────────┐
    │   CLI    │────▶│ BackupRequest│────▶│  Orchestrator    │
    └──────────┘     └──────────────┘     └────────┬─────────┘
                                                   │
                  ┌───────────────┬────────────────┼────────────────┐
                  ▼               ▼                ▼                ▼
            ┌──────────┐   ┌────────────┐   ┌────────────┐   ┌────────────┐
            │ Retention│   │  Creator   │   │  Exporter  │   │  Importer  │
            │  Sweeper │   │            │   │            │   │            │
            └────┬─────┘   └─────┬──────┘   └─────┬──────┘   └─────┬──────┘
                 │               │                │                │
                 ▼               ▼                ▼                ▼
            ┌─────────────────────────┐   ┌──────────────────────────────┐
            │  hbase shell (admin)    │   │ ExportSnapshot (copy engine) │
            └─────────────────────────┘   └──────────────────────────────┘

Invariants:
    - One immutable BackupRequest per invocation
    - Create always succeeds before export runs in a create+export request
    - The retention sweep never changes the pipeline's terminal state
    - The import redirect lives in a derived configuration only

How to change safely:
    - Keep the CLI flags stable; cron entries depend on them
    - New collaborators implement the protocols in admin/ and transfer/

Version: see _version.py.
"""

from ._version import __version__
from .errors import (
    ConfigurationError,
    CopyFailed,
    CreationFailed,
    InvalidRequest,
    RemoteStoreError,
    RetentionItemFailed,
    SnapshotToolError,
    UnknownFailure,
)
from .location import RemoteProtocol, StorageEndpoint, build_location_uri
from .naming import resolve_snapshot_name
from .orchestrator import BackupOrchestrator, BackupResult, PipelineState
from .request import Action, BackupRequest

__all__ = [
    "__version__",
    # Request
    "Action",
    "BackupRequest",
    "resolve_snapshot_name",
    # Locations
    "RemoteProtocol",
    "StorageEndpoint",
    "build_location_uri",
    # Pipeline
    "BackupOrchestrator",
    "BackupResult",
    "PipelineState",
    # Errors
    "SnapshotToolError",
    "InvalidRequest",
    "ConfigurationError",
    "CreationFailed",
    "CopyFailed",
    "RetentionItemFailed",
    "RemoteStoreError",
    "UnknownFailure",
]
