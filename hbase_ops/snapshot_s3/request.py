"""
The backup request value.

A BackupRequest is built once per invocation, from the command line or
directly by library callers, and is never modified afterwards. All later
steps read it; none of them write to it.

Invariants:
    - Exactly one Action per request; CREATE_EXPORT is create then export
    - table_name is present whenever create is requested
    - snapshot_name is present for import, and for export without create
    - The access secret never appears in describe() or repr()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .errors import InvalidRequest
from .location import RemoteProtocol, StorageEndpoint

DEFAULT_PATH = "/hbase"


class Action(Enum):
    """Requested snapshot action."""

    CREATE = "create"
    CREATE_EXPORT = "createExport"
    EXPORT = "export"
    IMPORT = "import"


@dataclass(frozen=True)
class BackupRequest:
    """One invocation of the snapshot utility.

    Attributes:
        action: What to do
        bucket_name: Remote bucket
        access_key: Remote store access key
        access_secret: Remote store secret
        table_name: Table to snapshot (required for create)
        snapshot_name: Explicit snapshot name
        hdfs_path: HBase root path on the cluster filesystem
        s3_path: Snapshot root inside the bucket
        mappers: Parallel copiers handed to the copy engine
        snapshot_ttl: Delete cluster snapshots older than this (seconds, 0 = off)
        protocol: Remote filesystem scheme
        verify_bucket: Probe the bucket before any copy runs
    """

    action: Action
    bucket_name: str
    access_key: str
    access_secret: str = field(repr=False)
    table_name: str | None = None
    snapshot_name: str | None = None
    hdfs_path: str = DEFAULT_PATH
    s3_path: str = DEFAULT_PATH
    mappers: int = 1
    snapshot_ttl: int = 0
    protocol: RemoteProtocol = RemoteProtocol.S3
    verify_bucket: bool = False

    @property
    def create_requested(self) -> bool:
        return self.action in (Action.CREATE, Action.CREATE_EXPORT)

    @property
    def export_requested(self) -> bool:
        return self.action in (Action.EXPORT, Action.CREATE_EXPORT)

    @property
    def import_requested(self) -> bool:
        return self.action is Action.IMPORT

    @property
    def remote_endpoint(self) -> StorageEndpoint:
        """Remote snapshot root for this request."""
        return StorageEndpoint(
            protocol=self.protocol,
            bucket=self.bucket_name,
            path=self.s3_path,
            access_key=self.access_key,
            access_secret=self.access_secret,
        )

    def validate(self) -> BackupRequest:
        """Check field combinations.

        Returns:
            self, so parsing code can chain it

        Raises:
            InvalidRequest: If a required field is missing or out of range
        """
        if self.create_requested and not self.table_name:
            raise InvalidRequest(
                "A table name (--table) is required to create a snapshot",
                operation=self.action.value,
            )
        if self.import_requested and not self.snapshot_name:
            raise InvalidRequest(
                "A snapshot name (--snapshot) is required to import a snapshot",
                operation=self.action.value,
            )
        if self.action is Action.EXPORT and not self.snapshot_name:
            raise InvalidRequest(
                "A snapshot name (--snapshot) is required to export an existing snapshot",
                operation=self.action.value,
            )
        if not self.bucket_name:
            raise InvalidRequest("A bucket name (--bucketName) is required")
        if not self.access_key or not self.access_secret:
            raise InvalidRequest(
                "Access key and secret (--awsAccessKey, --awsAccessSecret) are required"
            )
        if self.mappers < 1:
            raise InvalidRequest(f"mappers must be a positive integer, got {self.mappers}")
        if self.snapshot_ttl < 0:
            raise InvalidRequest(f"snapshotTtl cannot be negative, got {self.snapshot_ttl}")
        return self

    def describe(self, effective_snapshot_name: str | None = None) -> list[str]:
        """Banner lines logged at startup. The secret is never included."""
        return [
            "HBase Snapshot S3 Util",
            "-" * 50,
            f"Create snapshot : {self.create_requested}",
            f"Export snapshot : {self.export_requested}",
            f"Import snapshot : {self.import_requested}",
            f"Table name      : {self.table_name}",
            f"Snapshot name   : {effective_snapshot_name or self.snapshot_name}",
            f"Bucket name     : {self.bucket_name}",
            f"S3 Path         : {self.s3_path}",
            f"HDFS Path       : {self.hdfs_path}",
            f"Mappers         : {self.mappers}",
            f"s3 protocol     : {self.protocol.scheme}://",
            f"Snapshot TTL    : {self.snapshot_ttl}",
            "-" * 50,
        ]
