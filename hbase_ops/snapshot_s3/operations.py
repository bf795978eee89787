"""
Snapshot operations: create on the cluster, export to and import from S3.

Each operation returns an OperationOutcome instead of raising, so the
orchestrator can gate later steps on it. Failures are logged here, where
the most context is available.

Invariants:
    - No operation raises past its boundary
    - The admin handle opened by SnapshotCreator is closed on every path
    - Exporter hands the base configuration to the engine unmodified
    - Importer never mutates the configuration it is given; it derives a
      redirected copy for the one engine call it makes
    - Credentials reach the engine through URIs or configuration entries,
      and never reach a log record

How to change safely:
    - Keep error classification aligned with errors.py
    - Any new configuration override must go through redirect_to_remote()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .admin.base import AdminFactory
from .errors import (
    ConfigurationError,
    CopyFailed,
    CreationFailed,
    InvalidRequest,
    SnapshotToolError,
    UnknownFailure,
)
from .hadoop_conf import (
    DEFAULT_FS_KEY,
    HBASE_ROOTDIR_KEY,
    HBASE_TMP_DIR_KEY,
    LEGACY_DEFAULT_FS_KEY,
    HadoopConfiguration,
)
from .location import StorageEndpoint
from .request import BackupRequest
from .transfer.base import CopyEngine, CopyJobSpec

logger = logging.getLogger(__name__)

IMPORT_TMP_DIR = "/tmp/hbase-${user.name}"


@dataclass(frozen=True)
class OperationOutcome:
    """Result of a single pipeline step.

    Attributes:
        operation: Step name (create, export, import, probe)
        success: Whether the step succeeded
        error: Why it failed
    """

    operation: str
    success: bool
    error: SnapshotToolError | None = None

    @classmethod
    def ok(cls, operation: str) -> OperationOutcome:
        return cls(operation=operation, success=True)

    @classmethod
    def failed(cls, operation: str, error: SnapshotToolError) -> OperationOutcome:
        return cls(operation=operation, success=False, error=error)

    def __bool__(self) -> bool:
        return self.success


def _join_path(base: str, path: str) -> str:
    stripped = path.strip("/")
    return f"{base.rstrip('/')}/{stripped}" if stripped else base.rstrip("/")


def redirect_to_remote(conf: HadoopConfiguration, endpoint: StorageEndpoint) -> HadoopConfiguration:
    """Derive a configuration whose filesystem and HBase root point at S3.

    ExportSnapshot always reads from hbase.rootdir on the default
    filesystem. Pointing both at the bucket turns it into an import.

    Args:
        conf: Base configuration (left untouched)
        endpoint: Remote snapshot root, with credentials

    Returns:
        New HadoopConfiguration with the overrides applied
    """
    scheme = endpoint.protocol.scheme
    remote_fs = endpoint.filesystem_uri(with_credentials=True)
    return conf.derive(
        {
            DEFAULT_FS_KEY: remote_fs,
            LEGACY_DEFAULT_FS_KEY: remote_fs,
            f"fs.{scheme}.awsAccessKeyId": endpoint.access_key or "",
            f"fs.{scheme}.awsSecretAccessKey": endpoint.access_secret or "",
            HBASE_TMP_DIR_KEY: IMPORT_TMP_DIR,
            HBASE_ROOTDIR_KEY: endpoint.uri(with_credentials=False),
        }
    )


def _warn_size_limit(endpoint: StorageEndpoint) -> None:
    limit = endpoint.protocol.max_object_bytes
    if limit:
        logger.warning(
            f"{endpoint.protocol.scheme}:// limits objects to {limit // (1024 ** 3)} GB; "
            f"larger store files will fail to copy"
        )


def _run_copy(
    engine: CopyEngine,
    operation: str,
    spec: CopyJobSpec,
    conf: HadoopConfiguration,
) -> OperationOutcome:
    try:
        status = engine.run(spec, conf)
    except Exception as e:
        error = UnknownFailure(
            f"Exception occurred while running the {operation} copy job",
            cause=e,
            operation=operation,
            snapshot_name=spec.snapshot_name,
        )
        logger.error(str(error), exc_info=True)
        return OperationOutcome.failed(operation, error)

    if status != 0:
        error = CopyFailed(
            f"Copy job exited with status {status}",
            exit_status=status,
            operation=operation,
            snapshot_name=spec.snapshot_name,
            context={"job": spec.describe()},
        )
        logger.error(str(error))
        return OperationOutcome.failed(operation, error)

    return OperationOutcome.ok(operation)


class SnapshotCreator:
    """Creates a snapshot of a table through the cluster admin API."""

    operation = "create"

    def __init__(self, admin_factory: AdminFactory) -> None:
        self.admin_factory = admin_factory

    def create(self, table_name: str, snapshot_name: str) -> OperationOutcome:
        """Synchronously create snapshot `snapshot_name` of `table_name`.

        Returns:
            OperationOutcome; failures carry InvalidRequest, CreationFailed
            or UnknownFailure
        """
        admin = None
        try:
            admin = self.admin_factory()
            admin.create_snapshot(table_name, snapshot_name)
            return OperationOutcome.ok(self.operation)

        except InvalidRequest as e:
            e.operation = e.operation or self.operation
            e.snapshot_name = e.snapshot_name or snapshot_name
            logger.error(
                f"Snapshot request is invalid. Snapshot name: {snapshot_name}, table: {table_name}",
                exc_info=True,
            )
            return OperationOutcome.failed(self.operation, e)

        except CreationFailed as e:
            e.operation = e.operation or self.operation
            e.snapshot_name = e.snapshot_name or snapshot_name
            logger.error(f"Failed to create snapshot '{snapshot_name}' of table '{table_name}'", exc_info=True)
            return OperationOutcome.failed(self.operation, e)

        except Exception as e:
            error = UnknownFailure(
                "An error occurred while attempting to create snapshot",
                cause=e,
                operation=self.operation,
                snapshot_name=snapshot_name,
            )
            logger.error(str(error), exc_info=True)
            return OperationOutcome.failed(self.operation, error)

        finally:
            if admin is not None:
                try:
                    admin.close()
                except Exception as e:
                    logger.warning(f"Failed to close admin handle: {e}")


class Exporter:
    """Copies a snapshot from the cluster to the remote object store."""

    operation = "export"

    def __init__(self, engine: CopyEngine) -> None:
        self.engine = engine

    def export(
        self,
        request: BackupRequest,
        snapshot_name: str,
        conf: HadoopConfiguration,
    ) -> OperationOutcome:
        """Export `snapshot_name` to the request's bucket.

        Args:
            request: Backup request (bucket, path, credentials, mappers)
            snapshot_name: Effective snapshot name
            conf: Base configuration, passed to the engine unmodified

        Returns:
            OperationOutcome; success iff the engine exits 0
        """
        endpoint = request.remote_endpoint
        _warn_size_limit(endpoint)

        spec = CopyJobSpec(
            snapshot_name=snapshot_name,
            source_uri=conf.get(HBASE_ROOTDIR_KEY) or request.hdfs_path,
            destination_uri=endpoint.uri(with_credentials=True),
            mappers=request.mappers,
        )
        logger.info(f"Destination: {endpoint.redacted()}")
        return _run_copy(self.engine, self.operation, spec, conf)


class Importer:
    """Copies a snapshot from the remote object store into the cluster."""

    operation = "import"

    def __init__(self, engine: CopyEngine) -> None:
        self.engine = engine

    def import_snapshot(
        self,
        request: BackupRequest,
        snapshot_name: str | None,
        conf: HadoopConfiguration,
    ) -> OperationOutcome:
        """Import `snapshot_name` from the request's bucket.

        The cluster's default filesystem is read from `conf` before the
        redirect; the copy destination is that address plus hdfs_path.

        Args:
            request: Backup request
            snapshot_name: Snapshot to import (required)
            conf: Base configuration; never modified

        Returns:
            OperationOutcome; InvalidRequest or ConfigurationError before any
            engine call, otherwise success iff the engine exits 0
        """
        if not snapshot_name:
            error = InvalidRequest(
                "A snapshot name is required to import a snapshot",
                operation=self.operation,
            )
            logger.error(str(error))
            return OperationOutcome.failed(self.operation, error)

        try:
            cluster_fs = conf.default_filesystem()
        except ConfigurationError as e:
            e.operation = self.operation
            e.snapshot_name = snapshot_name
            logger.error(str(e))
            return OperationOutcome.failed(self.operation, e)

        endpoint = request.remote_endpoint
        _warn_size_limit(endpoint)

        destination = _join_path(cluster_fs, request.hdfs_path)
        spec = CopyJobSpec(
            snapshot_name=snapshot_name,
            source_uri=endpoint.uri(with_credentials=False),
            destination_uri=destination,
            mappers=request.mappers,
        )
        import_conf = redirect_to_remote(conf, endpoint)

        logger.info(f"Copying from: {spec.source_uri} to {destination}")
        for arg in spec.to_args():
            logger.debug(f"arg: '{arg}'")

        return _run_copy(self.engine, self.operation, spec, import_conf)
