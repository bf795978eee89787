"""
Unit tests for snapshot create, export and import operations.

Tests cover:
- Error classification for create
- Export job description and configuration handling
- Import redirection without touching the base configuration
- Copy engine failures
"""

import pytest

from hbase_ops.snapshot_s3.admin import InMemoryCluster
from hbase_ops.snapshot_s3.errors import (
    ConfigurationError,
    CopyFailed,
    CreationFailed,
    InvalidRequest,
    UnknownFailure,
)
from hbase_ops.snapshot_s3.hadoop_conf import HadoopConfiguration
from hbase_ops.snapshot_s3.location import RemoteProtocol
from hbase_ops.snapshot_s3.operations import (
    Exporter,
    Importer,
    SnapshotCreator,
    redirect_to_remote,
)
from hbase_ops.snapshot_s3.request import Action, BackupRequest
from hbase_ops.snapshot_s3.transfer import RecordingCopyEngine

BASE_PROPERTIES = {
    "fs.defaultFS": "hdfs://nn:8020",
    "hbase.rootdir": "hdfs://nn:8020/hbase",
}


@pytest.fixture
def base_conf():
    return HadoopConfiguration(BASE_PROPERTIES)


@pytest.fixture
def engine():
    return RecordingCopyEngine()


def make_request(**overrides):
    """Helper to create an export request."""
    fields = dict(
        action=Action.EXPORT,
        bucket_name="mybucket",
        access_key="AK",
        access_secret="SK",
        snapshot_name="orders-snap",
        mappers=4,
    )
    fields.update(overrides)
    return BackupRequest(**fields)


class TestSnapshotCreator:
    """Tests for SnapshotCreator."""

    @pytest.fixture
    def cluster(self):
        return InMemoryCluster()

    def test_create_success(self, cluster):
        """A new snapshot is created and the handle closed."""
        outcome = SnapshotCreator(cluster.handle).create("orders", "orders-snap")

        assert outcome.success
        assert "orders-snap" in cluster.snapshots
        assert cluster.open_handles == 0

    def test_duplicate_is_creation_failure(self, cluster):
        """A duplicate name is reported as CreationFailed."""
        cluster.add("orders-snap", "orders", 0)

        outcome = SnapshotCreator(cluster.handle).create("orders", "orders-snap")

        assert not outcome
        assert isinstance(outcome.error, CreationFailed)
        assert outcome.error.operation == "create"
        assert cluster.open_handles == 0

    def test_invalid_request(self, cluster):
        """Cluster-side argument rejection is InvalidRequest."""
        cluster.create_error = InvalidRequest("bad table name")

        outcome = SnapshotCreator(cluster.handle).create("bad table", "snap")

        assert isinstance(outcome.error, InvalidRequest)
        assert outcome.error.snapshot_name == "snap"

    def test_unexpected_error(self, cluster):
        """Any other exception becomes UnknownFailure."""
        cluster.create_error = RuntimeError("region server went away")

        outcome = SnapshotCreator(cluster.handle).create("orders", "snap")

        assert isinstance(outcome.error, UnknownFailure)
        assert isinstance(outcome.error.cause, RuntimeError)
        assert cluster.open_handles == 0

    def test_factory_failure(self):
        """Failure to connect is UnknownFailure."""
        def factory():
            raise ConnectionError("no quorum")

        outcome = SnapshotCreator(factory).create("orders", "snap")

        assert isinstance(outcome.error, UnknownFailure)


class TestExporter:
    """Tests for Exporter."""

    def test_export_job(self, engine, base_conf):
        """Export copies to the bucket URI with credentials."""
        outcome = Exporter(engine).export(make_request(), "orders-snap", base_conf)

        assert outcome.success
        assert engine.call_count == 1
        spec = engine.calls[0].spec
        assert spec.snapshot_name == "orders-snap"
        assert spec.destination_uri == "s3://AK:SK@mybucket/hbase"
        assert spec.source_uri == "hdfs://nn:8020/hbase"
        assert spec.mappers == 4
        assert spec.to_args() == [
            "-snapshot", "orders-snap",
            "-copy-to", "s3://AK:SK@mybucket/hbase",
            "-mappers", "4",
        ]

    def test_export_uses_base_conf(self, engine, base_conf):
        """The engine receives the base configuration itself."""
        Exporter(engine).export(make_request(), "orders-snap", base_conf)
        assert engine.calls[0].conf is base_conf

    def test_export_s3n(self, engine, base_conf):
        """The s3n protocol changes the destination scheme."""
        Exporter(engine).export(make_request(protocol=RemoteProtocol.S3N), "s", base_conf)
        assert engine.calls[0].spec.destination_uri == "s3n://AK:SK@mybucket/hbase"

    def test_nonzero_status(self, engine, base_conf):
        """A non-zero exit status is CopyFailed."""
        engine.exit_status = 3

        outcome = Exporter(engine).export(make_request(), "orders-snap", base_conf)

        assert isinstance(outcome.error, CopyFailed)
        assert outcome.error.exit_status == 3
        assert "SK" not in str(outcome.error)

    def test_failure_hides_secret_with_slashes(self, engine, base_conf, caplog):
        """A failed export never shows a secret containing slashes."""
        engine.exit_status = 1
        caplog.set_level("DEBUG")
        secret = "wJalrXUtnFEMI/K7MDENG/bPxRfi+YEXAMPLEKEY"

        outcome = Exporter(engine).export(make_request(access_secret=secret), "orders-snap", base_conf)

        assert secret not in str(outcome.error)
        assert "K7MDENG" not in caplog.text
        assert "s3://AK:***@mybucket/hbase" in str(outcome.error)

    def test_engine_exception(self, engine, base_conf):
        """An engine exception is UnknownFailure."""
        engine.error = OSError("hbase: not found")

        outcome = Exporter(engine).export(make_request(), "orders-snap", base_conf)

        assert isinstance(outcome.error, UnknownFailure)
        assert outcome.error.operation == "export"

    def test_secret_not_logged(self, engine, base_conf, caplog):
        """The secret never reaches a log record."""
        caplog.set_level("DEBUG")
        Exporter(engine).export(make_request(access_secret="S3CR3T"), "s", base_conf)
        assert "S3CR3T" not in caplog.text


class TestImporter:
    """Tests for Importer."""

    def test_import_job(self, engine, base_conf):
        """Import copies from the bucket into the cluster filesystem."""
        request = make_request(action=Action.IMPORT, hdfs_path="/hbase")

        outcome = Importer(engine).import_snapshot(request, "orders-snap", base_conf)

        assert outcome.success
        spec = engine.calls[0].spec
        assert spec.destination_uri == "hdfs://nn:8020/hbase"
        assert spec.source_uri == "s3://mybucket/hbase"

    def test_import_redirects_conf(self, engine, base_conf):
        """The engine runs with the filesystem pointed at the bucket."""
        request = make_request(action=Action.IMPORT)

        Importer(engine).import_snapshot(request, "orders-snap", base_conf)

        conf = engine.calls[0].conf
        assert conf["fs.defaultFS"] == "s3://AK:SK@mybucket"
        assert conf["fs.default.name"] == "s3://AK:SK@mybucket"
        assert conf["fs.s3.awsAccessKeyId"] == "AK"
        assert conf["fs.s3.awsSecretAccessKey"] == "SK"
        assert conf["hbase.rootdir"] == "s3://mybucket/hbase"
        assert conf["hbase.tmp.dir"] == "/tmp/hbase-${user.name}"

    def test_base_conf_untouched(self, engine, base_conf):
        """The caller's configuration is identical after import."""
        before = dict(base_conf)

        Importer(engine).import_snapshot(make_request(action=Action.IMPORT), "orders-snap", base_conf)

        assert dict(base_conf) == before
        assert engine.calls[0].conf is not base_conf

    def test_missing_name(self, engine, base_conf):
        """Import without a name fails before any engine call."""
        before = dict(base_conf)

        outcome = Importer(engine).import_snapshot(make_request(action=Action.IMPORT), None, base_conf)

        assert isinstance(outcome.error, InvalidRequest)
        assert engine.call_count == 0
        assert dict(base_conf) == before

    def test_missing_default_filesystem(self, engine):
        """An unknown cluster filesystem is a configuration error."""
        outcome = Importer(engine).import_snapshot(
            make_request(action=Action.IMPORT), "orders-snap", HadoopConfiguration({})
        )

        assert isinstance(outcome.error, ConfigurationError)
        assert outcome.error.operation == "import"
        assert engine.call_count == 0

    def test_custom_hdfs_path(self, engine, base_conf):
        """hdfs_path is appended to the cluster filesystem."""
        request = make_request(action=Action.IMPORT, hdfs_path="/restore/hbase/")

        Importer(engine).import_snapshot(request, "orders-snap", base_conf)

        assert engine.calls[0].spec.destination_uri == "hdfs://nn:8020/restore/hbase"

    def test_nonzero_status(self, engine, base_conf):
        """A failed copy is CopyFailed."""
        engine.exit_status = 1

        outcome = Importer(engine).import_snapshot(make_request(action=Action.IMPORT), "s", base_conf)

        assert isinstance(outcome.error, CopyFailed)
        assert outcome.error.operation == "import"


class TestRedirectToRemote:
    """Tests for redirect_to_remote."""

    def test_s3n_credential_keys(self, base_conf):
        """The credential keys follow the protocol scheme."""
        endpoint = make_request(protocol=RemoteProtocol.S3N).remote_endpoint

        conf = redirect_to_remote(base_conf, endpoint)

        assert conf["fs.s3n.awsAccessKeyId"] == "AK"
        assert conf["fs.defaultFS"] == "s3n://AK:SK@mybucket"
        assert "fs.s3.awsAccessKeyId" not in conf
