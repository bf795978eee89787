"""
Unit tests for the hbase shell admin backend.

Tests cover:
- Script generation and quoting
- Listing output parsing
- Failure classification
"""

import subprocess

import pytest

from hbase_ops.snapshot_s3.admin import HBaseShellAdmin, SnapshotAdminError, parse_snapshot_listing
from hbase_ops.snapshot_s3.admin import shell
from hbase_ops.snapshot_s3.config import HBaseConfig
from hbase_ops.snapshot_s3.errors import CreationFailed, InvalidRequest


class FakeShell:
    """Stands in for subprocess.run and records scripts."""

    def __init__(self, returncode=0, stdout="", stderr="", error=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.error = error
        self.calls = []

    def __call__(self, cmd, input=None, **kwargs):
        self.calls.append((cmd, input, kwargs))
        if self.error is not None:
            raise self.error
        return subprocess.CompletedProcess(cmd, self.returncode, self.stdout, self.stderr)


@pytest.fixture
def fake_shell(monkeypatch):
    fake = FakeShell()
    monkeypatch.setattr(shell.subprocess, "run", fake)
    return fake


@pytest.fixture
def admin():
    return HBaseShellAdmin(HBaseConfig(hbase_bin="/opt/hbase/bin/hbase", shell_timeout_seconds=30))


class TestRubyQuote:
    """Tests for ruby_quote."""

    def test_plain(self):
        """Plain names are single-quoted."""
        assert shell.ruby_quote("orders") == "'orders'"

    def test_escapes_quotes(self):
        """Embedded quotes and backslashes are escaped."""
        assert shell.ruby_quote("a'b\\c") == "'a\\'b\\\\c'"


class TestParseSnapshotListing:
    """Tests for parse_snapshot_listing."""

    def test_parses_marker_lines(self):
        """Marker lines become descriptors; noise is ignored."""
        output = (
            "HBase Shell; enter 'help<RETURN>' for list of supported commands.\n"
            "SNAPSHOT\torders-snap\torders\t1700000000000\n"
            "SNAPSHOT\tusers-snap\tns:users\t1700000100000\n"
            "took 0.2 seconds\n"
        )

        snapshots = parse_snapshot_listing(output)

        assert [s.name for s in snapshots] == ["orders-snap", "users-snap"]
        assert snapshots[1].table == "ns:users"
        assert snapshots[0].creation_time_ms == 1700000000000

    def test_skips_malformed(self):
        """Malformed marker lines are skipped."""
        output = "SNAPSHOT\tonly-two\n" "SNAPSHOT\tx\tt\tnot-a-number\n" "SNAPSHOT\tok\tt\t5\n"
        assert [s.name for s in parse_snapshot_listing(output)] == ["ok"]

    def test_empty(self):
        """No snapshots yields an empty list."""
        assert parse_snapshot_listing("") == []


class TestHBaseShellAdmin:
    """Tests for HBaseShellAdmin."""

    def test_create_script(self, admin, fake_shell):
        """create_snapshot sends a snapshot command to the shell."""
        admin.create_snapshot("orders", "orders-snap")

        cmd, script, kwargs = fake_shell.calls[0]
        assert cmd == ["/opt/hbase/bin/hbase", "shell", "-n"]
        assert script == "snapshot 'orders', 'orders-snap'\n"
        assert kwargs["timeout"] == 30

    def test_create_illegal_argument(self, admin, fake_shell):
        """IllegalArgumentException maps to InvalidRequest."""
        fake_shell.returncode = 1
        fake_shell.stderr = "ERROR: java.lang.IllegalArgumentException: Illegal character"

        with pytest.raises(InvalidRequest):
            admin.create_snapshot("bad table", "snap")

    def test_create_exists(self, admin, fake_shell):
        """SnapshotExistsException maps to CreationFailed."""
        fake_shell.stdout = "ERROR: org.apache.hadoop.hbase.snapshot.SnapshotExistsException: snap"

        with pytest.raises(CreationFailed):
            admin.create_snapshot("orders", "snap")

    def test_create_other_failure(self, admin, fake_shell):
        """Unclassified failures raise SnapshotAdminError."""
        fake_shell.returncode = 1
        fake_shell.stderr = "ERROR: Unknown table orders!"

        with pytest.raises(SnapshotAdminError):
            admin.create_snapshot("orders", "snap")

    def test_list(self, admin, fake_shell):
        """list_snapshots parses the shell output."""
        fake_shell.stdout = "SNAPSHOT\ts1\torders\t42\n"

        snapshots = admin.list_snapshots()

        assert snapshots[0].name == "s1"
        assert "listSnapshots" in fake_shell.calls[0][1]

    def test_list_failure(self, admin, fake_shell):
        """A failing listing raises SnapshotAdminError."""
        fake_shell.returncode = 1

        with pytest.raises(SnapshotAdminError):
            admin.list_snapshots()

    def test_delete_script(self, admin, fake_shell):
        """delete_snapshot sends a delete_snapshot command."""
        admin.delete_snapshot("old-snap")
        assert fake_shell.calls[0][1] == "delete_snapshot 'old-snap'\n"

    def test_timeout(self, admin, fake_shell):
        """A shell timeout raises SnapshotAdminError."""
        fake_shell.error = subprocess.TimeoutExpired(cmd="hbase", timeout=30)

        with pytest.raises(SnapshotAdminError, match="timed out"):
            admin.delete_snapshot("old-snap")

    def test_missing_binary(self, admin, fake_shell):
        """A missing launcher raises SnapshotAdminError."""
        fake_shell.error = FileNotFoundError("hbase")

        with pytest.raises(SnapshotAdminError):
            admin.list_snapshots()

    def test_closed_handle(self, admin, fake_shell):
        """A closed handle refuses further calls."""
        admin.close()

        with pytest.raises(SnapshotAdminError):
            admin.list_snapshots()
        assert fake_shell.calls == []


class TestCreateSnapshotAdmin:
    """Tests for the admin factory."""

    def test_builds_shell_admin(self):
        """The production factory returns a shell admin for the configured launcher."""
        from hbase_ops.snapshot_s3.admin import SnapshotAdmin, create_snapshot_admin
        from hbase_ops.snapshot_s3.config import ToolConfig

        admin = create_snapshot_admin(ToolConfig(hbase=HBaseConfig(hbase_bin="/usr/bin/hbase")))

        assert isinstance(admin, HBaseShellAdmin)
        assert isinstance(admin, SnapshotAdmin)
        assert admin.config.hbase_bin == "/usr/bin/hbase"
