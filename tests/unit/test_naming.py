"""
Unit tests for snapshot name resolution.

Tests cover:
- Explicit names are returned unchanged
- Derived names use table and timestamp
- Ordering of derived names
"""

from datetime import datetime, timedelta, timezone

import pytest

from hbase_ops.snapshot_s3.errors import InvalidRequest
from hbase_ops.snapshot_s3.naming import resolve_snapshot_name
from hbase_ops.snapshot_s3.request import Action, BackupRequest


def make_request(**overrides):
    """Helper to create a request with credentials filled in."""
    fields = dict(
        action=Action.CREATE,
        bucket_name="backups",
        access_key="K",
        access_secret="S",
        table_name="orders",
    )
    fields.update(overrides)
    return BackupRequest(**fields)


NOW = datetime(2026, 10, 19, 7, 5, 9, tzinfo=timezone.utc)


class TestResolveSnapshotName:
    """Tests for resolve_snapshot_name."""

    def test_explicit_name_unchanged(self):
        """An explicit name is returned exactly."""
        request = make_request(snapshot_name="nightly-orders")
        assert resolve_snapshot_name(request, NOW) == "nightly-orders"

    def test_explicit_name_is_idempotent(self):
        """Resolving twice gives the same explicit name."""
        request = make_request(snapshot_name="x")
        assert resolve_snapshot_name(request) == resolve_snapshot_name(request) == "x"

    def test_derived_name_format(self):
        """Derived names are <table>-snapshot-<yyyyMMdd_HHmmss>."""
        assert resolve_snapshot_name(make_request(), NOW) == "orders-snapshot-20261019_070509"

    def test_derived_name_stable_within_instant(self):
        """Same instant yields the same name."""
        request = make_request()
        assert resolve_snapshot_name(request, NOW) == resolve_snapshot_name(request, NOW)

    def test_derived_names_increase_across_ticks(self):
        """Later seconds sort strictly after earlier ones."""
        request = make_request()
        names = [resolve_snapshot_name(request, NOW + timedelta(seconds=s)) for s in (0, 1, 59, 3600, 86400 * 40)]
        assert names == sorted(names)
        assert len(set(names)) == len(names)

    def test_aware_timestamp_converted_to_utc(self):
        """Timezone-aware timestamps are rendered in UTC."""
        local = NOW.astimezone(timezone(timedelta(hours=9)))
        assert resolve_snapshot_name(make_request(), local) == "orders-snapshot-20261019_070509"

    def test_missing_table_and_name(self):
        """Neither table nor name is an invalid request."""
        request = make_request(action=Action.EXPORT, table_name=None)
        with pytest.raises(InvalidRequest):
            resolve_snapshot_name(request, NOW)
