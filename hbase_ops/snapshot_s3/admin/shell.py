"""
Snapshot admin backend driving the HBase shell.

Each operation runs `hbase shell -n` as a subprocess with the script on
stdin. The shell picks up cluster addressing from the site files in
$HBASE_CONF_DIR, the same files HadoopConfiguration.load() reads.

Listing uses a short JRuby snippet against the client Admin API so the
output is one machine-readable line per snapshot:

    SNAPSHOT<TAB><name><TAB><table><TAB><creation time ms>

Invariants:
    - Names are passed as quoted Ruby string literals, never interpolated raw
    - Exceptions raised follow the SnapshotAdmin protocol classification
    - No retries; a failed invocation is reported once

How to change safely:
    - Test output parsing against both HBase 1.x and 2.x shells
    - Keep the LIST marker stable; parse_snapshot_listing depends on it
"""

from __future__ import annotations

import logging
import subprocess

from ..config import HBaseConfig
from ..errors import CreationFailed, InvalidRequest
from .base import SnapshotAdminError, SnapshotDescriptor

logger = logging.getLogger(__name__)

LISTING_MARKER = "SNAPSHOT"

LIST_SNAPSHOTS_SCRIPT = """
conn = org.apache.hadoop.hbase.client.ConnectionFactory.createConnection(org.apache.hadoop.hbase.HBaseConfiguration.create)
begin
  conn.getAdmin.listSnapshots.each do |s|
    table = s.respond_to?(:getTableNameAsString) ? s.getTableNameAsString : s.getTable
    puts ["SNAPSHOT", s.getName, table, s.getCreationTime].join("\\t")
  end
ensure
  conn.close
end
"""

_INVALID_MARKERS = ("IllegalArgumentException",)
_CREATION_MARKERS = ("SnapshotCreationException", "SnapshotExistsException")


def ruby_quote(value: str) -> str:
    """Quote a value as a single-quoted Ruby string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def parse_snapshot_listing(output: str) -> list[SnapshotDescriptor]:
    """Parse the marker lines printed by LIST_SNAPSHOTS_SCRIPT.

    Lines without the marker (shell banners, log noise) are ignored.
    Malformed marker lines are skipped with a warning.
    """
    snapshots = []
    for line in output.splitlines():
        if not line.startswith(LISTING_MARKER + "\t"):
            continue
        parts = line.rstrip("\r").split("\t")
        if len(parts) != 4:
            logger.warning(f"Ignoring malformed snapshot listing line: {line!r}")
            continue
        _, name, table, created = parts
        try:
            creation_time_ms = int(created)
        except ValueError:
            logger.warning(f"Ignoring snapshot '{name}' with unparseable creation time {created!r}")
            continue
        snapshots.append(SnapshotDescriptor(name=name, table=table, creation_time_ms=creation_time_ms))
    return snapshots


def _tail(output: str, lines: int = 5) -> str:
    meaningful = [line for line in output.splitlines() if line.strip()]
    return "\n".join(meaningful[-lines:])


class HBaseShellAdmin:
    """SnapshotAdmin implementation on top of `hbase shell -n`.

    Attributes:
        config: HBase installation settings

    Example:
        >>> admin = HBaseShellAdmin(HBaseConfig())
        >>> admin.create_snapshot("orders", "orders-snapshot-20261019_120000")
        >>> admin.close()
    """

    def __init__(self, config: HBaseConfig) -> None:
        self.config = config
        self._closed = False

    def create_snapshot(self, table: str, name: str) -> None:
        script = f"snapshot {ruby_quote(table)}, {ruby_quote(name)}\n"
        result = self._run(script, operation="create")
        if self._failed(result):
            output = result.stdout + result.stderr
            if any(marker in output for marker in _INVALID_MARKERS):
                raise InvalidRequest(
                    "Snapshot request is invalid",
                    operation="create",
                    snapshot_name=name,
                    context={"table": table, "output": _tail(output)},
                )
            if any(marker in output for marker in _CREATION_MARKERS):
                raise CreationFailed(
                    "HBase refused to create the snapshot",
                    operation="create",
                    snapshot_name=name,
                    context={"table": table, "output": _tail(output)},
                )
            raise SnapshotAdminError(
                f"hbase shell exited with status {result.returncode} while creating "
                f"snapshot '{name}': {_tail(output)}"
            )

    def list_snapshots(self) -> list[SnapshotDescriptor]:
        result = self._run(LIST_SNAPSHOTS_SCRIPT, operation="list")
        if self._failed(result):
            raise SnapshotAdminError(
                f"hbase shell exited with status {result.returncode} while listing "
                f"snapshots: {_tail(result.stdout + result.stderr)}"
            )
        return parse_snapshot_listing(result.stdout)

    def delete_snapshot(self, name: str) -> None:
        result = self._run(f"delete_snapshot {ruby_quote(name)}\n", operation="delete")
        if self._failed(result):
            raise SnapshotAdminError(
                f"hbase shell exited with status {result.returncode} while deleting "
                f"snapshot '{name}': {_tail(result.stdout + result.stderr)}"
            )

    def close(self) -> None:
        # Every call is its own shell process; nothing is held between calls.
        self._closed = True

    def _run(self, script: str, operation: str) -> subprocess.CompletedProcess:
        if self._closed:
            raise SnapshotAdminError("Admin handle is closed")

        cmd = [self.config.hbase_bin, "shell", "-n"]
        logger.debug(f"Running hbase shell for {operation}", extra={"cmd": cmd})
        try:
            return subprocess.run(
                cmd,
                input=script,
                capture_output=True,
                text=True,
                timeout=self.config.shell_timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise SnapshotAdminError(
                f"hbase shell timed out after {self.config.shell_timeout_seconds}s during {operation}"
            ) from e
        except OSError as e:
            raise SnapshotAdminError(
                f"Could not run {self.config.hbase_bin!r} for {operation}: {e}"
            ) from e

    @staticmethod
    def _failed(result: subprocess.CompletedProcess) -> bool:
        # Older shells print "ERROR: ..." and still exit 0.
        return result.returncode != 0 or "ERROR:" in result.stdout or "ERROR:" in result.stderr
