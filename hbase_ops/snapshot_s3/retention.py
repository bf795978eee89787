"""
TTL-based retention for cluster snapshots.

The sweeper deletes every snapshot on the cluster whose age exceeds the
configured TTL. It runs before any create/export/import in the same
invocation and its outcome never changes whether those steps run.

Invariants:
    - Snapshots are listed fresh on every sweep
    - age = (now - created) in whole seconds; deleted only when age > ttl
    - One failed deletion never stops the sweep
    - A failed listing ends the sweep only; it is reported, not raised
    - The admin handle is closed on every path

How to change safely:
    - Keep the comparison strict; operators rely on "exactly ttl" surviving
    - Do not add retries here; the next scheduled run is the retry
"""

from __future__ import annotations

import logging
import time
from contextlib import closing
from dataclasses import dataclass, field
from typing import Callable

from .admin.base import AdminFactory, SnapshotDescriptor
from .errors import RetentionItemFailed

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    """Outcome of one retention sweep.

    Attributes:
        ttl_seconds: Threshold the sweep ran with
        skipped: True when the TTL is 0 and nothing ran
        examined: Snapshots considered
        deleted: Names of snapshots deleted
        retained: Names of snapshots kept
        failures: Deletions that failed
        listing_error: Why the snapshot listing could not be obtained
    """

    ttl_seconds: int
    skipped: bool = False
    examined: int = 0
    deleted: list[str] = field(default_factory=list)
    retained: list[str] = field(default_factory=list)
    failures: list[RetentionItemFailed] = field(default_factory=list)
    listing_error: Exception | None = None

    @property
    def clean(self) -> bool:
        """True when the sweep saw no errors at all."""
        return self.listing_error is None and not self.failures


class RetentionSweeper:
    """Deletes cluster snapshots older than a TTL.

    Example:
        >>> sweeper = RetentionSweeper(cluster.handle, ttl_seconds=86400)
        >>> report = sweeper.sweep()
        >>> print(f"Deleted {len(report.deleted)} snapshots")
    """

    def __init__(
        self,
        admin_factory: AdminFactory,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the sweeper.

        Args:
            admin_factory: Opens an admin handle on the real cluster
            ttl_seconds: Maximum snapshot age in seconds (0 disables)
            clock: Returns the current Unix time in seconds
        """
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds cannot be negative")
        self.admin_factory = admin_factory
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def is_expired(self, snapshot: SnapshotDescriptor, now_ms: int) -> bool:
        return snapshot.age_seconds(now_ms) > self.ttl_seconds

    def sweep(self) -> SweepReport:
        """Run one sweep.

        Returns:
            SweepReport; never raises for listing or deletion failures
        """
        report = SweepReport(ttl_seconds=self.ttl_seconds)
        if self.ttl_seconds <= 0:
            report.skipped = True
            return report

        now_ms = int(self._clock() * 1000)

        try:
            handle = self.admin_factory()
        except Exception as e:
            logger.error(f"Failed to get a list of snapshots from HBase: {e}", exc_info=True)
            report.listing_error = e
            return report

        with closing(handle) as admin:
            try:
                snapshots = admin.list_snapshots()
            except Exception as e:
                logger.error(f"Could not get a list of snapshots from HBase: {e}", exc_info=True)
                report.listing_error = e
                return report

            for snapshot in snapshots:
                report.examined += 1
                age = snapshot.age_seconds(now_ms)
                logger.debug(
                    f"Found snapshot '{snapshot.name}'. Created: {snapshot.creation_time_ms}"
                )

                if age <= self.ttl_seconds:
                    report.retained.append(snapshot.name)
                    continue

                logger.info(f"Deleting old snapshot '{snapshot.name}'. Lived for '{age}' secs")
                try:
                    admin.delete_snapshot(snapshot.name)
                except Exception as e:
                    failure = RetentionItemFailed(
                        f"Failed to delete snapshot '{snapshot.name}'",
                        snapshot_name=snapshot.name,
                        age_seconds=age,
                        cause=e,
                    )
                    logger.error(str(failure), exc_info=True)
                    report.failures.append(failure)
                    continue

                report.deleted.append(snapshot.name)

        logger.info(
            "Retention sweep finished",
            extra={
                "ttl_seconds": self.ttl_seconds,
                "examined": report.examined,
                "deleted": len(report.deleted),
                "failed": len(report.failures),
            },
        )
        return report
