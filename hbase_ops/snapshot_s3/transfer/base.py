"""
Base protocol and types for the distributed snapshot copy engine.

The engine copies a snapshot's files between two filesystems with a
configurable number of parallel workers. This tool only describes the job
(CopyJobSpec) and the configuration to run it with; the engine owns
execution entirely.

Invariants:
    - run() returns the engine's exit status; 0 is the only success
    - The engine reads the copy source from hbase.rootdir in the
      configuration it is given; source_uri is informational
    - The configuration passed in is never modified by the engine wrapper
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from ..hadoop_conf import HadoopConfiguration, redact_value


@dataclass(frozen=True)
class CopyJobSpec:
    """One snapshot copy job.

    Attributes:
        snapshot_name: Snapshot to copy
        source_uri: Where the snapshot is read from (for logs)
        destination_uri: Where the snapshot is written (-copy-to)
        mappers: Number of parallel copiers
    """
    snapshot_name: str
    source_uri: str
    destination_uri: str
    mappers: int = 1

    def to_args(self) -> list[str]:
        """ExportSnapshot argument vector."""
        return [
            "-snapshot",
            self.snapshot_name,
            "-copy-to",
            self.destination_uri,
            "-mappers",
            str(self.mappers),
        ]

    def describe(self) -> str:
        """Loggable summary with credentials masked."""
        return (
            f"{self.snapshot_name}: {redact_value('uri', self.source_uri)} -> "
            f"{redact_value('uri', self.destination_uri)} (mappers={self.mappers})"
        )


@runtime_checkable
class CopyEngine(Protocol):
    """Protocol for snapshot copy engines."""

    @abstractmethod
    def run(self, spec: CopyJobSpec, conf: HadoopConfiguration) -> int:
        """Run a copy job to completion.

        Args:
            spec: What to copy
            conf: Configuration the job runs with

        Returns:
            Exit status, 0 on success

        Raises:
            Exception: Implementations may raise on failures to launch the job
        """
        ...
