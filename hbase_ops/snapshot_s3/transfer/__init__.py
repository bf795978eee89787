"""
Snapshot transfer (copy) engines.

- ExportSnapshot through the hbase launcher (production)
- Recording engine (for testing)
"""

from .base import CopyEngine, CopyJobSpec
from .export_snapshot import ExportSnapshotEngine, build_command
from .memory import RecordedCopy, RecordingCopyEngine

__all__ = [
    "CopyEngine",
    "CopyJobSpec",
    "ExportSnapshotEngine",
    "build_command",
    "RecordingCopyEngine",
    "RecordedCopy",
]
