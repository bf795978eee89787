"""
Recording copy engine for testing.

Stores every job it is asked to run together with the configuration it
was given, and answers with scripted exit statuses.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..hadoop_conf import HadoopConfiguration
from .base import CopyJobSpec


@dataclass
class RecordedCopy:
    """A single run() invocation."""
    spec: CopyJobSpec
    conf: HadoopConfiguration


@dataclass
class RecordingCopyEngine:
    """CopyEngine that records calls instead of copying.

    Attributes:
        exit_status: Status returned when `statuses` is exhausted
        statuses: Statuses returned by successive calls, consumed in order
        error: Raised by run() when set
        calls: Every recorded invocation
    """
    exit_status: int = 0
    statuses: list[int] = field(default_factory=list)
    error: Exception | None = None
    calls: list[RecordedCopy] = field(default_factory=list)

    def run(self, spec: CopyJobSpec, conf: HadoopConfiguration) -> int:
        self.calls.append(RecordedCopy(spec=spec, conf=conf))
        if self.error is not None:
            raise self.error
        if self.statuses:
            return self.statuses.pop(0)
        return self.exit_status

    @property
    def call_count(self) -> int:
        return len(self.calls)
