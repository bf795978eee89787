"""
Snapshot pipeline orchestrator.

Runs one BackupRequest through:

    IDLE -> VALIDATED -> (SWEPT)? -> (CREATED)? -> EXPORTED | IMPORTED -> DONE
                                                                \\-> FAILED

Invariants:
    - Validation and name resolution happen before anything mutates the cluster
    - The retention sweep runs first and never affects the terminal state
    - Export never runs after a failed create (fail fast, no partial pipeline)
    - Every step gets the base configuration; only the importer derives a
      redirected one, and it never escapes that call
    - run() never raises

How to change safely:
    - New steps must gate on the previous step's outcome
    - Keep the sweep independent of create/export/import outcomes
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from .admin.base import AdminFactory
from .errors import SnapshotToolError, UnknownFailure
from .hadoop_conf import HadoopConfiguration
from .naming import resolve_snapshot_name
from .operations import Exporter, Importer, OperationOutcome, SnapshotCreator
from .probe import BucketProbe
from .request import BackupRequest
from .retention import RetentionSweeper, SweepReport
from .transfer.base import CopyEngine

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


class PipelineState(Enum):
    """Orchestrator states."""

    IDLE = "idle"
    VALIDATED = "validated"
    SWEPT = "swept"
    CREATED = "created"
    EXPORTED = "exported"
    IMPORTED = "imported"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BackupResult:
    """Result of running a request.

    Attributes:
        state: Terminal state (DONE or FAILED)
        snapshot_name: Effective snapshot name, if it was resolved
        steps: Outcome of every step that ran, in order
        sweep: Retention sweep report, if a sweep ran
        error: The error that moved the pipeline to FAILED
        duration_ms: Total run time
    """

    state: PipelineState
    snapshot_name: str | None = None
    steps: list[OperationOutcome] = field(default_factory=list)
    sweep: SweepReport | None = None
    error: SnapshotToolError | None = None
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return self.state is PipelineState.DONE

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.success else EXIT_FAILURE

    def step(self, operation: str) -> OperationOutcome | None:
        """Outcome of a named step, None if it never ran."""
        for outcome in self.steps:
            if outcome.operation == operation:
                return outcome
        return None


class BackupOrchestrator:
    """Drives a BackupRequest through sweep, create, export and import.

    Attributes:
        base_conf: The cluster's real configuration

    Example:
        >>> orchestrator = BackupOrchestrator(
        ...     admin_factory=lambda: create_snapshot_admin(config),
        ...     copy_engine=ExportSnapshotEngine(config.hbase),
        ...     base_conf=HadoopConfiguration.load(config.hbase.conf_dirs),
        ... )
        >>> result = orchestrator.run(request)
        >>> sys.exit(result.exit_code)
    """

    def __init__(
        self,
        admin_factory: AdminFactory,
        copy_engine: CopyEngine,
        base_conf: HadoopConfiguration,
        clock: Callable[[], float] = time.time,
        probe: BucketProbe | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            admin_factory: Opens an admin handle on the cluster
            copy_engine: Runs snapshot copy jobs
            base_conf: Cluster configuration shared by every step
            clock: Returns the current Unix time in seconds
            probe: Bucket probe used when the request asks for verification
        """
        self.admin_factory = admin_factory
        self.copy_engine = copy_engine
        self.base_conf = base_conf
        self.probe = probe
        self._clock = clock
        self._state = PipelineState.IDLE

        self.creator = SnapshotCreator(admin_factory)
        self.exporter = Exporter(copy_engine)
        self.importer = Importer(copy_engine)

    @property
    def state(self) -> PipelineState:
        return self._state

    def _transition(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline state {self._state.value} -> {state.value}")
        self._state = state

    def _fail(self, result: BackupResult, error: SnapshotToolError) -> BackupResult:
        self._transition(PipelineState.FAILED)
        result.state = PipelineState.FAILED
        result.error = error
        return result

    def _record(self, result: BackupResult, outcome: OperationOutcome) -> bool:
        result.steps.append(outcome)
        return outcome.success

    def run(self, request: BackupRequest) -> BackupResult:
        """Execute the request.

        Args:
            request: The backup request

        Returns:
            BackupResult in state DONE or FAILED
        """
        start = self._clock()
        self._state = PipelineState.IDLE
        result = BackupResult(state=PipelineState.IDLE)
        try:
            return self._run(request, result)
        except Exception as e:
            error = UnknownFailure(
                "Unexpected error in snapshot pipeline",
                cause=e,
                snapshot_name=result.snapshot_name,
            )
            logger.error(str(error), exc_info=True)
            return self._fail(result, error)
        finally:
            result.duration_ms = int((self._clock() - start) * 1000)

    def _run(self, request: BackupRequest, result: BackupResult) -> BackupResult:
        try:
            request.validate()
            now = datetime.fromtimestamp(self._clock(), tz=timezone.utc)
            snapshot_name = resolve_snapshot_name(request, now)
        except SnapshotToolError as e:
            logger.error(f"Invalid request: {e}")
            return self._fail(result, e)

        result.snapshot_name = snapshot_name
        self._transition(PipelineState.VALIDATED)

        for line in request.describe(snapshot_name):
            logger.info(line)

        if request.snapshot_ttl > 0:
            sweeper = RetentionSweeper(self.admin_factory, request.snapshot_ttl, clock=self._clock)
            result.sweep = sweeper.sweep()
            self._transition(PipelineState.SWEPT)

        if self.probe is not None and request.verify_bucket and (
            request.export_requested or request.import_requested
        ):
            try:
                self.probe.check(request.remote_endpoint)
            except SnapshotToolError as e:
                logger.error(str(e))
                self._record(result, OperationOutcome.failed("probe", e))
                return self._fail(result, e)
            self._record(result, OperationOutcome.ok("probe"))

        if request.create_requested:
            logger.info("Creating snapshot...")
            outcome = self.creator.create(request.table_name, snapshot_name)
            if not self._record(result, outcome):
                logger.error("Snapshot creation failed")
                return self._fail(result, outcome.error)
            logger.info(f"Successfully created snapshot '{snapshot_name}'")
            self._transition(PipelineState.CREATED)

        if request.export_requested:
            logger.info(f"Exporting snapshot '{snapshot_name}' to S3...")
            outcome = self.exporter.export(request, snapshot_name, self.base_conf)
            if not self._record(result, outcome):
                logger.error(f"Failed to export snapshot '{snapshot_name}' to S3")
                return self._fail(result, outcome.error)
            logger.info(f"Successfully exported snapshot '{snapshot_name}' to S3")
            self._transition(PipelineState.EXPORTED)

        elif request.import_requested:
            logger.info(f"Importing snapshot '{snapshot_name}' from S3...")
            outcome = self.importer.import_snapshot(request, snapshot_name, self.base_conf)
            if not self._record(result, outcome):
                logger.error(f"Failed to import snapshot '{snapshot_name}' from S3")
                return self._fail(result, outcome.error)
            logger.info(f"Successfully imported snapshot '{snapshot_name}' from S3")
            self._transition(PipelineState.IMPORTED)

        self._transition(PipelineState.DONE)
        result.state = PipelineState.DONE
        logger.info("Complete")
        return result
