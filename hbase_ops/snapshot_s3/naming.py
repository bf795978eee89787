"""Effective snapshot name resolution."""

from __future__ import annotations

from datetime import datetime, timezone

from .errors import InvalidRequest
from .request import BackupRequest

# Second resolution, zero padded: lexicographic order == chronological order.
SNAPSHOT_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
SNAPSHOT_NAME_INFIX = "-snapshot-"


def format_snapshot_timestamp(moment: datetime) -> str:
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(SNAPSHOT_TIMESTAMP_FORMAT)


def resolve_snapshot_name(request: BackupRequest, now: datetime | None = None) -> str:
    """Return the snapshot name this request operates on.

    An explicit name is returned unchanged. Otherwise the name is derived
    as "<table>-snapshot-<yyyyMMdd_HHmmss>" using UTC wall-clock time.

    Args:
        request: The backup request
        now: Timestamp to use instead of the current time

    Returns:
        Effective snapshot name

    Raises:
        InvalidRequest: If neither a snapshot name nor a table name is set
    """
    if request.snapshot_name:
        return request.snapshot_name

    if not request.table_name:
        raise InvalidRequest(
            "Cannot derive a snapshot name without a table name",
            operation=request.action.value,
        )

    moment = now or datetime.now(timezone.utc)
    return f"{request.table_name}{SNAPSHOT_NAME_INFIX}{format_snapshot_timestamp(moment)}"
