"""
Command-line entry point for the snapshot S3 utility.

Usage:
    snapshot-s3-util -x -t orders -b backups -k <key> -s <secret> [-m 8] [-l 604800]
    snapshot-s3-util -i -n orders-snapshot-20261019_120000 -b backups -k <key> -s <secret>

Exactly one of --create, --createExport, --export, --import is required.

Exit status:
    0  every requested step succeeded (retention sweep failures excepted)
    1  a requested step failed
    2  invalid command line; nothing was run

Invariants:
    - Flags are parsed once into an immutable BackupRequest
    - A usage error is reported before any cluster or S3 call is made
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import json_log_formatter

from ._version import __version__
from .admin.base import AdminFactory, create_snapshot_admin
from .config import ObservabilityConfig, ToolConfig
from .errors import InvalidRequest, SnapshotToolError
from .hadoop_conf import HadoopConfiguration
from .location import RemoteProtocol
from .orchestrator import BackupOrchestrator
from .probe import BucketProbe
from .request import DEFAULT_PATH, Action, BackupRequest
from .transfer.base import CopyEngine
from .transfer.export_snapshot import ExportSnapshotEngine

logger = logging.getLogger(__name__)

EXIT_USAGE = 2

PROG = "snapshot-s3-util"
DESCRIPTION = "Backup utility for creating snapshots and exporting/importing to and from S3"


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if parsed < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {parsed}")
    return parsed


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if parsed < 0:
        raise argparse.ArgumentTypeError(f"cannot be negative, got {parsed}")
    return parsed


# (short, long, action, help)
ACTION_OPTIONS = (
    ("-c", "--create", Action.CREATE, "Create HBase snapshot"),
    ("-x", "--createExport", Action.CREATE_EXPORT, "Create HBase snapshot AND export to S3"),
    ("-e", "--export", Action.EXPORT, "Export HBase snapshot to S3"),
    (
        "-i",
        "--import",
        Action.IMPORT,
        "Import HBase snapshot from S3. May need to run as hbase user if importing into HBase",
    ),
)

# (flags, argparse keyword arguments)
VALUE_OPTIONS = (
    (("-t", "--table"), dict(
        dest="table_name",
        help="The table name to create a snapshot from. Required for creating a snapshot",
    )),
    (("-n", "--snapshot"), dict(
        dest="snapshot_name",
        help="The snapshot name. Required for importing from S3 and for exporting an "
             "existing snapshot. Default: <table>-snapshot-<yyyyMMdd_HHmmss>",
    )),
    (("-k", "--awsAccessKey"), dict(dest="access_key", required=True, help="The AWS access key")),
    (("-s", "--awsAccessSecret"), dict(dest="access_secret", required=True, help="The AWS access secret")),
    (("-b", "--bucketName"), dict(dest="bucket_name", required=True, help="The S3 bucket name where snapshots are stored")),
    (("-p", "--s3Path"), dict(
        dest="s3_path", default=DEFAULT_PATH,
        help="The snapshot directory in S3. Default is '/hbase'",
    )),
    (("-d", "--hdfsPath"), dict(
        dest="hdfs_path", default=DEFAULT_PATH,
        help="The snapshot directory in HDFS. Default is '/hbase'",
    )),
    (("-m", "--mappers"), dict(
        dest="mappers", type=_positive_int, default=1,
        help="The number of parallel copiers if copying to/from S3. Default: 1",
    )),
    (("-a", "--s3n"), dict(
        dest="use_s3n", action="store_true",
        help="Use s3n protocol instead of s3. Might work better, but beware of 5GB file limit imposed by S3",
    )),
    (("-l", "--snapshotTtl"), dict(
        dest="snapshot_ttl", type=_non_negative_int, default=0,
        help="Delete snapshots older than this value (seconds) from running HBase cluster",
    )),
    (("--verify-bucket",), dict(
        dest="verify_bucket", action="store_true",
        help="Check that the bucket is reachable before copying",
    )),
    (("-v", "--verbose"), dict(dest="verbose", action="store_true", help="Verbose output")),
)


class _RequestParser(argparse.ArgumentParser):
    """ArgumentParser that raises InvalidRequest instead of exiting."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise InvalidRequest(message)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser from the option tables."""
    parser = _RequestParser(prog=PROG, description=DESCRIPTION)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    actions = parser.add_mutually_exclusive_group(required=True)
    for short, long, action, help_text in ACTION_OPTIONS:
        actions.add_argument(short, long, dest="action", action="store_const", const=action, help=help_text)

    for flags, kwargs in VALUE_OPTIONS:
        parser.add_argument(*flags, **kwargs)

    return parser


def request_from_args(args: argparse.Namespace) -> BackupRequest:
    """Build and validate a BackupRequest from parsed arguments.

    Raises:
        InvalidRequest: If the flag combination is invalid
    """
    return BackupRequest(
        action=args.action,
        bucket_name=args.bucket_name,
        access_key=args.access_key,
        access_secret=args.access_secret,
        table_name=args.table_name,
        snapshot_name=args.snapshot_name,
        hdfs_path=args.hdfs_path,
        s3_path=args.s3_path,
        mappers=args.mappers,
        snapshot_ttl=args.snapshot_ttl,
        protocol=RemoteProtocol.S3N if args.use_s3n else RemoteProtocol.S3,
        verify_bucket=args.verify_bucket,
    ).validate()


def parse_request(argv: Sequence[str] | None = None) -> BackupRequest:
    """Parse a command line into a validated BackupRequest.

    Raises:
        InvalidRequest: On unknown, missing or conflicting flags
    """
    return request_from_args(build_parser().parse_args(argv))


def setup_logging(observability: ObservabilityConfig, verbose: bool = False) -> None:
    """Configure logging based on configuration.

    Args:
        observability: Logging configuration
        verbose: Force DEBUG level
    """
    level = logging.DEBUG if verbose else getattr(logging, observability.log_level.upper(), logging.INFO)

    if observability.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]

    # Reduce noise from libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("aiobotocore").setLevel(logging.WARNING)


def main(
    argv: Sequence[str] | None = None,
    config: ToolConfig | None = None,
    admin_factory: AdminFactory | None = None,
    copy_engine: CopyEngine | None = None,
    base_conf: HadoopConfiguration | None = None,
    probe: BucketProbe | None = None,
    configure_logging: bool = True,
) -> int:
    """CLI entry point.

    Collaborators default to the production ones built from `config`;
    tests inject in-memory replacements.

    Returns:
        Process exit status
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        request = request_from_args(args)
    except InvalidRequest as e:
        print(f"Error parsing command line arguments: {e.message}", file=sys.stderr)
        parser.print_help(sys.stderr)
        return EXIT_USAGE

    try:
        config = config or ToolConfig.from_env()
    except ValueError as e:
        print(f"Invalid environment configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    if configure_logging:
        setup_logging(config.observability, verbose=args.verbose)
    config.log_config()

    if base_conf is None:
        try:
            base_conf = HadoopConfiguration.load(config.hbase.conf_dirs)
        except SnapshotToolError as e:
            # Only the importer reads cluster addressing from here; it fails
            # on its own when the configuration is empty.
            logger.error(f"Could not load cluster configuration, continuing without it: {e}")
            base_conf = HadoopConfiguration()

    if request.verify_bucket and probe is None:
        probe = BucketProbe(config.s3)

    orchestrator = BackupOrchestrator(
        admin_factory=admin_factory or (lambda: create_snapshot_admin(config)),
        copy_engine=copy_engine or ExportSnapshotEngine(config.hbase),
        base_conf=base_conf,
        probe=probe,
    )
    result = orchestrator.run(request)

    logger.info(
        f"Finished in state {result.state.value}",
        extra={
            "snapshot": result.snapshot_name,
            "duration_ms": result.duration_ms,
            "exit_code": result.exit_code,
        },
    )
    return result.exit_code
