"""
Copy engine backed by HBase's ExportSnapshot MapReduce job.

Runs:

    hbase org.apache.hadoop.hbase.snapshot.ExportSnapshot \\
        [-conf <overrides.xml>] -snapshot <name> -copy-to <uri> -mappers <n>

The child process loads the site files itself, so only the properties a
caller overrode with HadoopConfiguration.derive() are handed over. They go
through a temporary site file passed with the generic -conf option rather
than -D options, which keeps the import credentials off the process list.
The export destination URI still carries credentials on the command line;
ExportSnapshot reads them from -copy-to.

Invariants:
    - The overrides file is readable by the owner only and is removed once
      the child exits
    - The logged command line never contains secrets
    - A timeout is reported as exit status -1, not raised
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager

from ..config import HBaseConfig
from ..hadoop_conf import HadoopConfiguration, redact_value, to_site_xml
from .base import CopyJobSpec

logger = logging.getLogger(__name__)

EXPORT_SNAPSHOT_CLASS = "org.apache.hadoop.hbase.snapshot.ExportSnapshot"
TIMEOUT_EXIT_STATUS = -1


@contextmanager
def overrides_file(conf: HadoopConfiguration) -> Iterator[str | None]:
    """Write conf.overrides to a private site file for the child's -conf option.

    Yields:
        Path of the file, or None when there is nothing to override
    """
    if not conf.overrides:
        yield None
        return

    # mkstemp creates the file with mode 0600
    fd, path = tempfile.mkstemp(prefix="snapshot-s3-", suffix="-site.xml")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(to_site_xml(conf.overrides))
        yield path
    finally:
        os.unlink(path)


def build_command(
    hbase_bin: str,
    spec: CopyJobSpec,
    conf_file: str | None = None,
    redact: bool = False,
) -> list[str]:
    """Assemble the ExportSnapshot command line.

    Args:
        hbase_bin: Path of the `hbase` launcher
        spec: Copy job
        conf_file: Site file holding configuration overrides, if any
        redact: Mask secrets, for logging

    Returns:
        Argument vector
    """
    cmd = [hbase_bin, EXPORT_SNAPSHOT_CLASS]
    if conf_file:
        cmd.extend(["-conf", conf_file])

    args = spec.to_args()
    if redact:
        args = [redact_value("arg", arg) for arg in args]
    cmd.extend(args)
    return cmd


class ExportSnapshotEngine:
    """CopyEngine implementation running ExportSnapshot via the hbase launcher.

    Attributes:
        config: HBase installation settings
    """

    def __init__(self, config: HBaseConfig) -> None:
        self.config = config

    def run(self, spec: CopyJobSpec, conf: HadoopConfiguration) -> int:
        with overrides_file(conf) as conf_file:
            cmd = build_command(self.config.hbase_bin, spec, conf_file)
            logger.info(
                f"Running ExportSnapshot: "
                f"{' '.join(build_command(self.config.hbase_bin, spec, conf_file, redact=True))}"
            )

            for key, value in conf.redacted_items():
                logger.debug(f"{key} : '{value}'")

            timeout = self.config.export_timeout_seconds or None
            try:
                result = subprocess.run(cmd, timeout=timeout, check=False)
            except subprocess.TimeoutExpired:
                logger.error(
                    f"ExportSnapshot timed out after {timeout}s",
                    extra={"snapshot": spec.snapshot_name},
                )
                return TIMEOUT_EXIT_STATUS

        if result.returncode != 0:
            logger.error(
                f"ExportSnapshot exited with status {result.returncode}",
                extra={"snapshot": spec.snapshot_name},
            )
        return result.returncode
