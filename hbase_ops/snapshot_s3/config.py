"""
Configuration management for the snapshot S3 utility.

Per-invocation choices (table, bucket, credentials, action) come from the
command line. Everything about the host the tool runs on comes from
environment variables and is described here.

Invariants:
    - All settings have sensible defaults for a standard HBase node
    - Secrets are never logged or exposed in error messages

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Command-line flags stay the operator contract; do not move them here
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


def _conf_dirs_from_env() -> tuple[str, ...]:
    dirs = []
    for var, default in (("HADOOP_CONF_DIR", "/etc/hadoop/conf"), ("HBASE_CONF_DIR", "/etc/hbase/conf")):
        value = os.getenv(var, default)
        if value:
            dirs.append(value)
    return tuple(dirs)


@dataclass(frozen=True)
class HBaseConfig:
    """Local HBase installation.

    Attributes:
        hbase_bin: The `hbase` launcher used for the shell and ExportSnapshot
        conf_dirs: Directories holding core-site.xml / hbase-site.xml
        shell_timeout_seconds: Maximum time for one hbase shell invocation
        export_timeout_seconds: Maximum time for one copy job (0 = unlimited)
    """

    hbase_bin: str = "hbase"
    conf_dirs: tuple[str, ...] = ("/etc/hadoop/conf", "/etc/hbase/conf")
    shell_timeout_seconds: int = 600
    export_timeout_seconds: int = 0

    @classmethod
    def from_env(cls) -> HBaseConfig:
        """Load configuration from environment variables."""
        return cls(
            hbase_bin=os.getenv("HBASE_BIN", "hbase"),
            conf_dirs=_conf_dirs_from_env(),
            shell_timeout_seconds=int(os.getenv("HBASE_SHELL_TIMEOUT_SECONDS", "600")),
            export_timeout_seconds=int(os.getenv("EXPORT_TIMEOUT_SECONDS", "0")),
        )


@dataclass(frozen=True)
class S3Config:
    """S3 client settings for the bucket pre-flight probe.

    Credentials are not configured here; they come from the command line.

    Attributes:
        region: AWS region
        endpoint_url: Custom endpoint URL (for MinIO)
    """

    region: str = "us-east-1"
    endpoint_url: str | None = None

    @classmethod
    def from_env(cls) -> S3Config:
        """Load configuration from environment variables."""
        return cls(
            region=os.getenv("S3_REGION", os.getenv("AWS_REGION", "us-east-1")),
            endpoint_url=os.getenv("S3_ENDPOINT"),
        )


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "text"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "text"),
        )


@dataclass
class ToolConfig:
    """Complete tool configuration.

    Attributes:
        hbase: Local HBase installation
        s3: S3 client settings
        observability: Logging configuration
    """

    hbase: HBaseConfig = field(default_factory=HBaseConfig)
    s3: S3Config = field(default_factory=S3Config)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ToolConfig:
        """Load complete configuration from environment variables.

        Raises:
            ValueError: If a setting is invalid.
        """
        config = cls(
            hbase=HBaseConfig.from_env(),
            s3=S3Config.from_env(),
            observability=ObservabilityConfig.from_env(),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not self.hbase.hbase_bin:
            raise ValueError("HBASE_BIN must not be empty")
        if self.hbase.shell_timeout_seconds <= 0:
            raise ValueError("HBASE_SHELL_TIMEOUT_SECONDS must be positive")
        if self.hbase.export_timeout_seconds < 0:
            raise ValueError("EXPORT_TIMEOUT_SECONDS cannot be negative")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        for conf_dir in self.hbase.conf_dirs:
            if not os.path.isdir(conf_dir):
                logger.warning(f"Configuration directory does not exist: {conf_dir}")

    def log_config(self) -> None:
        """Log configuration."""
        logger.debug(
            "Tool configuration loaded",
            extra={
                "hbase_bin": self.hbase.hbase_bin,
                "conf_dirs": list(self.hbase.conf_dirs),
                "shell_timeout_seconds": self.hbase.shell_timeout_seconds,
                "export_timeout_seconds": self.hbase.export_timeout_seconds,
                "s3_region": self.s3.region,
                "s3_endpoint": self.s3.endpoint_url,
                "log_level": self.observability.log_level,
            },
        )
