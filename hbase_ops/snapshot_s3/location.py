"""
Remote storage locations for snapshot export and import.

Builds the URIs Hadoop's S3 filesystems understand:

    s3://<access-key>:<secret>@<bucket>/<path>
    s3n://<bucket>/<path>

Invariants:
    - Formatting only, no network calls
    - Credentials are embedded only when explicitly asked for
    - Paths always start with exactly one slash

How to change safely:
    - New protocols go into RemoteProtocol with their size limit
    - Never log the result of uri(with_credentials=True); use redacted()
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RemoteProtocol(Enum):
    """Hadoop filesystem schemes for the remote object store.

    S3 is the block-based filesystem. S3N keeps native object semantics,
    which makes exported files readable by other S3 tools but limits every
    object to 5 GB.
    """

    S3 = "s3"
    S3N = "s3n"

    @property
    def scheme(self) -> str:
        return self.value

    @property
    def max_object_bytes(self) -> int | None:
        """Largest object the protocol can write, None if unbounded."""
        if self is RemoteProtocol.S3N:
            return 5 * 1024 * 1024 * 1024
        return None


def _normalize_path(path: str) -> str:
    return "/" + path.strip("/") if path.strip("/") else ""


def build_location_uri(
    protocol: RemoteProtocol,
    bucket: str,
    path: str,
    access_key: str | None = None,
    access_secret: str | None = None,
    with_credentials: bool = True,
) -> str:
    """Format a remote store URI.

    Args:
        protocol: Filesystem scheme to use
        bucket: Bucket name
        path: Path inside the bucket ("/hbase" or "hbase")
        access_key: Access key, embedded when with_credentials is set
        access_secret: Secret, embedded when with_credentials is set
        with_credentials: Whether to put "key:secret@" into the authority

    Returns:
        The URI string, e.g. "s3://AK:SK@mybucket/hbase"
    """
    authority = bucket
    if with_credentials and access_key:
        authority = f"{access_key}:{access_secret or ''}@{bucket}"
    return f"{protocol.scheme}://{authority}{_normalize_path(path)}"


@dataclass(frozen=True)
class StorageEndpoint:
    """A location in the remote object store.

    Attributes:
        protocol: Filesystem scheme
        bucket: Bucket name
        path: Snapshot root inside the bucket
        access_key: Access key ID
        access_secret: Secret access key
    """

    protocol: RemoteProtocol
    bucket: str
    path: str = "/hbase"
    access_key: str | None = None
    access_secret: str | None = None

    def uri(self, with_credentials: bool = False) -> str:
        """URI of the snapshot root, e.g. s3://bucket/hbase."""
        return build_location_uri(
            self.protocol,
            self.bucket,
            self.path,
            self.access_key,
            self.access_secret,
            with_credentials,
        )

    def filesystem_uri(self, with_credentials: bool = False) -> str:
        """URI of the bucket itself, used as a default filesystem address."""
        return build_location_uri(
            self.protocol,
            self.bucket,
            "",
            self.access_key,
            self.access_secret,
            with_credentials,
        )

    def redacted(self) -> str:
        """Loggable form with the secret masked."""
        if not self.access_key:
            return self.uri(with_credentials=False)
        return f"{self.protocol.scheme}://{self.access_key}:***@{self.bucket}{_normalize_path(self.path)}"

    def __str__(self) -> str:
        return self.redacted()
