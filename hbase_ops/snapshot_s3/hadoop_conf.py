"""
Hadoop/HBase configuration as an immutable value.

The copy engine and the HBase shell read their cluster addressing from the
usual site files (core-site.xml, hdfs-site.xml, hbase-site.xml). This
module loads those files into a read-only property map that the tool can
inspect, and lets a single operation derive a modified copy of it.

Invariants:
    - A HadoopConfiguration is never changed after construction
    - derive() returns a new instance and records which keys it overrode
    - Only overrides are handed to subprocesses; the rest is read from the
      site files by the subprocess itself
    - redacted_items() never yields a secret value

How to change safely:
    - Keep derive() copy-on-write; the import path depends on it
    - Add new secret key markers to _SECRET_MARKERS, never remove them
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

SITE_FILES = ("core-site.xml", "hdfs-site.xml", "hbase-site.xml")

DEFAULT_FS_KEY = "fs.defaultFS"
LEGACY_DEFAULT_FS_KEY = "fs.default.name"
HBASE_ROOTDIR_KEY = "hbase.rootdir"
HBASE_TMP_DIR_KEY = "hbase.tmp.dir"

_SECRET_MARKERS = ("secret", "password", "key")
# The secret may contain "/" or "+"; userinfo ends at the last "@".
_CREDENTIAL_URI = re.compile(r"^(?P<scheme>[a-zA-Z0-9+.-]+://)(?P<user>[^:@/]+):.*@(?=[^@]*$)")


def redact_value(key: str, value: str) -> str:
    """Mask secrets in a single property value."""
    lowered = key.lower()
    if any(marker in lowered for marker in _SECRET_MARKERS):
        return "***"
    return _CREDENTIAL_URI.sub(r"\g<scheme>\g<user>:***@", value)


def _parse_site_file(path: Path) -> dict[str, str]:
    """Read <property><name/><value/></property> entries from a site file."""
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as e:
        raise ConfigurationError(
            f"Malformed Hadoop configuration file: {path}",
            context={"error": str(e)},
        ) from e
    except (OSError, LookupError, ValueError) as e:
        # An unknown encoding declaration surfaces as LookupError
        raise ConfigurationError(
            f"Could not read Hadoop configuration file: {path}",
            context={"error": str(e)},
        ) from e

    properties: dict[str, str] = {}
    for prop in root.iter("property"):
        name = prop.findtext("name")
        if not name:
            continue
        properties[name.strip()] = (prop.findtext("value") or "").strip()
    return properties


def to_site_xml(properties: Mapping[str, str]) -> str:
    """Render properties as a Hadoop site file, the inverse of _parse_site_file."""
    root = ET.Element("configuration")
    for key in sorted(properties):
        prop = ET.SubElement(root, "property")
        ET.SubElement(prop, "name").text = key
        ET.SubElement(prop, "value").text = properties[key]
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


class HadoopConfiguration(Mapping[str, str]):
    """Read-only Hadoop property map.

    Example:
        >>> base = HadoopConfiguration.load(["/etc/hadoop/conf", "/etc/hbase/conf"])
        >>> base.default_filesystem()
        'hdfs://namenode:8020'
        >>> redirected = base.derive({"fs.defaultFS": "s3://bucket"})
        >>> base.default_filesystem()  # unchanged
        'hdfs://namenode:8020'
    """

    def __init__(
        self,
        properties: Mapping[str, str] | None = None,
        overrides: Mapping[str, str] | None = None,
    ) -> None:
        merged = dict(properties or {})
        merged.update(overrides or {})
        self._properties = MappingProxyType(merged)
        self._overrides = MappingProxyType(dict(overrides or {}))

    @classmethod
    def load(cls, conf_dirs: Iterable[str | Path]) -> HadoopConfiguration:
        """Load site files from the given directories.

        Files are applied in SITE_FILES order per directory, directories in
        the order given; later values win. Missing directories and files
        are skipped.

        Args:
            conf_dirs: Directories such as $HADOOP_CONF_DIR and $HBASE_CONF_DIR

        Returns:
            HadoopConfiguration with no overrides

        Raises:
            ConfigurationError: If a site file exists but cannot be read or parsed
        """
        properties: dict[str, str] = {}
        for conf_dir in conf_dirs:
            for name in SITE_FILES:
                path = Path(conf_dir) / name
                try:
                    present = path.is_file()
                except OSError as e:
                    raise ConfigurationError(
                        f"Could not access Hadoop configuration file: {path}",
                        context={"error": str(e)},
                    ) from e
                if not present:
                    continue
                loaded = _parse_site_file(path)
                logger.debug(f"Loaded {len(loaded)} properties from {path}")
                properties.update(loaded)
        return cls(properties)

    def __getitem__(self, key: str) -> str:
        return self._properties[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._properties)

    def __len__(self) -> int:
        return len(self._properties)

    @property
    def overrides(self) -> Mapping[str, str]:
        """Properties set by derive(), on top of the loaded site files."""
        return self._overrides

    def derive(self, overrides: Mapping[str, str]) -> HadoopConfiguration:
        """Return a copy with the given properties replaced.

        Overrides accumulate: deriving from a derived configuration keeps
        the earlier overrides unless they are replaced.
        """
        base = {k: v for k, v in self._properties.items() if k not in self._overrides}
        combined = dict(self._overrides)
        combined.update(overrides)
        return HadoopConfiguration(base, combined)

    def default_filesystem(self) -> str:
        """Address of the cluster's default filesystem.

        Raises:
            ConfigurationError: If neither fs.defaultFS nor fs.default.name is set
        """
        for key in (DEFAULT_FS_KEY, LEGACY_DEFAULT_FS_KEY):
            value = self.get(key)
            if value:
                return value.rstrip("/")
        raise ConfigurationError(
            f"Could not determine current {DEFAULT_FS_KEY} or {LEGACY_DEFAULT_FS_KEY}",
            context={"properties_loaded": len(self)},
        )

    def redacted_items(self) -> Iterator[tuple[str, str]]:
        """Sorted (key, value) pairs safe for logging."""
        for key in sorted(self._properties):
            yield key, redact_value(key, self._properties[key])

    def __repr__(self) -> str:
        return f"HadoopConfiguration(properties={len(self)}, overrides={sorted(self._overrides)})"
