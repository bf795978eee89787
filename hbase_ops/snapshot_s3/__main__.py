"""Allow `python -m hbase_ops.snapshot_s3`."""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
