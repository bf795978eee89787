"""
Snapshot S3 utility test suite.

This package contains:
- unit/: Unit tests (subprocesses and S3 replaced by fakes)
- integration/: Full command lines against the in-memory cluster
"""
