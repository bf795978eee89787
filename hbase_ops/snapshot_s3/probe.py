"""
Pre-flight check of the remote bucket.

A copy job that cannot reach its bucket fails only after MapReduce has
scheduled it, which can take minutes and hides the cause in task logs.
With --verify-bucket the orchestrator asks S3 directly first.

Invariants:
    - Uses the request's own credentials, never the ambient AWS chain
    - Read-only (HeadBucket); nothing is created or written
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from aiobotocore.session import get_session
from botocore.exceptions import BotoCoreError, ClientError

from .config import S3Config
from .errors import RemoteStoreError
from .location import StorageEndpoint

logger = logging.getLogger(__name__)


class BucketProbe:
    """Checks that a bucket is reachable with the given credentials.

    Example:
        >>> probe = BucketProbe(S3Config.from_env())
        >>> probe.check(request.remote_endpoint)  # raises RemoteStoreError
    """

    def __init__(
        self,
        s3_config: S3Config,
        session_factory: Callable[[], Any] = get_session,
    ) -> None:
        self.s3_config = s3_config
        self._session_factory = session_factory

    def check(self, endpoint: StorageEndpoint) -> None:
        """Run HeadBucket against the endpoint's bucket.

        Raises:
            RemoteStoreError: If the bucket is missing, forbidden or unreachable
        """
        logger.info(f"Verifying access to bucket '{endpoint.bucket}'")
        try:
            asyncio.run(self._head_bucket(endpoint))
        except (ClientError, BotoCoreError, OSError) as e:
            raise RemoteStoreError(
                f"Bucket '{endpoint.bucket}' is not accessible",
                operation="probe",
                context={"error": str(e), "endpoint": self.s3_config.endpoint_url},
            ) from e

    async def _head_bucket(self, endpoint: StorageEndpoint) -> None:
        session = self._session_factory()

        client_kwargs = {
            "region_name": self.s3_config.region,
        }

        if self.s3_config.endpoint_url:
            client_kwargs["endpoint_url"] = self.s3_config.endpoint_url

        if endpoint.access_key:
            client_kwargs["aws_access_key_id"] = endpoint.access_key
            client_kwargs["aws_secret_access_key"] = endpoint.access_secret

        async with session.create_client("s3", **client_kwargs) as s3:
            await s3.head_bucket(Bucket=endpoint.bucket)
