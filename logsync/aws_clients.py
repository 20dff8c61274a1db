"""Process-lifetime AWS client handle."""

from typing import Any, Optional

import boto3
import structlog

from .config import DEFAULT_AWS_REGION

logger = structlog.get_logger(__name__)


class AWSClients:
    """Creates boto3 clients on first use and reuses them afterwards.

    One instance is meant to live as long as the process, so warm Lambda
    invocations skip client construction. Runs are never concurrent within a
    process, so no locking is done.
    """

    def __init__(self, region: str = DEFAULT_AWS_REGION):
        self.region = region
        self._s3: Optional[Any] = None
        self._kms: Optional[Any] = None

    def s3(self) -> Any:
        if self._s3 is None:
            logger.info("Connecting to S3", region=self.region)
            self._s3 = boto3.client("s3", region_name=self.region)
        return self._s3

    def kms(self) -> Any:
        if self._kms is None:
            self._kms = boto3.client("kms", region_name=self.region)
        return self._kms
