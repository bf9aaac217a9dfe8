"""Time-boxed presigned URLs for single S3 object operations."""

import time
from typing import Callable

from botocore.exceptions import BotoCoreError, ClientError

from amipub.common import PRESIGN_EXPIRY_SECONDS, CapabilityMethod, LogLevel, SigningError
from amipub.common.models import SignedCapability
from amipub.utils import log_message

_CLIENT_METHODS = {
    CapabilityMethod.GET: "get_object",
    CapabilityMethod.HEAD: "head_object",
    CapabilityMethod.DELETE: "delete_object",
}


class Presigner:
    """Generates signed capabilities that expire a fixed duration after generation."""

    def __init__(self, s3_client, expiry_seconds: int = PRESIGN_EXPIRY_SECONDS, clock: Callable[[], float] = time.time):
        self.s3 = s3_client
        self.expiry_seconds = expiry_seconds
        self.clock = clock

    def presign(self, method: CapabilityMethod, bucket: str, key: str) -> SignedCapability:
        """
        Sign one method on one object.

        Raises:
            SigningError: If the URL cannot be signed, e.g. no credentials are available
        """
        generated_at = self.clock()
        try:
            url = self.s3.generate_presigned_url(
                ClientMethod=_CLIENT_METHODS[method],
                Params={"Bucket": bucket, "Key": key},
                ExpiresIn=self.expiry_seconds,
                HttpMethod=method.value,
            )
        except (BotoCoreError, ClientError) as e:
            raise SigningError(f"failed to sign {method.value} request for s3://{bucket}/{key}: {e}") from e

        log_message(LogLevel.DEBUG, f"generated presigned {method.value} URL {url}")
        return SignedCapability(method=method, url=url, expires_at=generated_at + self.expiry_seconds)
