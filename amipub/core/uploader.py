"""Chunked, parallel uploads to S3 tagged with a content hash."""

from typing import Optional

from boto3.exceptions import S3UploadFailedError
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError

from amipub.common import (
    HASH_METADATA_KEY,
    UPLOAD_CHUNK_SIZE,
    UPLOAD_CONCURRENCY,
    UPLOAD_CONTENT_TYPE,
    LogLevel,
    TransferError,
)
from amipub.common.models import LocalFile, StoredObject
from amipub.utils import format_bytes, log_message


class ChunkedUploader:
    """Uploads local files to S3 in fixed-size parts with bounded concurrency."""

    def __init__(self, s3_client, server_side_encryption=None):
        self.s3 = s3_client
        self.server_side_encryption = server_side_encryption
        # Files at or below one chunk go up as a single PUT; larger files are
        # sent as a multipart upload that is completed or aborted as a whole.
        self.transfer_config = TransferConfig(
            multipart_threshold=UPLOAD_CHUNK_SIZE,
            multipart_chunksize=UPLOAD_CHUNK_SIZE,
            max_concurrency=UPLOAD_CONCURRENCY,
            use_threads=True,
        )

    def upload(self, bucket: str, key: str, local_file: LocalFile) -> StoredObject:
        """
        Upload a local file, tag it with its content hash and read it back.

        Raises:
            TransferError: On any local I/O or remote failure
        """
        extra_args = {
            "ContentType": UPLOAD_CONTENT_TYPE,
            "Metadata": {HASH_METADATA_KEY: local_file.content_hash},
        }
        if self.server_side_encryption:
            extra_args["ServerSideEncryption"] = self.server_side_encryption

        log_message(
            LogLevel.INFO,
            f"Uploading {local_file.path} ({format_bytes(local_file.size_bytes)}) to s3://{bucket}/{key}",
        )
        try:
            self.s3.upload_file(
                local_file.path,
                bucket,
                key,
                ExtraArgs=extra_args,
                Config=self.transfer_config,
            )
        except (S3UploadFailedError, BotoCoreError, ClientError, OSError) as e:
            log_message(LogLevel.ERROR, f"Upload of {local_file.path} to s3://{bucket}/{key} failed: {e}")
            raise TransferError(f"uploading {local_file.path} to s3://{bucket}/{key}: {e}") from e


        return self.stat(bucket, key)

    def stat(self, bucket: str, key: str) -> StoredObject:
        """
        Read back a stored object's size and hash tag.

        Raises:
            TransferError: If the object cannot be read back
        """
        try:
            head = self.s3.head_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise TransferError(f"fetching properties of s3://{bucket}/{key}: {e}") from e
        return StoredObject(
            bucket=bucket,
            key=key,
            size_bytes=int(head["ContentLength"]),
            content_hash=head.get("Metadata", {}).get(HASH_METADATA_KEY),
        )

    def find_matching(self, bucket: str, key: str, local_file: LocalFile) -> Optional[StoredObject]:
        """
        Return the stored object if it carries the local file's hash tag, else None.

        Only the metadata is fetched. Probe errors count as not present.
        """
        try:
            stored = self.stat(bucket, key)
        except TransferError as e:
            log_message(LogLevel.DEBUG, f"s3://{bucket}/{key} not found or unreadable: {e}")
            return None

        if stored.content_hash != local_file.content_hash:
            return None
        return stored
