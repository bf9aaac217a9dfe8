"""Tests for the chunked uploader."""

from unittest.mock import MagicMock

import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import ClientError, EndpointConnectionError

from amipub.common import UPLOAD_CHUNK_SIZE, UPLOAD_CONCURRENCY, TransferError
from amipub.common.models import LocalFile
from amipub.core.uploader import ChunkedUploader


@pytest.fixture
def local_file(image_file, md5_of):
    return LocalFile(path=str(image_file), size_bytes=image_file.stat().st_size, content_hash=md5_of(image_file))


@pytest.fixture
def mock_s3(local_file):
    s3 = MagicMock()
    s3.head_object.return_value = {"ContentLength": local_file.size_bytes, "Metadata": {"md5": local_file.content_hash}}
    return s3



class TestUpload:
    """Test ChunkedUploader.upload."""

    def test_tags_object_with_content_hash(self, fake_s3, local_file):
        uploader = ChunkedUploader(fake_s3)

        stored = uploader.upload("bucket", "folder/root.img", local_file)

        assert stored.key == "folder/root.img"
        assert stored.content_hash == local_file.content_hash
        assert fake_s3.objects[("bucket", "folder/root.img")]["Metadata"] == {"md5": local_file.content_hash}
        extra_args = fake_s3.upload_calls[0]["ExtraArgs"]
        assert extra_args["ContentType"] == "application/octet-stream"
        assert "ServerSideEncryption" not in extra_args

    def test_returns_size_read_back_from_bucket(self, mock_s3, local_file):
        mock_s3.head_object.return_value = {"ContentLength": 4096, "Metadata": {"md5": local_file.content_hash}}

        stored = ChunkedUploader(mock_s3).upload("bucket", "root.img", local_file)

        assert stored.size_bytes == 4096
        mock_s3.head_object.assert_called_once_with(Bucket="bucket", Key="root.img")

    def test_read_back_failure(self, mock_s3, local_file):
        mock_s3.head_object.side_effect = ClientError({"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadObject")

        with pytest.raises(TransferError, match="fetching properties"):
            ChunkedUploader(mock_s3).upload("bucket", "root.img", local_file)

    def test_transfer_config_uses_fixed_chunks_and_workers(self, mock_s3, local_file):
        ChunkedUploader(mock_s3).upload("bucket", "root.img", local_file)

        config = mock_s3.upload_file.call_args.kwargs["Config"]
        assert config.multipart_chunksize == UPLOAD_CHUNK_SIZE
        assert config.multipart_threshold == UPLOAD_CHUNK_SIZE
        assert config.max_concurrency == UPLOAD_CONCURRENCY

    def test_server_side_encryption(self, fake_s3, local_file):
        uploader = ChunkedUploader(fake_s3, server_side_encryption="AES256")

        uploader.upload("bucket", "root.img", local_file)

        assert fake_s3.upload_calls[0]["ExtraArgs"]["ServerSideEncryption"] == "AES256"

    @pytest.mark.parametrize(
        "error",
        [
            S3UploadFailedError("Failed to upload"),
            EndpointConnectionError(endpoint_url="https://s3.example"),
            FileNotFoundError("gone"),
        ],
    )
    def test_failures_raise_transfer_error(self, mock_s3, local_file, error):
        mock_s3.upload_file.side_effect = error

        with pytest.raises(TransferError):
            ChunkedUploader(mock_s3).upload("bucket", "root.img", local_file)

    def test_failure_of_absolute_path_with_logging_configured(self, mock_s3, local_file, log_dir):
        mock_s3.upload_file.side_effect = OSError("[Errno 5] Input/output error: '/dev/sdb'")

        with pytest.raises(TransferError):
            ChunkedUploader(mock_s3).upload("bucket", "bosh-stemcell/root.img", local_file)

        log_text = "".join(path.read_text() for path in log_dir.glob("*.log"))
        assert f"Upload of {local_file.path} to s3://bucket/bosh-stemcell/root.img failed" in log_text
        assert "[Errno 5]" in log_text


class TestFindMatching:
    """Test the metadata-only dedup probe."""

    def test_missing_object(self, fake_s3, local_file):
        assert ChunkedUploader(fake_s3).find_matching("bucket", "root.img", local_file) is None

    def test_matching_hash(self, fake_s3, local_file):
        fake_s3.put("bucket", "root.img", b"x", {"md5": local_file.content_hash})

        stored = ChunkedUploader(fake_s3).find_matching("bucket", "root.img", local_file)

        assert stored.key == "root.img"
        assert stored.size_bytes == 1
        assert fake_s3.upload_calls == []

    def test_mismatched_hash(self, fake_s3, local_file):
        fake_s3.put("bucket", "root.img", b"x", {"md5": "0" * 32})

        assert ChunkedUploader(fake_s3).find_matching("bucket", "root.img", local_file) is None

    def test_missing_hash_tag(self, fake_s3, local_file):
        fake_s3.put("bucket", "root.img", b"x")

        assert ChunkedUploader(fake_s3).find_matching("bucket", "root.img", local_file) is None

    def test_probe_error(self, mock_s3, local_file):
        mock_s3.head_object.side_effect = ClientError({"Error": {"Code": "403", "Message": "Forbidden"}}, "HeadObject")

        assert ChunkedUploader(mock_s3).find_matching("bucket", "root.img", local_file) is None
