"""Shared fixtures."""

import hashlib
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from amipub.core.presigner import Presigner
from amipub.utils import setup_logging


class FakeS3:
    """In-memory stand-in for the S3 client calls the publisher makes."""

    def __init__(self):
        self.objects = {}
        self.upload_calls = []
        self.presign_calls = []
        self.events = []

    def put(self, bucket, key, body: bytes, metadata=None):
        self.objects[(bucket, key)] = {"Body": body, "Metadata": dict(metadata or {})}

    def upload_file(self, filename, bucket, key, ExtraArgs=None, Config=None):
        body = Path(filename).read_bytes()
        self.upload_calls.append({"filename": filename, "bucket": bucket, "key": key, "ExtraArgs": ExtraArgs})
        self.events.append(("upload", key))
        self.put(bucket, key, body, (ExtraArgs or {}).get("Metadata"))

    def head_object(self, Bucket, Key):
        obj = self.objects.get((Bucket, Key))
        if obj is None:
            raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")
        return {"ContentLength": len(obj["Body"]), "Metadata": dict(obj["Metadata"])}

    def generate_presigned_url(self, ClientMethod, Params, ExpiresIn, HttpMethod=None):
        self.presign_calls.append((ClientMethod, Params["Key"]))
        self.events.append(("presign", ClientMethod, Params["Key"]))
        return f"https://{Params['Bucket']}.s3.amazonaws.com/{Params['Key']}?method={HttpMethod}&expires={ExpiresIn}"

    def uploads_of(self, key):
        return [call for call in self.upload_calls if call["key"] == key]


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def presigner(fake_s3, clock):
    return Presigner(fake_s3, clock=clock)


@pytest.fixture
def image_file(tmp_path):
    """A small local disk image."""
    path = tmp_path / "root.img"
    path.write_bytes(b"disk-image-bytes" * 64)
    return path


@pytest.fixture
def md5_of():
    def _md5_of(path) -> str:
        return hashlib.md5(Path(path).read_bytes()).hexdigest()

    return _md5_of


@pytest.fixture
def log_dir(tmp_path):
    """Console and file logging configured as the CLI does, writing under tmp_path."""
    logger = setup_logging(log_level="DEBUG", log_dir=tmp_path / "logs")
    yield tmp_path / "logs"
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
