"""Tests for the command line interface."""

import json
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from amipub.cli.main import app
from amipub.common import (
    ERR_AWS_CREDENTIALS_NOT_FOUND,
    ERR_CONFIG_INVALID,
    ERR_FILE_NOT_FOUND,
    ERR_MACHINE_IMAGE_FAILED,
    ERR_PUBLISH_FAILED,
    CleanupFailure,
    FileError,
    FileFormat,
    PipelineError,
    PublishError,
    VirtualizationType,
    VolumeError,
)
from amipub.common.models import Ami, AmiCollection, MachineImage

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "region.json"
    path.write_text(
        json.dumps(
            {
                "credentials": {"region": "cn-north-1"},
                "bucket_name": "stemcells",
                "ami": {"name": "bosh-stemcell-1"},
            }
        )
    )
    return str(path)


@pytest.fixture(autouse=True)
def no_log_setup():
    with patch("amipub.cli.main.setup_logging"):
        yield


@pytest.fixture
def aws_client():
    with patch("amipub.cli.main.AWSClient") as client_cls:
        client = client_cls.return_value
        client.session.get_credentials.return_value = MagicMock()
        yield client


@pytest.fixture
def pipeline_cls():
    with patch("amipub.cli.main.RegionPublishingPipeline") as pipeline_cls:
        amis = AmiCollection()
        amis.add(Ami(id="ami-0abc", region="cn-north-1", virtualization_type=VirtualizationType.HVM))
        pipeline_cls.return_value.publish.return_value = amis
        pipeline_cls.return_value.cleanup_errors = []
        yield pipeline_cls


class TestPublishCommand:
    def test_success(self, config_file, image_file, aws_client, pipeline_cls):
        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == 0, result.output
        assert "ami-0abc" in result.output
        machine_image_config = pipeline_cls.return_value.publish.call_args.args[0]
        assert machine_image_config.local_path == str(image_file)
        assert machine_image_config.file_format == FileFormat.RAW
        assert machine_image_config.volume_size_gb == 0

    def test_options(self, config_file, image_file, aws_client, pipeline_cls):
        result = runner.invoke(
            app,
            [
                "publish",
                "-c",
                config_file,
                "-i",
                str(image_file),
                "--file-format",
                "vmdk",
                "--volume-size",
                "8",
                "--keep-machine-image",
            ],
        )

        assert result.exit_code == 0, result.output
        config = pipeline_cls.call_args.args[0]
        assert config.keep_machine_image is True
        machine_image_config = pipeline_cls.return_value.publish.call_args.args[0]
        assert machine_image_config.file_format == FileFormat.VMDK
        assert machine_image_config.volume_size_gb == 8

    def test_pipeline_failure(self, config_file, image_file, aws_client, pipeline_cls):
        pipeline_cls.return_value.publish.side_effect = PipelineError(
            "volume",
            VolumeError("conversion task cancelled"),
            [CleanupFailure("machine image", RuntimeError("403 Forbidden"))],
        )

        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_PUBLISH_FAILED
        assert "conversion task cancelled" in result.output

    def test_image_vanished_before_upload(self, config_file, image_file, aws_client, pipeline_cls):
        cause = PublishError(f"reading {image_file}")
        cause.__cause__ = FileError(f"reading {image_file}: No such file or directory")
        pipeline_cls.return_value.publish.side_effect = PipelineError("machine image", cause)

        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_FILE_NOT_FOUND

    def test_failure_text_with_brackets(self, config_file, image_file, aws_client, pipeline_cls):
        pipeline_cls.return_value.publish.side_effect = PipelineError(
            "snapshot",
            VolumeError("deleting [/tmp/amipub_x/root.img-manifest]"),
            [CleanupFailure("volume", RuntimeError("[/vol-123] in use"))],
        )

        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_PUBLISH_FAILED
        assert "[/vol-123]" in result.output

    def test_invalid_config(self, tmp_path, image_file, aws_client, pipeline_cls):
        config_path = tmp_path / "region.json"
        config_path.write_text(json.dumps({"bucket_name": "stemcells"}))

        result = runner.invoke(app, ["publish", "--config", str(config_path), "--image", str(image_file)])

        assert result.exit_code == ERR_CONFIG_INVALID
        pipeline_cls.assert_not_called()

    def test_missing_credentials(self, config_file, image_file, aws_client, pipeline_cls):
        aws_client.session.get_credentials.return_value = None

        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_AWS_CREDENTIALS_NOT_FOUND
        pipeline_cls.assert_not_called()

    def test_missing_image(self, config_file, tmp_path, aws_client, pipeline_cls):
        result = runner.invoke(app, ["publish", "--config", config_file, "--image", str(tmp_path / "nope.img")])

        assert result.exit_code != 0
        pipeline_cls.assert_not_called()


class TestCreateMachineImageCommand:
    def test_success(self, config_file, image_file, aws_client):
        driver = aws_client.machine_image_driver.return_value
        driver.create.return_value = MachineImage(
            get_url="https://stemcells.s3.amazonaws.com/manifest", delete_urls=[], volume_size_gb=1
        )

        result = runner.invoke(app, ["create-machine-image", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == 0, result.output
        driver_config = driver.create.call_args.args[0]
        assert driver_config.bucket_name == "stemcells"
        assert driver_config.machine_image_path == str(image_file)

    def test_failure(self, config_file, image_file, aws_client):
        aws_client.machine_image_driver.return_value.create.side_effect = PublishError("upload failed")

        result = runner.invoke(app, ["create-machine-image", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_MACHINE_IMAGE_FAILED

    def test_missing_image_at_read_time(self, config_file, image_file, aws_client):
        error = PublishError(f"reading {image_file}")
        error.__cause__ = FileError(f"reading {image_file}: No such file or directory")
        aws_client.machine_image_driver.return_value.create.side_effect = error

        result = runner.invoke(app, ["create-machine-image", "--config", config_file, "--image", str(image_file)])

        assert result.exit_code == ERR_FILE_NOT_FOUND
