#!/usr/bin/python3
"""Machine image publisher for isolated AWS regions."""

from typing import Optional

import typer
from botocore.exceptions import BotoCoreError
from rich.markup import escape
from rich.rule import Rule
from typing_extensions import Annotated

from amipub.aws import AWSClient
from amipub.common import (
    ERR_AWS_CLIENT_INIT_FAILED,
    ERR_AWS_CREDENTIALS_NOT_FOUND,
    ERR_CONFIG_INVALID,
    ERR_FILE_NOT_FOUND,
    ERR_MACHINE_IMAGE_FAILED,
    ERR_PUBLISH_FAILED,
    ConfigError,
    FileError,
    FileFormat,
    LogLevel,
    PipelineError,
    PublishError,
)
from amipub.common.config import MachineImageConfig, MachineImageDriverConfig, RegionConfig, load_publish_config
from amipub.core import PublishContext, RegionPublishingPipeline
from amipub.utils import (
    detect_file_format,
    display_summary,
    error_and_exit,
    log_message,
    setup_logging,
    validate_config_file,
    validate_local_file,
)

app = typer.Typer(name="amipub", help="Publish machine images as AMIs in isolated AWS regions", add_completion=False)

ConfigOption = Annotated[
    str,
    typer.Option("--config", "-c", help="JSON file with region, bucket and AMI settings", callback=validate_config_file),
]
ImageOption = Annotated[
    str,
    typer.Option("--image", "-i", help="Local disk image to publish", callback=validate_local_file),
]
FileFormatOption = Annotated[
    Optional[FileFormat],
    typer.Option(
        "--file-format",
        "-f",
        help="Disk image format; detected from the file name when omitted",
        case_sensitive=False,
    ),
]
VolumeSizeOption = Annotated[
    int,
    typer.Option("--volume-size", min=0, help="Volume size in GiB; 0 rounds the image size up to whole GiB"),
]
LogLevelOption = Annotated[str, typer.Option("--log-level", help="Console log level")]


def _exit_code_for(error: Optional[BaseException], default: int) -> int:
    """Exit with ERR_FILE_NOT_FOUND when the failure traces back to the local image."""
    while error is not None:
        if isinstance(error, FileError):
            return ERR_FILE_NOT_FOUND
        error = error.cause if isinstance(error, PipelineError) else error.__cause__
    return default


def _load_config(config_path: str, keep_machine_image: bool = False) -> RegionConfig:
    try:
        config = load_publish_config(config_path)
    except ConfigError as e:
        error_and_exit("Invalid configuration", Rule(), escape(str(e)), code=ERR_CONFIG_INVALID)
    if keep_machine_image:
        config.keep_machine_image = True
    return config


def _aws_client(config: RegionConfig) -> AWSClient:
    try:
        client = AWSClient(config.credentials)
        credentials = client.session.get_credentials()
    except BotoCoreError as e:
        error_and_exit("Failed to initialize AWS clients", Rule(), escape(str(e)), code=ERR_AWS_CLIENT_INIT_FAILED)

    if credentials is None:
        error_and_exit(
            "AWS credentials not found",
            "Set access_key/secret_key in the config file or configure the default AWS credential chain",
            code=ERR_AWS_CREDENTIALS_NOT_FOUND,
        )
    return client


@app.command("publish")
def publish(
    config_path: ConfigOption,
    image: ImageOption,
    file_format: FileFormatOption = None,
    volume_size: VolumeSizeOption = 0,
    keep_machine_image: Annotated[
        bool, typer.Option("--keep-machine-image", help="Leave the uploaded image and manifest in S3")
    ] = False,
    log_level: LogLevelOption = "INFO",
) -> None:
    """
    Upload a disk image and register it as an AMI.

    The image is uploaded to S3 (skipped when an identical copy is already
    there), imported as an EBS volume from a signed manifest, snapshotted and
    registered. The intermediate volume, and unless --keep-machine-image is
    given the uploaded image and manifest, are deleted afterwards.

    Examples:

    \b
    python -m amipub publish --config region.json --image ./root.img
    """
    setup_logging(log_level)
    config = _load_config(config_path, keep_machine_image)
    client = _aws_client(config)

    machine_image_config = MachineImageConfig(
        local_path=image,
        file_format=file_format or detect_file_format(image),
        volume_size_gb=volume_size,
    )

    pipeline = RegionPublishingPipeline(config, client.driver_set(config))
    try:
        amis = pipeline.publish(machine_image_config, PublishContext())
    except PipelineError as e:
        parts = [f"Publishing failed while creating {e.stage}", Rule(), escape(str(e.cause))]
        if e.cleanup_errors:
            parts.append(Rule("Cleanup warnings"))
            parts.extend(escape(str(failure)) for failure in e.cleanup_errors)
        error_and_exit(*parts, code=_exit_code_for(e, ERR_PUBLISH_FAILED))

    for failure in pipeline.cleanup_errors:
        log_message(LogLevel.WARN, str(failure))

    display_summary(
        "Published AMIs",
        {f"{ami.region} ({ami.virtualization_type.value})": ami.id for ami in amis},
    )


@app.command("create-machine-image")
def create_machine_image(
    config_path: ConfigOption,
    image: ImageOption,
    file_format: FileFormatOption = None,
    volume_size: VolumeSizeOption = 0,
    log_level: LogLevelOption = "INFO",
) -> None:
    """
    Upload a disk image and its import manifest without importing it.

    Prints the signed manifest URL, which stays valid for two hours.
    """
    setup_logging(log_level)
    config = _load_config(config_path)
    client = _aws_client(config)

    driver_config = MachineImageDriverConfig(
        machine_image_path=image,
        bucket_name=config.bucket_name,
        bucket_folder=config.bucket_folder,
        server_side_encryption=config.server_side_encryption,
        file_format=file_format or detect_file_format(image),
        volume_size_gb=volume_size,
    )
    try:
        machine_image = client.machine_image_driver().create(driver_config, PublishContext())
    except PublishError as e:
        error_and_exit(
            "Creating machine image failed",
            Rule(),
            escape(str(e)),
            code=_exit_code_for(e, ERR_MACHINE_IMAGE_FAILED),
        )

    display_summary(
        "Machine Image",
        {"Manifest URL": machine_image.get_url, "Volume size (GiB)": machine_image.volume_size_gb},
    )
