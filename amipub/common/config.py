"""Configuration models."""

import json
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import DEFAULT_BUCKET_FOLDER
from .enums import Accessibility, FileFormat, VirtualizationType
from .exceptions import ConfigError


class Credentials(BaseModel):
    """Static credentials; when keys are omitted the default boto3 chain is used."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str


class AmiProperties(BaseModel):
    """Properties of the registered AMI."""

    name: str
    description: str = ""
    accessibility: Accessibility = Accessibility.PRIVATE
    virtualization_type: VirtualizationType = VirtualizationType.HVM
    tags: Dict[str, str] = Field(default_factory=dict)


class RegionConfig(BaseModel):
    """Target region and bucket for a publish run."""

    model_config = ConfigDict(extra="ignore")

    credentials: Credentials
    bucket_name: str
    bucket_folder: str = DEFAULT_BUCKET_FOLDER
    keep_machine_image: bool = False
    server_side_encryption: Optional[str] = None
    availability_zone: Optional[str] = None
    ami: AmiProperties

    @field_validator("bucket_folder")
    @classmethod
    def strip_slashes(cls, v: str) -> str:
        return v.strip("/")

    @property
    def region(self) -> str:
        return self.credentials.region


class MachineImageConfig(BaseModel):
    """The local disk image to publish."""

    local_path: str
    file_format: FileFormat = FileFormat.RAW
    volume_size_gb: int = Field(default=0, ge=0)


class MachineImageDriverConfig(BaseModel):
    """Everything the machine image driver needs to upload and describe one image."""

    machine_image_path: str
    bucket_name: str
    bucket_folder: str = DEFAULT_BUCKET_FOLDER
    server_side_encryption: Optional[str] = None
    file_format: FileFormat = FileFormat.RAW
    volume_size_gb: int = 0


class VolumeDriverConfig(BaseModel):
    machine_image_manifest_url: str
    file_format: FileFormat = FileFormat.RAW
    size_bytes: Optional[int] = None
    volume_size_gb: Optional[int] = None


class SnapshotDriverConfig(BaseModel):
    volume_id: str


class AmiDriverConfig(BaseModel):
    snapshot_id: str
    ami_properties: AmiProperties


def load_publish_config(path: str) -> RegionConfig:
    """
    Load a region configuration from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        RegionConfig: The validated configuration

    Raises:
        ConfigError: If the file cannot be read or does not validate
    """
    try:
        with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid config file: Failed to parse JSON: {e}") from e
    except OSError as e:
        raise ConfigError(f"Invalid config file: Failed to read file: {e}") from e

    try:
        return RegionConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e
