"""EC2 drivers for the volume, snapshot and AMI stages."""

import time
from typing import Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from amipub.common import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_ROOT_DEVICE_NAME,
    Accessibility,
    AmipubError,
    ImageError,
    LogLevel,
    SnapshotError,
    VirtualizationType,
    VolumeError,
)
from amipub.common.config import AmiDriverConfig, AmiProperties, SnapshotDriverConfig, VolumeDriverConfig
from amipub.common.models import Ami, Snapshot, Volume
from amipub.core.context import PublishContext
from amipub.drivers.base import ResourceDriver
from amipub.utils import log_message

from .aws_waiter import AWSWaiter

PARAVIRTUAL_ROOT_DEVICE_NAME = "/dev/sda1"


def _tag_specifications(resource_type: str, name: str):
    return [
        {
            "ResourceType": resource_type,
            "Tags": [
                {"Key": "Name", "Value": name},
                {"Key": "CreatedBy", "Value": "amipub"},
            ],
        }
    ]


def _release(description: str, release_fn: Callable[[], None]) -> None:
    """Best-effort removal of a resource whose create did not finish; failures are warnings."""
    log_message(LogLevel.INFO, f"Rolling back: {description}")
    try:
        release_fn()
    except (BotoCoreError, ClientError) as e:
        log_message(LogLevel.WARN, f"Failed to {description}: {e}")


class Ec2VolumeDriver(ResourceDriver):
    """
    Imports an EBS volume from a machine image manifest URL.

    If waiting for the import fails, the conversion task is cancelled, or the
    volume deleted once its id is known, before the error is raised.
    """

    def __init__(self, ec2_client, waiter: AWSWaiter, availability_zone: Optional[str] = None):
        self.ec2 = ec2_client
        self.waiter = waiter
        self.availability_zone = availability_zone

    def _resolve_availability_zone(self) -> str:
        if self.availability_zone is None:
            response = self.ec2.describe_availability_zones(Filters=[{"Name": "state", "Values": ["available"]}])
            zones = response["AvailabilityZones"]
            if not zones:
                raise VolumeError("no available availability zone found")
            self.availability_zone = zones[0]["ZoneName"]
        return self.availability_zone

    def create(self, config: VolumeDriverConfig, context: PublishContext) -> Volume:
        try:
            response = self.ec2.import_volume(
                AvailabilityZone=self._resolve_availability_zone(),
                Image={
                    "Format": config.file_format.value,
                    "Bytes": config.size_bytes,
                    "ImportManifestUrl": config.machine_image_manifest_url,
                },
                Volume={"Size": config.volume_size_gb},
                Description="amipub volume import",
            )
        except (BotoCoreError, ClientError) as e:
            raise VolumeError(f"importing volume: {e}") from e

        task_id = response["ConversionTask"]["ConversionTaskId"]
        log_message(LogLevel.INFO, f"Volume import task started: {task_id}")

        volume_id = None
        try:
            volume_id = self.waiter.wait_for_volume_import(task_id, context)
            self.waiter.wait_for_volume_available(volume_id, context)
        except AmipubError:
            if volume_id is None:
                _release(
                    f"cancel conversion task {task_id}",
                    lambda: self.ec2.cancel_conversion_task(ConversionTaskId=task_id),
                )
            else:
                _release(f"delete volume {volume_id}", lambda: self.ec2.delete_volume(VolumeId=volume_id))
            raise

        return Volume(id=volume_id)

    def delete(self, volume: Volume, context: PublishContext) -> None:
        try:
            self.ec2.delete_volume(VolumeId=volume.id)
        except (BotoCoreError, ClientError) as e:
            raise VolumeError(f"deleting volume {volume.id}: {e}") from e
        log_message(LogLevel.INFO, f"Volume deleted: {volume.id}")


class Ec2SnapshotDriver(ResourceDriver):
    """Snapshots a volume and waits for the snapshot to complete."""

    def __init__(self, ec2_client, waiter: AWSWaiter):
        self.ec2 = ec2_client
        self.waiter = waiter

    def create(self, config: SnapshotDriverConfig, context: PublishContext) -> Snapshot:
        timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
        try:
            response = self.ec2.create_snapshot(
                VolumeId=config.volume_id,
                Description=f"amipub snapshot of {config.volume_id} - {timestamp}",
                TagSpecifications=_tag_specifications("snapshot", f"amipub-{config.volume_id}"),
            )
        except (BotoCoreError, ClientError) as e:
            raise SnapshotError(f"creating snapshot of {config.volume_id}: {e}") from e

        snapshot_id = response["SnapshotId"]
        log_message(LogLevel.INFO, f"Snapshot started: {snapshot_id}")
        try:
            self.waiter.wait_for_snapshot_completed(snapshot_id, context)
        except AmipubError:
            _release(f"delete snapshot {snapshot_id}", lambda: self.ec2.delete_snapshot(SnapshotId=snapshot_id))
            raise

        return Snapshot(id=snapshot_id)

    def delete(self, snapshot: Snapshot, context: PublishContext) -> None:
        try:
            self.ec2.delete_snapshot(SnapshotId=snapshot.id)
        except (BotoCoreError, ClientError) as e:
            raise SnapshotError(f"deleting snapshot {snapshot.id}: {e}") from e
        log_message(LogLevel.INFO, f"Snapshot deleted: {snapshot.id}")


class Ec2AmiDriver(ResourceDriver):
    """
    Registers an AMI backed by a snapshot.

    A registered image that never becomes available, or cannot be tagged or
    shared, is deregistered before the error is raised so its snapshot can be
    deleted.
    """

    def __init__(self, ec2_client, waiter: AWSWaiter, region: str):
        self.ec2 = ec2_client
        self.waiter = waiter
        self.region = region

    def create(self, config: AmiDriverConfig, context: PublishContext) -> Ami:
        props = config.ami_properties
        if props.virtualization_type == VirtualizationType.HVM:
            root_device_name = DEFAULT_ROOT_DEVICE_NAME
            extra_args = {"EnaSupport": True, "SriovNetSupport": "simple"}
        else:
            root_device_name = PARAVIRTUAL_ROOT_DEVICE_NAME
            extra_args = {}

        try:
            response = self.ec2.register_image(
                Name=props.name,
                Description=props.description,
                Architecture=DEFAULT_ARCHITECTURE,
                RootDeviceName=root_device_name,
                BlockDeviceMappings=[
                    {
                        "DeviceName": root_device_name,
                        "Ebs": {"SnapshotId": config.snapshot_id, "DeleteOnTermination": True},
                    }
                ],
                VirtualizationType=props.virtualization_type.value,
                **extra_args,
            )
        except (BotoCoreError, ClientError) as e:
            raise ImageError(f"registering AMI {props.name}: {e}") from e

        ami_id = response["ImageId"]
        log_message(LogLevel.INFO, f"AMI registered: {ami_id}")
        try:
            self._finish(ami_id, props, context)
        except ImageError:
            _release(f"deregister AMI {ami_id}", lambda: self.ec2.deregister_image(ImageId=ami_id))
            raise

        return Ami(id=ami_id, region=self.region, virtualization_type=props.virtualization_type)

    def _finish(self, ami_id: str, props: AmiProperties, context: PublishContext) -> None:
        self.waiter.wait_for_ami_available(ami_id, context)
        try:
            if props.tags:
                self.ec2.create_tags(
                    Resources=[ami_id],
                    Tags=[{"Key": key, "Value": value} for key, value in props.tags.items()],
                )
            if props.accessibility == Accessibility.PUBLIC:
                self.ec2.modify_image_attribute(ImageId=ami_id, LaunchPermission={"Add": [{"Group": "all"}]})
        except (BotoCoreError, ClientError) as e:
            raise ImageError(f"configuring AMI {ami_id}: {e}") from e

    def delete(self, ami: Ami, context: PublishContext) -> None:
        try:
            self.ec2.deregister_image(ImageId=ami.id)
        except (BotoCoreError, ClientError) as e:
            raise ImageError(f"deregistering AMI {ami.id}: {e}") from e
        log_message(LogLevel.INFO, f"AMI deregistered: {ami.id}")
