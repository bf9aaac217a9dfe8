"""Publishes a local machine image as an AMI in an isolated region."""

import time
from typing import List, Optional

from amipub.common import CleanupFailure, LogLevel, PipelineError, PipelineStage
from amipub.common.config import (
    AmiDriverConfig,
    MachineImageConfig,
    MachineImageDriverConfig,
    RegionConfig,
    SnapshotDriverConfig,
    VolumeDriverConfig,
)
from amipub.common.models import Ami, AmiCollection
from amipub.core.compensation import CompensationStack
from amipub.core.context import PublishContext
from amipub.drivers.base import DriverSet
from amipub.utils import log_duration, log_message, log_section

MACHINE_IMAGE = "machine image"
VOLUME = "volume"
SNAPSHOT = "snapshot"


class RegionPublishingPipeline:
    """
    Drives machine image -> volume -> snapshot -> AMI for one region.

    Stages run strictly in order. Every created intermediate is recorded on a
    compensation stack; a failing stage unwinds the stack newest first and
    raises a PipelineError naming the stage. On success the machine image
    (unless kept) and then the volume are deleted; the snapshot and the AMI
    are the deliverable and are left in place.
    """

    def __init__(self, config: RegionConfig, driver_set: DriverSet):
        self.config = config
        self.drivers = driver_set
        self.state = PipelineStage.START
        self.cleanup_errors: List[CleanupFailure] = []

    def publish(
        self, machine_image_config: MachineImageConfig, context: Optional[PublishContext] = None
    ) -> AmiCollection:
        """
        Run the pipeline.

        Returns:
            AmiCollection: The registered AMI keyed by virtualization type

        Raises:
            PipelineError: On the first failing stage, after rolling back
        """
        start_time = time.time()
        context = context or PublishContext()
        compensation = CompensationStack()
        self.state = PipelineStage.START
        self.cleanup_errors = []

        log_section(f"Publishing {machine_image_config.local_path} to {self.config.region}", section_level=1)
        try:
            return self._run(machine_image_config, context, compensation)
        finally:
            log_duration("publish", start_time)

    def _run(
        self,
        machine_image_config: MachineImageConfig,
        context: PublishContext,
        compensation: CompensationStack,
    ) -> AmiCollection:
        drivers = self.drivers

        # START -> IMAGE_CREATED
        machine_image_driver_config = MachineImageDriverConfig(
            machine_image_path=machine_image_config.local_path,
            bucket_name=self.config.bucket_name,
            bucket_folder=self.config.bucket_folder,
            server_side_encryption=self.config.server_side_encryption,
            file_format=machine_image_config.file_format,
            volume_size_gb=machine_image_config.volume_size_gb,
        )
        machine_image = self._stage(
            PipelineStage.IMAGE_CREATED,
            lambda: drivers.machine_image_driver.create(machine_image_driver_config, context),
            context,
            compensation,
        )
        if not self.config.keep_machine_image:
            compensation.push(MACHINE_IMAGE, lambda: drivers.machine_image_driver.delete(machine_image, context))
        context = context.with_deadline(machine_image.expires_at)

        # IMAGE_CREATED -> VOLUME_CREATED
        volume_driver_config = VolumeDriverConfig(
            machine_image_manifest_url=machine_image.get_url,
            file_format=machine_image_config.file_format,
            size_bytes=machine_image.size_bytes,
            volume_size_gb=machine_image.volume_size_gb,
        )
        volume = self._stage(
            PipelineStage.VOLUME_CREATED,
            lambda: drivers.volume_driver.create(volume_driver_config, context),
            context,
            compensation,
        )
        compensation.push(VOLUME, lambda: drivers.volume_driver.delete(volume, context))

        # VOLUME_CREATED -> SNAPSHOT_CREATED
        snapshot = self._stage(
            PipelineStage.SNAPSHOT_CREATED,
            lambda: drivers.snapshot_driver.create(SnapshotDriverConfig(volume_id=volume.id), context),
            context,
            compensation,
        )
        compensation.push(SNAPSHOT, lambda: drivers.snapshot_driver.delete(snapshot, context))

        # SNAPSHOT_CREATED -> IMAGE_REGISTERED
        ami_driver_config = AmiDriverConfig(snapshot_id=snapshot.id, ami_properties=self.config.ami)
        ami: Ami = self._stage(
            PipelineStage.IMAGE_REGISTERED,
            lambda: drivers.ami_driver.create(ami_driver_config, context),
            context,
            compensation,
        )

        # IMAGE_REGISTERED -> DONE
        compensation.discard(SNAPSHOT)
        self.cleanup_errors.extend(compensation.run(MACHINE_IMAGE))
        self.cleanup_errors.extend(compensation.run(VOLUME))

        amis = AmiCollection()
        amis.add(ami)
        self.state = PipelineStage.DONE
        log_message(LogLevel.SUCCESS, f"Published {ami.id} in {ami.region}")
        return amis

    def _stage(self, stage: PipelineStage, create, context: PublishContext, compensation: CompensationStack):
        """Run one create step; on failure roll back and raise a PipelineError."""
        log_section(f"Creating {stage.value}", section_level=2)
        try:
            context.check(stage.value)
            handle = create()
        except Exception as e:
            log_message(LogLevel.ERROR, f"creating {stage.value}: {e}")
            self.state = PipelineStage.FAILED
            self.cleanup_errors = compensation.unwind()
            raise PipelineError(stage.value, e, self.cleanup_errors) from e

        self.state = stage
        handle_id = getattr(handle, "id", None)
        log_message(LogLevel.SUCCESS, f"Created {stage.value}: {handle_id}" if handle_id else f"Created {stage.value}")
        return handle
