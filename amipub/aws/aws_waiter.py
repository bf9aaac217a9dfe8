"""AWS waiter functions for volume import, snapshot and AMI operations."""

from typing import Callable, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from amipub.common import (
    AMI_TIMEOUT_MINUTES,
    SNAPSHOT_TIMEOUT_MINUTES,
    VOLUME_IMPORT_TIMEOUT_MINUTES,
    AmipubError,
    ImageError,
    SnapshotError,
    VolumeError,
)
from amipub.core.context import PublishContext
from amipub.utils import wait_with_progress


class AWSWaiter:
    """Polls long-running EC2 operations until they finish, fail or time out."""

    def __init__(self, ec2_client, check_interval: float = 15):
        self.ec2 = ec2_client
        self.check_interval = check_interval

    def _wait(
        self,
        description: str,
        check_function: Callable[[], Dict],
        timeout_minutes: int,
        context: Optional[PublishContext],
        error_cls,
    ) -> None:
        timeout_seconds = timeout_minutes * 60
        if context is not None:
            timeout_seconds = context.remaining(default=timeout_seconds)

        try:
            success = wait_with_progress(
                description=description,
                check_function=check_function,
                timeout_seconds=timeout_seconds,
                check_interval=self.check_interval,
            )
        except AmipubError:
            raise
        except (BotoCoreError, ClientError) as e:
            raise error_cls(f"{description}: {e}") from e

        if not success:
            raise error_cls(f"{description}: timed out after {int(timeout_seconds)} seconds")

    def wait_for_volume_import(self, task_id: str, context: Optional[PublishContext] = None) -> str:
        """Wait for an import volume conversion task and return the volume ID."""
        result = {}

        def check_task_status() -> Dict:
            response = self.ec2.describe_conversion_tasks(ConversionTaskIds=[task_id])
            task = response["ConversionTasks"][0]
            state = task["State"]

            if state == "completed":
                result["volume_id"] = task["ImportVolume"]["Volume"]["Id"]
                return {"completed": True, "description": f"Conversion task {task_id} completed"}
            elif state in ["cancelling", "cancelled"]:
                status_message = task.get("StatusMessage", "no status message")
                raise VolumeError(f"conversion task {task_id} {state}: {status_message}")

            progress_desc = f"Waiting for conversion task {task_id} (Status: {state})"
            return {"completed": False, "description": progress_desc}

        self._wait(
            f"Waiting for volume import task {task_id}",
            check_task_status,
            VOLUME_IMPORT_TIMEOUT_MINUTES,
            context,
            VolumeError,
        )
        return result["volume_id"]

    def wait_for_volume_available(self, volume_id: str, context: Optional[PublishContext] = None) -> None:
        """Wait for a volume to be available."""

        def check_volume_status() -> Dict:
            response = self.ec2.describe_volumes(VolumeIds=[volume_id])
            state = response["Volumes"][0]["State"]

            if state == "available":
                return {"completed": True, "description": f"Volume {volume_id} is available"}
            elif state in ["deleting", "deleted", "error"]:
                raise VolumeError(f"volume {volume_id} is in {state} state")

            return {"completed": False, "description": f"Volume {volume_id} state: {state}"}

        self._wait(
            f"Waiting for volume {volume_id} to be available",
            check_volume_status,
            VOLUME_IMPORT_TIMEOUT_MINUTES,
            context,
            VolumeError,
        )

    def wait_for_snapshot_completed(self, snapshot_id: str, context: Optional[PublishContext] = None) -> None:
        """Wait for snapshot to be completed."""

        def check_snapshot_status() -> Dict:
            response = self.ec2.describe_snapshots(SnapshotIds=[snapshot_id])
            if not response["Snapshots"]:
                raise SnapshotError(f"snapshot not found: {snapshot_id}")

            snapshot = response["Snapshots"][0]
            state = snapshot["State"]

            if state == "completed":
                return {"completed": True, "description": f"Snapshot {snapshot_id} completed"}
            elif state == "error":
                raise SnapshotError(f"snapshot failed: {snapshot_id}: {snapshot.get('StateMessage', 'unknown error')}")

            progress_value = snapshot.get("Progress", "0%").rstrip("%")
            progress = int(progress_value) if progress_value.isdigit() else 0
            return {"completed": False, "progress": progress, "description": f"Snapshot {snapshot_id} (state: {state})"}

        self._wait(
            f"Waiting for snapshot {snapshot_id} to complete",
            check_snapshot_status,
            SNAPSHOT_TIMEOUT_MINUTES,
            context,
            SnapshotError,
        )

    def wait_for_ami_available(self, ami_id: str, context: Optional[PublishContext] = None) -> None:
        """Wait for AMI to be available."""

        def check_ami_status() -> Dict:
            response = self.ec2.describe_images(ImageIds=[ami_id])
            if not response["Images"]:
                return {"completed": False, "description": f"AMI {ami_id} not yet visible"}

            state = response["Images"][0]["State"]
            if state == "available":
                return {"completed": True, "description": f"AMI {ami_id} is available"}
            elif state in ["failed", "deregistered", "invalid", "error"]:
                raise ImageError(f"AMI {ami_id} is in {state} state")

            return {"completed": False, "description": f"AMI {ami_id} state: {state}"}

        self._wait(
            f"Waiting for AMI {ami_id} to be available",
            check_ami_status,
            AMI_TIMEOUT_MINUTES,
            context,
            ImageError,
        )
