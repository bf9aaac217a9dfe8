"""
AWS client wrapper for region publishing.
"""

from typing import Optional

import boto3

from amipub.common.config import Credentials, RegionConfig
from amipub.core.machine_image import MachineImagePublisher
from amipub.core.presigner import Presigner
from amipub.drivers.base import DriverSet

from .aws_waiter import AWSWaiter
from .ec2_drivers import Ec2AmiDriver, Ec2SnapshotDriver, Ec2VolumeDriver


class AWSClient:
    """
    Lazily created boto3 session and clients for one region.
    """

    def __init__(self, credentials: Credentials) -> None:
        self.credentials = credentials
        self.region = credentials.region

        self._session: Optional[boto3.Session] = None
        self._ec2 = None
        self._s3 = None

    @property
    def session(self) -> boto3.Session:
        if self._session is None:
            if self.credentials.access_key and self.credentials.secret_key:
                self._session = boto3.Session(
                    aws_access_key_id=self.credentials.access_key,
                    aws_secret_access_key=self.credentials.secret_key,
                    region_name=self.region,
                )
            else:
                # Fall back to the default credential chain
                self._session = boto3.Session(region_name=self.region)
        return self._session

    @property
    def ec2(self):
        if self._ec2 is None:
            self._ec2 = self.session.client("ec2", region_name=self.region)
        return self._ec2

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = self.session.client("s3", region_name=self.region)
        return self._s3

    def machine_image_driver(self) -> MachineImagePublisher:
        return MachineImagePublisher(self.s3, presigner=Presigner(self.s3))

    def driver_set(self, config: RegionConfig) -> DriverSet:
        """Build the EC2/S3 drivers for a publish run in this region."""
        waiter = AWSWaiter(self.ec2)
        return DriverSet(
            machine_image_driver=self.machine_image_driver(),
            volume_driver=Ec2VolumeDriver(self.ec2, waiter, availability_zone=config.availability_zone),
            snapshot_driver=Ec2SnapshotDriver(self.ec2, waiter),
            ami_driver=Ec2AmiDriver(self.ec2, waiter, self.region),
        )
