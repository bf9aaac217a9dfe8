"""AWS integration modules for amipub."""

from .aws_client import AWSClient
from .aws_waiter import AWSWaiter
from .ec2_drivers import Ec2AmiDriver, Ec2SnapshotDriver, Ec2VolumeDriver

__all__ = ["AWSClient", "AWSWaiter", "Ec2AmiDriver", "Ec2SnapshotDriver", "Ec2VolumeDriver"]
