"""Machine image publisher for isolated AWS regions.

Uploads a local disk image to S3, describes it with a signed import manifest,
imports it as an EBS volume, snapshots the volume and registers an AMI, cleaning
up intermediate resources along the way.
"""

# Core functionality
from .core import MachineImagePublisher, RegionPublishingPipeline

# AWS integration
from .aws import AWSClient

__version__ = "1.0.0"

__all__ = [
    "MachineImagePublisher",
    "RegionPublishingPipeline",
    "AWSClient",
]
