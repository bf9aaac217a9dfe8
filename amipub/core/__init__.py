"""Core publishing functionality modules."""

from .compensation import CompensationStack
from .context import PublishContext
from .fingerprint import fingerprint, get_local_file
from .machine_image import MachineImagePublisher
from .manifest import ImportManifest, ManifestGenerator, derive_volume_size_gb
from .pipeline import RegionPublishingPipeline
from .presigner import Presigner
from .uploader import ChunkedUploader

__all__ = [
    "ChunkedUploader",
    "CompensationStack",
    "ImportManifest",
    "MachineImagePublisher",
    "ManifestGenerator",
    "Presigner",
    "PublishContext",
    "RegionPublishingPipeline",
    "derive_volume_size_gb",
    "fingerprint",
    "get_local_file",
]
