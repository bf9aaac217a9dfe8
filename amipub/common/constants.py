"""
This module defines project-level constants.
"""

from typing import Dict, List

# Chunked upload
UPLOAD_CHUNK_SIZE = 10 * 1024 * 1024
UPLOAD_CONCURRENCY = 10
UPLOAD_CONTENT_TYPE = "application/octet-stream"
HASH_METADATA_KEY = "md5"
HASH_BLOCK_SIZE = 1024 * 1024

# Signed capabilities are valid for a fixed window from generation time
PRESIGN_EXPIRY_SECONDS = 2 * 60 * 60

GB_IN_BYTES = 1 << 30

# Object layout
DEFAULT_BUCKET_FOLDER = "bosh-stemcell"
MANIFEST_SUFFIX = "-manifest"

# Import volume manifest
MANIFEST_VERSION = "2010-11-15"
IMPORTER_NAME = "amipub"
IMPORTER_VERSION = "1.0.0"
IMPORTER_RELEASE = "2015-01-01"

# EC2 waits
VOLUME_IMPORT_TIMEOUT_MINUTES = 60
SNAPSHOT_TIMEOUT_MINUTES = 60
AMI_TIMEOUT_MINUTES = 30
DEFAULT_ROOT_DEVICE_NAME = "/dev/xvda"
DEFAULT_ARCHITECTURE = "x86_64"

# Supported disk formats and their extensions
SUPPORTED_FORMATS: Dict[str, List[str]] = {
    "RAW": [".raw", ".img"],
    "VMDK": [".vmdk"],
    "VHD": [".vhd"],
}
