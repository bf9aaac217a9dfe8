"""
This module defines enums for publishing operations.
"""

from enum import Enum


class LogLevel(str, Enum):
    """Log levels for publishing operations."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARN = "WARN"
    ERROR = "ERROR"


class FileFormat(str, Enum):
    """Disk image formats accepted by the volume import service."""

    RAW = "RAW"
    VMDK = "VMDK"
    VHD = "VHD"


class VirtualizationType(str, Enum):
    HVM = "hvm"
    PARAVIRTUAL = "paravirtual"


class Accessibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class CapabilityMethod(str, Enum):
    """HTTP method a signed capability grants."""

    GET = "GET"
    HEAD = "HEAD"
    DELETE = "DELETE"


class PipelineStage(str, Enum):
    """Stages of a region publish run, named after the state they lead to."""

    START = "start"
    IMAGE_CREATED = "machine image"
    VOLUME_CREATED = "volume"
    SNAPSHOT_CREATED = "snapshot"
    IMAGE_REGISTERED = "ami"
    DONE = "done"
    FAILED = "failed"
