"""
Common constants, enums, errors and models for amipub.
"""

from .constants import *  # noqa: F401,F403
from .enums import Accessibility, CapabilityMethod, FileFormat, LogLevel, PipelineStage, VirtualizationType
from .error_codes import *  # noqa: F401,F403
from .exceptions import (
    AmipubError,
    CleanupFailure,
    ConfigError,
    DeadlineExceededError,
    FileError,
    ImageError,
    PipelineError,
    PublishError,
    SigningError,
    SnapshotError,
    TransferError,
    VolumeError,
)
