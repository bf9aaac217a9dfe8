"""
Exception hierarchy for publishing operations.
"""

from typing import List, Optional


class AmipubError(Exception):
    """Base class for all publishing errors."""

    pass


class ConfigError(AmipubError):
    """Raised when configuration cannot be loaded or is invalid."""

    pass


class FileError(AmipubError):
    """Raised when a local file cannot be opened or read."""

    pass


class TransferError(AmipubError):
    """Raised when an upload to object storage fails."""

    pass


class SigningError(AmipubError):
    """Raised when a signed capability cannot be generated."""

    pass


class PublishError(AmipubError):
    """Raised when a machine image cannot be created or deleted."""

    pass


class VolumeError(AmipubError):
    pass


class SnapshotError(AmipubError):
    pass


class ImageError(AmipubError):
    pass


class DeadlineExceededError(AmipubError):
    """Raised when a stage starts after the publish deadline has passed."""

    pass


class CleanupFailure:
    """A compensating delete that failed during rollback."""

    def __init__(self, resource: str, error: BaseException):
        self.resource = resource
        self.error = error

    def __str__(self) -> str:
        return f"failed to delete {self.resource}: {self.error}"

    def __repr__(self) -> str:
        return f"CleanupFailure({self.resource!r}, {self.error!r})"


class PipelineError(AmipubError):
    """
    Raised when a publish run fails.

    Carries the stage that failed, the first fatal error as ``cause`` and the
    cleanup failures collected while rolling back, which are warnings only.
    """

    def __init__(self, stage: str, cause: BaseException, cleanup_errors: Optional[List[CleanupFailure]] = None):
        self.stage = stage
        self.cause = cause
        self.cleanup_errors = list(cleanup_errors or [])
        super().__init__(f"creating {stage}: {cause}")
