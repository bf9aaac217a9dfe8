"""Resource driver abstractions."""

from .base import DriverSet, ResourceDriver

__all__ = ["DriverSet", "ResourceDriver"]
