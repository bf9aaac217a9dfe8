"""Driver interface that every resource driver implements."""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from amipub.core.context import PublishContext


class ResourceDriver(ABC):
    """Creates and deletes one kind of remote resource."""

    @abstractmethod
    def create(self, config: BaseModel, context: PublishContext) -> Any:
        """Create the resource and return its handle."""
        pass

    @abstractmethod
    def delete(self, handle: Any, context: PublishContext) -> None:
        """Delete the resource identified by ``handle``."""
        pass


class DriverSet:
    """The drivers one region publish run needs."""

    def __init__(
        self,
        machine_image_driver: ResourceDriver,
        volume_driver: ResourceDriver,
        snapshot_driver: ResourceDriver,
        ami_driver: ResourceDriver,
    ):
        self.machine_image_driver = machine_image_driver
        self.volume_driver = volume_driver
        self.snapshot_driver = snapshot_driver
        self.ami_driver = ami_driver
