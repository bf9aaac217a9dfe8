"""Resource models shared by the publisher, the pipeline and the drivers."""

import time
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import CapabilityMethod, VirtualizationType


class LocalFile(BaseModel):
    """A local file resolved for one upload attempt."""

    model_config = ConfigDict(frozen=True)

    path: str
    size_bytes: int
    content_hash: str


class StoredObject(BaseModel):
    """An object present in the bucket, tagged with the hash of its content."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str
    size_bytes: int
    content_hash: Optional[str] = None


class SignedCapability(BaseModel):
    """A presigned URL granting one method on one object until ``expires_at``."""

    model_config = ConfigDict(frozen=True)

    method: CapabilityMethod
    url: str
    expires_at: float

    def is_valid(self, now: Optional[float] = None) -> bool:
        if now is None:
            now = time.time()
        return now < self.expires_at


class MachineImage(BaseModel):
    """Uploaded disk image plus its import manifest."""

    get_url: str
    delete_urls: List[str] = Field(default_factory=list)
    expires_at: Optional[float] = None
    size_bytes: Optional[int] = None
    volume_size_gb: Optional[int] = None


class Volume(BaseModel):
    id: str


class Snapshot(BaseModel):
    id: str


class Ami(BaseModel):
    id: str
    region: str
    virtualization_type: VirtualizationType


class AmiCollection:
    """Registered AMIs of one publish run, keyed by virtualization type."""

    def __init__(self):
        self._amis: Dict[VirtualizationType, Ami] = {}

    def add(self, ami: Ami) -> None:
        if ami.virtualization_type in self._amis:
            raise ValueError(f"AMI already recorded for virtualization type {ami.virtualization_type.value}")
        self._amis[ami.virtualization_type] = ami

    def get(self, virtualization_type: VirtualizationType) -> Optional[Ami]:
        return self._amis.get(virtualization_type)

    @property
    def amis(self) -> List[Ami]:
        return list(self._amis.values())

    def __len__(self) -> int:
        return len(self._amis)

    def __iter__(self):
        return iter(self._amis.values())
