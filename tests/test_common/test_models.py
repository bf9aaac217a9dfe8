"""Tests for resource models."""

import pytest

from amipub.common import CapabilityMethod, VirtualizationType
from amipub.common.models import Ami, AmiCollection, SignedCapability


class TestSignedCapability:
    def test_valid_until_expiry(self):
        capability = SignedCapability(method=CapabilityMethod.GET, url="https://bucket/key", expires_at=100.0)

        assert capability.is_valid(now=99.9)
        assert not capability.is_valid(now=100.0)

    def test_is_immutable(self):
        capability = SignedCapability(method=CapabilityMethod.GET, url="https://bucket/key", expires_at=100.0)

        with pytest.raises(ValueError):
            capability.url = "https://bucket/other"


class TestAmiCollection:
    def test_keyed_by_virtualization_type(self):
        amis = AmiCollection()
        hvm = Ami(id="ami-1", region="cn-north-1", virtualization_type=VirtualizationType.HVM)

        amis.add(hvm)

        assert len(amis) == 1
        assert amis.get(VirtualizationType.HVM) == hvm
        assert amis.get(VirtualizationType.PARAVIRTUAL) is None
        assert list(amis) == [hvm]
        assert amis.amis == [hvm]

    def test_rejects_duplicate_type(self):
        amis = AmiCollection()
        amis.add(Ami(id="ami-1", region="cn-north-1", virtualization_type=VirtualizationType.HVM))

        with pytest.raises(ValueError, match="hvm"):
            amis.add(Ami(id="ami-2", region="cn-north-1", virtualization_type=VirtualizationType.HVM))
