"""Import volume manifest generation and its XML wire format."""

import xml.etree.ElementTree as ET
from typing import Optional

from pydantic import BaseModel

from amipub.common import (
    GB_IN_BYTES,
    IMPORTER_NAME,
    IMPORTER_RELEASE,
    IMPORTER_VERSION,
    MANIFEST_VERSION,
    CapabilityMethod,
    FileFormat,
)
from amipub.common.models import SignedCapability


def derive_volume_size_gb(size_bytes: int) -> int:
    """Round a byte size up to whole gigabytes."""
    return -(-size_bytes // GB_IN_BYTES)


class ImportManifest(BaseModel):
    """Signed description of one uploaded disk image for the volume import service."""

    key: str
    size_bytes: int
    volume_size_gb: int
    file_format: FileFormat
    get_capability: SignedCapability
    head_capability: SignedCapability
    delete_capability: SignedCapability
    self_destruct: Optional[SignedCapability] = None

    def to_xml(self) -> bytes:
        """Serialize with a fixed element order; the import service parses by schema."""
        root = ET.Element("manifest")
        ET.SubElement(root, "version").text = MANIFEST_VERSION
        ET.SubElement(root, "file-format").text = self.file_format.value

        importer = ET.SubElement(root, "importer")
        ET.SubElement(importer, "name").text = IMPORTER_NAME
        ET.SubElement(importer, "version").text = IMPORTER_VERSION
        ET.SubElement(importer, "release").text = IMPORTER_RELEASE

        ET.SubElement(root, "self-destruct-url").text = self.self_destruct.url if self.self_destruct else ""

        import_el = ET.SubElement(root, "import")
        ET.SubElement(import_el, "size").text = str(self.size_bytes)
        ET.SubElement(import_el, "volume-size").text = str(self.volume_size_gb)

        parts = ET.SubElement(import_el, "parts", {"count": "1"})
        part = ET.SubElement(parts, "part", {"index": "0"})
        # Attribute order is kept as inserted
        ET.SubElement(part, "byte-range", {"start": "0", "end": str(max(self.size_bytes - 1, 0))})
        ET.SubElement(part, "key").text = self.key
        ET.SubElement(part, "head-url").text = self.head_capability.url
        ET.SubElement(part, "get-url").text = self.get_capability.url
        ET.SubElement(part, "delete-url").text = self.delete_capability.url

        return ET.tostring(root, encoding="utf-8")


class ManifestGenerator:
    """Builds import manifests from freshly signed capabilities."""

    def __init__(self, presigner):
        self.presigner = presigner

    def generate(
        self,
        bucket: str,
        key: str,
        size_bytes: int,
        volume_size_gb: Optional[int],
        file_format: FileFormat,
    ) -> ImportManifest:
        """
        Sign GET, HEAD and DELETE on the image object and describe it.

        A missing or zero ``volume_size_gb`` is derived from ``size_bytes``.

        Raises:
            SigningError: If any of the three capabilities cannot be signed
        """
        get_capability = self.presigner.presign(CapabilityMethod.GET, bucket, key)
        head_capability = self.presigner.presign(CapabilityMethod.HEAD, bucket, key)
        delete_capability = self.presigner.presign(CapabilityMethod.DELETE, bucket, key)

        if not volume_size_gb:
            volume_size_gb = derive_volume_size_gb(size_bytes)

        return ImportManifest(
            key=key,
            size_bytes=size_bytes,
            volume_size_gb=volume_size_gb,
            file_format=file_format,
            get_capability=get_capability,
            head_capability=head_capability,
            delete_capability=delete_capability,
        )
