"""Uploads a disk image and its signed import manifest to S3."""

import os
import posixpath
import time
from typing import List, Optional

import requests

from amipub.common import (
    MANIFEST_SUFFIX,
    AmipubError,
    CapabilityMethod,
    LogLevel,
    PublishError,
)
from amipub.common.config import MachineImageDriverConfig
from amipub.common.models import MachineImage
from amipub.core.context import PublishContext
from amipub.core.fingerprint import get_local_file
from amipub.core.manifest import ImportManifest, ManifestGenerator
from amipub.core.presigner import Presigner
from amipub.core.uploader import ChunkedUploader
from amipub.drivers.base import ResourceDriver
from amipub.utils import cleanup_temp_directory, create_temp_directory, log_duration, log_message

DELETE_TIMEOUT_SECONDS = 60


def manifest_key_for(bucket_folder: str, image_base_name: str) -> str:
    return posixpath.join(bucket_folder, f"{image_base_name}{MANIFEST_SUFFIX}")


class MachineImagePublisher(ResourceDriver):
    """Creates and destroys machine images: an uploaded disk plus its manifest."""

    def __init__(
        self,
        s3_client,
        presigner: Optional[Presigner] = None,
        uploader: Optional[ChunkedUploader] = None,
        http_session: Optional[requests.Session] = None,
    ):
        self.s3 = s3_client
        self.presigner = presigner or Presigner(s3_client)
        self.uploader = uploader or ChunkedUploader(s3_client)
        self.manifest_generator = ManifestGenerator(self.presigner)
        self.http = http_session or requests.Session()

    def create(self, config: MachineImageDriverConfig, context: PublishContext) -> MachineImage:
        """
        Upload the image unless an identical copy is present, then publish its manifest.

        Raises:
            PublishError: Wrapping the file, transfer or signing error that stopped creation
        """
        start_time = time.time()
        try:
            return self._create(config, context)
        except PublishError:
            raise
        except AmipubError as e:
            raise PublishError(str(e)) from e
        except OSError as e:
            raise PublishError(f"writing machine image manifest: {e}") from e
        finally:
            log_duration("machine image create", start_time)

    def _create(self, config: MachineImageDriverConfig, context: PublishContext) -> MachineImage:
        local_file = get_local_file(config.machine_image_path)
        image_base_name = os.path.basename(config.machine_image_path)
        key = posixpath.join(config.bucket_folder, image_base_name)
        uploader = self._uploader_for(config)

        log_message(LogLevel.INFO, f"uploading image to s3://{config.bucket_name}/{key}")
        upload_start = time.time()
        stored = uploader.find_matching(config.bucket_name, key, local_file)
        if stored is not None:
            log_message(
                LogLevel.INFO,
                f"s3://{config.bucket_name}/{key} already matches {local_file.content_hash}, skipping upload",
            )
        else:
            stored = uploader.upload(config.bucket_name, key, local_file)
        log_duration("image upload", upload_start)

        # Size comes from the stored object, not the local file
        manifest = self.manifest_generator.generate(
            stored.bucket,
            stored.key,
            stored.size_bytes,
            config.volume_size_gb,
            config.file_format,
        )

        manifest_get = self._upload_manifest(config, image_base_name, manifest, uploader)
        log_message(LogLevel.SUCCESS, f"Machine image manifest published for {image_base_name}")

        return MachineImage(
            get_url=manifest_get.url,
            delete_urls=[manifest.self_destruct.url, manifest.delete_capability.url],
            expires_at=min(manifest_get.expires_at, manifest.get_capability.expires_at),
            size_bytes=manifest.size_bytes,
            volume_size_gb=manifest.volume_size_gb,
        )

    def _uploader_for(self, config: MachineImageDriverConfig) -> ChunkedUploader:
        if config.server_side_encryption and config.server_side_encryption != self.uploader.server_side_encryption:
            return ChunkedUploader(self.s3, server_side_encryption=config.server_side_encryption)
        return self.uploader

    def _upload_manifest(
        self,
        config: MachineImageDriverConfig,
        image_base_name: str,
        manifest: ImportManifest,
        uploader: ChunkedUploader,
    ):
        manifest_key = manifest_key_for(config.bucket_folder, image_base_name)

        manifest_get = self.presigner.presign(CapabilityMethod.GET, config.bucket_name, manifest_key)
        manifest.self_destruct = self.presigner.presign(CapabilityMethod.DELETE, config.bucket_name, manifest_key)

        temp_dir = create_temp_directory()
        try:
            manifest_path = temp_dir / f"{image_base_name}{MANIFEST_SUFFIX}"
            manifest_path.write_bytes(manifest.to_xml())

            upload_start = time.time()
            stored = uploader.upload(config.bucket_name, manifest_key, get_local_file(str(manifest_path)))
            log_duration("machine image manifest upload", upload_start)
            log_message(
                LogLevel.DEBUG, f"manifest stored at s3://{stored.bucket}/{stored.key} ({stored.size_bytes} bytes)"
            )
        finally:
            cleanup_temp_directory(temp_dir)

        return manifest_get

    def delete(self, machine_image: MachineImage, context: PublishContext) -> None:
        """
        Issue a DELETE against every recorded URL.

        Every URL is attempted once; failures are collected and raised together.

        Raises:
            PublishError: If any of the deletes failed
        """
        failed: List[str] = []
        for url in machine_image.delete_urls:
            try:
                response = self.http.delete(url, timeout=DELETE_TIMEOUT_SECONDS)
                # Already gone counts as deleted
                if response.status_code != 404:
                    response.raise_for_status()
            except requests.RequestException as e:
                log_message(LogLevel.WARN, f"Failed to delete machine image object: {e}")
                failed.append(url.split("?", 1)[0])

        if failed:
            raise PublishError(
                f"deleting machine image: {len(failed)} of {len(machine_image.delete_urls)} deletes failed: "
                f"{', '.join(failed)}"
            )
        log_message(LogLevel.SUCCESS, f"Deleted machine image {machine_image.get_url.split('?', 1)[0]}")
