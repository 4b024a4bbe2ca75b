"""
Upload-and-protect pipeline for appshield-client.

This module chains the API calls needed to get an application binary
protected: authenticate, register the application, create a build, attach
the manifest, upload the binary and trigger protection. Each stage feeds
the next and the first failure aborts the run.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .client import AppShieldAPI
from .config import UploadConfig
from .utils import (
    file_base_name,
    read_file_as_base64,
    read_file_as_single_line,
    require_value,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Identifiers produced by a successful run."""

    application_id: str
    build_id: str
    upload_url: str


@dataclass
class ApplicationFiles:
    """Local files loaded into request-ready encodings."""

    certificate: str
    certificate_file_name: str
    icon: str
    android_manifest: str


class ProtectionPipeline:
    """
    Runs the fixed sequence of App Shield calls for one application binary.

    Nothing is rolled back when a stage fails; resources created by earlier
    stages stay on the server.
    """

    def __init__(self, api: AppShieldAPI, config: UploadConfig):
        """Initialize with an API client and the run configuration."""
        self.api = api
        self.config = config

    def load_files(self) -> ApplicationFiles:
        """Read the certificate, manifest and icon referenced by the configuration."""
        config = self.config
        # the binary must be named before any server-side resource exists
        require_value(config.app_file, "--appFile")
        certificate = read_file_as_single_line(config.certificate_file)
        manifest = read_file_as_base64(config.android_manifest_file)
        icon = read_file_as_base64(config.icon_file)

        return ApplicationFiles(
            certificate=certificate,
            certificate_file_name=file_base_name(config.certificate_file),
            icon=icon,
            android_manifest=manifest,
        )

    def register_application(self, files: ApplicationFiles) -> str:
        config = self.config
        return self.api.create_application(
            application_package_id=config.application_package_id,
            certificate=files.certificate,
            certificate_file_name=files.certificate_file_name,
            icon=files.icon,
            os_name=config.os_name,
            application_name=config.application_name,
            subscription_type=config.subscription_type,
            permission_delete=config.permission_delete,
            permission_upload=config.permission_upload,
            permission_private=config.permission_private,
            icon_mime_type=config.icon_mime_type,
        )

    def upload_build(self, application_id: str, files: ApplicationFiles) -> PipelineResult:
        """
        Create a build and take it from creation to protection.

        Args:
            application_id: Application the build belongs to
            files: Loaded files providing the manifest

        Returns:
            PipelineResult with the identifiers and the upload URL used
        """
        config = self.config

        build_id = self.api.create_build(application_id, config.subscription_type)
        self.api.update_build_metadata(build_id, config.os_name, files.android_manifest)

        upload_url = self.api.get_upload_url(build_id, file_base_name(config.app_file))
        self.api.upload_file(upload_url, config.app_file)

        self.api.mark_upload_success(build_id)
        self.api.protect_build(build_id)

        return PipelineResult(
            application_id=application_id, build_id=build_id, upload_url=upload_url
        )

    def run(self) -> PipelineResult:
        """
        Execute every stage in order.

        Raises:
            AppShieldError: Subclass matching the first stage that failed
        """
        logger.info(f"run: Starting pipeline for {self.config.application_package_id}")

        self.api.get_token()
        files = self.load_files()
        application_id = self.register_application(files)
        result = self.upload_build(application_id, files)

        logger.info(
            f"run: Build {result.build_id} of application {result.application_id} "
            f"submitted for protection"
        )
        return result


def create_protection_pipeline(
    config: UploadConfig, api: Optional[AppShieldAPI] = None
) -> ProtectionPipeline:
    """
    Convenience function to create a ProtectionPipeline with an API client.

    Args:
        config: Run configuration
        api: Optional preconfigured client (one is built from config otherwise)

    Returns:
        Configured ProtectionPipeline instance
    """
    if api is None:
        api = AppShieldAPI(user_email=config.user_email, api_key=config.api_key)

    return ProtectionPipeline(api, config)
