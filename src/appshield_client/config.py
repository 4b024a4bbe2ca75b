"""
Run configuration for appshield-client.

The configuration is built once from the command line (with environment
fallbacks for credentials) and passed unchanged to every pipeline stage.
"""

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .utils import require_value

ENV_USER = "APPSHIELD_USER"
ENV_API_KEY = "APPSHIELD_API_KEY"

DEFAULT_OS = "android"
DEFAULT_SUBSCRIPTION_TYPE = "XTD_PLATFORM"
DEFAULT_ICON_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class UploadConfig:
    """Immutable settings for one upload-and-protect run."""

    user_email: str
    api_key: str
    application_package_id: str
    certificate_file: str = ""
    icon_file: str = ""
    android_manifest_file: str = ""
    app_file: str = ""
    os_name: str = DEFAULT_OS
    application_name: str = ""
    subscription_type: str = DEFAULT_SUBSCRIPTION_TYPE
    permission_delete: bool = True
    permission_upload: bool = True
    permission_private: bool = False
    icon_mime_type: str = DEFAULT_ICON_MIME_TYPE

    def __post_init__(self):
        require_value(self.user_email, "--user")
        require_value(self.api_key, "--api-key")
        require_value(self.application_package_id, "--applicationPackageId")
        if not self.application_name:
            object.__setattr__(self, "application_name", self.application_package_id)

    @classmethod
    def from_namespace(
        cls, args: argparse.Namespace, environ: Optional[Mapping[str, str]] = None
    ) -> "UploadConfig":
        """
        Build a configuration from parsed command line arguments.

        Args:
            args: Namespace produced by the CLI parser
            environ: Environment used for credential fallbacks (os.environ by default)

        Raises:
            InputError: If a required value is missing
        """
        if environ is None:
            environ = os.environ

        return cls(
            user_email=args.user or environ.get(ENV_USER, ""),
            api_key=args.api_key or environ.get(ENV_API_KEY, ""),
            application_package_id=args.applicationPackageId or "",
            certificate_file=args.certificate or "",
            icon_file=args.icon or "",
            android_manifest_file=args.android_manifest or "",
            app_file=args.appFile or "",
            os_name=args.os,
            application_name=args.applicationName or "",
            subscription_type=args.subscriptionType,
            permission_delete=args.permissionDelete,
            permission_upload=args.permissionUpload,
            permission_private=args.permissionPrivate,
            icon_mime_type=args.iconMimeType,
        )
