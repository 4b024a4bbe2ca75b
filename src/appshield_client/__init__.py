"""
appshield-client

A Python client for the Verimatrix App Shield cloud service that registers
an application, uploads a binary as a new build and starts its protection.
"""

from .client import AppShieldAPI
from .config import UploadConfig
from .pipeline import PipelineResult, ProtectionPipeline, create_protection_pipeline
from .exceptions import (
    AppShieldError,
    InputError,
    NetworkError,
    ResponseFormatError,
    HTTPStatusError,
    AuthError,
    RegistrationError,
    BuildCreationError,
    MetadataError,
    UploadError,
    PatchError,
)
from . import utils

__version__ = "1.0.0"

__all__ = [
    "AppShieldAPI",
    "UploadConfig",
    "PipelineResult",
    "ProtectionPipeline",
    "create_protection_pipeline",
    "AppShieldError",
    "InputError",
    "NetworkError",
    "ResponseFormatError",
    "HTTPStatusError",
    "AuthError",
    "RegistrationError",
    "BuildCreationError",
    "MetadataError",
    "UploadError",
    "PatchError",
    "utils",
]
