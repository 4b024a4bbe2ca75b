"""
Exception classes for appshield-client.
"""


class AppShieldError(Exception):
    """Base exception class for App Shield client errors."""

    pass


class InputError(AppShieldError):
    """Raised when a required value is missing or a local file cannot be read."""

    pass


class NetworkError(AppShieldError):
    """Raised when a request fails at the transport level."""

    pass


class ResponseFormatError(AppShieldError):
    """Raised when a response is not JSON or lacks an expected field."""

    pass


class HTTPStatusError(AppShieldError):
    """Raised when an endpoint returns an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class AuthError(AppShieldError):
    """Raised when a bearer token cannot be obtained."""

    pass


class RegistrationError(AppShieldError):
    """Raised when the application record cannot be created."""

    pass


class BuildCreationError(AppShieldError):
    """Raised when a build cannot be created."""

    pass


class MetadataError(AppShieldError):
    """Raised when build metadata cannot be attached."""

    pass


class UploadError(AppShieldError):
    """Raised when the upload URL cannot be obtained or the binary upload fails."""

    pass


class PatchError(AppShieldError):
    """Raised when a build state command is rejected."""

    pass
