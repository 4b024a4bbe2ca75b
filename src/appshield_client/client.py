"""
Verimatrix App Shield API client.

This module provides a client for the App Shield cloud service, covering
token issuance, application registration and the build endpoints used to
upload and protect an application binary.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

import requests
from ratelimit import limits, sleep_and_retry

from .exceptions import (
    AppShieldError,
    AuthError,
    BuildCreationError,
    HTTPStatusError,
    InputError,
    MetadataError,
    NetworkError,
    PatchError,
    RegistrationError,
    ResponseFormatError,
    UploadError,
)
from .utils import mask_secret, require_value

logger = logging.getLogger(__name__)

CMD_UPLOAD_SUCCESS = "upload-success"
CMD_PROTECT = "protect"


def _redact_query(url: str) -> str:
    """Drop the query string, which carries the signature of pre-signed URLs."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))


class AppShieldAPI:
    """
    Verimatrix App Shield API client.

    Holds the bearer token for the lifetime of the process and threads it
    into every API call. The token is fetched lazily on first use unless
    one is passed in.

    Args:
        user_email: Account email used to issue the token
        api_key: API key of the account
        token: Optional bearer token obtained earlier in the same run
        timeout: Timeout in seconds for API requests
    """

    TOKEN_URL = "https://ssoapi-ng.platform.verimatrixcloud.net/v1/token"
    BASE_URL = "https://aps-api.appshield.verimatrixcloud.net"

    DEFAULT_TIMEOUT = 30
    UPLOAD_TIMEOUT = 300
    UPLOAD_OK_STATUSES = (200, 201, 204)

    def __init__(
        self,
        user_email: str,
        api_key: str,
        token: Optional[str] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        """Initialize the App Shield API client."""
        self.user_email = require_value(user_email, "--user")
        self.api_key = require_value(api_key, "--api-key")
        self.timeout = timeout
        self._token: Optional[str] = token

    # ===== REQUEST HELPERS =====

    def _get_headers(
        self, authenticated: bool = True, json_body: bool = True
    ) -> Dict[str, str]:
        """Get headers for API requests."""
        headers: Dict[str, str] = {}
        if json_body:
            headers["Content-Type"] = "application/json"
        if authenticated:
            headers["Authorization"] = f"Bearer {self._get_token()}"
        return headers

    def _get_token(self) -> str:
        if self._token is None:
            return self.get_token()
        return self._token

    def _make_request_raw(
        self,
        method: str = "GET",
        url: Optional[str] = None,
        endpoint: Optional[str] = None,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None,
        body: Any = None,
        authenticated: bool = True,
        expected_status: Optional[Tuple[int, ...]] = None,
        timeout: Optional[int] = None,
    ) -> requests.Response:
        """
        Send a single request.

        Args:
            method: HTTP method
            url: Absolute URL (takes precedence over endpoint)
            endpoint: Path relative to BASE_URL
            params: Query parameters
            data: JSON payload
            body: Raw request body (bytes or an open file, streamed)
            authenticated: Whether to send the bearer token
            expected_status: Statuses accepted; None skips the status check
            timeout: Override for the client timeout

        Raises:
            NetworkError: On transport failure
            HTTPStatusError: If expected_status is given and not matched
        """
        if url is None and endpoint is not None:
            url = f"{self.BASE_URL}{endpoint}"
        elif url is None:
            raise InputError("Either url or endpoint must be provided")

        headers = self._get_headers(authenticated=authenticated, json_body=data is not None)
        timeout = timeout or self.timeout

        logger.info(f"_make_request: {method} {_redact_query(url)}")
        if params:
            logger.debug(f"_make_request: params={params}")

        try:
            response = requests.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=data,
                data=body,
                timeout=timeout,
            )
            logger.info(f"_make_request: Response received - status={response.status_code}")
        except requests.exceptions.Timeout as e:
            logger.error(f"_make_request: Request timed out after {timeout}s: {e}")
            raise NetworkError(f"Request failed: {e}")
        except requests.exceptions.RequestException as e:
            logger.error(f"_make_request: Request failed: {e}")
            raise NetworkError(f"Request failed: {e}")

        if expected_status is not None and response.status_code not in expected_status:
            try:
                error_data = response.json()
                error_msg = error_data.get("message", response.text)
            except (ValueError, AttributeError):
                error_msg = response.text
            logger.error(f"API Error {response.status_code}: {error_msg}")
            raise HTTPStatusError(
                f"API Error {response.status_code}: {error_msg}", response.status_code
            )

        return response

    @sleep_and_retry
    @limits(calls=1000, period=3600)
    def _make_request(self, *args, **kwargs) -> requests.Response:
        """Rate-limited wrapper for _make_request_raw."""
        return self._make_request_raw(*args, **kwargs)

    @staticmethod
    def _extract_string(response: requests.Response, field: str) -> str:
        """Parse a JSON object response and return one of its string fields."""
        try:
            result = response.json()
        except ValueError as e:
            raise ResponseFormatError(f"error parsing JSON response: {e}")

        if not isinstance(result, dict):
            raise ResponseFormatError(f"expected a JSON object, got {type(result).__name__}")

        value = result.get(field)
        if not isinstance(value, str):
            raise ResponseFormatError(f"{field} not found in the response")
        return value

    # ===== AUTHENTICATION =====

    def get_token(self) -> str:
        """
        Exchange the account email and API key for a bearer token.

        Returns:
            The bearer token

        Raises:
            AuthError: On transport failure, non-JSON response or missing token
        """
        payload = {"userEmail": self.user_email, "apiKey": self.api_key}

        try:
            response = self._make_request(
                method="POST", url=self.TOKEN_URL, data=payload, authenticated=False
            )
            token = self._extract_string(response, "token")
        except AppShieldError as e:
            raise AuthError(f"Error generating token: {e}") from e

        logger.info(f"get_token: Token issued for {self.user_email} ({mask_secret(token)})")
        self._token = token
        return token

    # ===== APPLICATIONS =====

    def create_application(
        self,
        application_package_id: str,
        certificate: str,
        certificate_file_name: str,
        icon: str,
        os_name: str = "android",
        application_name: Optional[str] = None,
        subscription_type: str = "XTD_PLATFORM",
        permission_delete: bool = True,
        permission_upload: bool = True,
        permission_private: bool = False,
        icon_mime_type: str = "image/png",
    ) -> str:
        """
        Register an application and return its identifier.

        Args:
            application_package_id: Package identifier, e.g. 'com.example.app'
            certificate: PEM text of the signing certificate
            certificate_file_name: File name reported for the certificate
            icon: Base64 encoded icon
            os_name: Target operating system
            application_name: Display name, defaults to the package identifier
            subscription_type: Subscription the application is created under
            permission_delete: Allow deleting the application
            permission_upload: Allow uploading builds
            permission_private: Mark the application private
            icon_mime_type: MIME type of the icon

        Returns:
            The application identifier

        Raises:
            InputError: If the package identifier is missing
            RegistrationError: On transport failure, non-JSON response or missing id
        """
        require_value(application_package_id, "--applicationPackageId")
        if not application_name:
            application_name = application_package_id

        payload = {
            "applicationPackageId": application_package_id,
            "os": os_name,
            "applicationName": application_name,
            "subscriptionType": subscription_type,
            "permissionDelete": permission_delete,
            "permissionUpload": permission_upload,
            "permissionPrivate": permission_private,
            "certificate": certificate,
            "certificateFileName": certificate_file_name,
            "icon": icon,
            "iconMimeType": icon_mime_type,
            "additionalProp1": {},
        }

        try:
            response = self._make_request(method="POST", endpoint="/applications", data=payload)
            logger.info(f"create_application: Response {response.text}")
            application_id = self._extract_string(response, "id")
        except AuthError:
            raise
        except AppShieldError as e:
            raise RegistrationError(f"Error creating application: {e}") from e

        logger.info(f"create_application: Created application {application_id}")
        return application_id

    # ===== BUILDS =====

    def create_build(self, application_id: str, subscription_type: str = "XTD_PLATFORM") -> str:
        """
        Create a build under an application.

        Returns:
            The build identifier

        Raises:
            BuildCreationError: On transport failure, non-JSON response or missing id
        """
        payload = {
            "applicationId": application_id,
            "subscriptionType": subscription_type,
            "additionalProp1": {},
        }

        try:
            response = self._make_request(method="POST", endpoint="/builds", data=payload)
            logger.info(f"create_build: Response {response.text}")
            build_id = self._extract_string(response, "id")
        except AuthError:
            raise
        except AppShieldError as e:
            raise BuildCreationError(f"Error creating build: {e}") from e

        logger.info(f"create_build: Created build {build_id} for application {application_id}")
        return build_id

    def update_build_metadata(self, build_id: str, os_name: str, android_manifest: str) -> str:
        """
        Attach the Base64 encoded manifest to a build.

        The response carries no structured result, so only a transport
        failure counts as an error.

        Returns:
            The raw response body
        """
        payload = {
            "os": os_name,
            "osData": {"androidManifest": android_manifest},
        }

        try:
            response = self._make_request(
                method="PUT", endpoint=f"/builds/{build_id}/metadata", data=payload
            )
        except AuthError:
            raise
        except AppShieldError as e:
            raise MetadataError(f"Error updating build metadata: {e}") from e

        logger.info(f"update_build_metadata: Response {response.text}")
        return response.text

    def get_upload_url(self, build_id: str, file_name: str) -> str:
        """
        Request a pre-signed URL the build binary can be uploaded to.

        The body is returned as plain text; a JSON string literal is
        unquoted.

        Returns:
            The pre-signed upload URL

        Raises:
            UploadError: On transport failure or an empty body
        """
        params = {"url": "raw", "uploadname": file_name}

        try:
            response = self._make_request(
                method="GET", endpoint=f"/builds/{build_id}/url", params=params
            )
            upload_url = response.text.strip()
            if upload_url.startswith('"'):
                try:
                    upload_url = json.loads(upload_url)
                except ValueError as e:
                    raise ResponseFormatError(f"malformed upload URL: {e}")
            if not upload_url:
                raise ResponseFormatError("upload URL not found in the response")
        except AuthError:
            raise
        except AppShieldError as e:
            raise UploadError(f"Error getting upload URL: {e}") from e

        logger.info(f"get_upload_url: Upload URL obtained for build {build_id}")
        logger.debug(f"get_upload_url: {upload_url}")
        return upload_url

    def upload_file(self, upload_url: str, file_path: Union[str, Path]) -> int:
        """
        Stream a file to a pre-signed URL with HTTP PUT.

        The bearer token is not sent; the URL carries its own authorization.

        Returns:
            The HTTP status of the upload

        Raises:
            InputError: If the file cannot be opened
            UploadError: On transport failure or a non-success status
        """
        try:
            f = open(file_path, "rb")
        except OSError as e:
            raise InputError(f"could not read file {file_path}: {e}")

        with f:
            try:
                response = self._make_request(
                    method="PUT",
                    url=upload_url,
                    body=f,
                    authenticated=False,
                    expected_status=self.UPLOAD_OK_STATUSES,
                    timeout=self.UPLOAD_TIMEOUT,
                )
            except AppShieldError as e:
                raise UploadError(f"Error uploading {file_path}: {e}") from e

        logger.info(f"upload_file: Uploaded {file_path} (status={response.status_code})")
        return response.status_code

    def patch_build(self, build_id: str, command: str) -> bool:
        """
        Send a state transition command to a build.

        Args:
            build_id: The build to patch
            command: Command name, e.g. 'upload-success' or 'protect'

        Raises:
            PatchError: On transport failure or any status other than 200
        """
        try:
            self._make_request(
                method="PATCH",
                endpoint=f"/builds/{build_id}",
                params={"cmd": command},
                expected_status=(200,),
            )
        except AuthError:
            raise
        except AppShieldError as e:
            raise PatchError(f"failed to patch request ({command}): {e}") from e

        logger.info(f"patch_build: {command} accepted for build {build_id}")
        return True

    def mark_upload_success(self, build_id: str) -> bool:
        """Tell the service the binary upload for a build has completed."""
        return self.patch_build(build_id, CMD_UPLOAD_SUCCESS)

    def protect_build(self, build_id: str) -> bool:
        """Start protection of an uploaded build."""
        return self.patch_build(build_id, CMD_PROTECT)
