"""
Shared fixtures: local application files and a fake App Shield service.
"""

import pytest
from unittest.mock import Mock

from appshield_client import AppShieldAPI

UPLOAD_URL = "https://uploads.example.com/builds/build-1/app.apk?X-Signature=abc"


class FakeAppShieldService:
    """Answers requests.request calls the way the App Shield endpoints do."""

    def __init__(self, patch_statuses=None):
        self.calls = []
        self.uploaded = None
        self.patch_statuses = list(patch_statuses or [200, 200])

    def __call__(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        response = Mock()
        response.status_code = 200
        response.text = ""

        if url == AppShieldAPI.TOKEN_URL:
            response.json.return_value = {"token": "test_token"}
        elif url.endswith("/applications"):
            response.json.return_value = {"id": "app-1"}
            response.text = '{"id": "app-1"}'
        elif method == "POST" and url.endswith("/builds"):
            response.json.return_value = {"id": "build-1"}
            response.text = '{"id": "build-1"}'
        elif url.endswith("/metadata"):
            response.text = "{}"
        elif url.endswith("/url"):
            response.text = UPLOAD_URL
        elif url == UPLOAD_URL:
            self.uploaded = kwargs["data"].read()
        elif method == "PATCH":
            response.status_code = self.patch_statuses.pop(0)
            response.json.side_effect = ValueError("no json")
            response.text = "Internal Server Error"
        return response

    def summary(self):
        """(method, endpoint suffix) for every call, in order."""
        result = []
        for method, url, kwargs in self.calls:
            if url == AppShieldAPI.TOKEN_URL:
                result.append((method, "token"))
            elif url == UPLOAD_URL:
                result.append((method, "upload"))
            else:
                result.append((method, url[len(AppShieldAPI.BASE_URL):]))
        return result


@pytest.fixture
def fake_service():
    return FakeAppShieldService()


@pytest.fixture
def app_files(tmp_path):
    """Certificate, icon, manifest and binary on disk."""
    certificate = tmp_path / "signing.pem"
    certificate.write_bytes(b"-----BEGIN CERTIFICATE-----\nMIIB\n-----END CERTIFICATE-----\n")
    icon = tmp_path / "icon.png"
    icon.write_bytes(b"\x89PNG\r\n\x1a\n\x00\x01")
    manifest = tmp_path / "AndroidManifest.xml"
    manifest.write_bytes(b'<manifest package="com.example.app"/>')
    app_file = tmp_path / "app.apk"
    app_file.write_bytes(b"PK\x03\x04" + b"\x00" * 64)

    return {
        "certificate": str(certificate),
        "icon": str(icon),
        "manifest": str(manifest),
        "app": str(app_file),
    }
