"""
Tests for the ProtectionPipeline stage chain.
"""

import base64

import pytest
from unittest.mock import Mock, patch

from appshield_client import AppShieldAPI, UploadConfig
from appshield_client.exceptions import InputError, PatchError, RegistrationError
from appshield_client.pipeline import ProtectionPipeline, create_protection_pipeline

from conftest import UPLOAD_URL, FakeAppShieldService


def make_config(app_files, **overrides):
    values = dict(
        user_email="dev@example.com",
        api_key="test_api_key",
        application_package_id="com.example.app",
        certificate_file=app_files["certificate"],
        icon_file=app_files["icon"],
        android_manifest_file=app_files["manifest"],
        app_file=app_files["app"],
    )
    values.update(overrides)
    return UploadConfig(**values)


class TestStageOrder:
    """Test the pipeline against a mocked API client."""

    def test_run_calls_stages_in_order(self, app_files):
        """Every stage runs once, in order, with identifiers threaded through."""
        mock_api = Mock(spec=AppShieldAPI)
        mock_api.create_application.return_value = "app-1"
        mock_api.create_build.return_value = "build-1"
        mock_api.get_upload_url.return_value = UPLOAD_URL

        result = ProtectionPipeline(mock_api, make_config(app_files)).run()

        assert result.application_id == "app-1"
        assert result.build_id == "build-1"
        assert result.upload_url == UPLOAD_URL
        assert [name for name, _, _ in mock_api.method_calls] == [
            "get_token",
            "create_application",
            "create_build",
            "update_build_metadata",
            "get_upload_url",
            "upload_file",
            "mark_upload_success",
            "protect_build",
        ]
        mock_api.create_build.assert_called_once_with("app-1", "XTD_PLATFORM")
        mock_api.get_upload_url.assert_called_once_with("build-1", "app.apk")
        mock_api.upload_file.assert_called_once_with(UPLOAD_URL, app_files["app"])

    def test_registration_uses_loaded_files(self, app_files):
        """Certificate text, icon and file name reach the registrar."""
        mock_api = Mock(spec=AppShieldAPI)
        mock_api.create_application.return_value = "app-1"
        mock_api.create_build.return_value = "build-1"
        mock_api.get_upload_url.return_value = UPLOAD_URL

        ProtectionPipeline(mock_api, make_config(app_files)).run()

        kwargs = mock_api.create_application.call_args.kwargs
        assert kwargs["certificate"].endswith("-----END CERTIFICATE-----\n")
        assert kwargs["certificate_file_name"] == "signing.pem"
        assert base64.b64decode(kwargs["icon"]) == b"\x89PNG\r\n\x1a\n\x00\x01"
        assert kwargs["application_name"] == "com.example.app"

        manifest = mock_api.update_build_metadata.call_args.args[2]
        assert base64.b64decode(manifest) == b'<manifest package="com.example.app"/>'

    def test_missing_file_stops_before_registration(self, app_files, tmp_path):
        mock_api = Mock(spec=AppShieldAPI)
        config = make_config(app_files, icon_file=str(tmp_path / "missing.png"))

        with pytest.raises(InputError):
            ProtectionPipeline(mock_api, config).run()
        mock_api.create_application.assert_not_called()

    def test_missing_app_file_stops_before_registration(self, app_files):
        """An empty --appFile is reported before any resource is created."""
        mock_api = Mock(spec=AppShieldAPI)
        config = make_config(app_files, app_file="")

        with pytest.raises(InputError, match="--appFile"):
            ProtectionPipeline(mock_api, config).run()
        mock_api.create_application.assert_not_called()
        mock_api.get_upload_url.assert_not_called()

    def test_registration_failure_stops_pipeline(self, app_files):
        mock_api = Mock(spec=AppShieldAPI)
        mock_api.create_application.side_effect = RegistrationError("no id")

        with pytest.raises(RegistrationError):
            ProtectionPipeline(mock_api, make_config(app_files)).run()
        mock_api.create_build.assert_not_called()


class TestEndToEnd:
    """Test the pipeline against a fake HTTP service."""

    def test_full_run_request_sequence(self, app_files, fake_service):
        """One request per stage and two patches, in order."""
        with patch("requests.request", side_effect=fake_service):
            result = create_protection_pipeline(make_config(app_files)).run()

        assert result.build_id == "build-1"
        assert fake_service.summary() == [
            ("POST", "token"),
            ("POST", "/applications"),
            ("POST", "/builds"),
            ("PUT", "/builds/build-1/metadata"),
            ("GET", "/builds/build-1/url"),
            ("PUT", "upload"),
            ("PATCH", "/builds/build-1"),
            ("PATCH", "/builds/build-1"),
        ]
        patch_params = [kw["params"] for m, _, kw in fake_service.calls if m == "PATCH"]
        assert patch_params == [{"cmd": "upload-success"}, {"cmd": "protect"}]
        assert fake_service.uploaded == b"PK\x03\x04" + b"\x00" * 64

    def test_patch_failure_halts_before_protect(self, app_files):
        """A 500 on upload-success raises PatchError and protect is never sent."""
        service = FakeAppShieldService(patch_statuses=[500, 200])

        with patch("requests.request", side_effect=service):
            with pytest.raises(PatchError):
                create_protection_pipeline(make_config(app_files)).run()

        patches = [kw["params"] for m, _, kw in service.calls if m == "PATCH"]
        assert patches == [{"cmd": "upload-success"}]
