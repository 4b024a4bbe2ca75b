"""
Command line interface for appshield-client.

Registers an application on App Shield, uploads a binary as a new build
and starts its protection.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import (
    DEFAULT_ICON_MIME_TYPE,
    DEFAULT_OS,
    DEFAULT_SUBSCRIPTION_TYPE,
    ENV_API_KEY,
    ENV_USER,
    UploadConfig,
)
from .exceptions import AppShieldError
from .pipeline import create_protection_pipeline
from .utils import parse_bool

logger = logging.getLogger(__name__)


def _add_bool_flag(parser: argparse.ArgumentParser, name: str, default: bool, help_text: str):
    # bare flag means true, "--flag=false" / "--flag false" also accepted
    parser.add_argument(
        name,
        type=parse_bool,
        nargs="?",
        const=True,
        default=default,
        metavar="BOOL",
        help=f"{help_text} (default: {str(default).lower()})",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="appshield-client",
        description="Upload an application binary to Verimatrix App Shield and protect it.",
    )

    auth = parser.add_argument_group("authentication")
    auth.add_argument("--user", help=f"User email (or set {ENV_USER})")
    auth.add_argument("--api-key", dest="api_key", help=f"API key (or set {ENV_API_KEY})")

    app = parser.add_argument_group("application")
    app.add_argument("--applicationPackageId", help="Application package ID")
    app.add_argument(
        "--os", default=DEFAULT_OS, help=f"Operating system (default: {DEFAULT_OS})"
    )
    app.add_argument(
        "--applicationName",
        help="Application name (optional, defaults to applicationPackageId)",
    )
    app.add_argument(
        "--subscriptionType",
        default=DEFAULT_SUBSCRIPTION_TYPE,
        help=f"Subscription type (default: {DEFAULT_SUBSCRIPTION_TYPE})",
    )
    _add_bool_flag(app, "--permissionDelete", True, "Permission to delete")
    _add_bool_flag(app, "--permissionUpload", True, "Permission to upload")
    _add_bool_flag(app, "--permissionPrivate", False, "Permission to set private")

    files = parser.add_argument_group("files")
    files.add_argument("--certificate", help="Path to the certificate file (PEM format)")
    files.add_argument("--icon", help="Path to the icon file")
    files.add_argument(
        "--iconMimeType",
        default=DEFAULT_ICON_MIME_TYPE,
        help=f"MIME type of the icon file (default: {DEFAULT_ICON_MIME_TYPE})",
    )
    files.add_argument(
        "--android-manifest", dest="android_manifest", help="Path to the AndroidManifest file"
    )
    files.add_argument("--appFile", help="Path to the APK/IPA file")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Args:
        argv: Arguments without the program name (sys.argv[1:] by default)

    Returns:
        Process exit status: 0 on success, 1 on the first failed stage
    """
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = UploadConfig.from_namespace(args)
        result = create_protection_pipeline(config).run()
    except AppShieldError as e:
        logger.debug("Pipeline aborted", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Application ID: {result.application_id}")
    print(f"Build ID: {result.build_id}")
    return 0


def run():
    sys.exit(main())
