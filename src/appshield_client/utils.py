"""
Utility functions for appshield-client.

This module provides the file loaders used to build request payloads and
small helpers for presence checks, flag parsing and log-safe output.
"""

import base64
import os
from pathlib import Path
from typing import Optional, Union

from .exceptions import InputError

TRUE_VALUES = ("1", "t", "true", "y", "yes", "on")
FALSE_VALUES = ("0", "f", "false", "n", "no", "off")


def require_value(value: Optional[str], name: str) -> str:
    """
    Check that a required value was supplied.

    Args:
        value: The value to check
        name: Name used in the error message (usually the CLI flag)

    Returns:
        The value unchanged

    Raises:
        InputError: If the value is None or empty
    """
    if value is None or value == "":
        raise InputError(f"{name} must be provided")
    return value


def read_file_as_single_line(file_path: Union[str, Path]) -> str:
    """
    Read a text file and return its content verbatim.

    Line endings are not translated and a trailing newline is kept, so the
    result matches the file byte-for-byte once encoded as UTF-8. Invalid
    UTF-8 sequences are replaced rather than rejected.

    Args:
        file_path: Path to the file (e.g. a PEM certificate)

    Returns:
        The file content as a string

    Raises:
        InputError: If the path is empty or the file cannot be read
    """
    if not file_path:
        raise InputError("could not read file: no path provided")

    try:
        with open(file_path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise InputError(f"could not read file {file_path}: {e}")

    # bytes that are not valid UTF-8 become U+FFFD
    return data.decode("utf-8", errors="replace")


def read_file_as_base64(file_path: Union[str, Path]) -> str:
    """
    Read a file and return its content as standard Base64.

    Args:
        file_path: Path to the file (icon, manifest, ...)

    Returns:
        Base64 encoded content with padding

    Raises:
        InputError: If the path is empty or the file cannot be read
    """
    if not file_path:
        raise InputError("could not read file: no path provided")

    try:
        with open(file_path, "rb") as f:
            data = f.read()
    except OSError as e:
        raise InputError(f"could not read file {file_path}: {e}")

    return base64.b64encode(data).decode("ascii")


def file_base_name(file_path: Union[str, Path]) -> str:
    """Return the last path component, e.g. 'app.apk' for '/tmp/out/app.apk'."""
    return os.path.basename(os.fspath(file_path))


def parse_bool(value: Union[str, bool]) -> bool:
    """
    Parse a command line boolean.

    Args:
        value: A bool or one of the usual spellings ('true', 'false', '1', ...)

    Returns:
        The parsed boolean

    Raises:
        ValueError: If the value is not a recognised boolean spelling
    """
    if isinstance(value, bool):
        return value

    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"invalid boolean value: {value!r}")


def mask_secret(secret: Optional[str], visible: int = 4) -> str:
    """
    Mask a secret for logging, keeping only its last characters.

    Args:
        secret: Token or key to mask
        visible: Number of trailing characters left readable

    Returns:
        Masked string, e.g. '****abcd'
    """
    if not secret:
        return ""
    if len(secret) <= visible:
        return "*" * len(secret)
    return "*" * (len(secret) - visible) + secret[-visible:]
