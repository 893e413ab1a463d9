# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module tests the defaults module."""

import os
from pathlib import Path

import pytest

from provstore.config.defaults import create_defaults, defaults, load_defaults


def test_load_defaults(tmp_path: Path) -> None:
    """Test loading defaults."""
    user_config_path = os.path.join(tmp_path, "defaults.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write("[storage.oci]\nformat = referrers-api\n")

    # Test that the user configuration is loaded.
    assert load_defaults(user_config_path) is True

    # Test that the values in user configuration is prioritized.
    assert defaults.get("storage.oci", "format") == "referrers-api"

    # Test that values missing from the user configuration keep the packaged defaults.
    assert defaults.getint("requests", "timeout") == 30

    # Test loading an invalid configuration path.
    assert load_defaults("invalid") is False


def test_load_invalid_defaults(tmp_path: Path) -> None:
    """Test loading a defaults file that cannot be parsed."""
    user_config_path = os.path.join(tmp_path, "defaults.ini")
    with open(user_config_path, "w", encoding="utf-8") as user_config_file:
        user_config_file.write("format = legacy\n")

    assert load_defaults(user_config_path) is False


def test_create_defaults(tmp_path: Path) -> None:
    """Test dumping the default values."""
    assert create_defaults(str(tmp_path), os.getcwd()) is True
    assert tmp_path.joinpath("defaults.ini").is_file()


@pytest.mark.xfail(
    os.geteuid() == 0,
    reason="Only effective for non-root users",
)
def test_create_defaults_without_permission() -> None:
    """Test dumping default config in cases where the user does not have write permission to the output location."""
    assert create_defaults(output_path="/", cwd_path="/") is False
