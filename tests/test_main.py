# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for the command-line interface."""

import json
import logging
import os
from collections.abc import Iterator
from importlib import metadata as importlib_metadata
from pathlib import Path

import pytest

from provstore.__main__ import main
from provstore.formats.simple import SimpleContainerImage
from provstore.oci.name import Digest
from tests.conftest import STATEMENT
from tests.fake_registry import FakeRegistry

# pylint: disable=redefined-outer-name


@pytest.fixture(autouse=True)
def restore_logging() -> Iterator[None]:
    """Restore the root logger after ``main`` configures it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture()
def inputs(tmp_path: Path) -> dict[str, str]:
    """Create the input files of the store commands."""
    paths = {
        "statement": tmp_path.joinpath("statement.json"),
        "envelope": tmp_path.joinpath("envelope.json"),
        "signature": tmp_path.joinpath("signature.sig"),
    }
    paths["statement"].write_text(json.dumps(STATEMENT), encoding="utf-8")
    paths["envelope"].write_bytes(b'{"payloadType": "application/vnd.in-toto+json"}')
    paths["signature"].write_bytes(b"raw-signature")
    return {key: str(path) for key, path in paths.items()}


def run(argv: list[str]) -> int | str | None:
    """Run provstore and return its exit code."""
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def store_attestation_args(artifact: Digest, inputs: dict[str, str], *extra: str) -> list[str]:
    """Return the arguments of the store-attestation command."""
    return [
        "store-attestation",
        "-i",
        str(artifact),
        "--statement",
        inputs["statement"],
        "--signature",
        inputs["envelope"],
        "--insecure",
        *extra,
    ]


@pytest.mark.parametrize(
    ("flag"),
    [
        "--version",
        "-V",
    ],
)
def test_version(capsys: pytest.CaptureFixture, flag: str) -> None:
    """Test the ``--version/-V`` flag.

    Stdout format should be correct and exit code should be 0.
    """
    with pytest.raises(SystemExit) as exc_info:
        main([flag])
    out, err = capsys.readouterr()

    # Test that we are indeed outputting provstore version.
    assert out == f"provstore {importlib_metadata.version('provstore')}\n"
    assert err == ""
    assert exc_info.value.code == 0


def test_no_action() -> None:
    """Test that running without an action prints the help and fails."""
    assert run([]) == os.EX_USAGE


def test_store_attestation(fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str]) -> None:
    """Test storing an attestation with the legacy format."""
    assert run(store_attestation_args(artifact, inputs, "--format", "legacy")) == os.EX_OK
    assert fake_registry.layer_blobs("org/app", f"sha256-{artifact.hex}.att") == [
        b'{"payloadType": "application/vnd.in-toto+json"}'
    ]


def test_store_signature(fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str]) -> None:
    """Test storing a signature with a payload generated from the image reference."""
    argv = ["-v", "store-signature", "-i", str(artifact), "--signature", inputs["signature"], "--insecure"]
    assert run(argv) == os.EX_OK
    assert fake_registry.layer_blobs("org/app", f"sha256-{artifact.hex}.sig") == [
        SimpleContainerImage.for_image(artifact).to_bytes()
    ]


def test_store_with_repository_override(
    fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str]
) -> None:
    """Test that the repository argument overrides the repository of the image."""
    repository = f"{fake_registry.host}/org/signatures"
    assert run(store_attestation_args(artifact, inputs, "--repository", repository)) == os.EX_OK
    assert ("org/signatures", f"sha256-{artifact.hex}.att") in fake_registry.manifests


def test_store_with_configured_format(
    fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str], tmp_path: Path
) -> None:
    """Test that the format is read from the user configuration."""
    user_config = tmp_path.joinpath("defaults.ini")
    user_config.write_text("[storage.oci]\nformat = referrers-api\n", encoding="utf-8")

    assert run(["-dp", str(user_config), *store_attestation_args(artifact, inputs)]) == os.EX_OK
    assert fake_registry.referrers[("org/app", artifact.digest)]


def test_referrers_not_supported(fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str]) -> None:
    """Test the exit code when the registry does not support the referrers API."""
    fake_registry.referrers_supported = False
    assert run(store_attestation_args(artifact, inputs, "--format", "referrers-api")) == os.EX_UNAVAILABLE


def test_registry_failure(fake_registry: FakeRegistry, artifact: Digest, inputs: dict[str, str]) -> None:
    """Test the exit code when the registry rejects the requests."""
    fake_registry.failures["/manifests/"] = 401
    assert run(store_attestation_args(artifact, inputs)) == os.EX_SOFTWARE


def test_invalid_image(inputs: dict[str, str]) -> None:
    """Test the exit code for an image reference without a digest."""
    argv = ["store-signature", "-i", "registry.example.com/app:latest", "--signature", inputs["signature"]]
    assert run(argv) == os.EX_USAGE


def test_invalid_repository(artifact: Digest, inputs: dict[str, str]) -> None:
    """Test the exit code for an invalid repository override."""
    assert run(store_attestation_args(artifact, inputs, "--repository", "Invalid/Repo")) == os.EX_USAGE


def test_missing_input_file(artifact: Digest, inputs: dict[str, str], tmp_path: Path) -> None:
    """Test the exit code when an input file does not exist."""
    inputs["envelope"] = str(tmp_path.joinpath("missing.json"))
    assert run(store_attestation_args(artifact, inputs)) == os.EX_NOINPUT


@pytest.mark.parametrize(
    "statement",
    [
        pytest.param(b"{not json", id="Invalid JSON"),
        pytest.param(b"[]", id="Not an object"),
        pytest.param(b'{"_type": "https://in-toto.io/Statement/v0.1"}', id="Wrong statement type"),
    ],
)
def test_invalid_statement(artifact: Digest, inputs: dict[str, str], statement: bytes) -> None:
    """Test the exit code for invalid in-toto statements."""
    Path(inputs["statement"]).write_bytes(statement)
    assert run(store_attestation_args(artifact, inputs)) == os.EX_DATAERR


def test_invalid_defaults_path(tmp_path: Path) -> None:
    """Test the exit code when the defaults configuration cannot be loaded."""
    assert run(["-dp", str(tmp_path.joinpath("missing.ini")), "dump-defaults"]) == os.EX_NOINPUT


def test_dump_defaults(tmp_path: Path) -> None:
    """Test dumping the packaged defaults configuration."""
    assert run(["dump-defaults", "-o", str(tmp_path)]) == os.EX_OK
    assert tmp_path.joinpath("defaults.ini").read_text(encoding="utf-8").startswith("# Copyright")
