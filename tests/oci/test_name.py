# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Tests for repository and digest references."""

import pytest

from provstore.errors import InvalidReferenceError
from provstore.oci.name import Digest, Repository

HEX = "a" * 64


@pytest.mark.parametrize(
    ("name", "registry", "repository"),
    [
        ("registry.example.com/org/app", "registry.example.com", "org/app"),
        ("localhost:5000/app", "localhost:5000", "app"),
        ("localhost/app", "localhost", "app"),
        ("org/app", "index.docker.io", "org/app"),
        ("app", "index.docker.io", "library/app"),
        ("ghcr.io/org/team/app-name_1", "ghcr.io", "org/team/app-name_1"),
    ],
)
def test_parse_repository(name: str, registry: str, repository: str) -> None:
    """Test parsing valid repository names."""
    parsed = Repository.parse(name)
    assert parsed == Repository(registry=registry, repository=repository)
    assert str(parsed) == f"{registry}/{repository}"


@pytest.mark.parametrize(
    "name",
    [
        "",
        "registry.example.com/Org/app",
        "registry.example.com/org//app",
        "registry.example.com/org/app-",
    ],
)
def test_parse_invalid_repository(name: str) -> None:
    """Test parsing invalid repository names."""
    with pytest.raises(InvalidReferenceError):
        Repository.parse(name)


def test_parse_digest() -> None:
    """Test parsing a digest reference."""
    digest = Digest.parse(f"reg.example.com/app@sha256:{HEX}")
    assert digest.repository == Repository(registry="reg.example.com", repository="app")
    assert digest.digest == f"sha256:{HEX}"
    assert digest.algorithm == "sha256"
    assert digest.hex == HEX
    assert str(digest) == f"reg.example.com/app@sha256:{HEX}"


def test_parse_digest_with_tag() -> None:
    """Test that a tag in a digest reference is ignored."""
    digest = Digest.parse(f"localhost:5000/app:v1.0@sha256:{HEX}")
    assert digest.repository == Repository(registry="localhost:5000", repository="app")
    assert digest.digest == f"sha256:{HEX}"


@pytest.mark.parametrize(
    "reference",
    [
        "reg.example.com/app",
        "reg.example.com/app:latest",
        "reg.example.com/app@sha256:abc",
        f"reg.example.com/app@md5:{HEX}",
        f"reg.example.com/app@sha256:{'A' * 64}",
        f"reg.example.com/app:bad/tag@sha256:{HEX}",
    ],
)
def test_parse_invalid_digest(reference: str) -> None:
    """Test parsing invalid digest references."""
    with pytest.raises(InvalidReferenceError):
        Digest.parse(reference)


@pytest.mark.parametrize(
    ("suffix", "expected"),
    [
        ("sig", f"sha256-{HEX}.sig"),
        ("att", f"sha256-{HEX}.att"),
    ],
)
def test_tag_for(suffix: str, expected: str) -> None:
    """Test the tags derived from the digest of an artifact."""
    assert Digest.parse(f"reg.example.com/app@sha256:{HEX}").tag_for(suffix) == expected
