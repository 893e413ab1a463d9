# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Fixtures for tests."""
from collections.abc import Iterator

import pytest
from pytest_httpserver import HTTPServer

from provstore.config.defaults import defaults, load_defaults
from provstore.oci.name import Digest
from provstore.oci.registry_client import RegistryClient, RemoteOptions
from provstore.storage.api import Bundle
from tests.fake_registry import FakeRegistry

# We need to pass fixture names as arguments to maintain an order.
# pylint: disable=redefined-outer-name

STATEMENT = {
    "_type": "https://in-toto.io/Statement/v1",
    "subject": [{"name": "app", "digest": {"sha256": "a" * 64}}],
    "predicateType": "https://slsa.dev/provenance/v1",
    "predicate": {"buildDefinition": {"buildType": "https://tekton.dev/chains/v2/slsa"}},
}

CERT = b"-----BEGIN CERTIFICATE-----\nMIIBleaf\n-----END CERTIFICATE-----\n"
CHAIN = b"-----BEGIN CERTIFICATE-----\nMIIBroot\n-----END CERTIFICATE-----\n"


@pytest.fixture(autouse=True)
def setup_test() -> Iterator[None]:
    """Load the packaged defaults before each test and clear them afterwards."""
    load_defaults("")
    yield
    defaults.clear()


@pytest.fixture()
def fake_registry(httpserver: HTTPServer) -> FakeRegistry:
    """Create an in-memory OCI registry supporting the referrers API."""
    return FakeRegistry(server=httpserver)


@pytest.fixture()
def registry_client() -> RegistryClient:
    """Create a registry client talking plain HTTP."""
    return RegistryClient(RemoteOptions(insecure=True, timeout=5))


@pytest.fixture()
def artifact(fake_registry: FakeRegistry) -> Digest:
    """Create the reference of an image that exists in the fake registry."""
    digest = fake_registry.add_image("org/app")
    return Digest.parse(f"{fake_registry.host}/org/app@{digest}")


@pytest.fixture()
def missing_artifact(fake_registry: FakeRegistry) -> Digest:
    """Create the reference of an image that does not exist in the fake registry."""
    return Digest.parse(f"{fake_registry.host}/org/app@sha256:{'a' * 64}")


@pytest.fixture()
def bundle() -> Bundle:
    """Create a bundle without certificates."""
    return Bundle(content=b'{"payload": true}', signature=b"sig-bytes")


@pytest.fixture()
def cert_bundle() -> Bundle:
    """Create a bundle with a certificate and a chain."""
    return Bundle(content=b'{"payload": true}', signature=b"sig-bytes", cert=CERT, chain=CHAIN)
