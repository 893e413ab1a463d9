# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the in-memory model of an artifact and the signed material attached to it."""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace

from provstore.json_tools import JsonType
from provstore.oci.name import Digest


def sha256_digest(content: bytes) -> str:
    """Return the ``sha256:<hex>`` digest of some content."""
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


@dataclass(frozen=True)
class Descriptor:
    """An OCI content descriptor.

    Specification: https://github.com/opencontainers/image-spec/blob/main/descriptor.md.
    """

    media_type: str
    digest: str
    size: int
    annotations: Mapping[str, str] = field(default_factory=dict)
    artifact_type: str | None = None

    def to_json(self) -> dict[str, JsonType]:
        """Return the JSON form of the descriptor."""
        result: dict[str, JsonType] = {
            "mediaType": self.media_type,
            "digest": self.digest,
            "size": self.size,
        }
        if self.artifact_type:
            result["artifactType"] = self.artifact_type
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        return result


@dataclass(frozen=True)
class Layer:
    """A static signature or attestation object stored as an image layer."""

    media_type: str
    content: bytes
    annotations: Mapping[str, str] = field(default_factory=dict)

    @property
    def digest(self) -> str:
        """Return the digest of the layer content."""
        return sha256_digest(self.content)

    @property
    def size(self) -> int:
        """Return the size in bytes of the layer content."""
        return len(self.content)

    def descriptor(self) -> Descriptor:
        """Return the descriptor of this layer."""
        return Descriptor(
            media_type=self.media_type,
            digest=self.digest,
            size=self.size,
            annotations=self.annotations,
        )


@dataclass(frozen=True)
class SignedEntity:
    """An artifact together with the signatures and attestations currently known for it.

    A signed entity either reflects the state fetched from the registry (``known`` is True), or
    it is the placeholder for an artifact without prior signed state, see :func:`signed_unknown`.
    Attaching material returns a new entity; the original is never modified.
    """

    artifact: Digest

    #: The descriptor of the artifact manifest, or None if the artifact was not found.
    descriptor: Descriptor | None = None

    signatures: tuple[Layer, ...] = ()
    attestations: tuple[Layer, ...] = ()

    #: Whether the state was fetched from the registry.
    known: bool = True

    def attach_signature(self, signature: Layer) -> SignedEntity:
        """Return a new entity with the signature appended to the existing signatures."""
        return replace(self, signatures=_append(self.signatures, signature))

    def attach_attestation(self, attestation: Layer) -> SignedEntity:
        """Return a new entity with the attestation appended to the existing attestations."""
        return replace(self, attestations=_append(self.attestations, attestation))


def signed_unknown(artifact: Digest) -> SignedEntity:
    """Return the placeholder entity of an artifact for which no signed state exists.

    Parameters
    ----------
    artifact : Digest
        The artifact reference.

    Returns
    -------
    SignedEntity
        An entity without descriptor, signatures or attestations.
    """
    return SignedEntity(artifact=artifact, known=False)


def _append(layers: tuple[Layer, ...], layer: Layer) -> tuple[Layer, ...]:
    # An identical layer is only stored once.
    for existing in layers:
        if existing.digest == layer.digest and dict(existing.annotations) == dict(layer.annotations):
            return layers
    return (*layers, layer)
