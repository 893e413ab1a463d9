# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The payload kinds stored in OCI registries: in-toto attestations and simple-signing signatures.

A payload kind bundles everything the write strategies need to know about a payload: how its
static object is built, where it is attached on a signed entity and how it is written.
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from provstore.formats.simple import SimpleContainerImage
from provstore.intoto import InTotoV1Statement
from provstore.oci import remote
from provstore.oci.name import Digest, Repository
from provstore.oci.registry_client import RegistryClient
from provstore.oci.signed_entity import Layer, SignedEntity
from provstore.storage.api import Bundle
from provstore.storage.oci.builder import BuiltBundle, build_attestation_layer, build_dsse_bundle, build_signature_layer

PayloadT = TypeVar("PayloadT")


@dataclass(frozen=True)
class PayloadKind(Generic[PayloadT]):
    """The operations specific to one kind of payload."""

    #: The singular noun used in logs and error stages, e.g. ``attestation``.
    name: str

    #: The plural noun used in logs and error stages, e.g. ``attestations``.
    plural: str

    #: The suffix of the tag image storing this kind with the legacy format, e.g. ``att``.
    tag_suffix: str

    build_layer: Callable[[Bundle], Layer]
    attach: Callable[[SignedEntity, Layer], SignedEntity]
    write_tagged: Callable[[Repository, SignedEntity, RegistryClient], str]
    write_referrer: Callable[[Digest, SignedEntity, RegistryClient], str]

    #: Builds the serialized bundle of the bundle format. ``None`` if the kind has no bundle encoding.
    build_bundle: Callable[[PayloadT, Bundle], BuiltBundle] | None = None


ATTESTATION: PayloadKind[InTotoV1Statement] = PayloadKind(
    name="attestation",
    plural="attestations",
    tag_suffix=remote.ATTESTATION_TAG_SUFFIX,
    build_layer=build_attestation_layer,
    attach=SignedEntity.attach_attestation,
    write_tagged=remote.write_attestations,
    write_referrer=remote.write_attestations_referrer,
    build_bundle=build_dsse_bundle,
)

SIMPLE_SIGNING: PayloadKind[SimpleContainerImage] = PayloadKind(
    name="signature",
    plural="signatures",
    tag_suffix=remote.SIGNATURE_TAG_SUFFIX,
    build_layer=build_signature_layer,
    attach=SignedEntity.attach_signature,
    write_tagged=remote.write_signatures,
    write_referrer=remote.write_signatures_referrer,
)
