# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module reads and writes signed entities in OCI registries.

Signed material is stored in one of two ways:

* tag-based: the signatures and attestations of an artifact are images tagged
  ``<algorithm>-<hex>.sig`` and ``<algorithm>-<hex>.att``.
* referrers: the images are pushed by digest and declare the artifact as their ``subject``,
  so the registry lists them through the OCI 1.1 referrers API.
"""

import logging
from collections.abc import Collection, Mapping, Sequence

from provstore.errors import EntityNotFoundError, ReferrersNotSupportedError, RegistryError
from provstore.json_tools import JsonType, canonical_json, json_extract
from provstore.oci.media_types import (
    ATTESTATION_ARTIFACT_TYPE,
    BUNDLE_CONTENT_ANNOTATION,
    BUNDLE_PREDICATE_TYPE_ANNOTATION,
    OCI_EMPTY_CONFIG,
    OCI_IMAGE_CONFIG,
    OCI_IMAGE_MANIFEST,
    SIGNATURE_ARTIFACT_TYPE,
    SIGSTORE_BUNDLE_MEDIA_TYPE,
)
from provstore.oci.name import Digest, Repository
from provstore.oci.registry_client import RegistryClient
from provstore.oci.signed_entity import Descriptor, Layer, SignedEntity, sha256_digest

logger: logging.Logger = logging.getLogger(__name__)

SIGNATURE_TAG_SUFFIX = "sig"
ATTESTATION_TAG_SUFFIX = "att"

#: The suffixes of all tag-based signed material.
ALL_TAG_SUFFIXES = (SIGNATURE_TAG_SUFFIX, ATTESTATION_TAG_SUFFIX)


def signed_entity(
    artifact: Digest,
    client: RegistryClient,
    tag_suffixes: Collection[str] = ALL_TAG_SUFFIXES,
) -> SignedEntity:
    """Fetch an artifact and the signed material stored for it with tags.

    Only the tag images named by ``tag_suffixes`` are read. The layers of the other kinds are
    left empty, so a broken image of one kind does not affect the other.

    Parameters
    ----------
    artifact : Digest
        The artifact reference.
    client : RegistryClient
        The registry client.
    tag_suffixes : Collection[str]
        The suffixes of the tag images to load, e.g. ``("sig",)``. By default, both signatures
        and attestations are loaded.

    Returns
    -------
    SignedEntity
        The signed entity.

    Raises
    ------
    EntityNotFoundError
        If the artifact does not exist in the registry.
    RegistryError
        If the artifact or its signed material cannot be fetched.
    """
    descriptor = client.head_manifest(artifact.repository, artifact.digest)
    signatures: tuple[Layer, ...] = ()
    attestations: tuple[Layer, ...] = ()
    if SIGNATURE_TAG_SUFFIX in tag_suffixes:
        signatures = _load_layers(client, artifact.repository, artifact.tag_for(SIGNATURE_TAG_SUFFIX))
    if ATTESTATION_TAG_SUFFIX in tag_suffixes:
        attestations = _load_layers(client, artifact.repository, artifact.tag_for(ATTESTATION_TAG_SUFFIX))
    logger.debug(
        "Found %s signatures and %s attestations for %s.",
        len(signatures),
        len(attestations),
        artifact,
    )
    return SignedEntity(
        artifact=artifact,
        descriptor=descriptor,
        signatures=signatures,
        attestations=attestations,
    )


def write_signatures(repository: Repository, entity: SignedEntity, client: RegistryClient) -> str:
    """Push the signatures of an entity to the ``.sig`` tag in the repository.

    Parameters
    ----------
    repository : Repository
        The repository the image is pushed to.
    entity : SignedEntity
        The signed entity holding the signatures.
    client : RegistryClient
        The registry client.

    Returns
    -------
    str
        The digest of the pushed manifest.

    Raises
    ------
    RegistryError
        If the registry rejects the write.
    """
    tag = entity.artifact.tag_for(SIGNATURE_TAG_SUFFIX)
    return _write_image(client, repository, entity.signatures, reference=tag)


def write_attestations(repository: Repository, entity: SignedEntity, client: RegistryClient) -> str:
    """Push the attestations of an entity to the ``.att`` tag in the repository.

    Parameters
    ----------
    repository : Repository
        The repository the image is pushed to.
    entity : SignedEntity
        The signed entity holding the attestations.
    client : RegistryClient
        The registry client.

    Returns
    -------
    str
        The digest of the pushed manifest.

    Raises
    ------
    RegistryError
        If the registry rejects the write.
    """
    tag = entity.artifact.tag_for(ATTESTATION_TAG_SUFFIX)
    return _write_image(client, repository, entity.attestations, reference=tag)


def write_signatures_referrer(artifact: Digest, entity: SignedEntity, client: RegistryClient) -> str:
    """Push the signatures of an entity as a referrer of the artifact.

    Parameters
    ----------
    artifact : Digest
        The artifact the image refers to. The image is pushed to its repository.
    entity : SignedEntity
        The signed entity holding the signatures.
    client : RegistryClient
        The registry client.

    Returns
    -------
    str
        The digest of the pushed manifest.

    Raises
    ------
    ReferrersNotSupportedError
        If the registry does not support the referrers API.
    RegistryError
        If the registry rejects the write.
    """
    subject = _subject_descriptor(artifact, entity, client)
    return _write_image(
        client,
        artifact.repository,
        entity.signatures,
        subject=subject,
        artifact_type=SIGNATURE_ARTIFACT_TYPE,
    )


def write_attestations_referrer(artifact: Digest, entity: SignedEntity, client: RegistryClient) -> str:
    """Push the attestations of an entity as a referrer of the artifact.

    Parameters
    ----------
    artifact : Digest
        The artifact the image refers to. The image is pushed to its repository.
    entity : SignedEntity
        The signed entity holding the attestations.
    client : RegistryClient
        The registry client.

    Returns
    -------
    str
        The digest of the pushed manifest.

    Raises
    ------
    ReferrersNotSupportedError
        If the registry does not support the referrers API.
    RegistryError
        If the registry rejects the write.
    """
    subject = _subject_descriptor(artifact, entity, client)
    return _write_image(
        client,
        artifact.repository,
        entity.attestations,
        subject=subject,
        artifact_type=ATTESTATION_ARTIFACT_TYPE,
    )


def write_attestation_bundle(artifact: Digest, bundle: bytes, predicate_type: str, client: RegistryClient) -> str:
    """Push a serialized attestation bundle as a referrer of the artifact.

    Parameters
    ----------
    artifact : Digest
        The artifact the bundle refers to.
    bundle : bytes
        The serialized bundle.
    predicate_type : str
        The predicate type of the attested statement, recorded as an annotation.
    client : RegistryClient
        The registry client.

    Returns
    -------
    str
        The digest of the pushed manifest.

    Raises
    ------
    ReferrersNotSupportedError
        If the registry does not support the referrers API.
    RegistryError
        If the registry rejects the write.
    """
    annotations = {
        BUNDLE_CONTENT_ANNOTATION: "dsse-envelope",
        BUNDLE_PREDICATE_TYPE_ANNOTATION: predicate_type,
    }
    layer = Layer(media_type=SIGSTORE_BUNDLE_MEDIA_TYPE, content=bundle)
    subject = _subject_descriptor(artifact, None, client)
    return _write_image(
        client,
        artifact.repository,
        (layer,),
        subject=subject,
        artifact_type=SIGSTORE_BUNDLE_MEDIA_TYPE,
        annotations=annotations,
    )


def _subject_descriptor(artifact: Digest, entity: SignedEntity | None, client: RegistryClient) -> Descriptor:
    """Return the descriptor of the artifact after checking that referrers are supported.

    The descriptor of a known entity is reused. For the placeholder of an unknown entity, or
    without an entity, it is fetched now.
    """
    if not client.referrers_supported(artifact.repository, artifact.digest):
        raise ReferrersNotSupportedError(f"The registry {artifact.repository.registry} does not support referrers.")

    if entity is not None and entity.known and entity.descriptor is not None:
        return entity.descriptor
    return client.head_manifest(artifact.repository, artifact.digest)


def _write_image(
    client: RegistryClient,
    repository: Repository,
    layers: Sequence[Layer],
    reference: str | None = None,
    subject: Descriptor | None = None,
    artifact_type: str | None = None,
    annotations: Mapping[str, str] | None = None,
) -> str:
    """Upload the blobs of an image and push its manifest.

    Images with a subject use the empty config. Tag-based images carry an image config that lists
    their layers. Without a reference, the manifest is pushed by its digest.
    """
    if subject is None:
        config = canonical_json(
            {
                "architecture": "",
                "os": "",
                "config": {},
                "rootfs": {"type": "layers", "diff_ids": [layer.digest for layer in layers]},
            }
        )
        config_media_type = OCI_IMAGE_CONFIG
    else:
        config = b"{}"
        config_media_type = OCI_EMPTY_CONFIG

    client.upload_blob(repository, config)
    for layer in layers:
        client.upload_blob(repository, layer.content)

    manifest: dict[str, JsonType] = {
        "schemaVersion": 2,
        "mediaType": OCI_IMAGE_MANIFEST,
        "config": Descriptor(media_type=config_media_type, digest=sha256_digest(config), size=len(config)).to_json(),
        "layers": [layer.descriptor().to_json() for layer in layers],
    }
    if artifact_type:
        manifest["artifactType"] = artifact_type
    if subject is not None:
        manifest["subject"] = Descriptor(
            media_type=subject.media_type,
            digest=subject.digest,
            size=subject.size,
        ).to_json()
    if annotations:
        manifest["annotations"] = dict(annotations)

    body = canonical_json(manifest)
    return client.put_manifest(repository, reference or sha256_digest(body), body, OCI_IMAGE_MANIFEST)


def _load_layers(client: RegistryClient, repository: Repository, tag: str) -> tuple[Layer, ...]:
    """Load the layers of a tag-based signature or attestation image.

    A missing tag means there is no signed material of that kind yet.
    """
    try:
        manifest, _ = client.get_manifest(repository, tag)
    except EntityNotFoundError:
        logger.debug("No image found for %s:%s.", repository, tag)
        return ()

    layers_json = json_extract(manifest, ["layers"], list)
    if layers_json is None:
        raise RegistryError(f"The manifest {repository}:{tag} does not have layers.")

    layers = []
    for layer_json in layers_json:
        if not isinstance(layer_json, dict):
            raise RegistryError(f"The manifest {repository}:{tag} contains an invalid layer.")
        media_type = json_extract(layer_json, ["mediaType"], str)
        digest = json_extract(layer_json, ["digest"], str)
        if not media_type or not digest:
            raise RegistryError(f"A layer in the manifest {repository}:{tag} misses its media type or digest.")
        annotations = json_extract(layer_json, ["annotations"], dict) or {}
        layers.append(
            Layer(
                media_type=media_type,
                content=client.get_blob(repository, digest),
                annotations={str(key): str(value) for key, value in annotations.items()},
            )
        )
    return tuple(layers)
