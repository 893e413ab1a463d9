# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The write strategies of the OCI storage formats.

Each strategy builds the object required by its format and writes it to the registry. The
:data:`STRATEGIES` table maps every :class:`OCIFormat` to its strategy.
"""

import logging
from collections.abc import Callable
from typing import Any

from provstore.errors import ReferrersNotSupportedError, RegistryError, UnsupportedFormatError, WriteError
from provstore.oci import remote
from provstore.oci.name import Digest, Repository
from provstore.oci.registry_client import RegistryClient
from provstore.oci.signed_entity import SignedEntity
from provstore.storage.api import StoreRequest
from provstore.storage.oci.formats import OCIFormat
from provstore.storage.oci.kinds import PayloadKind

logger: logging.Logger = logging.getLogger(__name__)

WriteStrategy = Callable[
    [PayloadKind[Any], StoreRequest[Digest, Any], SignedEntity, Repository, RegistryClient],
    None,
]


def store_legacy(
    kind: PayloadKind[Any],
    request: StoreRequest[Digest, Any],
    entity: SignedEntity,
    repository: Repository,
    client: RegistryClient,
) -> None:
    """Attach the new object to the entity and push it with a tag derived from the artifact digest.

    Parameters
    ----------
    kind : PayloadKind[Any]
        The kind of payload stored.
    request : StoreRequest[Digest, Any]
        The store request.
    entity : SignedEntity
        The resolved signed entity of the artifact. The new object is added to its material.
    repository : Repository
        The repository the tag image is pushed to.
    client : RegistryClient
        The registry client.

    Raises
    ------
    BuildError
        If the object cannot be built.
    WriteError
        If the registry rejects the write.
    """
    logger.info("Using legacy tag-based %s storage", kind.name)

    new_entity = kind.attach(entity, kind.build_layer(request.bundle))
    try:
        kind.write_tagged(repository, new_entity, client)
    except RegistryError as error:
        raise WriteError(f"writing {kind.plural}", error) from error

    logger.info("Successfully uploaded %s using legacy format for %s", kind.name, request.artifact)


def store_with_referrers_api(
    kind: PayloadKind[Any],
    request: StoreRequest[Digest, Any],
    entity: SignedEntity,
    repository: Repository,
    client: RegistryClient,
) -> None:
    """Attach the new object to the entity and push it as a referrer of the artifact.

    Parameters
    ----------
    kind : PayloadKind[Any]
        The kind of payload stored.
    request : StoreRequest[Digest, Any]
        The store request.
    entity : SignedEntity
        The resolved signed entity of the artifact. The new object is added to its material.
    repository : Repository
        Not used: referrers live in the repository of the artifact.
    client : RegistryClient
        The registry client.

    Raises
    ------
    BuildError
        If the object cannot be built.
    UnsupportedFormatError
        If the registry does not support the referrers API.
    WriteError
        If the registry rejects the write.
    """
    logger.info("Using OCI 1.1 referrers API for %s storage", kind.name)
    if repository != request.artifact.repository:
        logger.debug("Ignoring repository %s, referrers are stored next to %s.", repository, request.artifact)

    new_entity = kind.attach(entity, kind.build_layer(request.bundle))
    stage = f"writing {kind.plural} with referrers API"
    try:
        kind.write_referrer(request.artifact, new_entity, client)
    except ReferrersNotSupportedError as error:
        raise UnsupportedFormatError(stage, UnsupportedFormatError.MIGRATION_HINT) from error
    except RegistryError as error:
        raise WriteError(stage, error) from error

    logger.info("Successfully uploaded %s using referrers API for %s", kind.name, request.artifact)


def store_with_protobuf_bundle(
    kind: PayloadKind[Any],
    request: StoreRequest[Digest, Any],
    entity: SignedEntity,
    repository: Repository,
    client: RegistryClient,
) -> None:
    """Push the serialized bundle of the payload as a referrer of the artifact.

    Kinds without a bundle encoding (simple-signing signatures) are stored with the referrers API
    strategy instead.

    Parameters
    ----------
    kind : PayloadKind[Any]
        The kind of payload stored.
    request : StoreRequest[Digest, Any]
        The store request. Its payload is serialized into the bundle.
    entity : SignedEntity
        The resolved signed entity. Only used when falling back to the referrers API.
    repository : Repository
        Not used: referrers live in the repository of the artifact.
    client : RegistryClient
        The registry client.

    Raises
    ------
    BuildError
        If the bundle cannot be built.
    UnsupportedFormatError
        If the registry does not support the referrers API.
    WriteError
        If the registry rejects the write.
    """
    if kind.build_bundle is None:
        # TODO: store simple-signing signatures as sigstore bundles once their encoding is defined.
        logger.warning(
            "The protobuf bundle format is not supported for %s yet, falling back to the referrers API",
            kind.plural,
        )
        store_with_referrers_api(kind, request, entity, repository, client)
        return

    logger.info("Using protobuf bundle format for %s storage", kind.name)
    built = kind.build_bundle(request.payload, request.bundle)

    stage = f"writing {kind.name} with protobuf bundle"
    try:
        remote.write_attestation_bundle(request.artifact, built.data, built.predicate_type, client)
    except ReferrersNotSupportedError as error:
        raise UnsupportedFormatError(stage, UnsupportedFormatError.MIGRATION_HINT) from error
    except RegistryError as error:
        raise WriteError(stage, error) from error

    logger.info("Successfully uploaded %s using protobuf bundle for %s", kind.name, request.artifact)


STRATEGIES: dict[OCIFormat, WriteStrategy] = {
    OCIFormat.LEGACY: store_legacy,
    OCIFormat.REFERRERS_API: store_with_referrers_api,
    OCIFormat.PROTOBUF_BUNDLE: store_with_protobuf_bundle,
}
