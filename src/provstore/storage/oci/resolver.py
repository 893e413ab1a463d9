# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module resolves the signed state of an artifact before new material is stored."""

import logging
from collections.abc import Collection

from provstore.errors import EntityNotFoundError, RegistryError, ResolutionError
from provstore.oci import remote
from provstore.oci.name import Digest
from provstore.oci.registry_client import RegistryClient
from provstore.oci.signed_entity import SignedEntity, signed_unknown

logger: logging.Logger = logging.getLogger(__name__)


def resolve_signed_entity(
    artifact: Digest,
    client: RegistryClient,
    tag_suffixes: Collection[str] = remote.ALL_TAG_SUFFIXES,
) -> SignedEntity:
    """Fetch the signed entity of an artifact, or the empty placeholder if it does not exist.

    Parameters
    ----------
    artifact : Digest
        The artifact reference.
    client : RegistryClient
        The registry client.
    tag_suffixes : Collection[str]
        The suffixes of the tag images whose layers are loaded. An empty collection only
        fetches the descriptor of the artifact.

    Returns
    -------
    SignedEntity
        The signed entity fetched from the registry, or the result of :func:`signed_unknown`
        if the registry does not know the artifact.

    Raises
    ------
    ResolutionError
        If the signed entity cannot be fetched for any other reason.
    """
    try:
        return remote.signed_entity(artifact, client, tag_suffixes)
    except EntityNotFoundError:
        logger.debug("No signed entity found for %s, starting from an empty one.", artifact)
        return signed_unknown(artifact)
    except RegistryError as error:
        raise ResolutionError("getting signed entity", error) from error
