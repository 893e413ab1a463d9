# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The storage API shared by all storage backends."""

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

ArtifactT = TypeVar("ArtifactT")
PayloadT = TypeVar("PayloadT")
ArtifactT_contra = TypeVar("ArtifactT_contra", contravariant=True)
PayloadT_contra = TypeVar("PayloadT_contra", contravariant=True)


@dataclass(frozen=True)
class Bundle:
    """The signing material produced by a signer."""

    #: The signed content, e.g. the serialized simple-signing payload.
    content: bytes

    #: The raw signature. For attestations, this is the signed DSSE envelope.
    signature: bytes

    #: The PEM-encoded signing certificate, if any.
    cert: bytes | None = None

    #: The PEM-encoded certificate chain of the signing certificate, if any.
    chain: bytes | None = None


@dataclass(frozen=True)
class StoreRequest(Generic[ArtifactT, PayloadT]):
    """A request to store the signed payload of an artifact."""

    artifact: ArtifactT
    payload: PayloadT
    bundle: Bundle


@dataclass(frozen=True)
class StoreResponse:
    """The response of a successful store operation."""


class Storer(Protocol[ArtifactT_contra, PayloadT_contra]):
    """Interface of a storage backend for signed payloads."""

    def store(self, request: StoreRequest[ArtifactT_contra, PayloadT_contra]) -> StoreResponse:
        """Store the signed payload of an artifact.

        Parameters
        ----------
        request : StoreRequest
            The store request.

        Returns
        -------
        StoreResponse
            The store response.

        Raises
        ------
        StorageError
            If the payload cannot be stored.
        """
