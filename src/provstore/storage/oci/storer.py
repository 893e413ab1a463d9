# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The storers of signed payloads in OCI registries."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from provstore.config.storage_config import OCIStorageConfig
from provstore.formats.simple import SimpleContainerImage
from provstore.intoto import InTotoV1Statement
from provstore.oci.name import Digest, Repository
from provstore.oci.registry_client import RegistryClient, RemoteOptions
from provstore.storage.api import StoreRequest, StoreResponse
from provstore.storage.oci.formats import OCIFormat, route
from provstore.storage.oci.kinds import ATTESTATION, SIMPLE_SIGNING, PayloadKind
from provstore.storage.oci.resolver import resolve_signed_entity
from provstore.storage.oci.strategies import STRATEGIES

logger: logging.Logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")


@dataclass(frozen=True)
class OCIStorerOptions:
    """The options of an OCI storer, fixed when the storer is created."""

    #: The repository where data is stored. If None, the repository of the artifact is used.
    repository: Repository | None = None

    #: The options (i.e. auth) used for registry operations.
    remote_options: RemoteOptions = field(default_factory=RemoteOptions)

    #: The storage format identifier: legacy, referrers-api or protobuf-bundle.
    format: str = ""  # noqa: A003

    @classmethod
    def from_config(
        cls,
        config: OCIStorageConfig,
        username: str | None = None,
        password: str | None = None,
        token: str | None = None,
    ) -> OCIStorerOptions:
        """Create the storer options from the OCI storage configuration.

        Parameters
        ----------
        config : OCIStorageConfig
            The OCI storage configuration.
        username : str | None
            The username for basic authentication.
        password : str | None
            The password for basic authentication.
        token : str | None
            A bearer token.

        Returns
        -------
        OCIStorerOptions
            The storer options.

        Raises
        ------
        InvalidReferenceError
            If the configured repository is invalid.
        """
        return cls(
            repository=Repository.parse(config.repository) if config.repository else None,
            remote_options=RemoteOptions(
                insecure=config.insecure,
                verify_tls=config.verify_tls,
                username=username,
                password=password,
                token=token,
                timeout=config.timeout,
            ),
            format=config.format,
        )


class OCIStorer(Generic[PayloadT]):
    """Stores signed payloads of one kind in OCI registries.

    A storer does not change after it is created and can be shared between threads.
    """

    def __init__(
        self,
        kind: PayloadKind[PayloadT],
        options: OCIStorerOptions | None = None,
        client: RegistryClient | None = None,
    ) -> None:
        """Initialize instance.

        Parameters
        ----------
        kind : PayloadKind[PayloadT]
            The kind of payload stored.
        options : OCIStorerOptions | None
            The storer options. The defaults are used if not provided.
        client : RegistryClient | None
            The registry client. A client using the remote options is created if not provided.
        """
        self._kind = kind
        self._options = options or OCIStorerOptions()
        self._client = client or RegistryClient(self._options.remote_options)

    @property
    def kind(self) -> PayloadKind[PayloadT]:
        """Return the kind of payload stored."""
        return self._kind

    @property
    def options(self) -> OCIStorerOptions:
        """Return the storer options."""
        return self._options

    def store(self, request: StoreRequest[Digest, PayloadT]) -> StoreResponse:
        """Store the signed payload of an artifact.

        The format is routed first. Then the existing signed entity of the artifact is resolved,
        loading only the tag image of the stored kind, and the write strategy of the format stores
        the payload.

        Parameters
        ----------
        request : StoreRequest[Digest, PayloadT]
            The store request.

        Returns
        -------
        StoreResponse
            The store response.

        Raises
        ------
        ResolutionError
            If the signed entity of the artifact cannot be fetched.
        BuildError
            If the object to store cannot be built.
        UnsupportedFormatError
            If the format requires the referrers API and the registry does not support it.
        WriteError
            If the registry rejects the write.
        """
        repository = self._options.repository or request.artifact.repository
        format_ = route(self._options.format)
        entity = resolve_signed_entity(request.artifact, self._client, self._tag_suffixes(format_))

        strategy = STRATEGIES[format_]
        strategy(self._kind, request, entity, repository, self._client)
        return StoreResponse()

    def _tag_suffixes(self, format_: OCIFormat) -> tuple[str, ...]:
        """Return the suffixes of the tag images whose layers the write of this kind needs.

        The bundle format does not extend existing material, so no layers are loaded for it.
        """
        if format_ is OCIFormat.PROTOBUF_BUNDLE and self._kind.build_bundle is not None:
            return ()
        return (self._kind.tag_suffix,)


class AttestationStorer(OCIStorer[InTotoV1Statement]):
    """Stores in-toto attestations in OCI registries."""

    def __init__(self, options: OCIStorerOptions | None = None, client: RegistryClient | None = None) -> None:
        """Initialize instance.

        Parameters
        ----------
        options : OCIStorerOptions | None
            The storer options.
        client : RegistryClient | None
            The registry client.
        """
        super().__init__(ATTESTATION, options, client)


class SimpleStorer(OCIStorer[SimpleContainerImage]):
    """Stores simple-signing signatures in OCI registries."""

    def __init__(self, options: OCIStorerOptions | None = None, client: RegistryClient | None = None) -> None:
        """Initialize instance.

        Parameters
        ----------
        options : OCIStorerOptions | None
            The storer options.
        client : RegistryClient | None
            The registry client.
        """
        super().__init__(SIMPLE_SIGNING, options, client)
