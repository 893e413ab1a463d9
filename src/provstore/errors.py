# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains error classes for provstore."""


class ProvStoreError(Exception):
    """The base class for provstore errors."""


class ConfigurationError(ProvStoreError):
    """Happens when there is an error in the configuration (.ini) file."""


class InvalidReferenceError(ProvStoreError):
    """Happens when an artifact, repository or digest reference cannot be parsed."""


class RegistryError(ProvStoreError):
    """Happens when an OCI registry request fails or returns an unexpected response.

    Reasons can include:
        * network errors
        * authentication or authorization failures
        * malformed manifests returned by the registry
        * unexpected status codes
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize instance.

        Parameters
        ----------
        message : str
            The error message.
        status_code : int | None
            The HTTP status code returned by the registry, if any.
        """
        super().__init__(message)
        self.status_code = status_code


class EntityNotFoundError(RegistryError):
    """Happens when the registry reports that a manifest does not exist."""


class StorageError(ProvStoreError):
    """The base class for errors raised while storing signed material.

    The message of a storage error is always prefixed with the stage that failed,
    e.g. ``getting signed entity: ...`` or ``writing attestations: ...``.
    """

    def __init__(self, stage: str, cause: str | Exception) -> None:
        """Initialize instance.

        Parameters
        ----------
        stage : str
            The stage of the store operation that failed.
        cause : str | Exception
            The underlying error or a description of it.
        """
        super().__init__(f"{stage}: {cause}")
        self.stage = stage


class ResolutionError(StorageError):
    """Happens when the existing signed state of an artifact cannot be fetched.

    A missing entity is not a resolution error; it is resolved to an empty signed entity.
    """


class BuildError(StorageError):
    """Happens when a payload or envelope cannot be serialized."""


class WriteError(StorageError):
    """Happens when the registry rejects or cannot process the chosen encoding."""


class UnsupportedFormatError(WriteError):
    """Happens when a referrers-style write targets a registry without OCI 1.1 referrers support."""

    #: The hint shown to users when the registry does not support the referrers API.
    MIGRATION_HINT = (
        "the registry does not support the OCI 1.1 referrers API; "
        'set "format = legacy" in the [storage.oci] section to use tag-based storage'
    )


class ReferrersNotSupportedError(RegistryError):
    """Happens when the registry does not serve the OCI 1.1 referrers endpoint."""
