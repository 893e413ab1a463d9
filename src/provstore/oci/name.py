# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module contains the repository and digest references of OCI artifacts.

The accepted syntax follows the distribution reference grammar, e.g.
``registry.example.com:5000/org/app@sha256:<hex>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from provstore.errors import InvalidReferenceError

#: The registry used when the reference does not name one.
DEFAULT_REGISTRY = "index.docker.io"

#: The namespace used for single-component repositories on the default registry.
DEFAULT_NAMESPACE = "library"

# The supported digest algorithms and the length of their hex-encoded values.
DIGEST_ALGORITHMS = {
    "sha256": 64,
    "sha384": 96,
    "sha512": 128,
}

_REPOSITORY_COMPONENT = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*$")
_REGISTRY = re.compile(r"^[a-zA-Z0-9.-]+(?::[0-9]+)?$|^\[[0-9a-fA-F:]+\](?::[0-9]+)?$")
_TAG = re.compile(r"^[\w][\w.-]{0,127}$")


@dataclass(frozen=True)
class Repository:
    """A repository in an OCI registry."""

    #: The registry host, optionally with a port.
    registry: str

    #: The repository path within the registry.
    repository: str

    @classmethod
    def parse(cls, name: str) -> Repository:
        """Parse a repository name such as ``registry.example.com/org/app``.

        Parameters
        ----------
        name : str
            The repository name.

        Returns
        -------
        Repository
            The parsed repository.

        Raises
        ------
        InvalidReferenceError
            If the repository name is invalid.
        """
        if not name:
            raise InvalidReferenceError("The repository name is empty.")

        parts = name.split("/", 1)
        if len(parts) == 2 and _is_registry(parts[0]):
            registry, path = parts
        else:
            registry, path = DEFAULT_REGISTRY, name

        if registry == DEFAULT_REGISTRY and "/" not in path:
            path = f"{DEFAULT_NAMESPACE}/{path}"

        for component in path.split("/"):
            if not _REPOSITORY_COMPONENT.match(component):
                raise InvalidReferenceError(f"The repository name {name} is invalid.")
        if not _REGISTRY.match(registry):
            raise InvalidReferenceError(f"The registry {registry} of repository {name} is invalid.")

        return cls(registry=registry, repository=path)

    def __str__(self) -> str:
        return f"{self.registry}/{self.repository}"


@dataclass(frozen=True)
class Digest:
    """A content-addressed reference to an artifact: a repository and a digest.

    Digest references are never mutated; they are the lookup key for every registry operation
    on the artifact and its signed material.
    """

    repository: Repository

    #: The digest in ``<algorithm>:<hex>`` form.
    digest: str

    @classmethod
    def parse(cls, reference: str) -> Digest:
        """Parse a digest reference such as ``registry.example.com/app@sha256:<hex>``.

        A tag between the repository and the digest is allowed and ignored.

        Parameters
        ----------
        reference : str
            The digest reference.

        Returns
        -------
        Digest
            The parsed digest reference.

        Raises
        ------
        InvalidReferenceError
            If the reference is invalid or does not contain a digest.
        """
        name, sep, digest = reference.partition("@")
        if not sep:
            raise InvalidReferenceError(f"The reference {reference} does not contain a digest.")
        validate_digest(digest)

        # Drop a tag if present. The last colon after the last slash separates the tag.
        last_slash = name.rfind("/")
        colon = name.rfind(":")
        if colon > last_slash:
            tag = name[colon + 1 :]
            if not _TAG.match(tag):
                raise InvalidReferenceError(f"The tag {tag} of reference {reference} is invalid.")
            name = name[:colon]

        return cls(repository=Repository.parse(name), digest=digest)

    @property
    def algorithm(self) -> str:
        """Return the digest algorithm, e.g. ``sha256``."""
        return self.digest.split(":", 1)[0]

    @property
    def hex(self) -> str:  # noqa: A003
        """Return the hex-encoded digest value."""
        return self.digest.split(":", 1)[1]

    def tag_for(self, suffix: str) -> str:
        """Return the tag that stores signed material of the given kind for this artifact.

        Parameters
        ----------
        suffix : str
            The tag suffix, e.g. ``sig`` or ``att``.

        Returns
        -------
        str
            The tag, e.g. ``sha256-<hex>.sig``.
        """
        return f"{self.algorithm}-{self.hex}.{suffix}"

    def __str__(self) -> str:
        return f"{self.repository}@{self.digest}"


def validate_digest(digest: str) -> None:
    """Validate a digest in ``<algorithm>:<hex>`` form.

    Parameters
    ----------
    digest : str
        The digest.

    Raises
    ------
    InvalidReferenceError
        If the digest is invalid.
    """
    algorithm, sep, value = digest.partition(":")
    if not sep or algorithm not in DIGEST_ALGORITHMS:
        raise InvalidReferenceError(f"The digest {digest} uses an unsupported algorithm.")
    if len(value) != DIGEST_ALGORITHMS[algorithm] or not re.fullmatch(r"[a-f0-9]+", value):
        raise InvalidReferenceError(f"The digest {digest} is not a valid {algorithm} digest.")


def _is_registry(component: str) -> bool:
    """Return True if the first component of a name designates a registry host."""
    return "." in component or ":" in component or component == "localhost" or component.startswith("[")
