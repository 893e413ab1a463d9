# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The simple-signing payload of container image signatures.

For reference, see the container signature format of the containers/image project:
https://github.com/containers/image/blob/main/docs/containers-signature.5.md.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from provstore.json_tools import JsonType, canonical_json
from provstore.oci.name import Digest

#: The value of ``critical.type`` in simple-signing payloads.
SIMPLE_SIGNING_TYPE = "cosign container image signature"


@dataclass(frozen=True)
class SimpleContainerImage:
    """A simple-signing payload identifying a container image."""

    #: The image reference the signature is made for, e.g. ``registry.example.com/app``.
    docker_reference: str

    #: The digest of the image manifest.
    docker_manifest_digest: str

    #: Additional, unverified metadata.
    optional: Mapping[str, JsonType] = field(default_factory=dict)

    @classmethod
    def for_image(cls, image: Digest, optional: Mapping[str, JsonType] | None = None) -> SimpleContainerImage:
        """Create the payload for an image.

        Parameters
        ----------
        image : Digest
            The signed image.
        optional : Mapping[str, JsonType] | None
            Additional metadata stored under ``optional``.

        Returns
        -------
        SimpleContainerImage
            The payload.
        """
        return cls(
            docker_reference=str(image.repository),
            docker_manifest_digest=image.digest,
            optional=dict(optional or {}),
        )

    def to_json(self) -> dict[str, JsonType]:
        """Return the JSON form of the payload."""
        return {
            "critical": {
                "identity": {"docker-reference": self.docker_reference},
                "image": {"docker-manifest-digest": self.docker_manifest_digest},
                "type": SIMPLE_SIGNING_TYPE,
            },
            "optional": dict(self.optional) or None,
        }

    def to_bytes(self) -> bytes:
        """Return the canonical JSON serialization of the payload, the content that gets signed."""
        return canonical_json(self.to_json())
