# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""An in-memory OCI registry served by ``pytest_httpserver`` for testing."""

import hashlib
import json
import re
from dataclasses import dataclass, field

from pytest_httpserver import HTTPServer
from werkzeug.wrappers import Request, Response

OCI_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
OCI_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"

_UPLOAD_PATH = re.compile(r"^/v2/(?P<name>.+)/blobs/uploads/(?P<upload_id>[^/]*)$")
_OBJECT_PATH = re.compile(r"^/v2/(?P<name>.+)/(?P<kind>manifests|blobs|referrers)/(?P<reference>[^/]+)$")


def sha256_digest(content: bytes) -> str:
    """Return the ``sha256:<hex>`` digest of some content."""
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


@dataclass
class FakeRegistry:
    """A minimal OCI registry keeping manifests and blobs in memory."""

    server: HTTPServer

    #: Whether the registry serves the referrers endpoint.
    referrers_supported: bool = True

    #: Force a status code for requests whose path contains the key.
    failures: dict[str, int] = field(default_factory=dict)

    blobs: dict[tuple[str, str], bytes] = field(default_factory=dict)
    manifests: dict[tuple[str, str], tuple[str, bytes]] = field(default_factory=dict)
    referrers: dict[tuple[str, str], list[dict]] = field(default_factory=dict)
    requests: list[tuple[str, str]] = field(default_factory=list)
    _uploads: int = 0

    def __post_init__(self) -> None:
        self.server.expect_request(re.compile(r"^/v2/.*$")).respond_with_handler(self.handle)

    @property
    def host(self) -> str:
        """Return the ``host:port`` of the registry."""
        return f"{self.server.host}:{self.server.port}"

    def add_image(self, name: str, content: bytes = b'{"schemaVersion": 2, "layers": []}') -> str:
        """Add an image manifest to the registry and return its digest."""
        digest = sha256_digest(content)
        self.manifests[(name, digest)] = (OCI_IMAGE_MANIFEST, content)
        return digest

    def manifest_json(self, name: str, reference: str) -> dict:
        """Return a stored manifest as JSON."""
        return json.loads(self.manifests[(name, reference)][1])

    def layer_blobs(self, name: str, reference: str) -> list[bytes]:
        """Return the contents of the layers of a stored manifest."""
        manifest = self.manifest_json(name, reference)
        return [self.blobs[(name, layer["digest"])] for layer in manifest["layers"]]

    def handle(self, request: Request) -> Response:
        """Handle a request to the registry."""
        self.requests.append((request.method, request.path))
        for marker, status in self.failures.items():
            if marker in request.path:
                return Response(b"forced failure", status=status)

        if match := _UPLOAD_PATH.match(request.path):
            return self._handle_upload(request, match["name"])

        match = _OBJECT_PATH.match(request.path)
        if not match:
            return Response(b"not found", status=404)
        name, kind, reference = match["name"], match["kind"], match["reference"]

        if kind == "blobs":
            blob = self.blobs.get((name, reference))
            if blob is None:
                return Response(b"", status=404)
            return Response(blob, status=200, headers={"Docker-Content-Digest": reference})

        if kind == "referrers":
            if not self.referrers_supported:
                return Response(b"404 page not found", status=404)
            index = {
                "schemaVersion": 2,
                "mediaType": OCI_IMAGE_INDEX,
                "manifests": self.referrers.get((name, reference), []),
            }
            return Response(json.dumps(index), status=200, content_type=OCI_IMAGE_INDEX)

        if request.method == "PUT":
            return self._handle_put_manifest(request, name, reference)

        stored = self.manifests.get((name, reference))
        if stored is None:
            return Response(b"", status=404)
        media_type, content = stored
        return Response(
            content,
            status=200,
            content_type=media_type,
            headers={"Docker-Content-Digest": sha256_digest(content)},
        )

    def _handle_upload(self, request: Request, name: str) -> Response:
        if request.method == "POST":
            self._uploads += 1
            return Response(b"", status=202, headers={"Location": f"/v2/{name}/blobs/uploads/{self._uploads}?state=x"})

        content = request.get_data()
        digest = request.args.get("digest", "")
        if digest != sha256_digest(content):
            return Response(b"digest mismatch", status=400)
        self.blobs[(name, digest)] = content
        return Response(b"", status=201, headers={"Docker-Content-Digest": digest})

    def _handle_put_manifest(self, request: Request, name: str, reference: str) -> Response:
        content = request.get_data()
        digest = sha256_digest(content)
        media_type = request.headers.get("Content-Type", OCI_IMAGE_MANIFEST)
        manifest = json.loads(content)
        for descriptor in [manifest["config"], *manifest["layers"]]:
            if (name, descriptor["digest"]) not in self.blobs:
                return Response(b"blob unknown", status=400)

        self.manifests[(name, reference)] = (media_type, content)
        self.manifests[(name, digest)] = (media_type, content)

        if subject := manifest.get("subject"):
            self.referrers.setdefault((name, subject["digest"]), []).append(
                {
                    "mediaType": media_type,
                    "digest": digest,
                    "size": len(content),
                    "artifactType": manifest.get("artifactType"),
                }
            )
        return Response(b"", status=201, headers={"Docker-Content-Digest": digest})
