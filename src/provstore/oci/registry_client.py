# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The module provides a client for the OCI distribution API.

Only the endpoints needed to read and write signed material are implemented. See:
https://github.com/opencontainers/distribution-spec/blob/main/spec.md.
"""

import json
import logging
from dataclasses import dataclass
from urllib.parse import urljoin

import requests
from requests.models import Response

import provstore
from provstore.errors import EntityNotFoundError, RegistryError
from provstore.json_tools import JsonType
from provstore.oci.media_types import MANIFEST_MEDIA_TYPES, OCI_IMAGE_MANIFEST
from provstore.oci.name import Repository
from provstore.oci.signed_entity import Descriptor, sha256_digest

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteOptions:
    """Options applied to every request sent to the registry."""

    #: Talk to the registry over plain HTTP.
    insecure: bool = False

    #: Verify the TLS certificate of the registry.
    verify_tls: bool = True

    #: The username for basic authentication.
    username: str | None = None

    #: The password for basic authentication.
    password: str | None = None

    #: A bearer token. Takes precedence over basic authentication.
    token: str | None = None

    #: The timeout in seconds for each request.
    timeout: int = 30

    #: The User-Agent header sent to the registry.
    user_agent: str = f"provstore/{provstore.__version__}"


class RegistryClient:
    """A client for reading and writing manifests and blobs in OCI registries."""

    def __init__(self, options: RemoteOptions | None = None) -> None:
        """Initialize instance.

        Parameters
        ----------
        options : RemoteOptions | None
            The remote options. The defaults are used if not provided.
        """
        self.options = options or RemoteOptions()

    def head_manifest(self, repository: Repository, reference: str) -> Descriptor:
        """Return the descriptor of a manifest.

        Parameters
        ----------
        repository : Repository
            The repository of the manifest.
        reference : str
            A tag or a digest.

        Returns
        -------
        Descriptor
            The descriptor of the manifest.

        Raises
        ------
        EntityNotFoundError
            If the manifest does not exist.
        RegistryError
            If the request fails.
        """
        url = self._url(repository, f"manifests/{reference}")
        response = self._send("HEAD", url, headers={"Accept": ", ".join(MANIFEST_MEDIA_TYPES)})
        self._check_manifest_response(response, repository, reference)

        digest = response.headers.get("Docker-Content-Digest")
        media_type = response.headers.get("Content-Type")
        length = response.headers.get("Content-Length")
        if not digest or not media_type or length is None or not length.isdigit():
            # Some registries do not return complete headers for HEAD requests.
            logger.debug("Incomplete HEAD response for %s:%s, fetching the manifest.", repository, reference)
            _, descriptor = self.get_manifest(repository, reference)
            return descriptor

        return Descriptor(media_type=media_type.split(";")[0].strip(), digest=digest, size=int(length))

    def get_manifest(self, repository: Repository, reference: str) -> tuple[dict[str, JsonType], Descriptor]:
        """Fetch a manifest.

        Parameters
        ----------
        repository : Repository
            The repository of the manifest.
        reference : str
            A tag or a digest.

        Returns
        -------
        tuple[dict[str, JsonType], Descriptor]
            The decoded manifest and its descriptor.

        Raises
        ------
        EntityNotFoundError
            If the manifest does not exist.
        RegistryError
            If the request fails or the manifest is malformed.
        """
        url = self._url(repository, f"manifests/{reference}")
        response = self._send("GET", url, headers={"Accept": ", ".join(MANIFEST_MEDIA_TYPES)})
        self._check_manifest_response(response, repository, reference)

        try:
            manifest = json.loads(response.content)
        except (json.JSONDecodeError, UnicodeDecodeError) as error:
            raise RegistryError(f"The manifest {repository}:{reference} is not valid JSON.") from error
        if not isinstance(manifest, dict):
            raise RegistryError(f"The manifest {repository}:{reference} is not a JSON object.")

        media_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        if not media_type:
            media_type = manifest.get("mediaType") or OCI_IMAGE_MANIFEST
        descriptor = Descriptor(
            media_type=str(media_type),
            digest=sha256_digest(response.content),
            size=len(response.content),
        )
        return manifest, descriptor

    def put_manifest(self, repository: Repository, reference: str, manifest: bytes, media_type: str) -> str:
        """Upload a manifest.

        Parameters
        ----------
        repository : Repository
            The target repository.
        reference : str
            The tag or digest to push the manifest to.
        manifest : bytes
            The serialized manifest.
        media_type : str
            The media type of the manifest.

        Returns
        -------
        str
            The digest of the uploaded manifest.

        Raises
        ------
        RegistryError
            If the registry rejects the manifest.
        """
        url = self._url(repository, f"manifests/{reference}")
        response = self._send("PUT", url, data=manifest, headers={"Content-Type": media_type})
        if response.status_code not in (200, 201, 202):
            raise RegistryError(
                f"Failed to push manifest {repository}:{reference}: {_describe(response)}",
                status_code=response.status_code,
            )
        digest = sha256_digest(manifest)
        logger.debug("Pushed manifest %s to %s:%s.", digest, repository, reference)
        return digest

    def get_blob(self, repository: Repository, digest: str) -> bytes:
        """Fetch a blob and verify its digest.

        Parameters
        ----------
        repository : Repository
            The repository of the blob.
        digest : str
            The digest of the blob.

        Returns
        -------
        bytes
            The blob content.

        Raises
        ------
        RegistryError
            If the request fails or the content does not match the digest.
        """
        url = self._url(repository, f"blobs/{digest}")
        response = self._send("GET", url)
        if response.status_code != 200:
            raise RegistryError(
                f"Failed to fetch blob {digest} from {repository}: {_describe(response)}",
                status_code=response.status_code,
            )
        if digest.startswith("sha256:") and sha256_digest(response.content) != digest:
            raise RegistryError(f"The content of blob {digest} in {repository} does not match its digest.")
        return response.content

    def blob_exists(self, repository: Repository, digest: str) -> bool:
        """Return True if the blob exists in the repository.

        Raises
        ------
        RegistryError
            If the request fails.
        """
        url = self._url(repository, f"blobs/{digest}")
        response = self._send("HEAD", url)
        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise RegistryError(
            f"Failed to check blob {digest} in {repository}: {_describe(response)}",
            status_code=response.status_code,
        )

    def upload_blob(self, repository: Repository, content: bytes) -> str:
        """Upload a blob unless it already exists in the repository.

        The upload is a monolithic ``POST`` then ``PUT`` upload.

        Parameters
        ----------
        repository : Repository
            The target repository.
        content : bytes
            The blob content.

        Returns
        -------
        str
            The digest of the blob.

        Raises
        ------
        RegistryError
            If the upload fails.
        """
        digest = sha256_digest(content)
        if self.blob_exists(repository, digest):
            logger.debug("Blob %s already exists in %s.", digest, repository)
            return digest

        start_url = self._url(repository, "blobs/uploads/")
        response = self._send("POST", start_url)
        if response.status_code != 202 or not response.headers.get("Location"):
            raise RegistryError(
                f"Failed to start blob upload to {repository}: {_describe(response)}",
                status_code=response.status_code,
            )

        upload_url = urljoin(start_url, response.headers["Location"])
        response = self._send(
            "PUT",
            upload_url,
            params={"digest": digest},
            data=content,
            headers={"Content-Type": "application/octet-stream"},
        )
        if response.status_code not in (201, 204):
            raise RegistryError(
                f"Failed to upload blob {digest} to {repository}: {_describe(response)}",
                status_code=response.status_code,
            )
        logger.debug("Uploaded blob %s to %s.", digest, repository)
        return digest

    def referrers_supported(self, repository: Repository, digest: str) -> bool:
        """Return True if the registry serves the referrers endpoint for the repository.

        A registry supporting the referrers API answers with an image index, even if there are no
        referrers yet. A 404 or 405 response means the endpoint is not available.

        Raises
        ------
        RegistryError
            If the request fails for any other reason.
        """
        url = self._url(repository, f"referrers/{digest}")
        response = self._send("GET", url, headers={"Accept": "application/vnd.oci.image.index.v1+json"})
        if response.status_code == 200:
            return True
        if response.status_code in (404, 405):
            logger.debug("The referrers endpoint of %s returned %s.", repository, response.status_code)
            return False
        raise RegistryError(
            f"Failed to query referrers of {repository}@{digest}: {_describe(response)}",
            status_code=response.status_code,
        )

    def _url(self, repository: Repository, path: str) -> str:
        scheme = "http" if self.options.insecure else "https"
        return f"{scheme}://{repository.registry}/v2/{repository.repository}/{path}"

    def _send(self, method: str, url: str, **kwargs: object) -> Response:
        """Send a request to the registry.

        Raises
        ------
        RegistryError
            If the request cannot be sent.
        """
        headers = {"User-Agent": self.options.user_agent}
        extra_headers = kwargs.pop("headers", None)
        if isinstance(extra_headers, dict):
            headers.update(extra_headers)
        if self.options.token:
            headers["Authorization"] = f"Bearer {self.options.token}"

        auth = None
        if not self.options.token and self.options.username is not None:
            auth = (self.options.username, self.options.password or "")

        logger.debug("%s - %s", method, url)
        try:
            return requests.request(
                method,
                url,
                headers=headers,
                auth=auth,
                timeout=self.options.timeout,
                verify=self.options.verify_tls,
                **kwargs,  # type: ignore[arg-type]
            )
        except requests.exceptions.RequestException as error:
            raise RegistryError(f"Failed to send {method} request to {url}: {error}") from error

    @staticmethod
    def _check_manifest_response(response: Response, repository: Repository, reference: str) -> None:
        if response.status_code == 404:
            raise EntityNotFoundError(f"The manifest {repository}:{reference} does not exist.", status_code=404)
        if response.status_code != 200:
            raise RegistryError(
                f"Failed to fetch manifest {repository}:{reference}: {_describe(response)}",
                status_code=response.status_code,
            )


def _describe(response: Response) -> str:
    """Return a short description of an error response."""
    text = response.text[:200] if response.text else ""
    return f"status {response.status_code} {text}".strip()
