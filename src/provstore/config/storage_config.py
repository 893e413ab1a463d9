# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module loads the OCI storage configuration from the ``[storage.oci]`` section."""

import logging
from dataclasses import dataclass

from provstore.config.defaults import defaults
from provstore.errors import ConfigurationError

logger: logging.Logger = logging.getLogger(__name__)

SECTION_NAME = "storage.oci"


@dataclass(frozen=True)
class OCIStorageConfig:
    """The resolved configuration of the OCI storage backend."""

    #: The storage format identifier. Empty means the default (legacy) format.
    format: str = ""  # noqa: A003

    #: The repository override (``registry/repo``). ``None`` means the artifact's repository is used.
    repository: str | None = None

    #: Whether to talk to the registry over plain HTTP.
    insecure: bool = False

    #: Whether to verify the TLS certificate of the registry.
    verify_tls: bool = True

    #: The timeout in seconds for registry requests.
    timeout: int = 30


def load_oci_storage_config() -> OCIStorageConfig:
    """Load the OCI storage configuration from the global defaults.

    The deprecated ``referrers_api`` boolean is migrated to a format when ``format`` is not set:
    ``true`` becomes ``protobuf-bundle`` and ``false`` becomes ``legacy``.

    Returns
    -------
    OCIStorageConfig
        The OCI storage configuration.

    Raises
    ------
    ConfigurationError
        If a value in the ``[storage.oci]`` or ``[requests]`` sections is invalid.
    """
    try:
        timeout = defaults.getint("requests", "timeout", fallback=30)
    except ValueError as error:
        raise ConfigurationError(
            f'The "timeout" value in section [requests] of the .ini configuration file is invalid: {error}'
        ) from error

    if not defaults.has_section(SECTION_NAME):
        return OCIStorageConfig(timeout=timeout)
    section = defaults[SECTION_NAME]

    format_ = section.get("format", fallback="").strip()
    try:
        referrers_api = section.getboolean("referrers_api", fallback=None)
        insecure = section.getboolean("insecure", fallback=False)
        verify_tls = section.getboolean("verify_tls", fallback=True)
    except ValueError as error:
        raise ConfigurationError(
            f"A boolean value in section [{SECTION_NAME}] of the .ini configuration file is invalid: {error}"
        ) from error

    if referrers_api is not None:
        if format_:
            logger.warning(
                'Both "format" and the deprecated "referrers_api" are set in section [%s]; "referrers_api" is ignored.',
                SECTION_NAME,
            )
        else:
            format_ = "protobuf-bundle" if referrers_api else "legacy"
            logger.warning(
                'The "referrers_api" option in section [%s] is deprecated, use "format = %s" instead.',
                SECTION_NAME,
                format_,
            )

    repository = section.get("repository", fallback="").strip() or None

    return OCIStorageConfig(
        format=format_,
        repository=repository,
        insecure=insecure,
        verify_tls=verify_tls,
        timeout=timeout,
    )
