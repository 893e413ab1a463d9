# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""The storage formats of signed material in OCI registries."""

import logging
from enum import StrEnum

logger: logging.Logger = logging.getLogger(__name__)


class OCIFormat(StrEnum):
    """The encodings used to store signed material in OCI registries."""

    #: Tag-based storage. Requires OCI v1 registry support only.
    LEGACY = "legacy"

    #: OCI 1.1 referrers API with DSSE attestations.
    REFERRERS_API = "referrers-api"

    #: Experimental sigstore bundle stored through the referrers API.
    PROTOBUF_BUNDLE = "protobuf-bundle"


def route(format_: str | None) -> OCIFormat:
    """Return the storage format for a configured format identifier.

    Unset and unknown identifiers fall back to :attr:`OCIFormat.LEGACY`. This function never
    fails, so a misconfigured format does not prevent signed material from being stored.

    Parameters
    ----------
    format_ : str | None
        The configured format identifier.

    Returns
    -------
    OCIFormat
        The storage format.
    """
    if not format_:
        return OCIFormat.LEGACY
    try:
        return OCIFormat(format_)
    except ValueError:
        logger.warning("Unknown OCI format %s, defaulting to legacy", format_)
        return OCIFormat.LEGACY
