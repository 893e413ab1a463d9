# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Function to base64 encode the in-toto attestation payload."""

import base64
from collections.abc import Mapping

from provstore.json_tools import canonical_json


def encode_payload(payload: Mapping) -> str:
    """Encode (base64 encoding) the payload of an in-toto attestation.

    The payload is serialized as canonical JSON first, so encoding the same payload always
    produces the same string.

    For more details about the payload field, see:
        https://github.com/in-toto/attestation/blob/main/spec/v1/envelope.md#fields.

    Parameters
    ----------
    payload : Mapping
        The unencoded payload.

    Returns
    -------
    str
        The encoded payload.

    Raises
    ------
    TypeError
        If the payload is not JSON-serializable.
    ValueError
        If the payload contains circular references or non-finite numbers.
    """
    return base64.b64encode(canonical_json(payload)).decode("ascii")
