# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module builds the objects written to the registry for each storage format.

All builders are deterministic: the same inputs always produce byte-identical outputs.
"""

import base64
from collections.abc import Mapping
from typing import NamedTuple

from provstore.errors import BuildError
from provstore.intoto import InTotoV1Statement
from provstore.intoto.encoder_decoder import encode_payload
from provstore.json_tools import canonical_json
from provstore.oci.media_types import (
    CERTIFICATE_ANNOTATION,
    CHAIN_ANNOTATION,
    DSSE_PAYLOAD_TYPE,
    INTOTO_PAYLOAD_TYPE,
    SIGNATURE_ANNOTATION,
    SIMPLE_SIGNING_MEDIA_TYPE,
)
from provstore.oci.signed_entity import Layer
from provstore.storage.api import Bundle


class BuiltBundle(NamedTuple):
    """A serialized DSSE envelope and the predicate type of the statement it carries."""

    data: bytes
    predicate_type: str


def build_attestation_layer(bundle: Bundle) -> Layer:
    """Build the static attestation object for the tag-based and referrers formats.

    The layer content is the signed DSSE envelope, i.e. ``bundle.signature``.

    Parameters
    ----------
    bundle : Bundle
        The signing material.

    Returns
    -------
    Layer
        The attestation layer.

    Raises
    ------
    BuildError
        If the bundle does not contain a signature.
    """
    if not bundle.signature:
        raise BuildError("creating attestation", "the bundle does not contain a signed envelope")
    annotations = {SIGNATURE_ANNOTATION: ""}
    annotations.update(_certificate_annotations(bundle, "creating attestation"))
    return Layer(media_type=DSSE_PAYLOAD_TYPE, content=bundle.signature, annotations=annotations)


def build_signature_layer(bundle: Bundle) -> Layer:
    """Build the static signature object for the tag-based and referrers formats.

    The layer content is the signed simple-signing payload and the base64-encoded signature is
    stored as an annotation.

    Parameters
    ----------
    bundle : Bundle
        The signing material.

    Returns
    -------
    Layer
        The signature layer.

    Raises
    ------
    BuildError
        If the bundle does not contain a signature.
    """
    if not bundle.signature:
        raise BuildError("creating signature", "the bundle does not contain a signature")
    annotations = {SIGNATURE_ANNOTATION: base64.b64encode(bundle.signature).decode("ascii")}
    annotations.update(_certificate_annotations(bundle, "creating signature"))
    return Layer(media_type=SIMPLE_SIGNING_MEDIA_TYPE, content=bundle.content, annotations=annotations)


def build_dsse_bundle(statement: InTotoV1Statement, bundle: Bundle) -> BuiltBundle:
    """Build the serialized DSSE envelope of the bundle format.

    The statement is serialized as canonical JSON, base64-encoded and wrapped in an envelope of
    payload type ``application/vnd.in-toto+json`` with the raw signature as its only signature.

    Parameters
    ----------
    statement : InTotoV1Statement
        The attested statement.
    bundle : Bundle
        The signing material.

    Returns
    -------
    BuiltBundle
        The serialized envelope and the predicate type of the statement.

    Raises
    ------
    BuildError
        If the statement or the envelope cannot be serialized.
    """
    predicate_type = statement.get("predicateType", "") if isinstance(statement, Mapping) else None
    if not isinstance(predicate_type, str):
        raise BuildError("marshaling attestation", "the statement does not have a valid predicate type")

    try:
        payload = encode_payload(statement)
    except (TypeError, ValueError) as error:
        raise BuildError("marshaling attestation", error) from error

    envelope = {
        "payloadType": INTOTO_PAYLOAD_TYPE,
        "payload": payload,
        "signatures": [
            {
                "keyid": "",
                # The signature bytes are carried as text, invalid UTF-8 sequences are replaced.
                "sig": bundle.signature.decode("utf-8", errors="replace"),
            }
        ],
    }
    try:
        data = canonical_json(envelope)
    except (TypeError, ValueError) as error:
        raise BuildError("marshaling DSSE envelope", error) from error

    return BuiltBundle(data=data, predicate_type=predicate_type)


def _certificate_annotations(bundle: Bundle, stage: str) -> dict[str, str]:
    """Return the certificate annotations, only present if the bundle carries a certificate.

    Both annotations are written together; the chain annotation is empty if there is no chain.
    """
    if not bundle.cert:
        return {}
    try:
        return {
            CERTIFICATE_ANNOTATION: bundle.cert.decode("utf-8"),
            CHAIN_ANNOTATION: bundle.chain.decode("utf-8") if bundle.chain else "",
        }
    except UnicodeDecodeError as error:
        raise BuildError(stage, "the certificate chain is not PEM-encoded") from error
