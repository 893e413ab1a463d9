# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This module handles in-toto version 1 statements, the payload of attestations."""

from __future__ import annotations

from collections.abc import Callable
from typing import TypedDict, TypeGuard

from provstore.intoto.errors import ValidateInTotoPayloadError
from provstore.json_tools import JsonType

#: The statement type of in-toto v1 statements.
STATEMENT_TYPE_V1 = "https://in-toto.io/Statement/v1"

# The cryptographic algorithms allowed as keys of a digest set.
# See: https://github.com/in-toto/attestation/blob/main/spec/v1/digest_set.md
VALID_ALGORITHMS = [
    "sha256",
    "sha224",
    "sha384",
    "sha512",
    "sha512_224",
    "sha512_256",
    "sha3_224",
    "sha3_256",
    "sha3_384",
    "sha3_512",
    "shake128",
    "shake256",
    "blake2b",
    "blake2s",
    "ripemd160",
    "sm3",
    "gost",
    "sha1",
    "md5",
]


class InTotoV1Statement(TypedDict):
    """An in-toto version 1 statement.

    Specification: https://github.com/in-toto/attestation/blob/main/spec/v1/statement.md.
    """

    _type: str
    subject: list[InTotoV1ResourceDescriptor]
    predicateType: str  # noqa: N815
    predicate: dict[str, JsonType] | None


class InTotoV1ResourceDescriptor(TypedDict, total=False):
    """An in-toto resource descriptor.

    Specification: https://github.com/in-toto/attestation/blob/main/spec/v1/resource_descriptor.md
    """

    name: str
    uri: str
    digest: dict[str, str]
    content: str
    downloadLocation: str  # noqa: N815
    mediaType: str  # noqa: N815
    annotations: dict[str, JsonType]


def validate_intoto_statement(payload: dict[str, JsonType]) -> TypeGuard[InTotoV1Statement]:
    """Validate an in-toto v1 statement.

    Parameters
    ----------
    payload : dict[str, JsonType]
        The JSON statement.

    Returns
    -------
    TypeGuard[InTotoV1Statement]
        ``True`` if the statement is valid, in which case its type is narrowed to an
        ``InTotoV1Statement``.

    Raises
    ------
    ValidateInTotoPayloadError
        When the payload does not follow the expected schema.
    """
    type_ = payload.get("_type")
    if type_ is None:
        raise ValidateInTotoPayloadError(
            "The attribute '_type' of the in-toto statement is missing.",
        )
    if type_ != STATEMENT_TYPE_V1:
        raise ValidateInTotoPayloadError(
            f"The value of attribute '_type' in the in-toto statement must be: '{STATEMENT_TYPE_V1}'",
        )

    subjects_payload = payload.get("subject")
    if subjects_payload is None:
        raise ValidateInTotoPayloadError(
            "The attribute 'subject' of the in-toto statement is missing.",
        )
    if not isinstance(subjects_payload, list):
        raise ValidateInTotoPayloadError(
            "The value of attribute 'subject' in the in-toto statement is invalid: expecting a list.",
        )

    for subject_json in subjects_payload:
        validate_intoto_subject(subject_json)

    predicate_type = payload.get("predicateType")
    if predicate_type is None:
        raise ValidateInTotoPayloadError(
            "The attribute 'predicateType' of the in-toto statement is missing.",
        )
    if not isinstance(predicate_type, str):
        raise ValidateInTotoPayloadError(
            "The value of attribute 'predicateType' in the in-toto statement is invalid: expecting a string."
        )

    predicate = payload.get("predicate")
    if predicate is not None and not isinstance(predicate, dict):
        raise ValidateInTotoPayloadError(
            "The value attribute 'predicate' in the in-toto statement is invalid: expecting an object.",
        )

    return True


def validate_intoto_subject(subject: JsonType) -> TypeGuard[InTotoV1ResourceDescriptor]:
    """Validate a single subject in the in-toto statement.

    Raises
    ------
    ValidateInTotoPayloadError
        When the subject does not follow the expected schema.
    """
    if not isinstance(subject, dict):
        raise ValidateInTotoPayloadError(
            "A subject in the in-toto statement is invalid: expecting an object.",
        )

    # At least one of 'uri', 'digest', and 'content' must be valid and present.
    uri = _validate_property(subject, "uri", lambda x: isinstance(x, str))
    content = _validate_property(subject, "content", lambda x: isinstance(x, str))
    digest = _validate_property(subject, "digest", is_valid_digest_set)
    if not any([uri, content, digest]):
        raise ValidateInTotoPayloadError(
            "One of 'uri', 'digest', or 'content' must be present and valid within 'subject'."
        )

    _validate_property(subject, "name", lambda x: isinstance(x, str))
    _validate_property(subject, "downloadLocation", lambda x: isinstance(x, str))
    _validate_property(subject, "mediaType", lambda x: isinstance(x, str))
    _validate_property(subject, "annotations", lambda x: isinstance(x, dict))

    return True


def is_valid_digest_set(digest: JsonType) -> bool:
    """Return True if the digest set only maps known algorithms to string values.

    Specification for the digest set: https://github.com/in-toto/attestation/blob/main/spec/v1/digest_set.md.
    """
    if not isinstance(digest, dict):
        return False
    return all(key in VALID_ALGORITHMS and isinstance(value, str) for key, value in digest.items())


def _validate_property(
    object_: dict[str, JsonType],
    key: str,
    validator: Callable[[JsonType], bool],
) -> JsonType:
    """Validate the existence and type of target within the passed Json object."""
    value = object_.get(key)
    if not value:
        return None

    if not validator(value):
        raise ValidateInTotoPayloadError(f"The attribute {key} of the in-toto subject is invalid.")

    return value
