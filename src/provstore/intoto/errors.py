# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""Error types related to in-toto attestations."""

from provstore.errors import ProvStoreError


class InTotoAttestationError(ProvStoreError):
    """The base error type for all in-toto related errors."""


class ValidateInTotoPayloadError(InTotoAttestationError):
    """Happens when there is an issue validating an in-toto statement against its schema."""
