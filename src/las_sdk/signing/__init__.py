"""
LAS Python SDK - Request Signing Module

AWS Signature Version 4 implementation for authenticating requests
against the LAS API gateway.
"""

from .types import (
    ALGORITHM,
    REGION,
    SERVICE,
    CredentialScope,
    HttpMethod,
    SignatureResult,
    SigningInput,
    format_amz_date,
    format_date_stamp,
    utc_now,
)

from .hashing import (
    derive_signing_key,
    hmac_sha256,
    hmac_sha256_hex,
    sha256_hex,
    to_hex,
)

from .canonical_request import (
    build_canonical_request,
    build_string_to_sign,
    canonical_query_string,
)

from .sigv4_signer import (
    SigV4Signer,
    create_signer,
    sign_input,
    sign_request,
)

__all__ = [
    # Types
    'ALGORITHM',
    'REGION',
    'SERVICE',
    'CredentialScope',
    'HttpMethod',
    'SignatureResult',
    'SigningInput',
    'format_amz_date',
    'format_date_stamp',
    'utc_now',
    # Hashing
    'derive_signing_key',
    'hmac_sha256',
    'hmac_sha256_hex',
    'sha256_hex',
    'to_hex',
    # Canonical request
    'build_canonical_request',
    'build_string_to_sign',
    'canonical_query_string',
    # Signer
    'SigV4Signer',
    'create_signer',
    'sign_input',
    'sign_request',
]
