"""
AWS Signature Version 4 request signer

This module provides the signer used to authorize requests against the
LAS API gateway. Signing is a pure function of the request, the
credentials and the signing instant: the signer keeps no state between
calls and can be shared between threads.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from .canonical_request import (
    build_authorization,
    build_canonical_request,
    build_signed_headers,
    build_string_to_sign,
    canonical_path,
    canonical_query_string,
    host_header,
    split_uri,
)
from .hashing import derive_signing_key, hmac_sha256_hex
from .types import (
    REGION,
    SERVICE,
    Clock,
    CredentialScope,
    RequestBody,
    SignatureResult,
    SigningInput,
    format_amz_date,
    format_date_stamp,
    utc_now,
)

if TYPE_CHECKING:
    from ..credentials import Credentials

logger = logging.getLogger(__name__)


class SigV4Signer:
    """
    Signature Version 4 signer for the LAS API

    Region and service are fixed to the LAS deployment. Each call to
    ``sign`` reads the clock, so a retried request gets a fresh
    ``x-amz-date`` and signature.
    """

    def __init__(self, credentials: 'Credentials', clock: Optional[Clock] = None):
        """
        Initialize the signer.

        Args:
            credentials: Signing credentials, validated on every signature
            clock: Source of the signing instant (UTC wall clock by default)
        """
        self.credentials = credentials
        self.clock = clock or utc_now

    def sign(
        self,
        method: str,
        uri: str,
        body: RequestBody = None,
        timestamp: Optional[datetime] = None
    ) -> SignatureResult:
        """
        Sign a request.

        Args:
            method: HTTP method
            uri: Absolute request URI without a query component
            body: Request body
            timestamp: Signing instant (read from the clock if None)

        Returns:
            SignatureResult: Headers to add to the request

        Raises:
            ClientError: INVALID_CREDENTIALS or SIGNING_UNSUPPORTED
        """
        signing_input = SigningInput(
            method=method,
            uri=uri,
            body=body,
            timestamp=timestamp or self.clock()
        )
        return sign_input(signing_input, self.credentials)


def sign_input(signing_input: SigningInput, credentials: 'Credentials') -> SignatureResult:
    """
    Sign a prepared ``SigningInput``.

    Credentials and the query component are checked before anything is
    hashed.

    Args:
        signing_input: Request and signing instant
        credentials: Signing credentials

    Returns:
        SignatureResult: Headers and intermediate signing strings

    Raises:
        ClientError: INVALID_CREDENTIALS if a credential field is empty,
            SIGNING_UNSUPPORTED if the URI has a query string
    """
    credentials.validate()

    parts = split_uri(signing_input.uri)
    query = canonical_query_string(parts.query)

    amz_date = format_amz_date(signing_input.timestamp)
    scope = CredentialScope(format_date_stamp(signing_input.timestamp), REGION, SERVICE)

    key_header, key_value = credentials.signing_header()
    headers = build_signed_headers(host_header(parts), amz_date, key_header, key_value)

    canonical_request = build_canonical_request(
        signing_input.method,
        canonical_path(parts),
        query,
        headers,
        signing_input.body_bytes
    )
    string_to_sign = build_string_to_sign(amz_date, scope, canonical_request)

    signing_key = derive_signing_key(
        credentials.secret_access_key, scope.date_stamp, scope.region, scope.service
    )
    signature = hmac_sha256_hex(signing_key, string_to_sign)

    logger.debug(f"Canonical request:\n{canonical_request}")
    logger.debug(f"String to sign:\n{string_to_sign}")

    return SignatureResult(
        authorization=build_authorization(credentials.access_key_id, scope, headers, signature),
        amz_date=amz_date,
        api_key_header=key_header,
        api_key_value=key_value,
        canonical_request=canonical_request,
        string_to_sign=string_to_sign
    )


def create_signer(credentials: 'Credentials', clock: Optional[Clock] = None) -> SigV4Signer:
    """
    Create a signer for the given credentials.

    Args:
        credentials: Signing credentials
        clock: Optional clock override

    Returns:
        SigV4Signer: Configured signer
    """
    return SigV4Signer(credentials, clock)


def sign_request(
    credentials: 'Credentials',
    method: str,
    uri: str,
    body: RequestBody = None,
    timestamp: Optional[datetime] = None
) -> SignatureResult:
    """Convenience wrapper: sign one request without keeping a signer."""
    return SigV4Signer(credentials).sign(method, uri, body, timestamp)
