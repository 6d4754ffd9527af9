"""
Canonical request construction for Signature Version 4

This module builds the strings that get hashed and signed: the canonical
request, the credential scope, the string to sign and the final
Authorization header value.
"""

from typing import List, Tuple
from urllib.parse import urlsplit, SplitResult

from requests.utils import requote_uri

from ..exceptions import ClientError
from .hashing import sha256_hex
from .types import ALGORITHM, AMZ_DATE_HEADER, CredentialScope


DEFAULT_PORTS = {"http": 80, "https": 443}

SignedHeaders = List[Tuple[str, str]]


def split_uri(uri: str) -> SplitResult:
    """
    Split a request URI, rejecting anything that cannot be signed.

    Args:
        uri: Absolute request URI

    Returns:
        SplitResult: Parsed URI components

    Raises:
        ValueError: If the URI is not absolute
    """
    parts = urlsplit(uri)
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Request URI must be absolute: {uri}")
    return parts


def host_header(parts: SplitResult) -> str:
    """Host header value: lower-case host, plus port only when it is not the scheme default."""
    host = parts.hostname or ""
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and DEFAULT_PORTS.get(parts.scheme) != port:
        return f"{host}:{port}"
    return host


def canonical_path(parts: SplitResult) -> str:
    """Path as it is sent on the wire: percent-encoded the way requests prepares it."""
    return requote_uri(parts.path) or "/"


def canonical_query_string(query: str) -> str:
    """
    Canonical query string for signing.

    Only requests without a query component can be signed; query
    parameter canonicalization is not implemented.

    Raises:
        ClientError: SIGNING_UNSUPPORTED for any non-empty query
    """
    if query:
        raise ClientError.signing_unsupported(
            "Creating canonical query string is not implemented",
            {"query": query}
        )
    return ""


def build_signed_headers(host: str, amz_date: str, key_header: str, key_value: str) -> SignedHeaders:
    """Signed headers in their fixed signing order."""
    return [
        ("host", host),
        (AMZ_DATE_HEADER, amz_date),
        (key_header.lower(), key_value),
    ]


def signed_header_names(headers: SignedHeaders) -> str:
    return ";".join(name for name, _ in headers)


def build_canonical_request(
    method: str,
    path: str,
    query: str,
    headers: SignedHeaders,
    body: bytes
) -> str:
    """
    Build the canonical request.

    Layout::

        METHOD
        /absolute/path
        <canonical query>
        name:value            (one line per signed header)

        name;name;name
        <hex sha256 of body>

    Args:
        method: Upper-case HTTP method
        path: Absolute path of the request URI
        query: Canonical query string (always empty)
        headers: Signed headers in signing order
        body: Request body bytes

    Returns:
        str: Canonical request
    """
    header_lines = "".join(f"{name}:{value}\n" for name, value in headers)
    return "\n".join([
        method,
        path,
        query,
        header_lines,
        signed_header_names(headers),
        sha256_hex(body),
    ])


def build_string_to_sign(amz_date: str, scope: CredentialScope, canonical_request: str) -> str:
    return "\n".join([
        ALGORITHM,
        amz_date,
        str(scope),
        sha256_hex(canonical_request),
    ])


def build_authorization(
    access_key_id: str,
    scope: CredentialScope,
    headers: SignedHeaders,
    signature: str
) -> str:
    """Authorization header value for a computed signature."""
    parts = [
        f"Credential={access_key_id}/{scope}",
        f"SignedHeaders={signed_header_names(headers)}",
        f"Signature={signature}",
    ]
    return f"{ALGORITHM} {', '.join(parts)}"
