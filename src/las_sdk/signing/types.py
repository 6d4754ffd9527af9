"""
Type definitions for request signing functionality

This module provides the constants and data classes for AWS Signature
Version 4 request signing against the LAS API gateway.
"""

from datetime import datetime, timezone
from typing import Dict, Union, Callable
from dataclasses import dataclass
from enum import Enum


ALGORITHM = "AWS4-HMAC-SHA256"
REGION = "eu-west-1"
SERVICE = "execute-api"
SCOPE_TERMINATOR = "aws4_request"

AMZ_DATE_FORMAT = "%Y%m%dT%H%M%SZ"
DATE_STAMP_FORMAT = "%Y%m%d"

API_KEY_HEADER = "x-api-key"
AMZ_DATE_HEADER = "x-amz-date"
AUTHORIZATION_HEADER = "Authorization"


class HttpMethod(str, Enum):
    """HTTP methods used by the LAS API"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"


RequestBody = Union[str, bytes, None]


@dataclass
class SigningInput:
    """
    Request to be signed

    Attributes:
        method: HTTP method (GET, POST, etc.)
        uri: Complete request URI
        body: Request body, empty when None
        timestamp: Instant of signing, must be timezone aware
    """
    method: str
    uri: str
    body: RequestBody
    timestamp: datetime

    def __post_init__(self):
        """Normalize method, body and timestamp"""
        if not self.uri:
            raise ValueError("Request URI cannot be empty")

        if not self.method:
            raise ValueError("Request method cannot be empty")

        if self.timestamp.tzinfo is None:
            raise ValueError("Signing timestamp must be timezone aware")

        if isinstance(self.method, HttpMethod):
            self.method = self.method.value
        self.method = self.method.upper()
        self.timestamp = self.timestamp.astimezone(timezone.utc)

        if self.body is None:
            self.body = b""
        elif isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    @property
    def body_bytes(self) -> bytes:
        return self.body  # type: ignore[return-value]


@dataclass(frozen=True)
class CredentialScope:
    """Scope binding a signature to one day, region and service"""
    date_stamp: str
    region: str = REGION
    service: str = SERVICE

    def __str__(self) -> str:
        return "/".join([self.date_stamp, self.region, self.service, SCOPE_TERMINATOR])


@dataclass(frozen=True)
class SignatureResult:
    """
    Generated signature result

    Attributes:
        authorization: Authorization header value
        amz_date: x-amz-date header value
        api_key_header: Name of the API key (or token) header
        api_key_value: Value of the API key (or token) header
        canonical_request: Canonical request that was hashed
        string_to_sign: String that was signed
    """
    authorization: str
    amz_date: str
    api_key_header: str
    api_key_value: str
    canonical_request: str
    string_to_sign: str

    @property
    def signature(self) -> str:
        return self.authorization.rsplit("Signature=", 1)[1]

    @property
    def headers(self) -> Dict[str, str]:
        """All headers that should be added to the request"""
        return {
            AMZ_DATE_HEADER: self.amz_date,
            self.api_key_header: self.api_key_value,
            AUTHORIZATION_HEADER: self.authorization,
        }


# Type aliases for convenience
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock instant in UTC."""
    return datetime.now(timezone.utc)


def format_amz_date(timestamp: datetime) -> str:
    return timestamp.astimezone(timezone.utc).strftime(AMZ_DATE_FORMAT)


def format_date_stamp(timestamp: datetime) -> str:
    return timestamp.astimezone(timezone.utc).strftime(DATE_STAMP_FORMAT)

