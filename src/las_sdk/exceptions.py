"""
Exception classes for LAS Python SDK
"""

from enum import Enum
from typing import Optional, Dict, Any


class LasSDKError(Exception):
    """Base exception for all LAS SDK errors"""

    def __init__(self, message: str, error_code: str = "UNKNOWN_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class ValidationError(LasSDKError):
    """Exception raised for invalid configuration or arguments"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "VALIDATION_ERROR", details)


class TransportError(LasSDKError):
    """Exception raised when an HTTP round trip produced no response"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, "TRANSPORT_ERROR")
        self.cause = cause


class ErrorKind(str, Enum):
    """Discriminant for every error a client call can surface"""
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOO_MANY_REQUESTS = "TOO_MANY_REQUESTS"
    LIMIT_EXCEEDED = "LIMIT_EXCEEDED"
    REQUEST_FAILED = "REQUEST_FAILED"
    SIGNING_UNSUPPORTED = "SIGNING_UNSUPPORTED"
    DECODE_FAILED = "DECODE_FAILED"


class ClientError(LasSDKError):
    """
    Error surfaced by signing or executing a request.

    A single tagged type: ``kind`` tells what went wrong, and the response
    context (``status_code``, ``body``) is attached whenever a response
    was received.

    Attributes:
        kind: Error discriminant
        status_code: HTTP status code, None when no response was received
        body: Raw response body, None when no response was received
        cause: Underlying exception, if any
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, kind.value, details)
        self.kind = kind
        self.status_code = status_code
        self.body = body
        self.cause = cause

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (kind: {self.kind.value}, status: {self.status_code})"
        return f"{self.message} (kind: {self.kind.value})"

    def __repr__(self) -> str:
        return (
            f"ClientError(kind={self.kind.value!r}, message={self.message!r}, "
            f"status_code={self.status_code!r})"
        )

    @classmethod
    def invalid_credentials(
        cls,
        message: str = "Credentials provided is not valid.",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> 'ClientError':
        return cls(ErrorKind.INVALID_CREDENTIALS, message, status_code, body, details=details)

    @classmethod
    def too_many_requests(cls, status_code: int = 429, body: Optional[str] = None) -> 'ClientError':
        return cls(
            ErrorKind.TOO_MANY_REQUESTS,
            "You have reached the limit of requests per second.",
            status_code,
            body
        )

    @classmethod
    def limit_exceeded(cls, status_code: int = 429, body: Optional[str] = None) -> 'ClientError':
        return cls(
            ErrorKind.LIMIT_EXCEEDED,
            "You have reached the limit of total requests per month.",
            status_code,
            body
        )

    @classmethod
    def request_failed(
        cls,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        cause: Optional[BaseException] = None
    ) -> 'ClientError':
        if status_code is None:
            message = f"Request failed: {cause}" if cause else "Request failed without a response"
        else:
            message = f"Request failed with HTTP {status_code}"
        return cls(ErrorKind.REQUEST_FAILED, message, status_code, body, cause)

    @classmethod
    def signing_unsupported(cls, reason: str, details: Optional[Dict[str, Any]] = None) -> 'ClientError':
        return cls(ErrorKind.SIGNING_UNSUPPORTED, reason, details=details)

    @classmethod
    def decode_failed(
        cls,
        cause: BaseException,
        status_code: Optional[int] = None,
        body: Optional[str] = None
    ) -> 'ClientError':
        return cls(
            ErrorKind.DECODE_FAILED,
            f"Invalid JSON response: {cause}",
            status_code,
            body,
            cause
        )
