"""
Response classification

Maps the outcome of one HTTP attempt (a response, or a transport failure
with no response) to success or a typed ``ClientError`` together with
whether the attempt may be retried.
"""

from dataclasses import dataclass
from typing import Optional, Union

from .exceptions import ClientError, ErrorKind, TransportError
from .http_client import HttpResponse

TOO_MANY_REQUESTS_MARKER = "Too Many Requests"
LIMIT_EXCEEDED_MARKER = "Limit Exceeded"


@dataclass(frozen=True)
class Classification:
    """
    Result of classifying one attempt

    Attributes:
        error: None on success, otherwise the error to surface
        retryable: Whether the attempt may be retried
    """
    error: Optional[ClientError] = None
    retryable: bool = False

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None


SUCCESS = Classification()


def is_client_error_status(status_code: int) -> bool:
    """4xx responses are fatal for generic request failures."""
    return 400 <= status_code < 500


def classify_status(status_code: int, body: str = "") -> Classification:
    """
    Classify an HTTP status code and response body.

    Checks run in order: 403, 429 with "Too Many Requests", 429 with
    "Limit Exceeded", 2xx, then the generic status-range rule.

    Args:
        status_code: HTTP status code
        body: Response body text

    Returns:
        Classification: Success, or the error and its retryability
    """
    body = body or ""

    if status_code == 403:
        return Classification(ClientError.invalid_credentials(status_code=status_code, body=body), False)

    if status_code == 429 and TOO_MANY_REQUESTS_MARKER in body:
        return Classification(ClientError.too_many_requests(status_code, body), True)

    if status_code == 429 and LIMIT_EXCEEDED_MARKER in body:
        return Classification(ClientError.limit_exceeded(status_code, body), False)

    if 200 <= status_code < 300:
        return SUCCESS

    return Classification(
        ClientError.request_failed(status_code, body),
        not is_client_error_status(status_code)
    )


def classify_transport_error(error: Union[TransportError, BaseException]) -> Classification:
    """A failure with no response is a retryable request failure."""
    cause = getattr(error, "cause", None) or error
    return Classification(ClientError.request_failed(cause=cause), True)


def classify(outcome: Union[HttpResponse, BaseException]) -> Classification:
    """
    Classify the outcome of one attempt.

    Args:
        outcome: The response, or the exception raised by the transport

    Returns:
        Classification: Success, or the error and its retryability
    """
    if isinstance(outcome, HttpResponse):
        return classify_status(outcome.status_code, outcome.text)
    return classify_transport_error(outcome)
