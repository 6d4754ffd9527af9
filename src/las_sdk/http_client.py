"""
HTTP transport for LAS server communication

This module provides the transport-neutral request and response records,
the client configuration, and the ``requests``-based transport that
performs a single HTTP round trip. Retrying is not done here; see
``las_sdk.retry``.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
from urllib.parse import urlparse

import requests
from requests.adapters import HTTPAdapter

from .exceptions import TransportError, ValidationError
from .version import __version__

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://demo.api.lucidtech.ai/v1"
ENV_ENDPOINT = "LAS_ENDPOINT"


@dataclass
class ClientConfig:
    """Configuration for LAS API connection."""
    endpoint: str = ""
    timeout: float = 30.0
    verify_ssl: bool = True
    user_agent: str = f"LAS-Python-SDK/{__version__}"

    def __post_init__(self):
        """Validate client configuration."""
        if not self.endpoint:
            self.endpoint = os.environ.get(ENV_ENDPOINT, DEFAULT_ENDPOINT)

        # Paths are appended to the endpoint
        self.endpoint = self.endpoint.rstrip('/')

        parsed = urlparse(self.endpoint)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid endpoint URL format: {self.endpoint}")

        if parsed.query:
            raise ValidationError(f"Endpoint URL cannot have a query string: {self.endpoint}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

    def url(self, path: str) -> str:
        """Absolute URL for an API path."""
        return f"{self.endpoint}/{path.lstrip('/')}"


@dataclass
class HttpRequest:
    """
    Request to send

    Attributes:
        method: HTTP method
        url: Absolute URL
        headers: Request headers
        body: Request body bytes
    """
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        self.method = self.method.upper()
        if self.body is None:
            self.body = b""
        elif isinstance(self.body, str):
            self.body = self.body.encode("utf-8")

    def with_headers(self, headers: Dict[str, str]) -> 'HttpRequest':
        """Copy of this request with ``headers`` added."""
        merged = dict(self.headers)
        merged.update(headers)
        return HttpRequest(self.method, self.url, merged, self.body)


@dataclass
class HttpResponse:
    """
    Response received from the server

    Attributes:
        status_code: HTTP status code
        body: Raw response body
        headers: Response headers
        reason: HTTP reason phrase
    """
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    reason: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text)


def json_request(method: str, url: str, payload: Any = None, headers: Optional[Dict[str, str]] = None) -> HttpRequest:
    """Build a request with a JSON body."""
    request_headers = {'Content-Type': 'application/json'}
    if headers:
        request_headers.update(headers)
    body = json.dumps(payload).encode("utf-8") if payload is not None else b""
    return HttpRequest(method, url, request_headers, body)


class Transport(Protocol):
    """Performs a single HTTP round trip."""

    def send(self, request: HttpRequest, timeout: float) -> HttpResponse:
        """
        Send a request.

        Raises:
            TransportError: If no response was received
        """
        ...


class RequestsTransport:
    """
    Transport backed by a ``requests.Session``.

    The session's own retries are disabled; every call is exactly one
    attempt.
    """

    def __init__(self, config: Optional[ClientConfig] = None, session: Optional[requests.Session] = None):
        """
        Initialize the transport.

        Args:
            config: Client configuration (defaults if None)
            session: Session to use instead of creating one
        """
        self.config = config or ClientConfig()
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        """Create HTTP session without automatic retries."""
        session = requests.Session()

        adapter = HTTPAdapter(max_retries=0)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': self.config.user_agent
        })

        return session

    def send(self, request: HttpRequest, timeout: Optional[float] = None) -> HttpResponse:
        """
        Send one request.

        Args:
            request: Request to send
            timeout: Timeout in seconds (config timeout if None)

        Returns:
            HttpResponse: Response, whatever its status code

        Raises:
            TransportError: On timeout, connection or other network errors
        """
        timeout = timeout if timeout is not None else self.config.timeout

        try:
            logger.debug(f"Making {request.method} request to {request.url}")
            response = self.session.request(
                request.method,
                request.url,
                headers=request.headers,
                data=request.body or None,
                timeout=timeout,
                verify=self.config.verify_ssl
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timeout after {timeout} seconds", e) from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {e}", e) from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed: {e}", e) from e

        return HttpResponse(
            status_code=response.status_code,
            body=response.content or b"",
            headers=dict(response.headers),
            reason=response.reason or ""
        )

    def close(self):
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")
