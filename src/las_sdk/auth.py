"""
Request authorizers

An authorizer turns an outgoing request into the headers that
authenticate it. Authorizers are called once per attempt, so a retried
request is re-signed with a fresh timestamp or a refreshed token.
"""

import logging
from datetime import datetime
from typing import Dict, Optional, Protocol

import requests
from requests.auth import HTTPBasicAuth

from .credentials import AccessToken, ClientCredentials, Credentials, TokenCache
from .exceptions import ClientError
from .http_client import HttpRequest
from .signing.sigv4_signer import SigV4Signer
from .signing.types import Clock, utc_now

logger = logging.getLogger(__name__)


class Authorizer(Protocol):
    """Produces authorization headers for one attempt."""

    def authorize(self, request: HttpRequest) -> Dict[str, str]:
        ...


class SigV4Authorizer:
    """Signs each attempt with Signature Version 4."""

    def __init__(self, credentials: Credentials, clock: Optional[Clock] = None):
        self.signer = SigV4Signer(credentials, clock)

    def authorize(self, request: HttpRequest) -> Dict[str, str]:
        return self.signer.sign(request.method, request.url, request.body).headers


class BearerTokenAuthorizer:
    """
    Authorizes each attempt with an OAuth bearer token.

    The token comes from a shared ``TokenCache``; when the cached token is
    missing or expired it is refreshed before the headers are built.
    """

    def __init__(self, credentials: ClientCredentials, token_cache: TokenCache, clock: Optional[Clock] = None):
        credentials.validate()
        self.credentials = credentials
        self.token_cache = token_cache
        self.clock = clock or utc_now

    def authorize(self, request: HttpRequest) -> Dict[str, str]:
        now = self.clock()
        token = self.token_cache.current(now) or self.token_cache.refresh(now)
        return {
            'Authorization': f'Bearer {token}',
            'X-Api-Key': self.credentials.api_key,
        }


class ClientCredentialsGrant:
    """
    Fetches access tokens with the OAuth client credentials grant.

    Usable as the fetcher of a ``TokenCache``.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0
    ):
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def token_url(self) -> str:
        return f"https://{self.credentials.auth_endpoint}/oauth2/token?grant_type=client_credentials"

    def __call__(self, now: datetime) -> AccessToken:
        """
        Request a new access token.

        Args:
            now: Instant the expiry is measured from

        Returns:
            AccessToken: Token and expiry

        Raises:
            ClientError: INVALID_CREDENTIALS on 401/403, REQUEST_FAILED on
                other failures, DECODE_FAILED on a malformed token response
        """
        logger.info(f"Requesting access token from {self.credentials.auth_endpoint}")

        try:
            response = self.session.post(
                self.token_url,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                auth=HTTPBasicAuth(self.credentials.client_id, self.credentials.client_secret),
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            raise ClientError.request_failed(cause=e) from e

        if response.status_code in (401, 403):
            raise ClientError.invalid_credentials(status_code=response.status_code, body=response.text)

        if not response.ok:
            raise ClientError.request_failed(response.status_code, response.text)

        try:
            data = response.json()
            return AccessToken.from_expires_in(data['access_token'], float(data['expires_in']), now)
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Error in token response: {e}")
            raise ClientError.decode_failed(e, response.status_code, response.text) from e
