"""
Low level client for the Lucidtech AI Services API

Each method maps to one API endpoint and returns the decoded JSON
response. Requests are authorized per attempt and retried by the
``ResilientExecutor``.
"""

import base64
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from urllib.parse import quote

from .auth import Authorizer, BearerTokenAuthorizer, ClientCredentialsGrant, SigV4Authorizer
from .credentials import ClientCredentials, Credentials, TokenCache, resolve_credentials
from .http_client import ClientConfig, HttpRequest, RequestsTransport, Transport, json_request
from .retry import ResilientExecutor, RetryPolicy

logger = logging.getLogger(__name__)

Feedback = List[Dict[str, str]]


class Client:
    """
    Low level client to invoke API methods of Lucidtech AI Services.

    Signs requests with Signature Version 4 when given ``Credentials`` and
    with an OAuth bearer token when given ``ClientCredentials``. With no
    credentials they are resolved from the environment, then the
    credentials file.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        credentials: Optional[Union[Credentials, ClientCredentials]] = None,
        config: Optional[ClientConfig] = None,
        retry_policy: Optional[RetryPolicy] = None,
        authorizer: Optional[Authorizer] = None,
        transport: Optional[Transport] = None,
        call_timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the client.

        Args:
            endpoint: API base URL, e.g. https://demo.api.lucidtech.ai/v1
            credentials: Signing or OAuth client credentials (resolved if None)
            config: Connection configuration; ``endpoint`` overrides its endpoint
            retry_policy: Retry bounds (defaults if None)
            authorizer: Authorizer to use instead of one built from credentials
            transport: Transport to use instead of a ``requests`` session
            call_timeout: Seconds a logical call may take before retrying stops
            sleep: Blocking sleep used for backoff
            clock: Monotonic clock used for call deadlines
        """
        if credentials is None and authorizer is None:
            credentials = resolve_credentials()

        if endpoint is None and isinstance(credentials, ClientCredentials):
            endpoint = credentials.api_endpoint

        self.config = config or ClientConfig()
        if endpoint:
            self.config = ClientConfig(
                endpoint=endpoint,
                timeout=self.config.timeout,
                verify_ssl=self.config.verify_ssl,
                user_agent=self.config.user_agent
            )

        self.credentials = credentials
        self.transport = transport or RequestsTransport(self.config)
        self.authorizer = authorizer or self._create_authorizer(credentials)
        self.call_timeout = call_timeout
        self.clock = clock
        self.executor = ResilientExecutor(
            self.transport,
            self.authorizer,
            retry_policy,
            timeout=self.config.timeout,
            sleep=sleep,
            clock=clock
        )

        logger.info(f"LAS client initialized for {self.config.endpoint}")

    def _create_authorizer(self, credentials: Union[Credentials, ClientCredentials]) -> Authorizer:
        if isinstance(credentials, ClientCredentials):
            grant = ClientCredentialsGrant(credentials, timeout=self.config.timeout)
            return BearerTokenAuthorizer(credentials, TokenCache(grant))
        return SigV4Authorizer(credentials)

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    def _deadline(self) -> Optional[float]:
        if self.call_timeout is None:
            return None
        return self.clock() + self.call_timeout

    def _json_call(self, method: str, path: str, payload: Any = None) -> Any:
        url = self.config.url(path)

        def build_request() -> HttpRequest:
            return json_request(method, url, payload)

        return self.executor.execute(build_request, deadline=self._deadline())

    def post_documents(
        self,
        content: bytes,
        content_type: str,
        consent_id: str,
        batch_id: Optional[str] = None,
        feedback: Optional[Feedback] = None
    ) -> Any:
        """
        Create a document, calls the POST /documents endpoint.

        Args:
            content: Raw document bytes, sent base64 encoded
            content_type: Mime type of the document
            consent_id: Identifier marking the owner of the document
            batch_id: Batch to add the document to
            feedback: Ground truth values for the document

        Returns:
            Response with documentId, contentType and consentId
        """
        payload: Dict[str, Any] = {
            'content': base64.b64encode(content).decode('ascii'),
            'contentType': content_type,
            'consentId': consent_id,
        }
        if batch_id:
            payload['batchId'] = batch_id
        if feedback is not None:
            payload['feedback'] = feedback

        return self._json_call('POST', '/documents', payload)

    def put_document(
        self,
        document_path: Union[str, Path],
        content_type: str,
        presigned_url: str,
        additional_headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        Upload a document to a presigned url.

        The presigned url carries its own authorization in the query string,
        so the request is sent unsigned.

        Args:
            document_path: Path to the document to upload
            content_type: Mime type of the document
            presigned_url: Upload url
            additional_headers: Extra headers to send with the upload

        Returns:
            The decoded response, None when the body is empty
        """
        body = Path(document_path).read_bytes()
        headers = {'Content-Type': content_type}
        if additional_headers:
            headers.update(additional_headers)

        def build_request() -> HttpRequest:
            return HttpRequest('PUT', presigned_url, dict(headers), body)

        return self.executor.execute(build_request, authorize=False, deadline=self._deadline())

    def post_predictions(
        self,
        document_id: str,
        model_name: str,
        auto_rotate: bool = False,
        max_pages: int = 0
    ) -> Any:
        """
        Run inference and create a prediction, calls the POST /predictions endpoint.

        Args:
            document_id: Document to run inference on
            model_name: Name of the model, e.g. invoice
            auto_rotate: Whether the model should rotate the document
            max_pages: Page limit for multi-page documents (0 for no limit)

        Returns:
            Response with documentId and predictions
        """
        payload: Dict[str, Any] = {
            'documentId': document_id,
            'modelName': model_name,
            'autoRotate': auto_rotate,
        }
        if max_pages != 0:
            payload['maxPages'] = max_pages

        return self._json_call('POST', '/predictions', payload)

    def post_batches(self, description: str) -> Any:
        """
        Create a batch for documents, calls the POST /batches endpoint.

        Returns:
            Response with batchId and description
        """
        return self._json_call('POST', '/batches', {'description': description})

    def post_document_id(self, document_id: str, feedback: Feedback) -> Any:
        """
        Post ground truth for a document, calls the POST /documents/{documentId} endpoint.

        Args:
            document_id: Document the feedback belongs to
            feedback: Items such as {"label": "total_amount", "value": "54.50"}

        Returns:
            Response with documentId, consentId, uploadUrl, contentType and feedback
        """
        path = '/documents/' + quote(document_id, safe='')
        return self._json_call('POST', path, {'feedback': feedback})

    def delete_consent_id(self, consent_id: str) -> Any:
        """
        Delete documents with this consent id, calls the DELETE /consents/{consentId} endpoint.

        Returns:
            Response with consentId and documentIds
        """
        path = '/consents/' + quote(consent_id, safe='')
        return self._json_call('DELETE', path, {})

    def close(self):
        """Close the underlying transport."""
        close = getattr(self.transport, 'close', None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
