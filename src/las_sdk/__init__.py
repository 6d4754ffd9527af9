"""
LAS Python SDK
Client for Lucidtech AI Services with Signature Version 4 request signing
"""

from .version import __version__
from .exceptions import (
    LasSDKError,
    ValidationError,
    TransportError,
    ClientError,
    ErrorKind,
)
from .credentials import (
    Credentials,
    ClientCredentials,
    CredentialSource,
    StaticCredentialSource,
    EnvironmentCredentialSource,
    FileCredentialSource,
    ChainCredentialSource,
    AccessToken,
    TokenCache,
    read_credentials_file,
    resolve_credentials,
)
from .http_client import (
    ClientConfig,
    HttpRequest,
    HttpResponse,
    Transport,
    RequestsTransport,
    json_request,
)
from .auth import (
    Authorizer,
    SigV4Authorizer,
    BearerTokenAuthorizer,
    ClientCredentialsGrant,
)
from .classifier import (
    Classification,
    classify,
    classify_status,
)
from .retry import (
    RetryPolicy,
    RetryDecision,
    Success,
    RetryAfter,
    Fatal,
    ResilientExecutor,
    decide,
    decode_json,
)
from .client import Client
from .api_client import (
    ApiClient,
    Prediction,
    FeedbackResponse,
    RevokeResponse,
    get_content_type,
)
from .signing import (
    SigV4Signer,
    SignatureResult,
    SigningInput,
    sign_request,
)

__all__ = [
    '__version__',
    # Errors
    'LasSDKError',
    'ValidationError',
    'TransportError',
    'ClientError',
    'ErrorKind',
    # Credentials
    'Credentials',
    'ClientCredentials',
    'CredentialSource',
    'StaticCredentialSource',
    'EnvironmentCredentialSource',
    'FileCredentialSource',
    'ChainCredentialSource',
    'AccessToken',
    'TokenCache',
    'read_credentials_file',
    'resolve_credentials',
    # Transport
    'ClientConfig',
    'HttpRequest',
    'HttpResponse',
    'Transport',
    'RequestsTransport',
    'json_request',
    # Authorization
    'Authorizer',
    'SigV4Authorizer',
    'BearerTokenAuthorizer',
    'ClientCredentialsGrant',
    # Classification and retry
    'Classification',
    'classify',
    'classify_status',
    'RetryPolicy',
    'RetryDecision',
    'Success',
    'RetryAfter',
    'Fatal',
    'ResilientExecutor',
    'decide',
    'decode_json',
    # Clients
    'Client',
    'ApiClient',
    'Prediction',
    'FeedbackResponse',
    'RevokeResponse',
    'get_content_type',
    # Signing
    'SigV4Signer',
    'SignatureResult',
    'SigningInput',
    'sign_request',
]
