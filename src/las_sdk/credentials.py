"""
Credential loading for LAS Python SDK

Credentials can be given explicitly, read from environment variables or
read from an INI credentials file (``~/.lucidtech/credentials.cfg`` by
default). Two credential variants exist: signing credentials for
Signature Version 4 and OAuth client credentials for bearer tokens.
"""

import configparser
import logging
import os
import threading
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from .exceptions import ClientError, ErrorKind, ValidationError
from .signing.types import API_KEY_HEADER

logger = logging.getLogger(__name__)

DEFAULT_SECTION = "default"

# Environment variable names
ENV_ACCESS_KEY_ID = "LAS_ACCESS_KEY_ID"
ENV_SECRET_ACCESS_KEY = "LAS_SECRET_ACCESS_KEY"
ENV_API_KEY = "LAS_API_KEY"
ENV_CLIENT_ID = "LAS_CLIENT_ID"
ENV_CLIENT_SECRET = "LAS_CLIENT_SECRET"
ENV_AUTH_ENDPOINT = "LAS_AUTH_ENDPOINT"
ENV_API_ENDPOINT = "LAS_API_ENDPOINT"


def default_credentials_path() -> Path:
    """Default location of the credentials file."""
    return Path.home() / ".lucidtech" / "credentials.cfg"


def read_credentials_file(
    path: Optional[Union[str, Path]],
    keys: Sequence[str],
    section: str = DEFAULT_SECTION
) -> Dict[str, str]:
    """
    Read credential values from an INI file.

    Args:
        path: Credentials file (default location if None)
        keys: Option names to read from the section
        section: Section holding the credentials

    Returns:
        dict: Option name to value for every key in ``keys``

    Raises:
        ClientError: INVALID_CREDENTIALS if the file, section or an option is missing
    """
    path = Path(path) if path else default_credentials_path()
    parser = configparser.ConfigParser(interpolation=None)

    try:
        read_files = parser.read(path, encoding="utf-8")
    except configparser.Error as e:
        raise ClientError.invalid_credentials(
            f"Failed to parse credentials file {path}: {e}",
            details={"path": str(path)}
        ) from e

    if not read_files:
        raise ClientError.invalid_credentials(
            f"Credentials file not found: {path}",
            details={"path": str(path)}
        )

    if not parser.has_section(section):
        raise ClientError.invalid_credentials(
            f"Credentials file {path} has no [{section}] section",
            details={"path": str(path), "section": section}
        )

    values = {key: parser.get(section, key, fallback="").strip() for key in keys}
    missing = [key for key, value in values.items() if not value]
    if missing:
        raise ClientError.invalid_credentials(
            f"Credentials file {path} is missing: {', '.join(missing)}",
            details={"path": str(path), "missing": missing}
        )

    logger.debug(f"Read credentials from {path} [{section}]")
    return values


def _empty_fields(instance) -> List[str]:
    return [f.name for f in fields(instance) if not getattr(instance, f.name)]


@dataclass(frozen=True)
class Credentials:
    """
    Signing credentials for Signature Version 4.

    Attributes:
        access_key_id: Access key id
        secret_access_key: Secret access key
        api_key: API gateway key, sent and signed as ``api_key_header``
        api_key_header: Header name carrying the key (x-api-key by default)
    """
    access_key_id: str
    secret_access_key: str = field(repr=False)
    api_key: str = field(repr=False)
    api_key_header: str = API_KEY_HEADER

    def missing_fields(self) -> List[str]:
        return _empty_fields(self)

    def validate(self) -> None:
        """
        Check that no field is empty.

        Raises:
            ClientError: INVALID_CREDENTIALS naming the empty fields
        """
        missing = self.missing_fields()
        if missing:
            raise ClientError.invalid_credentials(
                f"One or more of the credentials are empty: {', '.join(missing)}",
                details={"missing": missing}
            )

    def signing_header(self) -> Tuple[str, str]:
        """The key header as (lower-case name, value)."""
        return self.api_key_header.lower(), self.api_key

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None, section: str = DEFAULT_SECTION) -> 'Credentials':
        values = read_credentials_file(path, ["access_key_id", "secret_access_key", "api_key"], section)
        return cls(
            access_key_id=values["access_key_id"],
            secret_access_key=values["secret_access_key"],
            api_key=values["api_key"]
        )

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> 'Credentials':
        """
        Read credentials from LAS_ACCESS_KEY_ID, LAS_SECRET_ACCESS_KEY and LAS_API_KEY.

        Raises:
            ClientError: INVALID_CREDENTIALS if any variable is unset or empty
        """
        environ = os.environ if environ is None else environ
        credentials = cls(
            access_key_id=environ.get(ENV_ACCESS_KEY_ID, ""),
            secret_access_key=environ.get(ENV_SECRET_ACCESS_KEY, ""),
            api_key=environ.get(ENV_API_KEY, "")
        )
        credentials.validate()
        return credentials


@dataclass(frozen=True)
class ClientCredentials:
    """
    OAuth client credentials used to obtain bearer tokens.

    Attributes:
        client_id: OAuth client id
        client_secret: OAuth client secret
        api_key: API gateway key
        auth_endpoint: Host of the token endpoint
        api_endpoint: Base URL of the API
    """
    client_id: str
    client_secret: str = field(repr=False)
    api_key: str = field(repr=False)
    auth_endpoint: str
    api_endpoint: str

    def missing_fields(self) -> List[str]:
        return _empty_fields(self)

    def validate(self) -> None:
        missing = self.missing_fields()
        if missing:
            raise ClientError.invalid_credentials(
                f"One or more of the credentials are empty: {', '.join(missing)}",
                details={"missing": missing}
            )

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]] = None, section: str = DEFAULT_SECTION) -> 'ClientCredentials':
        values = read_credentials_file(
            path,
            ["client_id", "client_secret", "api_key", "auth_endpoint", "api_endpoint"],
            section
        )
        return cls(**values)

    @classmethod
    def from_environment(cls, environ: Optional[Mapping[str, str]] = None) -> 'ClientCredentials':
        environ = os.environ if environ is None else environ
        credentials = cls(
            client_id=environ.get(ENV_CLIENT_ID, ""),
            client_secret=environ.get(ENV_CLIENT_SECRET, ""),
            api_key=environ.get(ENV_API_KEY, ""),
            auth_endpoint=environ.get(ENV_AUTH_ENDPOINT, ""),
            api_endpoint=environ.get(ENV_API_ENDPOINT, "")
        )
        credentials.validate()
        return credentials


class CredentialSource(Protocol):
    """Anything that can produce signing credentials"""

    def load(self) -> Credentials:
        ...


class StaticCredentialSource:
    """Credentials supplied in memory."""

    def __init__(self, credentials: Credentials):
        self._credentials = credentials

    def load(self) -> Credentials:
        self._credentials.validate()
        return self._credentials


class EnvironmentCredentialSource:
    """Credentials read from LAS_* environment variables."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def load(self) -> Credentials:
        return Credentials.from_environment(self._environ)


class FileCredentialSource:
    """Credentials read from an INI credentials file."""

    def __init__(self, path: Optional[Union[str, Path]] = None, section: str = DEFAULT_SECTION):
        self.path = path
        self.section = section

    def load(self) -> Credentials:
        return Credentials.from_file(self.path, self.section)


class ChainCredentialSource:
    """
    Try several sources in order; the first one yielding valid credentials wins.
    """

    def __init__(self, sources: Sequence[CredentialSource]):
        if not sources:
            raise ValidationError("At least one credential source is required")
        self.sources = list(sources)

    def load(self) -> Credentials:
        """
        Load credentials from the first source that succeeds.

        Raises:
            ClientError: INVALID_CREDENTIALS from the last source if none succeeds
        """
        last_error: Optional[ClientError] = None
        for source in self.sources:
            try:
                return source.load()
            except ClientError as e:
                if e.kind is not ErrorKind.INVALID_CREDENTIALS:
                    raise
                logger.debug(f"Credential source {type(source).__name__} unavailable: {e.message}")
                last_error = e
        if last_error is None:
            raise ClientError.invalid_credentials("No credential source yielded credentials")
        raise last_error


def resolve_credentials(
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    api_key: Optional[str] = None,
    credentials_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None
) -> Credentials:
    """
    Resolve signing credentials.

    Explicit values are used when all three are given; otherwise the
    environment is tried, then the credentials file.

    Args:
        access_key_id: Explicit access key id
        secret_access_key: Explicit secret access key
        api_key: Explicit API key
        credentials_path: Credentials file (default location if None)
        environ: Environment mapping (os.environ if None)

    Returns:
        Credentials: Validated credentials

    Raises:
        ClientError: INVALID_CREDENTIALS if no source yields credentials
    """
    sources: List[CredentialSource] = []
    if access_key_id and secret_access_key and api_key:
        sources.append(StaticCredentialSource(Credentials(access_key_id, secret_access_key, api_key)))
    sources.append(EnvironmentCredentialSource(environ))
    sources.append(FileCredentialSource(credentials_path))
    return ChainCredentialSource(sources).load()


@dataclass(frozen=True)
class AccessToken:
    """Bearer token and the UTC instant it stops being valid"""
    token: str = field(repr=False)
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return not self.token or now >= self.expires_at

    @classmethod
    def from_expires_in(cls, token: str, expires_in: float, now: datetime) -> 'AccessToken':
        return cls(token=token, expires_at=now + timedelta(seconds=expires_in))


TokenFetcher = Callable[[datetime], AccessToken]


class TokenCache:
    """
    Single cached bearer token.

    Reading never refreshes; callers check ``current(now)`` and call
    ``refresh(now)`` explicitly when it returns None. Refreshes are
    serialized by a lock and re-check expiry inside it, so a thread that
    waited on the lock reuses the token another thread just fetched.
    """

    def __init__(self, fetcher: TokenFetcher):
        self._fetcher = fetcher
        self._lock = threading.Lock()
        self._token: Optional[AccessToken] = None

    def current(self, now: datetime) -> Optional[str]:
        """The cached token if it is still valid at ``now``, else None."""
        token = self._token
        if token is None or token.is_expired(now):
            return None
        return token.token

    def refresh(self, now: datetime) -> str:
        """
        Fetch a new token unless a valid one was stored meanwhile.

        Returns:
            str: A token valid at ``now``
        """
        with self._lock:
            token = self._token
            if token is not None and not token.is_expired(now):
                return token.token

            new_token = self._fetcher(now)
            self._token = new_token
            logger.info(f"Access token refreshed, valid until {new_token.expires_at.isoformat()}")
            return new_token.token

    def clear(self) -> None:
        with self._lock:
            self._token = None
