"""
Hash primitives for request signing

SHA-256 digests and HMAC-SHA256 keyed hashes, plus the iterated key
derivation used by Signature Version 4.
"""

import hashlib
from typing import Iterable, Union

from cryptography.hazmat.primitives import hashes, hmac

from .types import SCOPE_TERMINATOR


def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def to_hex(data: bytes) -> str:
    """Lowercase hexadecimal encoding of ``data``."""
    return data.hex()


def sha256_digest(data: Union[str, bytes]) -> bytes:
    return hashlib.sha256(_to_bytes(data)).digest()


def sha256_hex(data: Union[str, bytes]) -> str:
    """
    Hex-encoded SHA-256 of ``data``.

    Args:
        data: Bytes, or a string which is encoded as UTF-8

    Returns:
        str: 64 lowercase hex characters
    """
    return to_hex(sha256_digest(data))


def hmac_sha256(key: Union[str, bytes], message: Union[str, bytes]) -> bytes:
    """
    HMAC-SHA256 of ``message`` keyed with ``key``.

    Args:
        key: HMAC key
        message: Message to authenticate

    Returns:
        bytes: 32-byte MAC
    """
    mac = hmac.HMAC(_to_bytes(key), hashes.SHA256())
    mac.update(_to_bytes(message))
    return mac.finalize()


def hmac_sha256_hex(key: Union[str, bytes], message: Union[str, bytes]) -> str:
    return to_hex(hmac_sha256(key, message))


def chain_hmac(key: bytes, parts: Iterable[str]) -> bytes:
    """Key successively through ``parts``; each MAC becomes the next key."""
    for part in parts:
        key = hmac_sha256(key, part)
    return key


def derive_signing_key(secret_access_key: str, date_stamp: str, region: str, service: str) -> bytes:
    """
    Derive the Signature Version 4 signing key.

    Args:
        secret_access_key: Secret access key
        date_stamp: Date in YYYYMMDD form
        region: Region name
        service: Service name

    Returns:
        bytes: Derived signing key
    """
    return chain_hmac(
        _to_bytes("AWS4" + secret_access_key),
        [date_stamp, region, service, SCOPE_TERMINATOR]
    )
