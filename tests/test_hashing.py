"""
Tests for the SHA-256 and HMAC-SHA256 primitives used by request signing
"""

import pytest

from las_sdk.signing.hashing import (
    chain_hmac,
    derive_signing_key,
    hmac_sha256,
    hmac_sha256_hex,
    sha256_hex,
    to_hex,
)


class TestSha256:
    """Test SHA-256 hashing"""

    def test_empty_input(self):
        assert sha256_hex(b"") == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

    def test_str_is_hashed_as_utf8(self):
        assert sha256_hex("hello") == sha256_hex("hello".encode("utf-8"))

    def test_output_is_lowercase_hex(self):
        digest = sha256_hex(b"anything")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)


class TestHmacSha256:
    """Test HMAC-SHA256 against fixed vectors"""

    @pytest.mark.parametrize("key,message,expected", [
        ("hello", "goodbye", "8148a089d169a89a3ef0b22a6eb9abc1d57e7073a737c90a0378cf2c4e3994de"),
        ("aws-signing-key", "testString", "744946f64d8580b720d51c35cfefbd349cf79668d2e8689a0dc4f2fd1273e153"),
        ("12307875849320", "123456472890", "301f69db9dd8b78f9b25a6650fb766745c927907185a884628b7bdc565e823e7"),
        ("56789$%&)*(}|}", "$%^&&*()__&$#$%^**(", "3d3bb37211f46ba09ff61a923b7dc21db17c6f4b2f03324c32d70fd6900243f3"),
    ])
    def test_known_vectors(self, key, message, expected):
        assert hmac_sha256_hex(key, message) == expected

    def test_bytes_and_str_agree(self):
        assert hmac_sha256(b"hello", b"goodbye") == hmac_sha256("hello", "goodbye")

    def test_mac_length(self):
        assert len(hmac_sha256("k", "m")) == 32

    def test_key_and_message_are_not_interchangeable(self):
        assert hmac_sha256_hex("goodbye", "hello") != hmac_sha256_hex("hello", "goodbye")


class TestSigningKey:
    """Test signing key derivation"""

    def test_published_example(self):
        key = derive_signing_key(
            "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY", "20120215", "us-east-1", "iam"
        )
        assert to_hex(key) == "f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d"

    def test_las_scope(self):
        key = derive_signing_key(
            "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY", "20190314", "eu-west-1", "execute-api"
        )
        assert to_hex(key) == "a662392d04f1d724e549dc740addcd8d9a1481df13c45b52b6e7b4632dd9ba9b"

    def test_chain_matches_manual_nesting(self):
        manual = hmac_sha256(hmac_sha256(b"AWS4secret", "20190314"), "eu-west-1")
        assert chain_hmac(b"AWS4secret", ["20190314", "eu-west-1"]) == manual

    def test_date_changes_key(self):
        first = derive_signing_key("secret", "20190314", "eu-west-1", "execute-api")
        second = derive_signing_key("secret", "20190315", "eu-west-1", "execute-api")
        assert first != second
