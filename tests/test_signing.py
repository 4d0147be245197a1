"""
Tests for request signing and key loading.
"""

import base64

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa

from edgetrader.clients.signing import RequestSigner, load_private_key
from edgetrader.errors import AuthFailure, KeyLoadError


@pytest.fixture(scope="module")
def rsa_key():
    """RSA key generated for the test run."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def pem(key, fmt) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=fmt,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode()


def strip_envelope(text: str) -> str:
    return "".join(line for line in text.splitlines() if "-----" not in line)


def verify(key, signature_b64: str, message: bytes) -> None:
    key.public_key().verify(
        base64.b64decode(signature_b64),
        message,
        padding.PSS(mgf=padding.MGF1(hashes.SHA256()), salt_length=32),
        hashes.SHA256(),
    )


class TestLoadPrivateKey:
    """Tests for ordered key container parsing."""

    def test_pkcs8_pem(self, rsa_key):
        key = load_private_key(pem(rsa_key, serialization.PrivateFormat.PKCS8))

        assert key.private_numbers() == rsa_key.private_numbers()

    def test_pkcs1_pem(self, rsa_key):
        key = load_private_key(pem(rsa_key, serialization.PrivateFormat.TraditionalOpenSSL))

        assert key.private_numbers() == rsa_key.private_numbers()

    def test_headerless_pkcs1_body(self, rsa_key):
        """Bare base64 body without BEGIN/END lines."""
        body = strip_envelope(pem(rsa_key, serialization.PrivateFormat.TraditionalOpenSSL))

        assert load_private_key(body).private_numbers() == rsa_key.private_numbers()

    def test_headerless_pkcs8_body(self, rsa_key):
        body = strip_envelope(pem(rsa_key, serialization.PrivateFormat.PKCS8))

        assert load_private_key(body).private_numbers() == rsa_key.private_numbers()

    def test_single_line_body(self, rsa_key):
        """Whitespace inside the body is ignored."""
        body = strip_envelope(pem(rsa_key, serialization.PrivateFormat.PKCS8))

        assert load_private_key(" " + body.replace("\n", "") + "\n").key_size == 2048

    def test_garbage_lists_every_attempt(self):
        """All parsers failing raises KeyLoadError naming each."""
        with pytest.raises(KeyLoadError) as exc_info:
            load_private_key("not a key at all")

        names = [name for name, _ in exc_info.value.attempts]
        assert names == ["pem", "pkcs1-body", "pkcs8-body", "der"]
        assert isinstance(exc_info.value, AuthFailure)

    def test_empty_key(self):
        with pytest.raises(KeyLoadError):
            load_private_key("   ")

    def test_rejects_non_rsa_key(self):
        """EC keys parse but are not usable for signing."""
        ec_key = ec.generate_private_key(ec.SECP256R1())

        with pytest.raises(KeyLoadError) as exc_info:
            load_private_key(pem(ec_key, serialization.PrivateFormat.PKCS8))

        assert "not an RSA key" in str(exc_info.value)


class TestRequestSigner:
    """Tests for header generation."""

    def test_message_strips_query(self):
        message = RequestSigner.message("1700000000000", "get", "/trade-api/v2/markets?limit=50&status=open")

        assert message == b"1700000000000GET/trade-api/v2/markets"

    def test_message_from_full_url(self):
        message = RequestSigner.message("1", "POST", "https://host.example/trade-api/v2/portfolio/orders?x=1")

        assert message == b"1POST/trade-api/v2/portfolio/orders"

    def test_headers_verify(self, rsa_key):
        """Signature verifies with RSA-PSS, SHA-256 and 32-byte salt."""
        signer = RequestSigner("key-123", rsa_key, clock=lambda: 1700000000.5)

        headers = signer.headers("GET", "/trade-api/v2/portfolio/balance")

        assert headers["KALSHI-ACCESS-KEY"] == "key-123"
        assert headers["KALSHI-ACCESS-TIMESTAMP"] == "1700000000500"
        verify(rsa_key, headers["KALSHI-ACCESS-SIGNATURE"], b"1700000000500GET/trade-api/v2/portfolio/balance")

    def test_signature_bound_to_path(self, rsa_key):
        """A signature does not verify for another path."""
        signer = RequestSigner("key-123", rsa_key, clock=lambda: 1.0)
        headers = signer.headers("GET", "/trade-api/v2/portfolio/balance")

        with pytest.raises(InvalidSignature):
            verify(rsa_key, headers["KALSHI-ACCESS-SIGNATURE"], b"1000GET/trade-api/v2/markets")

    def test_fresh_timestamp_per_request(self, rsa_key):
        ticks = iter([1.0, 2.0])
        signer = RequestSigner("k", rsa_key, clock=lambda: next(ticks))

        first = signer.headers("GET", "/a")
        second = signer.headers("GET", "/a")

        assert first["KALSHI-ACCESS-TIMESTAMP"] == "1000"
        assert second["KALSHI-ACCESS-TIMESTAMP"] == "2000"

    def test_from_pem(self, rsa_key):
        signer = RequestSigner.from_pem("k", pem(rsa_key, serialization.PrivateFormat.PKCS8))

        assert signer.key_id == "k"
