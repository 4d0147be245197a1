"""
RSA-PSS request signing for the Kalshi trading API.

Each request carries three headers:
    KALSHI-ACCESS-KEY        API key id
    KALSHI-ACCESS-TIMESTAMP  milliseconds since epoch, as a string
    KALSHI-ACCESS-SIGNATURE  base64(RSA-PSS-SHA256(timestamp + METHOD + path))

The path is signed without its query string.
"""

import base64
import re
import time
from typing import Callable, Optional
from urllib.parse import urlsplit

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..errors import KeyLoadError
from ..utils.logger import get_logger

logger = get_logger("signing")

_ENVELOPE = re.compile(r"-----(BEGIN|END) [A-Z ]*PRIVATE KEY-----")


def _key_body(text: str) -> str:
    """Base64 body with envelope lines and whitespace removed."""
    return re.sub(r"\s+", "", _ENVELOPE.sub("", text))


def _wrap(body: str, label: str) -> bytes:
    lines = [body[i:i + 64] for i in range(0, len(body), 64)]
    return ("-----BEGIN %s-----\n%s\n-----END %s-----\n" % (label, "\n".join(lines), label)).encode()


def _parse_pem(text: str):
    """Key pasted with its BEGIN/END lines (PKCS#1 or PKCS#8)."""
    if "-----" not in text:
        raise ValueError("no PEM envelope")
    return serialization.load_pem_private_key(text.strip().encode(), password=None)


def _parse_headerless_pkcs1(text: str):
    """Bare base64 body of a traditional RSA key."""
    return serialization.load_pem_private_key(_wrap(_key_body(text), "RSA PRIVATE KEY"), password=None)


def _parse_headerless_pkcs8(text: str):
    """Bare base64 body of a PKCS#8 key."""
    return serialization.load_pem_private_key(_wrap(_key_body(text), "PRIVATE KEY"), password=None)


def _parse_der(text: str):
    """Body decoded as DER, whatever envelope it arrived in."""
    der = base64.b64decode(_key_body(text), validate=True)
    return serialization.load_der_private_key(der, password=None)


KeyParser = Callable[[str], object]

# Tried in order; the first parser that yields an RSA key wins.
KEY_PARSERS: list[tuple[str, KeyParser]] = [
    ("pem", _parse_pem),
    ("pkcs1-body", _parse_headerless_pkcs1),
    ("pkcs8-body", _parse_headerless_pkcs8),
    ("der", _parse_der),
]


def load_private_key(text: str) -> rsa.RSAPrivateKey:
    """
    Load an RSA private key from any supported container.

    Args:
        text: Key material, with or without BEGIN/END lines

    Returns:
        RSA private key

    Raises:
        KeyLoadError: every parser failed
    """
    attempts: list[tuple[str, str]] = []
    if not text or not text.strip():
        raise KeyLoadError([("input", "empty key")])

    for name, parser in KEY_PARSERS:
        try:
            key = parser(text)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            attempts.append((name, str(e) or e.__class__.__name__))
            continue
        if not isinstance(key, rsa.RSAPrivateKey):
            attempts.append((name, f"not an RSA key ({key.__class__.__name__})"))
            continue
        logger.debug(f"Private key loaded via {name}")
        return key

    raise KeyLoadError(attempts)


class RequestSigner:
    """
    Produces per-request authentication headers.

    Usage:
        signer = RequestSigner.from_pem(key_id, pem_text)
        headers = signer.headers("GET", "/trade-api/v2/portfolio/balance")
    """

    SALT_LENGTH = 32  # SHA-256 digest length

    def __init__(
        self,
        key_id: str,
        private_key: rsa.RSAPrivateKey,
        clock: Optional[Callable[[], float]] = None
    ):
        self.key_id = key_id
        self._private_key = private_key
        self._clock = clock or time.time

    @classmethod
    def from_pem(cls, key_id: str, key_text: str) -> "RequestSigner":
        return cls(key_id, load_private_key(key_text))

    @staticmethod
    def message(timestamp: str, method: str, path: str) -> bytes:
        """Bytes that get signed: timestamp + METHOD + path without query."""
        path_only = urlsplit(path).path if "://" in path else path.split("?")[0]
        return (timestamp + method.upper() + path_only).encode("utf-8")

    def sign(self, timestamp: str, method: str, path: str) -> str:
        signature = self._private_key.sign(
            self.message(timestamp, method, path),
            padding.PSS(
                mgf=padding.MGF1(hashes.SHA256()),
                salt_length=self.SALT_LENGTH,
            ),
            hashes.SHA256(),
        )
        return base64.b64encode(signature).decode("utf-8")

    def headers(self, method: str, path: str) -> dict[str, str]:
        """Fresh header triple for one request."""
        timestamp = str(int(self._clock() * 1000))
        return {
            "KALSHI-ACCESS-KEY": self.key_id,
            "KALSHI-ACCESS-TIMESTAMP": timestamp,
            "KALSHI-ACCESS-SIGNATURE": self.sign(timestamp, method, path),
        }
