"""
HMAC-SHA256 signing and verification of webhook payloads.

Signatures are always computed over the exact bytes received. Parsing the
body and serialising it again may reorder keys or change whitespace, which
breaks verification.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from cryptography.hazmat.primitives import constant_time, hashes, hmac

from transvoucher.core.exceptions import SignatureFormatError
from transvoucher.core.logging import get_logger

logger = get_logger("webhooks.signature")

DIGEST_SIZE = hashes.SHA256.digest_size

_HEX_RE = re.compile(r"^[0-9a-f]+$")


@dataclass(frozen=True)
class Signature:
    """A hex-encoded HMAC-SHA256 digest in canonical ``sha256=<hex>`` form."""

    PREFIX = "sha256="

    hex_digest: str

    def __str__(self) -> str:
        return f"{self.PREFIX}{self.hex_digest}"

    def digest(self) -> bytes:
        """Decoded digest bytes. Raises ValueError for non-hex content."""
        return bytes.fromhex(self.hex_digest)


def _to_bytes(value: str | bytes) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


def _compute(secret: str | bytes, raw_body: str | bytes) -> bytes:
    mac = hmac.HMAC(_to_bytes(secret), hashes.SHA256())
    mac.update(_to_bytes(raw_body))
    return mac.finalize()


def sign(secret: str | bytes, raw_body: str | bytes) -> Signature:
    """
    Sign a raw payload.

    Args:
        secret: Shared webhook secret
        raw_body: Exact request body; a str is UTF-8 encoded as-is

    Returns:
        Signature in canonical ``sha256=<lowercase hex>`` form
    """
    return Signature(_compute(secret, raw_body).hex())


def extract_signature(header: str | bytes | None) -> Signature:
    """
    Normalise a signature header.

    Accepts ``sha256=<hex>`` or a comma-separated ``key=value`` list with a
    ``v1=<hex>`` entry (``t=1690000000,v1=<hex>``). Raw ``bytes`` header
    values, as ASGI servers deliver them, must be ASCII.

    Raises:
        SignatureFormatError: If the header is empty or matches neither form
    """
    if isinstance(header, bytes):
        try:
            header = header.decode("ascii")
        except UnicodeDecodeError:
            raise SignatureFormatError("Signature header must be ASCII") from None
    if not isinstance(header, str) or not header.strip():
        raise SignatureFormatError("Signature header is required")

    header = header.strip()
    candidate = None
    if header.startswith(Signature.PREFIX):
        candidate = header[len(Signature.PREFIX):]
    else:
        for part in header.split(","):
            key, sep, value = part.strip().partition("=")
            if sep and key == "v1":
                candidate = value.strip()
                break

    if candidate is None:
        raise SignatureFormatError("Invalid signature header format")
    if not _HEX_RE.match(candidate):
        raise SignatureFormatError("Signature digest must be lowercase hex")

    return Signature(candidate)


def matches(secret: str | bytes, raw_body: str | bytes, signature: Signature) -> bool:
    """
    Compare an already extracted signature against the payload.

    Never raises. Digest content is compared in constant time.
    """
    try:
        provided = signature.digest()
    except ValueError:
        return False

    # Digest length is public, only the content comparison must be constant-time
    if len(provided) != DIGEST_SIZE:
        return False

    try:
        expected = _compute(secret, raw_body)
    except (TypeError, ValueError) as e:
        logger.error(f"Could not compute webhook signature: {type(e).__name__}")
        return False

    return constant_time.bytes_eq(provided, expected)


def verify(
    secret: str | bytes, raw_body: str | bytes, provided_header: str | bytes | None
) -> bool:
    """
    Verify a payload against a signature header.

    Never raises: malformed headers, wrong-length digests and internal
    failures all yield False.
    """
    try:
        signature = extract_signature(provided_header)
    except SignatureFormatError:
        return False
    return matches(secret, raw_body, signature)
