"""
Utility functions for request signing

This module provides nonce and timestamp generation, URL decomposition for
canonical strings, HMAC algorithm resolution and small encoding helpers.
"""

import base64
import hashlib
import re
import secrets
import string
import time
from typing import Dict, Optional, Union
from urllib.parse import urlsplit

from ..exceptions import (
    DigestUnavailableError,
    ErrorCodes,
    UnsupportedAlgorithmError,
    ValidationError,
)
from .types import CHARSET, NONCE_LENGTH

NONCE_ALPHABET = string.ascii_letters + string.digits

DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}

# Normalized identifier -> hashlib name
SUPPORTED_HMAC_ALGORITHMS = {
    'sha1': 'sha1',
    'sha224': 'sha224',
    'sha256': 'sha256',
    'sha384': 'sha384',
    'sha512': 'sha512',
}


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """
    Generate a random alphanumeric nonce from a cryptographically secure source.

    Args:
        length: Number of characters

    Returns:
        str: Nonce string
    """
    return ''.join(secrets.choice(NONCE_ALPHABET) for _ in range(length))


def generate_timestamp() -> int:
    """
    Generate current Unix timestamp.

    Returns:
        int: Current Unix timestamp (seconds since epoch)
    """
    return int(time.time())


def validate_nonce(nonce: str) -> bool:
    """
    Validate nonce format (non-empty, alphanumeric).

    Args:
        nonce: Nonce string to validate

    Returns:
        bool: True if nonce is usable in a Hawk header
    """
    if not isinstance(nonce, str):
        return False

    return bool(re.fullmatch(r'[A-Za-z0-9]+', nonce))


def validate_timestamp(timestamp: int) -> bool:
    """
    Validate timestamp (should be a positive whole number of seconds).

    Args:
        timestamp: Unix timestamp to validate

    Returns:
        bool: True if timestamp is valid
    """
    if isinstance(timestamp, bool) or not isinstance(timestamp, int):
        return False

    return timestamp > 0


def is_blank(value: Optional[str]) -> bool:
    """True for None, empty, or whitespace-only strings."""
    return value is None or not str(value).strip()


def parse_url(url: str) -> Dict[str, Union[str, int]]:
    """
    Split a URL into the parts a Hawk canonical string needs.

    Path and query are returned exactly as they appear in the URL, still
    percent-encoded.

    Args:
        url: Absolute request URL

    Returns:
        dict: Parsed components:
            - scheme: lowercase scheme
            - host: lowercase hostname
            - port: explicit port, or the scheme default
            - pathname: raw path ("/" when empty)
            - query: raw query string without "?" (may be empty)
            - resource: pathname plus "?query" when a query is present

    Raises:
        ValidationError: If the URL is not an absolute http(s) URL
    """
    try:
        parsed = urlsplit(url)
        port = parsed.port
    except ValueError as e:
        raise ValidationError(
            f"Failed to parse URL: {e}",
            ErrorCodes.INVALID_URL,
            {"url": url}
        ) from e

    scheme = parsed.scheme.lower()
    if scheme not in DEFAULT_PORTS:
        raise ValidationError(
            f"Unsupported URL scheme: {parsed.scheme or '(none)'}",
            ErrorCodes.INVALID_URL,
            {"url": url, "scheme": parsed.scheme}
        )

    if not parsed.hostname:
        raise ValidationError(
            f"Invalid URL format: {url}",
            ErrorCodes.INVALID_URL,
            {"url": url}
        )

    pathname = parsed.path or "/"
    resource = f"{pathname}?{parsed.query}" if parsed.query else pathname

    return {
        "scheme": scheme,
        "host": parsed.hostname,
        "port": port if port is not None else DEFAULT_PORTS[scheme],
        "pathname": pathname,
        "query": parsed.query,
        "resource": resource,
    }


def normalize_mime_type(content_type: Optional[str]) -> str:
    """
    Strip parameters (";charset=...") and surrounding whitespace from a
    content type.
    """
    if not content_type:
        return ""
    return content_type.split(';', 1)[0].strip()


def resolve_hmac_algorithm(algorithm: str) -> str:
    """
    Map an algorithm identifier onto a hashlib digest name.

    Accepts "sha256", "SHA-256", "hmac-sha256", "HmacSHA256" and similar.

    Args:
        algorithm: Configured identifier

    Returns:
        str: hashlib digest name usable as hmac digestmod

    Raises:
        UnsupportedAlgorithmError: If no digest matches the identifier
        DigestUnavailableError: If the digest is known but missing from this runtime
    """
    normalized = algorithm.strip().lower().replace('-', '').replace('_', '')
    if normalized.startswith('hmac'):
        normalized = normalized[len('hmac'):]

    digest_name = SUPPORTED_HMAC_ALGORITHMS.get(normalized)
    if digest_name is None:
        raise UnsupportedAlgorithmError(algorithm)

    if digest_name not in hashlib.algorithms_available:
        raise DigestUnavailableError(
            f"Digest {digest_name} is not available in this runtime",
            {"algorithm": algorithm}
        )

    return digest_name


def to_base64(data: bytes) -> str:
    """Standard (padded) base64 as an ASCII string."""
    return base64.b64encode(data).decode('ascii')


def encode_utf8(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode(CHARSET)
