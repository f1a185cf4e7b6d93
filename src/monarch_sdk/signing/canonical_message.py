"""
Canonical string construction for Hawk-style MAC authentication

This module builds the newline-delimited canonical request string, the
payload hash that binds body and content type into it, and the structured
Authorization header value that carries the resulting MAC.
"""

import hashlib
import hmac
from typing import Optional

from ..exceptions import DigestUnavailableError
from .types import (
    HAWK_HEADER_VERSION,
    HAWK_PAYLOAD_VERSION,
    RequestView,
)
from .utils import (
    encode_utf8,
    normalize_mime_type,
    parse_url,
    to_base64,
)


def calculate_payload_hash(content_type: Optional[str], body) -> str:
    """
    Hash the request body together with its MIME type.

    The hashed input is "hawk.1.payload\\n<mime>\\n<body>\\n" where mime is the
    content type without parameters. The body is used byte for byte.

    Args:
        content_type: Content-Type header value (parameters are stripped)
        body: Request body as str or bytes

    Returns:
        str: Base64 SHA-256 digest

    Raises:
        DigestUnavailableError: If SHA-256 is missing from the runtime
    """
    mime_type = normalize_mime_type(content_type)
    content = encode_utf8(body) if body is not None else b""

    payload = (
        encode_utf8(f"{HAWK_PAYLOAD_VERSION}\n{mime_type}\n")
        + content
        + b"\n"
    )

    try:
        digest = hashlib.sha256(payload).digest()
    except ValueError as e:
        raise DigestUnavailableError(
            f"Could not create payload hash: {e}",
            {"algorithm": "sha256"}
        ) from e

    return to_base64(digest)


class CanonicalStringBuilder:
    """
    Canonical string builder for Hawk v1 headers
    """

    def __init__(
        self,
        request: RequestView,
        timestamp: int,
        nonce: str,
        payload_hash: Optional[str] = None,
        ext: Optional[str] = None,
        app: Optional[str] = None,
    ):
        """
        Initialize canonical string builder.

        Args:
            request: Request being signed
            timestamp: Unix seconds
            nonce: Per-request nonce
            payload_hash: Payload hash, if payload verification applies
            ext: Extension data, if any
            app: Static key id, only when the id field carries an access token
        """
        self.request = request
        self.timestamp = timestamp
        self.nonce = nonce
        self.payload_hash = payload_hash
        self.ext = ext
        self.app = app

    def build(self) -> str:
        """
        Build the canonical string.

        Every field is terminated by a newline, including empty ones, so
        that no two distinct requests concatenate to the same string.

        Returns:
            str: Canonical string to MAC
        """
        target = parse_url(self.request.url)

        fields = [
            HAWK_HEADER_VERSION,
            str(self.timestamp),
            self.nonce,
            self.request.method.value,
            target["resource"],
            target["host"],
            str(target["port"]),
            self.payload_hash or "",
            self.ext or "",
        ]

        if self.app is not None:
            fields.append(self.app)

        return ''.join(f"{value}\n" for value in fields)


def build_canonical_string(
    request: RequestView,
    timestamp: int,
    nonce: str,
    payload_hash: Optional[str] = None,
    ext: Optional[str] = None,
    app: Optional[str] = None,
) -> str:
    """Build the canonical string for a request."""
    return CanonicalStringBuilder(request, timestamp, nonce, payload_hash, ext, app).build()


def calculate_mac(shared_secret: str, canonical_string: str, digest_name: str) -> str:
    """
    HMAC the canonical string with the shared secret.

    Args:
        shared_secret: Shared secret (UTF-8 encoded as key)
        canonical_string: Output of build_canonical_string
        digest_name: hashlib digest name

    Returns:
        str: Base64 MAC

    Raises:
        DigestUnavailableError: If the digest cannot be instantiated
    """
    try:
        mac = hmac.new(
            encode_utf8(shared_secret),
            encode_utf8(canonical_string),
            digest_name
        ).digest()
    except ValueError as e:
        raise DigestUnavailableError(
            f"Could not create HMAC: {e}",
            {"algorithm": digest_name}
        ) from e

    return to_base64(mac)


def build_authorization_header(
    identity: str,
    timestamp: int,
    nonce: str,
    mac: str,
    payload_hash: Optional[str] = None,
    ext: Optional[str] = None,
    app: Optional[str] = None,
) -> str:
    """
    Assemble the Hawk Authorization header value.

    Format:
        Hawk id="..", ts="..", nonce=".."[, hash=".."][, ext="..",], mac=".."[, app=".."]

    The doubled comma after ext is part of the wire format existing
    verifiers accept.
    """
    header = f'Hawk id="{identity}", ts="{timestamp}", nonce="{nonce}"'

    if payload_hash is not None:
        header += f', hash="{payload_hash}"'

    if ext is not None:
        header += f', ext="{ext}",'

    header += f', mac="{mac}"'

    if app is not None:
        header += f', app="{app}"'

    return header
