"""
Shared fixtures for the Monarch SDK test suite

Includes a reference Hawk verifier that rebuilds the canonical string from
the request as the server would, independently of the signing code.
"""

import base64
import hashlib
import hmac
import re
from unittest.mock import Mock
from urllib.parse import urlsplit

import pytest

KEY_ID = "dh37fgj492je"
SHARED_SECRET = "werxhqb98rpaxn39848xrunpaw3489ruxnpa98w4rxn"
FIXED_TIMESTAMP = 1000000000
FIXED_NONCE = "abc123"

_HAWK_ATTRIBUTE = re.compile(r'(\w+)="([^"]*)"')
_DEFAULT_PORTS = {"http": 80, "https": 443}


def parse_hawk_header(value):
    """Split a Hawk Authorization value into its attributes."""
    assert value.startswith("Hawk "), value
    return dict(_HAWK_ATTRIBUTE.findall(value[len("Hawk "):]))


def verify_hawk_request(method, url, authorization, secret=SHARED_SECRET,
                        content_type=None, body=None, algorithm="sha256"):
    """
    Recompute the MAC for a received request and compare it to the header.

    Returns:
        bool: True when the header authenticates the request
    """
    attributes = parse_hawk_header(authorization)
    target = urlsplit(url)

    resource = target.path or "/"
    if target.query:
        resource += "?" + target.query
    port = target.port or _DEFAULT_PORTS[target.scheme]

    if "hash" in attributes:
        mime = (content_type or "").split(";")[0].strip()
        content = body.encode("utf-8") if isinstance(body, str) else (body or b"")
        payload = b"hawk.1.payload\n" + mime.encode("utf-8") + b"\n" + content + b"\n"
        expected_hash = base64.b64encode(hashlib.sha256(payload).digest()).decode("ascii")
        if not hmac.compare_digest(expected_hash, attributes["hash"]):
            return False

    normalized = (
        "hawk.1.header\n"
        f"{attributes['ts']}\n"
        f"{attributes['nonce']}\n"
        f"{method.upper()}\n"
        f"{resource}\n"
        f"{target.hostname}\n"
        f"{port}\n"
        f"{attributes.get('hash', '')}\n"
        f"{attributes.get('ext', '')}\n"
    )
    if "app" in attributes:
        normalized += f"{attributes['app']}\n"

    digest = hmac.new(secret.encode("utf-8"), normalized.encode("utf-8"), algorithm).digest()
    expected_mac = base64.b64encode(digest).decode("ascii")
    return hmac.compare_digest(expected_mac, attributes["mac"])


@pytest.fixture
def hawk_verifier():
    return verify_hawk_request


@pytest.fixture
def hawk_header_parser():
    return parse_hawk_header


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIMESTAMP


@pytest.fixture
def fixed_nonce():
    return lambda: FIXED_NONCE


@pytest.fixture
def token_source():
    """Mock access token source returning a fixed token."""
    source = Mock()
    source.get_access_token.return_value = "token-123"
    return source
