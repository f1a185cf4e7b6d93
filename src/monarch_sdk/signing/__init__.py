"""
Monarch Python SDK - Request Signing Module

Authentication strategies that add credentials to outgoing requests: static
API keys with optional bearer tokens, HTTP Basic, and Hawk-style MAC
signatures, composable through a SigningChain.
"""

from .types import (
    RequestView,
    HeaderMap,
    HttpMethod,
    MacSignatureResult,
    AUTHORIZATION_HEADER,
    API_KEY_HEADER,
    CONTENT_TYPE_HEADER,
    DEFAULT_CONTENT_TYPE,
    NONCE_LENGTH,
)

from .base import SigningStrategy

from .api_key import ApiKeyStrategy
from .basic_auth import BasicAuthStrategy
from .hawk_signer import MacAuthStrategy, HawkStrategy
from .chain import SigningChain

from .canonical_message import (
    CanonicalStringBuilder,
    build_canonical_string,
    build_authorization_header,
    calculate_payload_hash,
    calculate_mac,
)

from .utils import (
    generate_nonce,
    generate_timestamp,
    validate_nonce,
    validate_timestamp,
    parse_url,
    resolve_hmac_algorithm,
    SUPPORTED_HMAC_ALGORITHMS,
)

from .integration import (
    SigningAuth,
    request_view_from_prepared,
    sign_prepared_request,
    create_signing_session,
    disable_request_signing,
)

# Public API exports
__all__ = [
    # Strategies
    'SigningStrategy',
    'ApiKeyStrategy',
    'BasicAuthStrategy',
    'MacAuthStrategy',
    'HawkStrategy',
    'SigningChain',
    # Types
    'RequestView',
    'HeaderMap',
    'HttpMethod',
    'MacSignatureResult',
    'AUTHORIZATION_HEADER',
    'API_KEY_HEADER',
    'CONTENT_TYPE_HEADER',
    'DEFAULT_CONTENT_TYPE',
    'NONCE_LENGTH',
    # Canonicalization
    'CanonicalStringBuilder',
    'build_canonical_string',
    'build_authorization_header',
    'calculate_payload_hash',
    'calculate_mac',
    # Utilities
    'generate_nonce',
    'generate_timestamp',
    'validate_nonce',
    'validate_timestamp',
    'parse_url',
    'resolve_hmac_algorithm',
    'SUPPORTED_HMAC_ALGORITHMS',
    # HTTP Integration
    'SigningAuth',
    'request_view_from_prepared',
    'sign_prepared_request',
    'create_signing_session',
    'disable_request_signing',
]
