"""
Monarch Python SDK
Client-side request authentication with API key, Basic and Hawk-style MAC schemes
"""

import hashlib
import platform
import secrets
import sys
from typing import Any, Dict

from .version import __version__
from .exceptions import (
    ErrorCodes,
    MonarchSDKError,
    ConfigurationError,
    UnsupportedAlgorithmError,
    ValidationError,
    AuthenticationError,
    AuthSourceError,
    DigestUnavailableError,
    ServerCommunicationError,
)
from .tokens import (
    AccessTokenSource,
    OAuthToken,
    StaticAccessTokenSource,
)
from .signing import (
    # Strategies
    SigningStrategy,
    ApiKeyStrategy,
    BasicAuthStrategy,
    MacAuthStrategy,
    HawkStrategy,
    SigningChain,
    # Types
    RequestView,
    HeaderMap,
    HttpMethod,
    MacSignatureResult,
    # Utilities
    generate_nonce,
    generate_timestamp,
    parse_url,
    SUPPORTED_HMAC_ALGORITHMS,
    # HTTP Integration
    SigningAuth,
    sign_prepared_request,
    create_signing_session,
    disable_request_signing,
)
from .http_client import (
    ClientConfig,
    CollectionFormat,
    HttpHeader,
    RestClient,
    RestRequest,
    RestResponse,
    create_client,
)
from .config import (
    AuthConfigManager,
    load_auth_config_from_file,
    load_auth_config_from_json,
    load_default_auth_config,
)


def check_platform_compatibility() -> Dict[str, Any]:
    """
    Check platform compatibility for request signing.

    Returns:
        dict: Compatibility information including the HMAC digests this
              runtime provides, secure random availability, and platform details
    """
    available = hashlib.algorithms_available
    return {
        'hmac_algorithms': sorted(
            name for name, digest in SUPPORTED_HMAC_ALGORITHMS.items() if digest in available
        ),
        'sha256_available': 'sha256' in available,
        'secure_random_available': hasattr(secrets, 'choice'),
        'platform_info': {
            'system': platform.system(),
            'python_version': sys.version,
            'architecture': platform.architecture()[0],
        }
    }


def initialize_sdk() -> Dict[str, Any]:
    """
    Initialize the Monarch SDK and check platform compatibility.

    Returns:
        dict: Compatibility information with 'compatible' (bool) and 'warnings' (list)
    """
    warnings = []
    compatible = True

    compat_info = check_platform_compatibility()
    if not compat_info['sha256_available']:
        warnings.append('SHA-256 not available - payload hashing and Hawk signing will fail')
        compatible = False

    if not compat_info['secure_random_available']:
        warnings.append('Secure random generation not available - nonces cannot be generated')
        compatible = False

    missing = sorted(set(SUPPORTED_HMAC_ALGORITHMS) - set(compat_info['hmac_algorithms']))
    if missing:
        warnings.append(f"HMAC algorithms unavailable in this runtime: {', '.join(missing)}")

    return {
        'compatible': compatible,
        'warnings': warnings
    }


def is_compatible() -> bool:
    """Quick synchronous compatibility check."""
    return initialize_sdk()['compatible']


# Public API exports
__all__ = [
    '__version__',
    'check_platform_compatibility',
    'initialize_sdk',
    'is_compatible',
    # Exceptions
    'ErrorCodes',
    'MonarchSDKError',
    'ConfigurationError',
    'UnsupportedAlgorithmError',
    'ValidationError',
    'AuthenticationError',
    'AuthSourceError',
    'DigestUnavailableError',
    'ServerCommunicationError',
    # Access tokens
    'AccessTokenSource',
    'OAuthToken',
    'StaticAccessTokenSource',
    # Request Signing
    'SigningStrategy',
    'ApiKeyStrategy',
    'BasicAuthStrategy',
    'MacAuthStrategy',
    'HawkStrategy',
    'SigningChain',
    'RequestView',
    'HeaderMap',
    'HttpMethod',
    'MacSignatureResult',
    'generate_nonce',
    'generate_timestamp',
    'parse_url',
    # Request Signing - HTTP Integration
    'SigningAuth',
    'sign_prepared_request',
    'create_signing_session',
    'disable_request_signing',
    # HTTP Client
    'ClientConfig',
    'CollectionFormat',
    'HttpHeader',
    'RestClient',
    'RestRequest',
    'RestResponse',
    'create_client',
    # Configuration
    'AuthConfigManager',
    'load_auth_config_from_file',
    'load_auth_config_from_json',
    'load_default_auth_config',
]
