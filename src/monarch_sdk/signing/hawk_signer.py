"""
Hawk v1 style MAC authentication

This module provides the MAC signer: it hashes the payload, builds the
canonical request string, HMACs it with the shared secret and emits a
structured Authorization header. Server-side verifiers reconstruct the same
canonical string from the received request and compare MACs.
"""

import logging
from typing import Optional

from ..exceptions import AuthenticationError, ErrorCodes
from ..tokens import AccessTokenSource
from .base import SigningStrategy, fetch_access_token, require_non_blank, require_token_source
from .canonical_message import (
    build_authorization_header,
    build_canonical_string,
    calculate_mac,
    calculate_payload_hash,
)
from .types import (
    AUTHORIZATION_HEADER,
    MacSignatureResult,
    NonceGenerator,
    RequestView,
    TimestampGenerator,
)
from .utils import (
    generate_nonce,
    generate_timestamp,
    parse_url,
    resolve_hmac_algorithm,
    validate_nonce,
    validate_timestamp,
)

logger = logging.getLogger(__name__)


class MacAuthStrategy(SigningStrategy):
    """
    Hawk-style MAC signer

    The id field carries the access token when the token source supplies
    one, with the static key id moved to the app field and appended to the
    canonical string. Otherwise the key id is the identity.
    """

    def __init__(
        self,
        key_id: str,
        shared_secret: str,
        algorithm: str = "sha256",
        access_token_source: Optional[AccessTokenSource] = None,
        verify_payload: bool = True,
        ext: Optional[str] = None,
        nonce_generator: Optional[NonceGenerator] = None,
        timestamp_generator: Optional[TimestampGenerator] = None,
        log_canonical_strings: bool = False,
    ):
        """
        Initialize the signer.

        Args:
            key_id: Static key identifier
            shared_secret: Secret shared with the server
            algorithm: HMAC algorithm identifier, e.g. "sha256"
            access_token_source: Optional source of delegated tokens
            verify_payload: Bind the request body into the signature
            ext: Optional application extension data
            nonce_generator: Override for nonce generation (tests)
            timestamp_generator: Override for the clock (tests)
            log_canonical_strings: Log canonical strings at DEBUG

        Raises:
            ConfigurationError: If a credential is blank
            UnsupportedAlgorithmError: If algorithm is not a known HMAC digest
        """
        self._key_id = require_non_blank(key_id, "key_id")
        self._shared_secret = require_non_blank(shared_secret, "shared_secret")
        self._algorithm = require_non_blank(algorithm, "algorithm")
        self._digest_name = resolve_hmac_algorithm(algorithm)
        self._access_token_source = require_token_source(access_token_source)
        self._verify_payload = verify_payload
        self._ext = ext or None
        self._nonce_generator = nonce_generator or generate_nonce
        self._timestamp_generator = timestamp_generator or generate_timestamp
        self._log_canonical_strings = log_canonical_strings

    @property
    def key_id(self) -> str:
        return self._key_id

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def digest_name(self) -> str:
        return self._digest_name

    @property
    def verify_payload(self) -> bool:
        return self._verify_payload

    @property
    def ext(self) -> Optional[str]:
        return self._ext

    def apply(self, request: RequestView) -> None:
        result = self.sign(request)
        request.set_header(AUTHORIZATION_HEADER, result.authorization)

    def sign(
        self,
        request: RequestView,
        timestamp: Optional[int] = None,
        nonce: Optional[str] = None,
    ) -> MacSignatureResult:
        """
        Compute the Authorization header for a request without modifying it.

        Args:
            request: Request to sign
            timestamp: Pin the timestamp instead of reading the clock
            nonce: Pin the nonce instead of generating one

        Returns:
            MacSignatureResult: Header value and the intermediate values

        Raises:
            AuthSourceError: If the token source fails
            DigestUnavailableError: If a hash primitive is missing
            ValidationError: If the request URL cannot be signed
        """
        access_token = fetch_access_token(self._access_token_source)
        payload_hash = self.payload_hash(request)

        if timestamp is None:
            timestamp = self._timestamp_generator()
        if nonce is None:
            nonce = self._nonce_generator()

        if not validate_timestamp(timestamp):
            raise AuthenticationError(
                f"Invalid timestamp: {timestamp!r}",
                ErrorCodes.INVALID_REQUEST,
                {"timestamp": timestamp}
            )
        if not validate_nonce(nonce):
            raise AuthenticationError(
                f"Invalid nonce: {nonce!r}",
                ErrorCodes.INVALID_REQUEST,
                {"nonce": nonce}
            )

        app = self._key_id if access_token is not None else None
        identity = access_token if access_token is not None else self._key_id

        canonical_string = build_canonical_string(
            request,
            timestamp,
            nonce,
            payload_hash=payload_hash,
            ext=self._ext,
            app=app,
        )
        mac = calculate_mac(self._shared_secret, canonical_string, self._digest_name)

        authorization = build_authorization_header(
            identity,
            timestamp,
            nonce,
            mac,
            payload_hash=payload_hash,
            ext=self._ext,
            app=app,
        )

        if self._log_canonical_strings:
            logger.debug(f"Hawk canonical string:\n{canonical_string}")
        logger.debug(
            f"Signed {request.method.value} request to {parse_url(request.url)['host']} "
            f"with Hawk credentials ({'delegated token' if app else 'key id'})"
        )

        return MacSignatureResult(
            authorization=authorization,
            canonical_string=canonical_string,
            mac=mac,
            timestamp=timestamp,
            nonce=nonce,
            identity=identity,
            payload_hash=payload_hash,
            ext=self._ext,
            app=app,
        )

    def payload_hash(self, request: RequestView) -> Optional[str]:
        """
        Payload hash for a request, or None when payload verification is off
        or there is no body.
        """
        if not self._verify_payload or not request.has_body:
            return None
        return calculate_payload_hash(request.content_type, request.body)

    def __repr__(self) -> str:
        return (
            f"MacAuthStrategy(key_id={self._key_id!r}, algorithm={self._algorithm!r}, "
            f"verify_payload={self._verify_payload})"
        )


# Name used by the wire format
HawkStrategy = MacAuthStrategy
