"""
HTTP client integration for request signing

This module plugs signing strategies into the requests library: an AuthBase
implementation for per-request or per-session use, a function that signs an
already prepared request, and a helper that builds a signing session.
"""

import logging
from typing import Optional

import requests
from requests.auth import AuthBase
from requests.models import PreparedRequest
from requests.sessions import Session
from requests.structures import CaseInsensitiveDict

from ..exceptions import ConfigurationError, ErrorCodes, ValidationError
from .base import SigningStrategy
from .types import RequestView

logger = logging.getLogger(__name__)


def request_view_from_prepared(prepared: PreparedRequest) -> RequestView:
    """
    Snapshot a prepared request as a RequestView.

    Args:
        prepared: Request after requests has encoded the URL and body

    Returns:
        RequestView: View sharing nothing mutable with the prepared request

    Raises:
        ValidationError: If the body is a stream or generator, or the method
            is not one that can be signed
    """
    body = prepared.body
    if body is not None and not isinstance(body, (str, bytes)):
        raise ValidationError(
            f"Cannot sign a streaming request body ({type(body).__name__})",
            ErrorCodes.UNSIGNABLE_BODY,
            {"body_type": type(body).__name__}
        )

    headers = dict(prepared.headers) if prepared.headers else {}

    return RequestView(
        method=prepared.method,
        url=prepared.url,
        body=body,
        headers=headers,
    )


def sign_prepared_request(
    prepared: PreparedRequest,
    strategy: SigningStrategy,
) -> PreparedRequest:
    """
    Sign a prepared request in place.

    Only headers the strategy added or changed are written back to the
    prepared request; repeated values are joined with ", ".

    Args:
        prepared: Prepared request to sign
        strategy: Strategy or SigningChain to apply

    Returns:
        PreparedRequest: The same request, with authentication headers

    Raises:
        AuthenticationError: If credentials could not be computed
        ValidationError: If the request cannot be represented for signing
    """
    view = request_view_from_prepared(prepared)
    before = CaseInsensitiveDict(view.headers.to_dict())
    strategy.apply(view)

    if prepared.headers is None:
        prepared.headers = CaseInsensitiveDict()

    for name, value in view.headers.to_dict().items():
        if before.get(name) != value:
            prepared.headers[name] = value

    logger.debug(f"Signed prepared {view.method.value} request")
    return prepared


class SigningAuth(AuthBase):
    """
    requests authentication hook backed by a signing strategy.

    Usable per request (requests.get(url, auth=SigningAuth(chain))) or per
    session (session.auth = SigningAuth(chain)). Signing errors propagate, so
    a request that cannot be authenticated is never sent.
    """

    def __init__(self, strategy: SigningStrategy):
        if not isinstance(strategy, SigningStrategy):
            raise ConfigurationError(
                f"Expected a SigningStrategy, got {type(strategy).__name__}",
                ErrorCodes.INVALID_CONFIG,
                {"type": type(strategy).__name__}
            )
        self.strategy = strategy

    def __call__(self, prepared: PreparedRequest) -> PreparedRequest:
        return sign_prepared_request(prepared, self.strategy)

    def __repr__(self) -> str:
        return f"SigningAuth({self.strategy!r})"


def create_signing_session(
    strategy: SigningStrategy,
    session: Optional[Session] = None,
) -> Session:
    """
    Create (or configure) a requests session that signs every request.

    Args:
        strategy: Strategy or SigningChain to apply
        session: Existing session to configure; a new one is created if omitted

    Returns:
        Session: Session whose auth hook signs outgoing requests
    """
    session = session or requests.Session()
    session.auth = SigningAuth(strategy)
    logger.info(f"Enabled request signing on session with {type(strategy).__name__}")
    return session


def disable_request_signing(session: Optional[Session]) -> None:
    """Remove a signing hook previously installed by create_signing_session."""
    if session is not None and isinstance(session.auth, SigningAuth):
        session.auth = None
        logger.info("Disabled request signing on session")
