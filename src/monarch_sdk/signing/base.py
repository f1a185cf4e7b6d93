"""
Signing strategy contract

Every authentication scheme implements SigningStrategy.apply(), which adds
or overwrites headers on a RequestView and nothing else. Credential material
is validated in the constructor so that an invalid strategy can never exist.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..exceptions import AuthSourceError, ConfigurationError, ErrorCodes
from ..tokens import AccessTokenSource
from .types import RequestView
from .utils import is_blank

logger = logging.getLogger(__name__)


class SigningStrategy(ABC):
    """Adds authentication headers to an outgoing request."""

    @abstractmethod
    def apply(self, request: RequestView) -> None:
        """
        Sign a request in place.

        Args:
            request: Request to sign; only its headers are modified

        Raises:
            AuthenticationError: If credentials could not be computed
        """
        ...

    def __call__(self, request: RequestView) -> None:
        self.apply(request)


def require_non_blank(value: Optional[str], name: str) -> str:
    """
    Reject a blank credential field at construction time.

    Raises:
        ConfigurationError: If value is None, empty or whitespace
    """
    if is_blank(value):
        raise ConfigurationError(
            f"{name} must not be blank or None",
            ErrorCodes.BLANK_CREDENTIAL,
            {"field": name}
        )
    return value


def require_token_source(source: Optional[AccessTokenSource]) -> Optional[AccessTokenSource]:
    if source is not None and not callable(getattr(source, 'get_access_token', None)):
        raise ConfigurationError(
            "access_token_source must provide get_access_token()",
            ErrorCodes.INVALID_CONFIG,
            {"type": type(source).__name__}
        )
    return source


def fetch_access_token(source: Optional[AccessTokenSource]) -> Optional[str]:
    """
    Ask the token source for a bearer token.

    Returns:
        Optional[str]: The token, or None when there is no source or it
        returned a blank value

    Raises:
        AuthSourceError: If the source raised; the original error is chained
    """
    if source is None:
        return None

    try:
        token = source.get_access_token()
    except Exception as e:
        logger.warning(f"Access token source {type(source).__name__} failed: {e}")
        raise AuthSourceError(
            f"Could not obtain access token: {e}",
            {"source": type(source).__name__, "original_error": str(e)}
        ) from e

    if is_blank(token):
        return None

    return token
