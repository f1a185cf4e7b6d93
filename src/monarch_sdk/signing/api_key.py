"""
Static API key authentication
"""

import logging
from typing import Optional

from ..tokens import AccessTokenSource
from .base import SigningStrategy, fetch_access_token, require_non_blank, require_token_source
from .types import API_KEY_HEADER, AUTHORIZATION_HEADER, RequestView

logger = logging.getLogger(__name__)


class ApiKeyStrategy(SigningStrategy):
    """
    Sends the API key in X-Api-Key, plus an optional bearer token.
    """

    def __init__(self, api_key: str, access_token_source: Optional[AccessTokenSource] = None):
        """
        Args:
            api_key: Static API key
            access_token_source: Optional source of a bearer token

        Raises:
            ConfigurationError: If api_key is blank
        """
        self._api_key = require_non_blank(api_key, "api_key")
        self._access_token_source = require_token_source(access_token_source)

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def access_token_source(self) -> Optional[AccessTokenSource]:
        return self._access_token_source

    def apply(self, request: RequestView) -> None:
        request.set_header(API_KEY_HEADER, self._api_key)

        access_token = fetch_access_token(self._access_token_source)
        if access_token is not None:
            request.set_header(AUTHORIZATION_HEADER, f"Bearer {access_token}")

        logger.debug(
            f"Applied API key to {request.method.value} request"
            f"{' with bearer token' if access_token is not None else ''}"
        )

    def __repr__(self) -> str:
        return f"ApiKeyStrategy(api_key='***', access_token_source={self._access_token_source!r})"
