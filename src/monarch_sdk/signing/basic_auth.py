"""
HTTP Basic authentication
"""

import logging

from ..exceptions import ConfigurationError, ErrorCodes
from .base import SigningStrategy
from .types import AUTHORIZATION_HEADER, RequestView
from .utils import encode_utf8, to_base64

logger = logging.getLogger(__name__)


class BasicAuthStrategy(SigningStrategy):
    """Sets Authorization: Basic base64(username:password)."""

    def __init__(self, username: str, password: str):
        # Both are required, but blank values are legal Basic credentials
        for name, value in (("username", username), ("password", password)):
            if value is None:
                raise ConfigurationError(
                    f"{name} must not be None",
                    ErrorCodes.BLANK_CREDENTIAL,
                    {"field": name}
                )

        self._username = username
        self._authorization = "Basic " + to_base64(encode_utf8(f"{username}:{password}"))

    @property
    def username(self) -> str:
        return self._username

    def apply(self, request: RequestView) -> None:
        request.set_header(AUTHORIZATION_HEADER, self._authorization)
        logger.debug(f"Applied basic credentials for user {self._username}")

    def __repr__(self) -> str:
        return f"BasicAuthStrategy(username={self._username!r})"
