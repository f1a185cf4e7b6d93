"""
Access token sources for delegated (bearer token) authentication

Signing strategies ask an AccessTokenSource for a token on every request.
Acquiring and refreshing tokens is left to the source implementation; this
module only provides the protocol, a token value object, and a source that
hands out a fixed token.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Union, runtime_checkable


@runtime_checkable
class AccessTokenSource(Protocol):
    """
    Supplies a bearer token on demand.

    get_access_token() may block (for example while refreshing over the
    network) and may raise. Returning None or a blank string means "no
    delegated token; use the static credential". Implementations are
    responsible for their own thread safety.
    """

    def get_access_token(self) -> Optional[str]:
        ...


def _now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class OAuthToken:
    """
    Immutable OAuth 2.0 token

    Attributes:
        access_token: Access token
        expires_in: Lifetime in seconds, or NO_EXPIRATION
        refresh_token: Optional refresh token
        creation_time: Unix seconds when the token was issued (defaults to now)
        clock: Time source used for expiry checks
    """
    NO_EXPIRATION = -1

    access_token: str
    expires_in: int
    refresh_token: Optional[str] = None
    creation_time: Optional[int] = None
    clock: Callable[[], int] = field(default=_now, repr=False, compare=False)

    def __post_init__(self):
        if self.creation_time is None:
            object.__setattr__(self, 'creation_time', self.clock())

    @property
    def access_token_expiry(self) -> int:
        """Unix seconds at which the token expires, or NO_EXPIRATION"""
        if self.expires_in == OAuthToken.NO_EXPIRATION:
            return OAuthToken.NO_EXPIRATION
        return self.creation_time + self.expires_in

    def is_access_token_expired(self) -> bool:
        expiry = self.access_token_expiry
        return expiry != OAuthToken.NO_EXPIRATION and self.clock() >= expiry


class StaticAccessTokenSource:
    """
    Token source that returns a fixed token.

    An OAuthToken stops being handed out once it expires; there is no refresh.
    """

    def __init__(self, token: Union[str, OAuthToken, None] = None):
        self._lock = threading.Lock()
        self._token = token

    def update(self, token: Union[str, OAuthToken, None]) -> None:
        """Swap in a new token (for callers that refresh out of band)."""
        with self._lock:
            self._token = token

    def get_access_token(self) -> Optional[str]:
        with self._lock:
            token = self._token

        if isinstance(token, OAuthToken):
            if token.is_access_token_expired():
                return None
            return token.access_token

        return token
