"""
Type definitions for request signing functionality

This module provides the request model that signing strategies read from
(RequestView and its header multimap) plus the result types produced by the
Hawk-style MAC signer.
"""

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union, Callable
from dataclasses import dataclass, field
from enum import Enum

from requests.structures import CaseInsensitiveDict

from ..exceptions import ValidationError, ErrorCodes


CHARSET = "utf-8"
DEFAULT_CONTENT_TYPE = "application/x-www-form-urlencoded"

AUTHORIZATION_HEADER = "Authorization"
API_KEY_HEADER = "X-Api-Key"
CONTENT_TYPE_HEADER = "Content-Type"

HAWK_HEADER_VERSION = "hawk.1.header"
HAWK_PAYLOAD_VERSION = "hawk.1.payload"
NONCE_LENGTH = 6


class HttpMethod(str, Enum):
    """HTTP methods supported for signing"""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, method: Union[str, "HttpMethod"]) -> "HttpMethod":
        """Coerce a method name into the enumeration, rejecting anything else."""
        if isinstance(method, HttpMethod):
            return method
        try:
            return cls(str(method).upper())
        except ValueError:
            raise ValidationError(
                f"Unsupported HTTP method: {method}",
                ErrorCodes.INVALID_METHOD,
                {"method": method}
            )


def header_text(value: object) -> str:
    """Header value as text; bytes are decoded as ISO-8859-1, like requests does."""
    if isinstance(value, bytes):
        return value.decode("latin-1")
    return str(value)


class HeaderMap:
    """
    Ordered multimap of HTTP headers.

    Names are matched case-insensitively; each name maps to a list of values
    kept in the order they were added. There is no removal
    operation: a signing strategy can add to or overwrite a header but never
    drop one set by an earlier strategy.
    """

    def __init__(self, headers: Optional[Union[Mapping[str, object], Iterable[Tuple[str, str]]]] = None):
        self._values: CaseInsensitiveDict = CaseInsensitiveDict()
        if headers is None:
            return

        pairs = headers.items() if isinstance(headers, Mapping) else headers
        for name, value in pairs:
            if isinstance(value, (list, tuple)):
                for item in value:
                    self.add(name, item)
            else:
                self.add(name, value)

    def add(self, name: str, value: Optional[str]) -> None:
        """Append a value, keeping any existing values for the name."""
        if value is None:
            return
        if name in self._values:
            self._values[name].append(header_text(value))
        else:
            self._values[name] = [header_text(value)]

    def set(self, name: str, value: Optional[str]) -> None:
        """Replace all values for the name with a single value."""
        if value is None:
            return
        self._values[name] = [header_text(value)]

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value for a header name."""
        values = self._values.get(name)
        if not values:
            return default
        return values[0]

    def get_all(self, name: str) -> List[str]:
        """Get every value for a header name, in addition order."""
        return list(self._values.get(name, []))

    def items(self) -> Iterator[Tuple[str, List[str]]]:
        for name, values in self._values.items():
            yield name, list(values)

    def to_dict(self, separator: str = ", ") -> Dict[str, str]:
        """Flatten to a plain dict, joining repeated values."""
        return {name: separator.join(values) for name, values in self._values.items()}

    def copy(self) -> "HeaderMap":
        return HeaderMap(self.items())

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.items())!r})"


RequestBody = Union[str, bytes, None]


@dataclass(frozen=True)
class RequestView:
    """
    Read-only snapshot of an outgoing request, taken after the URL and body
    are final and before dispatch.

    Attributes:
        method: HTTP method
        url: Fully resolved absolute URL, query string already encoded
        body: Exact payload that will be transmitted (string or bytes)
        headers: Header multimap; the only part strategies may change
    """
    method: HttpMethod
    url: str
    body: RequestBody = None
    headers: HeaderMap = field(default_factory=HeaderMap)

    def __post_init__(self):
        """Validate and normalize the view"""
        object.__setattr__(self, 'method', HttpMethod.parse(self.method))

        if not self.url:
            raise ValidationError("Request URL cannot be empty", ErrorCodes.INVALID_URL)

        if self.body is not None and not isinstance(self.body, (str, bytes)):
            raise ValidationError(
                f"Request body must be str or bytes, got {type(self.body).__name__}",
                ErrorCodes.UNSIGNABLE_BODY
            )

        if not isinstance(self.headers, HeaderMap):
            object.__setattr__(self, 'headers', HeaderMap(self.headers))

    @property
    def content_type(self) -> str:
        """Declared content type, falling back to form encoding"""
        return self.headers.get(CONTENT_TYPE_HEADER) or DEFAULT_CONTENT_TYPE

    @property
    def has_body(self) -> bool:
        return self.body is not None and len(self.body) > 0

    def body_bytes(self) -> bytes:
        """Body encoded exactly as it goes on the wire."""
        if self.body is None:
            return b""
        if isinstance(self.body, bytes):
            return self.body
        return self.body.encode(CHARSET)

    def add_header(self, name: str, value: str) -> None:
        self.headers.add(name, value)

    def set_header(self, name: str, value: str) -> None:
        self.headers.set(name, value)

    def get_header(self, name: str) -> Optional[str]:
        return self.headers.get(name)


@dataclass(frozen=True)
class MacSignatureResult:
    """
    Everything produced while computing a Hawk-style Authorization header

    Attributes:
        authorization: Complete Authorization header value
        canonical_string: The exact string that was MAC'd
        mac: Base64 HMAC of the canonical string
        timestamp: Unix seconds used in the signature
        nonce: Nonce used in the signature
        identity: Value of the id field (access token or key id)
        payload_hash: Base64 payload hash, if computed
        ext: Extension data, if configured
        app: Static key id when signing on behalf of an access token
    """
    authorization: str
    canonical_string: str
    mac: str
    timestamp: int
    nonce: str
    identity: str
    payload_hash: Optional[str] = None
    ext: Optional[str] = None
    app: Optional[str] = None


# Type aliases for convenience
NonceGenerator = Callable[[], str]
TimestampGenerator = Callable[[], int]
