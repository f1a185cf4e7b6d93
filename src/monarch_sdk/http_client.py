"""
HTTP client for Monarch-protected APIs

This module provides the request builder (RestRequest), a session-owning
client that signs every request with a SigningChain before dispatch
(RestClient), and the response wrapper (RestResponse).
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import quote, quote_plus, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .exceptions import ErrorCodes, ServerCommunicationError, ValidationError
from .signing.base import SigningStrategy
from .signing.chain import SigningChain
from .signing.hawk_signer import MacAuthStrategy
from .signing.integration import sign_prepared_request
from .signing.types import (
    AUTHORIZATION_HEADER,
    CONTENT_TYPE_HEADER,
    DEFAULT_CONTENT_TYPE,
    HeaderMap,
    HttpMethod,
    RequestView,
)
from .version import __version__

logger = logging.getLogger(__name__)

ParamValue = Any

RETRY_STATUS_CODES = [429, 500, 502, 503, 504]


@dataclass
class ClientConfig:
    """
    Configuration for a RestClient.

    retry_attempts applies to transport-level retries on 429 and 5xx
    responses. A retry resends the already signed request, so RestClient
    ignores it when the signing chain contains a MacAuthStrategy.
    """
    base_url: str
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3
    proxy_host: Optional[str] = None
    proxy_port: Optional[int] = None
    max_connections: int = 100
    user_agent: str = f"Monarch-Python-SDK/{__version__}"

    def __post_init__(self):
        """Validate client configuration."""
        if not self.base_url:
            raise ValidationError("Client base_url cannot be empty", ErrorCodes.INVALID_URL)

        parsed = urlparse(self.base_url)
        if parsed.scheme not in ('http', 'https') or not parsed.netloc:
            raise ValidationError(
                f"Invalid base URL format: {self.base_url}",
                ErrorCodes.INVALID_URL,
                {"base_url": self.base_url}
            )

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")

        if self.max_connections <= 0:
            raise ValidationError("max_connections must be positive")

        if self.proxy_port is not None and not self.proxy_host:
            raise ValidationError("proxy_port requires proxy_host")

    @property
    def proxies(self) -> Dict[str, str]:
        if not self.proxy_host:
            return {}
        proxy = f"http://{self.proxy_host}"
        if self.proxy_port is not None:
            proxy += f":{self.proxy_port}"
        return {'http': proxy, 'https': proxy}


class CollectionFormat(Enum):
    """How a collection of values is serialized into one query parameter."""
    CSV = ","
    SSV = " "
    TSV = "\t"
    PIPES = "|"
    MULTI = None


def _to_param_string(value: ParamValue) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _encode_pairs(pairs: Iterable[tuple]) -> str:
    return '&'.join(
        f"{quote_plus(name, encoding='utf-8')}={quote_plus(value, encoding='utf-8')}"
        for name, value in pairs
    )


class _Params:
    """Ordered name -> [values] store backing the builder's parameter groups."""

    def __init__(self):
        self._values: Dict[str, List[str]] = {}

    def add(self, name: str, value: ParamValue) -> None:
        text = _to_param_string(value)
        if text is None:
            return
        self._values.setdefault(name, []).append(text)

    def set(self, name: str, value: ParamValue) -> None:
        self._values.pop(name, None)
        self.add(name, value)

    def pairs(self) -> List[tuple]:
        return [(name, value) for name, values in self._values.items() for value in values]

    def __bool__(self) -> bool:
        return any(self._values.values())


class RestRequest:
    """
    Mutable builder for a single API request.

    Query, form and general parameters are kept apart. General parameters end
    up in the query string for GET and DELETE and in the form body for POST
    and PUT. Every mutator returns the builder so calls can be chained.
    """

    def __init__(self, method: Union[str, HttpMethod], url: str, client: Optional["RestClient"] = None):
        """
        Args:
            method: HTTP method
            url: Absolute URL, optionally containing {name} path variables
            client: Client used by send()
        """
        self.method = HttpMethod.parse(method)
        if not url:
            raise ValidationError("Request URL cannot be empty", ErrorCodes.INVALID_URL)
        self.url = url
        self._client = client

        self._paths: Dict[str, str] = {}
        self._headers = HeaderMap()
        self._parameters = _Params()
        self._query = _Params()
        self._form = _Params()
        self._body: Optional[str] = None

    # Path variables

    def set_path(self, name: str, value: ParamValue) -> "RestRequest":
        text = _to_param_string(value)
        if text is not None:
            self._paths[name] = quote(text, safe='')
        return self

    # General parameters

    def add_parameter(self, name: str, value: ParamValue) -> "RestRequest":
        self._parameters.add(name, value)
        return self

    def set_parameter(self, name: str, value: ParamValue) -> "RestRequest":
        self._parameters.set(name, value)
        return self

    # Query parameters

    def add_query(self, name: str, value: ParamValue) -> "RestRequest":
        self._query.add(name, value)
        return self

    def set_query(self, name: str, value: ParamValue) -> "RestRequest":
        self._query.set(name, value)
        return self

    def add_query_collection(
        self,
        name: str,
        values: Optional[Iterable[ParamValue]],
        fmt: CollectionFormat = CollectionFormat.CSV,
    ) -> "RestRequest":
        """
        Add a collection as one query parameter.

        CSV, SSV, TSV and PIPES join the values into a single value; MULTI
        repeats the parameter once per value.
        """
        if values is None:
            return self

        texts = [text for text in (_to_param_string(v) for v in values) if text is not None]
        if fmt is CollectionFormat.MULTI:
            for text in texts:
                self._query.add(name, text)
        elif texts:
            self._query.add(name, fmt.value.join(texts))
        return self

    # Form parameters

    def add_form(self, name: str, value: ParamValue) -> "RestRequest":
        self._form.add(name, value)
        return self

    def set_form(self, name: str, value: ParamValue) -> "RestRequest":
        self._form.set(name, value)
        return self

    # Headers

    def add_header(self, name: str, value: ParamValue) -> "RestRequest":
        self._headers.add(name, _to_param_string(value))
        return self

    def set_header(self, name: str, value: ParamValue) -> "RestRequest":
        self._headers.set(name, _to_param_string(value))
        return self

    def content_type(self, mime_type: str) -> "RestRequest":
        return self.set_header(CONTENT_TYPE_HEADER, mime_type)

    def accepts(self, mime_type: str) -> "RestRequest":
        return self.set_header("Accept", mime_type)

    def authorization(self, value: str) -> "RestRequest":
        return self.set_header(AUTHORIZATION_HEADER, value)

    def set_body(self, body: Optional[str]) -> "RestRequest":
        self._body = body
        return self

    # Accessors

    @property
    def headers(self) -> HeaderMap:
        return self._headers

    @property
    def _sends_form(self) -> bool:
        return self.method in (HttpMethod.POST, HttpMethod.PUT)

    def get_path(self) -> str:
        url = self.url
        for name, value in self._paths.items():
            url = url.replace("{" + name + "}", value)
        return url

    def get_query(self) -> str:
        pairs = [] if self._sends_form else self._parameters.pairs()
        pairs += self._query.pairs()
        return _encode_pairs(pairs)

    def get_url(self) -> str:
        query = self.get_query()
        return f"{self.get_path()}?{query}" if query else self.get_path()

    def get_body(self) -> Optional[str]:
        if self._body is not None:
            return self._body
        if self._sends_form and (self._parameters or self._form):
            return _encode_pairs(self._parameters.pairs() + self._form.pairs())
        return None

    def to_request_view(self) -> RequestView:
        """
        Freeze the builder into the view that is signed and sent.

        Raises:
            ValidationError: If a POST or PUT has neither a body nor form data
        """
        body = self.get_body()
        if self._sends_form and body is None:
            raise ValidationError("No body was specified.", ErrorCodes.MISSING_BODY)

        headers = self._headers.copy()
        if body is not None and CONTENT_TYPE_HEADER not in headers:
            headers.set(CONTENT_TYPE_HEADER, DEFAULT_CONTENT_TYPE)

        return RequestView(method=self.method, url=self.get_url(), body=body, headers=headers)

    def send(self) -> "RestResponse":
        """Sign and send through the client that created this request."""
        if self._client is None:
            raise ValidationError("Request is not bound to a RestClient")
        return self._client.send(self)

    def __repr__(self) -> str:
        return f"RestRequest({self.method.value} {self.get_url()})"


@dataclass(frozen=True)
class HttpHeader:
    """Single response header."""
    name: str
    value: str


class RestResponse:
    """Status, text body and headers of a completed request."""

    def __init__(self, status_code: int, body: str, headers: Optional[List[HttpHeader]] = None):
        self.status_code = status_code
        self.body = body
        self.headers = list(headers or [])

    @classmethod
    def from_requests(cls, response: requests.Response) -> "RestResponse":
        headers = [HttpHeader(name, value) for name, value in response.headers.items()]
        return cls(response.status_code, response.text or "", headers)

    def get_header(self, name: str) -> Optional[str]:
        """First header whose name matches exactly (case-sensitive)."""
        for header in self.headers:
            if header.name == name:
                return header.value
        return None

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def raise_for_status(self) -> "RestResponse":
        """
        Raises:
            ServerCommunicationError: If the status code is 400 or above
        """
        if not self.ok:
            raise ServerCommunicationError(
                f"Server request failed: HTTP {self.status_code}",
                ErrorCodes.HTTP_ERROR,
                http_status=self.status_code,
                details={'status_code': self.status_code, 'body': self.body[:200]}
            )
        return self

    def __repr__(self) -> str:
        return f"RestResponse(status_code={self.status_code})"


def _uses_nonce(strategy: SigningStrategy) -> bool:
    if isinstance(strategy, SigningChain):
        return any(_uses_nonce(child) for child in strategy)
    return isinstance(strategy, MacAuthStrategy)


class RestClient:
    """
    HTTP client that authenticates every request with a signing chain.

    The client owns its requests.Session; call close() or use it as a
    context manager to release pooled connections.
    """

    def __init__(self, config: ClientConfig, signing_chain: Optional[SigningStrategy] = None):
        """
        Initialize the HTTP client.

        Args:
            config: Client configuration settings
            signing_chain: Strategy or SigningChain applied before each send
        """
        self.config = config
        self.signing_chain = signing_chain if signing_chain is not None else SigningChain()
        self.session = self._create_session()

        logger.info(f"Initialized Monarch HTTP client for server: {config.base_url}")

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry logic."""
        session = requests.Session()

        retry_attempts = self.config.retry_attempts
        if retry_attempts and _uses_nonce(self.signing_chain):
            # transport retries resend the same Hawk nonce
            logger.warning(
                f"Disabling {retry_attempts} transport retries: the signing chain uses "
                f"single-use nonces"
            )
            retry_attempts = 0

        retry_strategy = Retry(
            total=retry_attempts,
            status_forcelist=RETRY_STATUS_CODES,
            allowed_methods=["GET", "PUT", "DELETE", "POST"],
            backoff_factor=self.config.retry_backoff_factor,
            raise_on_status=False,
        )

        adapter = HTTPAdapter(
            max_retries=retry_strategy,
            pool_connections=self.config.max_connections,
            pool_maxsize=self.config.max_connections,
        )
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({'User-Agent': self.config.user_agent})
        session.proxies.update(self.config.proxies)

        return session

    def url_for(self, path: str) -> str:
        if path.startswith(('http://', 'https://')):
            return path
        return self.config.base_url.rstrip('/') + '/' + path.lstrip('/')

    def create(self, method: Union[str, HttpMethod], path: str) -> RestRequest:
        """Start a request against a path relative to base_url."""
        return RestRequest(method, self.url_for(path), client=self)

    def send(self, request: RestRequest) -> RestResponse:
        """
        Sign and dispatch a request.

        Args:
            request: Request builder

        Returns:
            RestResponse: Response, whatever its status code

        Raises:
            AuthenticationError: If signing failed; nothing was sent
            ValidationError: If the request is malformed
            ServerCommunicationError: On network errors
        """
        view = request.to_request_view()
        try:
            prepared = self.session.prepare_request(requests.Request(
                view.method.value,
                view.url,
                data=view.body_bytes() if view.has_body else None,
                headers=view.headers.to_dict(),
            ))
        except requests.exceptions.RequestException as e:
            raise ValidationError(f"Invalid request: {e}", ErrorCodes.INVALID_URL) from e

        # sign the URL and body exactly as requests encoded them
        sign_prepared_request(prepared, self.signing_chain)

        logger.debug(f"Making {view.method.value} request to {prepared.url}")

        settings = self.session.merge_environment_settings(
            prepared.url, {}, None, self.config.verify_ssl, None
        )
        try:
            response = self.session.send(
                prepared,
                timeout=self.config.timeout,
                allow_redirects=False,
                **settings
            )
        except requests.exceptions.Timeout as e:
            raise ServerCommunicationError(
                f"Request timeout after {self.config.timeout} seconds",
                ErrorCodes.TIMEOUT
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}", ErrorCodes.CONNECTION_ERROR) from e
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}", ErrorCodes.HTTP_ERROR) from e

        logger.debug(f"Received HTTP {response.status_code} from {prepared.url}")
        return RestResponse.from_requests(response)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
        logger.debug("HTTP session closed")

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_client(
    base_url: str,
    strategies: Optional[Iterable[SigningStrategy]] = None,
    timeout: float = 30.0,
    verify_ssl: bool = True,
    retry_attempts: int = 3,
    **config_kwargs
) -> RestClient:
    """
    Create a RestClient with default configuration.

    Args:
        base_url: Server base URL
        strategies: Signing strategies applied in order
        timeout: Request timeout in seconds
        verify_ssl: Whether to verify SSL certificates
        retry_attempts: Number of retry attempts for failed requests
        **config_kwargs: Other ClientConfig fields

    Returns:
        RestClient: Configured HTTP client
    """
    config = ClientConfig(
        base_url=base_url,
        timeout=timeout,
        verify_ssl=verify_ssl,
        retry_attempts=retry_attempts,
        **config_kwargs
    )
    return RestClient(config, SigningChain(strategies))
