"""
Test suite for request signing strategies

This module tests the request model, signing utilities, the API key and
Basic strategies, and composition through SigningChain.
"""

import time
from unittest.mock import Mock

import pytest

from monarch_sdk.signing import (
    ApiKeyStrategy,
    BasicAuthStrategy,
    HeaderMap,
    HttpMethod,
    MacAuthStrategy,
    RequestView,
    SigningChain,
    SigningStrategy,
    generate_nonce,
    generate_timestamp,
    parse_url,
    validate_nonce,
    validate_timestamp,
)
from monarch_sdk.exceptions import (
    AuthSourceError,
    ConfigurationError,
    ErrorCodes,
    ValidationError,
)


class TestSigningUtilities:
    """Test utility functions"""

    def test_generate_nonce(self):
        """Test nonce generation"""
        nonce = generate_nonce()
        assert isinstance(nonce, str)
        assert len(nonce) == 6
        assert validate_nonce(nonce)

        nonces = [generate_nonce() for _ in range(50)]
        assert len(set(nonces)) > 45

    def test_generate_timestamp(self):
        """Test timestamp generation"""
        timestamp = generate_timestamp()
        assert isinstance(timestamp, int)
        assert validate_timestamp(timestamp)
        assert abs(timestamp - int(time.time())) < 2

    def test_validate_nonce(self):
        assert validate_nonce("abc123")
        assert not validate_nonce("")
        assert not validate_nonce("abc-12")
        assert not validate_nonce('ab"c')
        assert not validate_nonce(None)

    def test_validate_timestamp(self):
        assert validate_timestamp(1000000000)
        assert not validate_timestamp(0)
        assert not validate_timestamp(-1)
        assert not validate_timestamp(1.5)
        assert not validate_timestamp("1000000000")
        assert not validate_timestamp(True)

    def test_parse_url(self):
        """Test URL parsing"""
        parsed = parse_url("https://API.example.com/path%20x?param=value")

        assert parsed["scheme"] == "https"
        assert parsed["host"] == "api.example.com"
        assert parsed["port"] == 443
        assert parsed["pathname"] == "/path%20x"
        assert parsed["query"] == "param=value"
        assert parsed["resource"] == "/path%20x?param=value"

    def test_parse_url_explicit_port(self):
        assert parse_url("http://example.com:8080")["port"] == 8080
        assert parse_url("http://example.com:8080")["resource"] == "/"

    @pytest.mark.parametrize("url", [
        "ftp://example.com/file",
        "/relative/path",
        "http://",
        "http://example.com:notaport/",
    ])
    def test_parse_url_invalid(self, url):
        with pytest.raises(ValidationError) as exc_info:
            parse_url(url)
        assert exc_info.value.error_code == ErrorCodes.INVALID_URL


class TestHeaderMap:
    """Test the header multimap"""

    def test_add_keeps_existing_values(self):
        headers = HeaderMap()
        headers.add("Accept", "text/plain")
        headers.add("accept", "application/json")

        assert headers.get_all("ACCEPT") == ["text/plain", "application/json"]
        assert headers.get("Accept") == "text/plain"
        assert headers.to_dict() == {"Accept": "text/plain, application/json"}

    def test_set_replaces_values(self):
        headers = HeaderMap({"Authorization": ["a", "b"]})
        headers.set("authorization", "c")

        assert headers.get_all("Authorization") == ["c"]
        assert len(headers) == 1

    def test_none_values_are_ignored(self):
        headers = HeaderMap()
        headers.add("X-One", None)
        headers.set("X-Two", None)

        assert "X-One" not in headers
        assert "X-Two" not in headers

    def test_bytes_values_are_decoded(self):
        headers = HeaderMap({"Content-Type": b"text/plain"})
        headers.add("X-Name", "caf\u00e9".encode("latin-1"))

        assert headers.get("content-type") == "text/plain"
        assert headers.get("X-Name") == "caf\u00e9"

    def test_copy_is_independent(self):
        original = HeaderMap([("X-A", "1")])
        clone = original.copy()
        clone.add("X-A", "2")

        assert original.get_all("X-A") == ["1"]
        assert clone.get_all("X-A") == ["1", "2"]


class TestRequestView:
    """Test the request view"""

    def test_method_is_normalized(self):
        request = RequestView("post", "http://example.com/")
        assert request.method is HttpMethod.POST

    def test_unsupported_method(self):
        with pytest.raises(ValidationError) as exc_info:
            RequestView("PATCH", "http://example.com/")
        assert exc_info.value.error_code == ErrorCodes.INVALID_METHOD

    def test_empty_url(self):
        with pytest.raises(ValidationError):
            RequestView("GET", "")

    def test_unsignable_body(self):
        with pytest.raises(ValidationError) as exc_info:
            RequestView("POST", "http://example.com/", body=iter([b"chunk"]))
        assert exc_info.value.error_code == ErrorCodes.UNSIGNABLE_BODY

    def test_content_type_default(self):
        request = RequestView("POST", "http://example.com/", body="a=1")
        assert request.content_type == "application/x-www-form-urlencoded"

        request.set_header("content-type", "application/json")
        assert request.content_type == "application/json"

    def test_body_bytes(self):
        assert RequestView("POST", "http://example.com/", body="é").body_bytes() == "é".encode("utf-8")
        assert RequestView("GET", "http://example.com/").body_bytes() == b""
        assert not RequestView("POST", "http://example.com/", body="").has_body

    def test_headers_mutable_fields_frozen(self):
        request = RequestView("GET", "http://example.com/")
        request.add_header("X-Trace", "1")
        assert request.get_header("x-trace") == "1"

        with pytest.raises(AttributeError):
            request.url = "http://other.example.com/"


class TestApiKeyStrategy:
    """Test static API key authentication"""

    def test_sets_api_key_header(self):
        request = RequestView("GET", "http://example.com/")
        ApiKeyStrategy("key-1").apply(request)

        assert request.get_header("X-Api-Key") == "key-1"
        assert request.get_header("Authorization") is None

    def test_bearer_token(self, token_source):
        request = RequestView("GET", "http://example.com/")
        ApiKeyStrategy("key-1", token_source).apply(request)

        assert request.get_header("X-Api-Key") == "key-1"
        assert request.get_header("Authorization") == "Bearer token-123"
        token_source.get_access_token.assert_called_once_with()

    @pytest.mark.parametrize("token", [None, "", "  "])
    def test_blank_token_sets_no_authorization(self, token_source, token):
        token_source.get_access_token.return_value = token
        request = RequestView("GET", "http://example.com/")
        ApiKeyStrategy("key-1", token_source).apply(request)

        assert request.get_header("Authorization") is None

    @pytest.mark.parametrize("api_key", [None, "", "   "])
    def test_blank_key_rejected(self, api_key):
        with pytest.raises(ConfigurationError) as exc_info:
            ApiKeyStrategy(api_key)
        assert exc_info.value.error_code == ErrorCodes.BLANK_CREDENTIAL

    def test_token_source_error_propagates(self):
        source = Mock()
        source.get_access_token.side_effect = ConnectionError("token endpoint down")
        request = RequestView("GET", "http://example.com/")

        with pytest.raises(AuthSourceError):
            ApiKeyStrategy("key-1", source).apply(request)

    def test_repr_masks_key(self):
        assert "key-1" not in repr(ApiKeyStrategy("key-1"))


class TestBasicAuthStrategy:
    """Test HTTP Basic authentication"""

    def test_known_value(self):
        request = RequestView("GET", "http://example.com/")
        BasicAuthStrategy("Aladdin", "open sesame").apply(request)

        assert request.get_header("Authorization") == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="

    def test_utf8_credentials(self):
        request = RequestView("GET", "http://example.com/")
        BasicAuthStrategy("josé", "pässword").apply(request)

        assert request.get_header("Authorization") == "Basic am9zw6k6cMOkc3N3b3Jk"

    def test_blank_strings_allowed(self):
        request = RequestView("GET", "http://example.com/")
        BasicAuthStrategy("", "").apply(request)

        assert request.get_header("Authorization") == "Basic Og=="

    @pytest.mark.parametrize("username,password", [(None, "pw"), ("user", None)])
    def test_none_rejected(self, username, password):
        with pytest.raises(ConfigurationError):
            BasicAuthStrategy(username, password)

    def test_apply_is_idempotent(self):
        strategy = BasicAuthStrategy("user", "pw")
        request = RequestView("GET", "http://example.com/")
        strategy.apply(request)
        strategy.apply(request)

        assert len(request.headers.get_all("Authorization")) == 1

    def test_repr_hides_password(self):
        assert "s3cret" not in repr(BasicAuthStrategy("user", "s3cret"))


class TestSigningChain:
    """Test strategy composition"""

    def test_empty_chain_is_noop(self):
        request = RequestView("GET", "http://example.com/", headers={"Accept": "text/plain"})
        SigningChain().apply(request)

        assert request.headers.to_dict() == {"Accept": "text/plain"}
        assert len(SigningChain()) == 0

    def test_strategies_run_in_order(self):
        calls = []

        class Recording(SigningStrategy):
            def __init__(self, name):
                self.name = name

            def apply(self, request):
                calls.append((self.name, request.get_header("Authorization")))
                request.set_header("Authorization", self.name)

        request = RequestView("GET", "http://example.com/")
        SigningChain([Recording("first"), Recording("second")]).apply(request)

        assert calls == [("first", None), ("second", "first")]
        assert request.get_header("Authorization") == "second"

    def test_api_key_then_hawk(self, hawk_verifier):
        url = "http://example.com/items?page=1"
        request = RequestView("GET", url)
        chain = SigningChain().add(ApiKeyStrategy("key-1")).add(
            MacAuthStrategy("dh37fgj492je", "werxhqb98rpaxn39848xrunpaw3489ruxnpa98w4rxn")
        )

        chain.apply(request)

        assert request.get_header("X-Api-Key") == "key-1"
        assert hawk_verifier("GET", url, request.get_header("Authorization"))

    def test_error_stops_chain(self):
        second = Mock(spec=SigningStrategy)
        failing = Mock(spec=SigningStrategy)
        failing.apply.side_effect = AuthSourceError("boom")

        with pytest.raises(AuthSourceError):
            SigningChain([failing, second]).apply(RequestView("GET", "http://example.com/"))

        second.apply.assert_not_called()

    def test_rejects_non_strategy(self):
        with pytest.raises(ConfigurationError):
            SigningChain([lambda request: None])

    def test_iteration(self):
        strategies = [ApiKeyStrategy("a"), BasicAuthStrategy("u", "p")]
        chain = SigningChain(strategies)

        assert list(chain) == strategies
        assert len(chain) == 2

    def test_strategy_is_callable(self):
        request = RequestView("GET", "http://example.com/")
        ApiKeyStrategy("key-1")(request)
        assert request.get_header("X-Api-Key") == "key-1"
