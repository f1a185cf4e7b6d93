"""
Test suite for requests integration

Signing is exercised through PreparedRequest objects, so no network access
is needed.
"""

import pytest
import requests

from monarch_sdk.signing import (
    ApiKeyStrategy,
    BasicAuthStrategy,
    MacAuthStrategy,
    SigningAuth,
    SigningChain,
    SigningStrategy,
    create_signing_session,
    disable_request_signing,
    request_view_from_prepared,
    sign_prepared_request,
)
from monarch_sdk.exceptions import AuthSourceError, ConfigurationError, ValidationError

KEY_ID = "dh37fgj492je"
SECRET = "werxhqb98rpaxn39848xrunpaw3489ruxnpa98w4rxn"


class TestRequestViewFromPrepared:
    """Test conversion of prepared requests"""

    def test_form_body(self):
        prepared = requests.Request("POST", "http://example.com/items", data={"a": "1"}).prepare()
        view = request_view_from_prepared(prepared)

        assert view.method.value == "POST"
        assert view.url == "http://example.com/items"
        assert view.body == "a=1"
        assert view.content_type == "application/x-www-form-urlencoded"

    def test_json_body(self):
        prepared = requests.Request("PUT", "http://example.com/items/1", json={"x": 1}).prepare()
        view = request_view_from_prepared(prepared)

        assert view.body == b'{"x": 1}'
        assert view.content_type == "application/json"

    def test_view_does_not_share_headers(self):
        prepared = requests.Request("GET", "http://example.com/", headers={"X-A": "1"}).prepare()
        view = request_view_from_prepared(prepared)
        view.set_header("X-A", "2")

        assert prepared.headers["X-A"] == "1"

    def test_streaming_body_rejected(self):
        def chunks():
            yield b"part"

        prepared = requests.Request("POST", "http://example.com/upload", data=chunks()).prepare()
        with pytest.raises(ValidationError):
            request_view_from_prepared(prepared)


class TestSignPreparedRequest:
    """Test signing of prepared requests"""

    def test_hawk_signature_verifies(self, hawk_verifier):
        prepared = requests.Request(
            "GET", "http://example.com/search", params={"q": "x y", "page": 2}
        ).prepare()

        sign_prepared_request(prepared, MacAuthStrategy(KEY_ID, SECRET))

        assert hawk_verifier("GET", prepared.url, prepared.headers["Authorization"])

    def test_hawk_payload_signature_verifies(self, hawk_verifier):
        prepared = requests.Request("POST", "https://example.com/items", json={"name": "Ada"}).prepare()

        sign_prepared_request(prepared, MacAuthStrategy(KEY_ID, SECRET))

        assert "hash=" in prepared.headers["Authorization"]
        assert hawk_verifier("POST", prepared.url, prepared.headers["Authorization"],
                             content_type=prepared.headers["Content-Type"], body=prepared.body)

    def test_multi_valued_headers_are_joined(self):
        class Tagging(SigningStrategy):
            def apply(self, request):
                request.add_header("X-Auth-Tag", "one")
                request.add_header("X-Auth-Tag", "two")

        prepared = requests.Request("GET", "http://example.com/").prepare()
        sign_prepared_request(prepared, Tagging())

        assert prepared.headers["X-Auth-Tag"] == "one, two"

    def test_bytes_content_type(self, hawk_verifier):
        url = "http://example.com/notes"
        auth = SigningAuth(MacAuthStrategy(KEY_ID, SECRET))
        prepared = requests.Request(
            "POST", url, data=b"hi", headers={"Content-Type": b"text/plain"}, auth=auth
        ).prepare()

        assert prepared.headers["Content-Type"] == b"text/plain"
        assert hawk_verifier("POST", prepared.url, prepared.headers["Authorization"],
                             content_type="text/plain", body=prepared.body)

    def test_only_changed_headers_are_written_back(self):
        prepared = requests.Request("GET", "http://example.com/", headers={"X-Trace": b"abc"}).prepare()
        sign_prepared_request(prepared, ApiKeyStrategy("key-1"))

        assert prepared.headers["X-Trace"] == b"abc"
        assert prepared.headers["X-Api-Key"] == "key-1"

    def test_existing_headers_survive(self):
        prepared = requests.Request("GET", "http://example.com/", headers={"Accept": "text/plain"}).prepare()
        sign_prepared_request(prepared, ApiKeyStrategy("key-1"))

        assert prepared.headers["Accept"] == "text/plain"
        assert prepared.headers["X-Api-Key"] == "key-1"


class TestSigningAuth:
    """Test the requests auth hook"""

    def test_per_request_auth(self):
        auth = SigningAuth(BasicAuthStrategy("Aladdin", "open sesame"))
        prepared = requests.Request("GET", "http://example.com/", auth=auth).prepare()

        assert prepared.headers["Authorization"] == "Basic QWxhZGRpbjpvcGVuIHNlc2FtZQ=="

    def test_session_auth(self, hawk_verifier):
        chain = SigningChain([ApiKeyStrategy("key-1"), MacAuthStrategy(KEY_ID, SECRET)])
        session = create_signing_session(chain)

        prepared = session.prepare_request(requests.Request("DELETE", "https://example.com/items/9"))

        assert prepared.headers["X-Api-Key"] == "key-1"
        assert hawk_verifier("DELETE", prepared.url, prepared.headers["Authorization"])
        session.close()

    def test_disable_request_signing(self):
        session = create_signing_session(ApiKeyStrategy("key-1"))
        disable_request_signing(session)

        prepared = session.prepare_request(requests.Request("GET", "https://example.com/"))
        assert "X-Api-Key" not in prepared.headers
        session.close()

    def test_signing_failure_is_not_swallowed(self, token_source):
        token_source.get_access_token.side_effect = RuntimeError("expired refresh token")
        auth = SigningAuth(ApiKeyStrategy("key-1", token_source))

        with pytest.raises(AuthSourceError):
            requests.Request("GET", "http://example.com/", auth=auth).prepare()

    def test_unsupported_method(self):
        auth = SigningAuth(ApiKeyStrategy("key-1"))
        with pytest.raises(ValidationError):
            requests.Request("PATCH", "http://example.com/", auth=auth).prepare()

    def test_requires_strategy(self):
        with pytest.raises(ConfigurationError):
            SigningAuth("not a strategy")
