"""Tests for FastmailAuth, SessionCache and environment settings."""

import pytest

from conftest import ACCOUNT_ID, API_URL, SESSION_DOC, FakeTransport, json_response
from core.config import DEFAULT_BASE_URL, load_settings
from core.errors import AuthenticationError, ProtocolError, TransportError
from core.http import HttpResponse
from core.session import FastmailAuth, SessionCache


def make_cache(session_doc=None):
    transport = FakeTransport(session_doc)
    return SessionCache(FastmailAuth("tok", "https://api.test/"), transport), transport


class TestFastmailAuth:

    def test_headers_carry_bearer_token(self):
        headers = FastmailAuth("secret").headers()
        assert headers["Authorization"] == "Bearer secret"
        assert headers["Content-Type"] == "application/json"

    def test_session_url_strips_trailing_slash(self):
        assert FastmailAuth("t", "https://x.test/").session_url == "https://x.test/jmap/session"

    def test_empty_token_is_rejected(self):
        with pytest.raises(AuthenticationError):
            FastmailAuth("")


class TestSessionCache:

    def test_session_is_fetched_once(self):
        cache, transport = make_cache()

        first = cache.get()
        second = cache.get()

        assert first is second
        assert len(transport.requests) == 1
        method, url, headers, _ = transport.requests[0]
        assert (method, url) == ("GET", "https://api.test/jmap/session")
        assert headers["Authorization"] == "Bearer tok"

    def test_session_fields(self):
        cache, _ = make_cache()
        session = cache.get()
        assert session.api_url == API_URL
        assert session.account_id == ACCOUNT_ID
        assert session.username == "me@example.com"
        assert session.supports("urn:ietf:params:jmap:mail")
        assert not session.supports("urn:ietf:params:jmap:contacts")

    def test_first_account_wins(self):
        doc = dict(SESSION_DOC, accounts={"first": {}, "second": {}})
        cache, _ = make_cache(doc)
        assert cache.get().account_id == "first"

    def test_account_capabilities_are_merged(self):
        doc = dict(
            SESSION_DOC,
            capabilities={},
            accounts={"a1": {"accountCapabilities": {"urn:ietf:params:jmap:contacts": {}}}},
        )
        cache, _ = make_cache(doc)
        assert cache.get().supports("urn:ietf:params:jmap:contacts")

    def test_reset_forces_refetch(self):
        cache, transport = make_cache()
        cache.get()
        cache.reset()
        assert not cache.loaded
        cache.get()
        assert len(transport.requests) == 2

    @pytest.mark.parametrize("status", [401, 403])
    def test_rejected_credential(self, status):
        cache, _ = make_cache(HttpResponse(status=status, reason="Unauthorized", body=b""))
        with pytest.raises(AuthenticationError) as exc_info:
            cache.get()
        assert exc_info.value.status == status

    def test_server_error_is_transport_error(self):
        cache, _ = make_cache(HttpResponse(status=503, reason="Service Unavailable", body=b""))
        with pytest.raises(TransportError) as exc_info:
            cache.get()
        assert not isinstance(exc_info.value, AuthenticationError)
        assert exc_info.value.status == 503
        assert "Service Unavailable" in str(exc_info.value)

    def test_failed_fetch_is_not_cached(self):
        cache, transport = make_cache(HttpResponse(status=500, reason="Oops", body=b""))
        with pytest.raises(TransportError):
            cache.get()
        transport.session_doc = SESSION_DOC
        assert cache.get().account_id == ACCOUNT_ID

    @pytest.mark.parametrize("doc", [
        HttpResponse(status=200, reason="OK", body=b"{not json"),
        json_response(["a list"]),
        json_response({"apiUrl": API_URL, "accounts": {}}),
        json_response({"accounts": {"u1": {}}}),
    ])
    def test_malformed_session_is_protocol_error(self, doc):
        cache, _ = make_cache(doc)
        with pytest.raises(ProtocolError):
            cache.get()


class TestSettings:

    def test_token_is_required(self, monkeypatch):
        monkeypatch.delenv("FASTMAIL_API_TOKEN", raising=False)
        with pytest.raises(AuthenticationError, match="FASTMAIL_API_TOKEN"):
            load_settings(env_file=False)

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("FASTMAIL_API_TOKEN", "abc")
        monkeypatch.delenv("FASTMAIL_BASE_URL", raising=False)
        monkeypatch.delenv("FASTMAIL_TIMEOUT", raising=False)
        settings = load_settings(env_file=False)
        assert settings.api_token == "abc"
        assert settings.base_url == DEFAULT_BASE_URL
        assert settings.timeout == 30.0

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("FASTMAIL_API_TOKEN", "abc")
        monkeypatch.setenv("FASTMAIL_BASE_URL", "https://mail.test/")
        monkeypatch.setenv("FASTMAIL_TIMEOUT", "5")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        settings = load_settings(env_file=False)
        assert settings.base_url == "https://mail.test"
        assert settings.timeout == 5.0
        assert settings.log_level == "DEBUG"

    def test_bad_timeout(self, monkeypatch):
        monkeypatch.setenv("FASTMAIL_API_TOKEN", "abc")
        monkeypatch.setenv("FASTMAIL_TIMEOUT", "soon")
        with pytest.raises(ValueError):
            load_settings(env_file=False)
