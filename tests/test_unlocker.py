"""Tests for the remote unlocker client and the cookie store.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so no real network calls
  are made.
- Cookie files are written to pytest's ``tmp_path``.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
import respx

from feednly.acquisition.cookies import CookieStore, normalize_cookie
from feednly.acquisition.unlocker import UnlockerClient, body_from_payload, html_preview
from feednly.config import settings
from feednly.errors import RemoteCallFailure

_ENDPOINT = "https://api.brightdata.com/request"
_HTML = "<html><head><title>Shoe</title></head><body>ok</body></html>"


def _client() -> UnlockerClient:
    return UnlockerClient(api_key="secret-key", zone="zone-a", endpoint=_ENDPOINT, timeout=5)


# ---------------------------------------------------------------------------
# body_from_payload / html_preview
# ---------------------------------------------------------------------------

class TestBodyFromPayload:
    def test_plain_string(self) -> None:
        assert body_from_payload(_HTML) == _HTML

    def test_raw_bytes(self) -> None:
        assert body_from_payload(_HTML.encode("utf-8")) == _HTML

    @pytest.mark.parametrize(
        "payload",
        [
            {"solution": {"response": {"body": _HTML}}},
            {"solution": {"content": _HTML}},
            {"response": {"body": _HTML}},
            {"body": _HTML},
        ],
    )
    def test_json_envelopes(self, payload) -> None:
        assert body_from_payload(payload) == _HTML

    def test_blank_body(self) -> None:
        assert body_from_payload({"body": "   "}) is None
        assert body_from_payload({"status": "ok"}) is None
        assert body_from_payload(None) is None


class TestHtmlPreview:
    def test_collapses_whitespace(self) -> None:
        assert html_preview("<p>\n  a \t b </p>") == "<p> a b </p>"

    def test_truncates(self) -> None:
        preview = html_preview("x" * 1000)
        assert preview == "x" * 320 + "…"


# ---------------------------------------------------------------------------
# UnlockerClient
# ---------------------------------------------------------------------------

class TestUnlockerClient:
    def test_posts_zone_url_and_bearer_token(self) -> None:
        with respx.mock:
            route = respx.post(_ENDPOINT).mock(
                return_value=httpx.Response(200, text=_HTML, headers={"content-type": "text/html"})
            )
            html = _client().fetch_html("https://shop.example.com/p/1")

        assert html == _HTML
        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer secret-key"
        assert json.loads(request.content) == {
            "zone": "zone-a",
            "url": "https://shop.example.com/p/1",
            "format": "raw",
        }

    def test_json_envelope_response(self) -> None:
        with respx.mock:
            respx.post(_ENDPOINT).mock(
                return_value=httpx.Response(200, json={"solution": {"response": {"body": _HTML}}})
            )
            assert _client().fetch_html("https://shop.example.com/p/1") == _HTML

    def test_http_error_carries_status(self) -> None:
        with respx.mock:
            respx.post(_ENDPOINT).mock(return_value=httpx.Response(401, text="bad key"))
            with pytest.raises(RemoteCallFailure) as info:
                _client().fetch_html("https://shop.example.com/p/1")
        assert info.value.status_code == 401

    def test_network_error(self) -> None:
        with respx.mock:
            respx.post(_ENDPOINT).mock(side_effect=httpx.ConnectError("connection refused"))
            with pytest.raises(RemoteCallFailure) as info:
                _client().fetch_html("https://shop.example.com/p/1")
        assert info.value.status_code is None

    def test_empty_body(self) -> None:
        with respx.mock:
            respx.post(_ENDPOINT).mock(return_value=httpx.Response(200, json={"body": ""}))
            with pytest.raises(RemoteCallFailure, match="Empty response body"):
                _client().fetch_html("https://shop.example.com/p/1")

    def test_from_settings(self) -> None:
        with patch.object(settings, "brightdata_api_key", "k-123"), patch.object(
            settings, "brightdata_zone", "zone-b"
        ):
            client = UnlockerClient.from_settings()
        assert client.api_key == "k-123"
        assert client.zone == "zone-b"
        assert client.configured is True
        assert UnlockerClient(api_key="  ").configured is False


# ---------------------------------------------------------------------------
# CookieStore
# ---------------------------------------------------------------------------

class TestCookieStore:
    def test_loads_and_normalizes(self, tmp_path) -> None:
        records = [
            {
                "name": "sid",
                "value": "abc",
                "domain": ".shop.example.com",
                "expirationDate": 1999999999.5,
                "sameSite": "no_restriction",
                "secure": True,
                "hostOnly": False,
            },
            "not a cookie",
            {"value": "nameless"},
        ]
        (tmp_path / "shop.example.com_cookies.json").write_text(json.dumps(records))

        cookies = CookieStore(tmp_path).load("shop.example.com")

        assert cookies == [
            {
                "name": "sid",
                "value": "abc",
                "domain": ".shop.example.com",
                "path": "/",
                "expires": 1999999999.5,
                "secure": True,
                "sameSite": "None",
            }
        ]

    def test_missing_file(self, tmp_path) -> None:
        assert CookieStore(tmp_path).load("shop.example.com") == []

    def test_invalid_json(self, tmp_path) -> None:
        (tmp_path / "shop.example.com_cookies.json").write_text("{not json")
        assert CookieStore(tmp_path).load("shop.example.com") == []

    def test_non_list_json(self, tmp_path) -> None:
        (tmp_path / "shop.example.com_cookies.json").write_text('{"name": "sid"}')
        assert CookieStore(tmp_path).load("shop.example.com") == []

    def test_no_domain(self, tmp_path) -> None:
        assert CookieStore(tmp_path).load(None) == []

    def test_domain_defaults_to_target(self) -> None:
        cookie = normalize_cookie({"name": "a", "value": "b", "sameSite": "lax"}, "shop.example.com")
        assert cookie == {
            "name": "a",
            "value": "b",
            "domain": "shop.example.com",
            "path": "/",
            "sameSite": "Lax",
        }
