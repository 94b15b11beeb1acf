"""Client for the BrightData Web Unlocker request API.

One POST per call, never retried.  The API answers either with the page HTML
directly or with a JSON envelope; :func:`body_from_payload` knows the
envelope shapes seen in practice.
"""

from __future__ import annotations

import re
from typing import Any, Optional

import httpx

from feednly.config import settings
from feednly.errors import RemoteCallFailure

PREVIEW_LENGTH = 320

# Envelope paths tried in order when the response is JSON.
_BODY_PATHS = (
    ("solution", "response", "body"),
    ("solution", "content"),
    ("response", "body"),
    ("body",),
)


def _dig(payload: Any, path: tuple[str, ...]) -> Any:
    node = payload
    for key in path:
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


def body_from_payload(payload: Any) -> Optional[str]:
    """Pull page HTML out of an unlocker response payload.

    Returns ``None`` when no non-blank body is present.
    """
    candidates = [_as_text(payload)]
    if isinstance(payload, dict):
        for path in _BODY_PATHS:
            value = _dig(payload, path)
            if value:
                candidates.append(_as_text(value))
                break
    for candidate in candidates:
        if candidate and candidate.strip():
            return candidate
    return None


def html_preview(html: str, limit: int = PREVIEW_LENGTH) -> str:
    """Whitespace-collapsed prefix of *html* for log lines."""
    normalized = re.sub(r"\s+", " ", html or "").strip()
    if len(normalized) <= limit:
        return normalized
    return normalized[:limit] + "…"


class UnlockerClient:
    """Thin httpx wrapper around the unlocker endpoint."""

    def __init__(
        self,
        api_key: str,
        zone: str = "web_unlocker1",
        endpoint: str = "https://api.brightdata.com/request",
        timeout: float = 45.0,
        max_redirects: int = 5,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.zone = zone
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._transport = transport

    @classmethod
    def from_settings(cls) -> "UnlockerClient":
        return cls(
            api_key=settings.brightdata_api_key,
            zone=settings.brightdata_zone,
            endpoint=settings.brightdata_endpoint,
            timeout=settings.navigation_timeout,
            max_redirects=settings.http_max_redirects,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    def fetch_html(self, url: str) -> str:
        """Fetch *url* through the unlocker and return the page HTML.

        Raises:
            RemoteCallFailure: On HTTP errors, network errors or an empty body.
        """
        payload = {"zone": self.zone, "url": url, "format": "raw"}
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        print(f"[unlocker] request start zone={self.zone} url={url}")

        try:
            with httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                max_redirects=self.max_redirects,
                transport=self._transport,
            ) as client:
                response = client.post(self.endpoint, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            print(f"[unlocker] HTTP {status}: {html_preview(exc.response.text)}")
            raise RemoteCallFailure(f"Unlocker returned HTTP {status}", status_code=status) from exc
        except httpx.HTTPError as exc:
            print(f"[unlocker] request failed: {exc!r:.200}")
            raise RemoteCallFailure(str(exc) or "Unlocker request failed") from exc

        print(f"[unlocker] response status={response.status_code}")
        content_type = response.headers.get("content-type", "")
        if "json" in content_type:
            try:
                data: Any = response.json()
            except ValueError:
                data = response.content
        else:
            data = response.content

        html = body_from_payload(data)
        if html is None:
            print("[unlocker] empty response body")
            raise RemoteCallFailure("Empty response body", status_code=response.status_code)

        print(f"[unlocker] html length={len(html)} preview={html_preview(html)!r}")
        return html
