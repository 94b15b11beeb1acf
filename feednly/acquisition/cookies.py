"""Per-domain cookie files for the proxied render stage.

Cookies live in ``<cookies_dir>/<domain>_cookies.json`` as a JSON array,
usually exported from a real browser session.  Browser-extension exports use
slightly different field names than Playwright expects, so every record is
normalized before it reaches the page.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from feednly.config import settings

_SAME_SITE = {
    "strict": "Strict",
    "lax": "Lax",
    "none": "None",
    "no_restriction": "None",
}


def normalize_cookie(record: Dict[str, Any], domain: str) -> Optional[Dict[str, Any]]:
    """Map an exported cookie record to Playwright's ``add_cookies`` shape.

    Returns ``None`` for records without a name.
    """
    name = record.get("name")
    if not name:
        return None

    cookie: Dict[str, Any] = {
        "name": str(name),
        "value": str(record.get("value", "")),
        "domain": record.get("domain") or domain,
        "path": record.get("path") or "/",
    }

    expires = record.get("expires", record.get("expirationDate"))
    if isinstance(expires, (int, float)) and not isinstance(expires, bool) and expires > 0:
        cookie["expires"] = float(expires)

    if "httpOnly" in record:
        cookie["httpOnly"] = bool(record["httpOnly"])
    if "secure" in record:
        cookie["secure"] = bool(record["secure"])

    same_site = _SAME_SITE.get(str(record.get("sameSite", "")).lower())
    if same_site:
        cookie["sameSite"] = same_site
    return cookie


class CookieStore:
    """Read-only access to the cookie directory."""

    def __init__(self, directory: Optional[Path] = None) -> None:
        self.directory = Path(directory) if directory is not None else settings.cookies_dir

    def path_for(self, domain: str) -> Path:
        return self.directory / f"{domain}_cookies.json"

    def load(self, domain: Optional[str]) -> List[Dict[str, Any]]:
        """Return normalized cookies for *domain*, or ``[]``.

        A missing file is normal.  An unreadable file or one that does not
        hold a JSON array is logged and treated as empty.
        """
        if not domain:
            return []
        path = self.path_for(domain)
        if not path.exists():
            return []
        try:
            records = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            print(f"[cookies] failed to load {path}: {exc}")
            return []
        if not isinstance(records, list):
            print(f"[cookies] {path} does not contain a JSON array; ignoring")
            return []

        cookies = []
        for record in records:
            if not isinstance(record, dict):
                continue
            cookie = normalize_cookie(record, domain)
            if cookie is not None:
                cookies.append(cookie)
        return cookies
