"""Centralised settings for the Feednly scraper.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from this package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

DEFAULT_NAVIGATION_TIMEOUT_MS = 45_000
MIN_NAVIGATION_TIMEOUT_MS = 5_000
DEFAULT_PORT = 8080


def _env_int(name: str, default: int) -> int:
    """Read an integer env var, falling back to *default* when unset or invalid."""
    raw = os.environ.get(name, "").strip()
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _navigation_timeout_seconds() -> float:
    """``SCRAPER_NAVIGATION_TIMEOUT_MS`` in seconds, floored at 5 s."""
    ms = _env_int("SCRAPER_NAVIGATION_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS)
    if ms <= 0:
        ms = DEFAULT_NAVIGATION_TIMEOUT_MS
    return max(MIN_NAVIGATION_TIMEOUT_MS, ms) / 1000


def _port() -> int:
    port = _env_int("PORT", DEFAULT_PORT)
    return port if port > 0 else DEFAULT_PORT


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Navigation / rendering
    # ------------------------------------------------------------------
    navigation_timeout: float = field(default_factory=_navigation_timeout_seconds)
    headless: bool = field(default_factory=lambda: _env_bool("SCRAPER_HEADLESS", True))

    # ------------------------------------------------------------------
    # Stage 2: proxied render
    # ------------------------------------------------------------------
    proxy_pool: str = field(default_factory=lambda: os.environ.get("MOBILE_PROXY", ""))
    cookies_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("SCRAPER_COOKIES_DIR", "cookies"))
    )

    # ------------------------------------------------------------------
    # Stage 3: remote unlocker
    # ------------------------------------------------------------------
    brightdata_api_key: str = field(
        default_factory=lambda: os.environ.get("BRIGHTDATA_API_KEY", "")
    )
    brightdata_zone: str = field(
        default_factory=lambda: os.environ.get("BRIGHTDATA_ZONE", "") or "web_unlocker1"
    )
    brightdata_endpoint: str = field(
        default_factory=lambda: os.environ.get(
            "BRIGHTDATA_ENDPOINT", "https://api.brightdata.com/request"
        )
    )
    http_max_redirects: int = field(
        default_factory=lambda: _env_int("SCRAPER_MAX_REDIRECTS", 5)
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    max_image_results: int = field(default_factory=lambda: _env_int("SCRAPER_MAX_IMAGES", 20))
    best_image_limit: int = field(default_factory=lambda: _env_int("SCRAPER_BEST_IMAGES", 8))

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    host: str = field(default_factory=lambda: os.environ.get("HOST", "0.0.0.0"))
    port: int = field(default_factory=_port)

    @property
    def proxy_configured(self) -> bool:
        """``True`` when a non-blank proxy pool string is present."""
        return bool(self.proxy_pool.strip())

    @property
    def unlocker_configured(self) -> bool:
        """``True`` when the remote-unlocker API key is present."""
        return bool(self.brightdata_api_key.strip())

    def describe(self) -> dict[str, object]:
        """Non-secret view of the effective configuration."""
        return {
            "navigation_timeout": self.navigation_timeout,
            "headless": self.headless,
            "proxy_configured": self.proxy_configured,
            "unlocker_configured": self.unlocker_configured,
            "brightdata_zone": self.brightdata_zone,
            "cookies_dir": str(self.cookies_dir),
            "max_image_results": self.max_image_results,
            "best_image_limit": self.best_image_limit,
            "http_max_redirects": self.http_max_redirects,
            "host": self.host,
            "port": self.port,
        }


# Module-level singleton. Import this everywhere:
#   from feednly.config import settings
settings = Settings()
