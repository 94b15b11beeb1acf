"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

from feednly.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch) -> None:
        for name in (
            "SCRAPER_NAVIGATION_TIMEOUT_MS",
            "MOBILE_PROXY",
            "BRIGHTDATA_API_KEY",
            "BRIGHTDATA_ZONE",
            "SCRAPER_COOKIES_DIR",
            "PORT",
        ):
            monkeypatch.delenv(name, raising=False)
        s = Settings()
        assert s.navigation_timeout == 45.0
        assert s.brightdata_zone == "web_unlocker1"
        assert s.cookies_dir == Path("cookies")
        assert s.port == 8080
        assert s.proxy_configured is False
        assert s.unlocker_configured is False

    def test_navigation_timeout_floor(self, monkeypatch) -> None:
        monkeypatch.setenv("SCRAPER_NAVIGATION_TIMEOUT_MS", "1000")
        assert Settings().navigation_timeout == 5.0

    def test_invalid_navigation_timeout_uses_default(self, monkeypatch) -> None:
        monkeypatch.setenv("SCRAPER_NAVIGATION_TIMEOUT_MS", "soon")
        assert Settings().navigation_timeout == 45.0
        monkeypatch.setenv("SCRAPER_NAVIGATION_TIMEOUT_MS", "-5")
        assert Settings().navigation_timeout == 45.0

    def test_invalid_port_uses_default(self, monkeypatch) -> None:
        monkeypatch.setenv("PORT", "abc")
        assert Settings().port == 8080
        monkeypatch.setenv("PORT", "0")
        assert Settings().port == 8080

    def test_configured_flags(self, monkeypatch) -> None:
        monkeypatch.setenv("MOBILE_PROXY", "http://gate.example.net:7000")
        monkeypatch.setenv("BRIGHTDATA_API_KEY", "k")
        s = Settings()
        assert s.proxy_configured is True
        assert s.unlocker_configured is True
        assert "k" not in s.describe().values()
        assert "brightdata_api_key" not in s.describe()
