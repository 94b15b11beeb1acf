"""Render capability contract and its Playwright implementation.

The acquisition stages only talk to the protocols below.  Anything that can
launch an isolated browser, open a page with a given :class:`BrowserProfile`
and hand back rendered HTML can stand in for :class:`PlaywrightRenderer`
(the tests use in-memory fakes).

Proxy authentication is an explicit, optional capability: a renderer either
consumes proxy credentials at launch (``authenticates_at_launch = True``) or
returns pages implementing :class:`AuthenticatingPage`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from feednly.browser.profiles import BrowserProfile
from feednly.browser.proxies import ProxyPoolEntry
from feednly.errors import NavigationTimeout

RouteHandler = Callable[[Any], None]

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
)
ROUTE_PATTERN = "**/*"


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

@runtime_checkable
class RenderPage(Protocol):
    """One browser tab.  Timeouts are in seconds."""

    def set_default_navigation_timeout(self, seconds: float) -> None: ...

    def set_default_timeout(self, seconds: float) -> None: ...

    def route(self, handler: RouteHandler) -> None:
        """Intercept every request; *handler* receives a Playwright-style route."""

    def unroute(self, handler: RouteHandler) -> None: ...

    def set_cookies(self, cookies: List[Dict[str, Any]]) -> None: ...

    def goto(self, url: str, *, wait_until: str, timeout: float) -> None:
        """Load *url*.  Must raise :class:`NavigationTimeout` on timeout."""

    def wait_for_selector(self, selector: str, *, timeout: float) -> None: ...

    def content(self) -> str: ...

    def close(self) -> None: ...


@runtime_checkable
class AuthenticatingPage(RenderPage, Protocol):
    """A page that can answer proxy authentication challenges itself."""

    def authenticate(self, username: str, password: str) -> None: ...


class RenderSession(Protocol):
    def new_page(self, profile: BrowserProfile) -> RenderPage: ...

    def close(self) -> None: ...


class Renderer(Protocol):
    authenticates_at_launch: bool

    def launch(self, proxy: Optional[ProxyPoolEntry] = None) -> RenderSession: ...


# ---------------------------------------------------------------------------
# Playwright implementation
# ---------------------------------------------------------------------------

class PlaywrightPage:
    """:class:`RenderPage` backed by a Playwright page in its own context."""

    def __init__(self, context: Any, page: Any) -> None:
        self._context = context
        self._page = page

    def set_default_navigation_timeout(self, seconds: float) -> None:
        self._page.set_default_navigation_timeout(seconds * 1000)

    def set_default_timeout(self, seconds: float) -> None:
        self._page.set_default_timeout(seconds * 1000)

    def route(self, handler: RouteHandler) -> None:
        self._page.route(ROUTE_PATTERN, handler)

    def unroute(self, handler: RouteHandler) -> None:
        self._page.unroute(ROUTE_PATTERN, handler)

    def set_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self._context.add_cookies(cookies)

    def goto(self, url: str, *, wait_until: str, timeout: float) -> None:
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError  # noqa: PLC0415

        try:
            self._page.goto(url, wait_until=wait_until, timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(str(exc)) from exc

    def wait_for_selector(self, selector: str, *, timeout: float) -> None:
        from playwright.sync_api import TimeoutError as PlaywrightTimeoutError  # noqa: PLC0415

        try:
            self._page.wait_for_selector(selector, timeout=timeout * 1000)
        except PlaywrightTimeoutError as exc:
            raise NavigationTimeout(str(exc)) from exc

    def content(self) -> str:
        return self._page.content()

    def close(self) -> None:
        try:
            self._page.close()
        finally:
            self._context.close()


class PlaywrightSession:
    """One Chromium process.  Each page gets a fresh browser context."""

    def __init__(self, playwright: Any, browser: Any) -> None:
        self._playwright = playwright
        self._browser = browser

    def new_page(self, profile: BrowserProfile) -> PlaywrightPage:
        context = self._browser.new_context(
            user_agent=profile.user_agent,
            viewport={"width": profile.viewport.width, "height": profile.viewport.height},
            device_scale_factor=profile.viewport.device_scale_factor,
            java_script_enabled=profile.javascript_enabled,
        )
        try:
            page = context.new_page()
        except Exception:
            context.close()
            raise
        return PlaywrightPage(context, page)

    def close(self) -> None:
        try:
            self._browser.close()
        finally:
            self._playwright.stop()


class PlaywrightRenderer:
    """Launches headless Chromium through the synchronous Playwright API.

    Playwright is imported lazily so the rest of the package (and the test
    suite) works without a browser install.  Proxy credentials are handed to
    Chromium at launch.
    """

    authenticates_at_launch = True

    def __init__(self, headless: bool = True, launch_args: tuple[str, ...] = LAUNCH_ARGS) -> None:
        self.headless = headless
        self.launch_args = launch_args

    def launch(self, proxy: Optional[ProxyPoolEntry] = None) -> PlaywrightSession:
        from playwright.sync_api import sync_playwright  # noqa: PLC0415

        playwright = sync_playwright().start()
        options: Dict[str, Any] = {"headless": self.headless, "args": list(self.launch_args)}
        if proxy is not None:
            options["proxy"] = proxy.playwright_config()
        try:
            browser = playwright.chromium.launch(**options)
        except Exception:
            playwright.stop()
            raise
        return PlaywrightSession(playwright, browser)
