"""The three acquisition stages, cheapest first.

  1. :class:`DirectRenderStage`: headless browser, no proxy.
  2. :class:`ProxiedRenderStage`: headless browser through each configured
     proxy in turn, with per-domain cookies attached.
  3. :class:`UnlockerStage`: the paid remote unlocker, one request.

Each stage owns its own error handling: :meth:`Stage.run` always returns a
:class:`StageOutcome` and never raises.  :meth:`Stage.check_available` raises
:class:`ConfigurationMissing` when the stage cannot run at all.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional
from urllib.parse import urlsplit

from feednly.acquisition.cookies import CookieStore
from feednly.acquisition.models import (
    BRIGHTDATA,
    STAGE1,
    STAGE2,
    STAGE3,
    StageMeta,
    StageOutcome,
)
from feednly.acquisition.pacing import Pacer
from feednly.acquisition.unlocker import UnlockerClient, html_preview
from feednly.browser.navigator import NavigationResult, Navigator
from feednly.browser.profiles import BrowserProfile, random_profile
from feednly.browser.proxies import ProxyPoolEntry, parse_proxy_pool
from feednly.browser.render import AuthenticatingPage, Renderer, RenderPage, RenderSession
from feednly.browser.request_filter import filtered
from feednly.config import settings
from feednly.errors import (
    ConfigurationMissing,
    NavigationError,
    RemoteCallFailure,
    RenderCapabilityError,
)
from feednly.scraper import extract, is_valid
from feednly.scraper.models import ExtractedContent

MIN_DEFAULT_TIMEOUT = 30.0
UNLOCKER_COST_ESTIMATE = 0.0015

Clock = Callable[[], float]


def _round(seconds: float) -> float:
    return round(seconds, 3)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class Stage(ABC):
    """One step of the escalation ladder."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Label reported in a successful outcome's ``meta.stage``."""

    @property
    def step(self) -> str:
        """Key of this stage in the per-run disposition map."""
        return self.name

    def check_available(self) -> None:
        """Raise :class:`ConfigurationMissing` if the stage cannot run."""

    @abstractmethod
    def run(self, url: str) -> StageOutcome:
        """Attempt acquisition of *url*.  Must not raise."""


# ---------------------------------------------------------------------------
# Browser-backed stages
# ---------------------------------------------------------------------------

@dataclass
class RenderAttempt:
    """What one browser session produced."""

    content: ExtractedContent
    profile: BrowserProfile
    navigation: Optional[NavigationResult] = None
    navigation_error: Optional[NavigationError] = None

    @property
    def wait_until(self) -> Optional[str]:
        if self.navigation is not None:
            return self.navigation.strategy
        if self.navigation_error is not None:
            return self.navigation_error.strategy
        return None

    @property
    def timed_out(self) -> bool:
        if self.navigation is not None:
            return self.navigation.timed_out
        return bool(self.navigation_error and self.navigation_error.timed_out)


class RenderStage(Stage):
    """Shared session/page lifecycle for the browser-backed stages."""

    def __init__(
        self,
        renderer: Renderer,
        navigator: Optional[Navigator] = None,
        pacer: Optional[Pacer] = None,
        clock: Clock = time.perf_counter,
    ) -> None:
        self.renderer = renderer
        self.navigator = navigator or Navigator()
        self.pacer = pacer or Pacer()
        self._clock = clock

    @contextmanager
    def _session(self, proxy: Optional[ProxyPoolEntry]) -> Iterator[RenderSession]:
        session = self.renderer.launch(proxy)
        try:
            yield session
        finally:
            try:
                session.close()
            except Exception as exc:
                print(f"[{self.name}] failed to close browser: {exc}")

    @contextmanager
    def _page(self, session: RenderSession, profile: BrowserProfile) -> Iterator[RenderPage]:
        page = session.new_page(profile)
        try:
            yield page
        finally:
            try:
                page.close()
            except Exception as exc:
                print(f"[{self.name}] failed to close page: {exc}")

    def _configure(self, page: RenderPage) -> None:
        timeout = self.navigator.timeout
        page.set_default_navigation_timeout(timeout)
        page.set_default_timeout(max(timeout, MIN_DEFAULT_TIMEOUT))

    def _authenticate(self, page: RenderPage, proxy: ProxyPoolEntry) -> None:
        if not proxy.has_credentials or self.renderer.authenticates_at_launch:
            return
        if not isinstance(page, AuthenticatingPage):
            raise RenderCapabilityError("renderer cannot authenticate against the proxy")
        page.authenticate(proxy.username or "", proxy.password or "")

    def _apply_cookies(self, page: RenderPage, cookies: List[Dict[str, Any]]) -> None:
        if not cookies:
            return
        try:
            page.set_cookies(cookies)
        except Exception as exc:
            print(f"[{self.name}] failed to apply cookies: {exc}")

    def _attempt(
        self,
        url: str,
        proxy: Optional[ProxyPoolEntry] = None,
        cookies: Optional[List[Dict[str, Any]]] = None,
    ) -> RenderAttempt:
        """Render *url* once.

        Navigation errors are recorded on the result rather than raised: a
        page that never finished loading can still hold everything needed.
        Launch and capability errors propagate.
        """
        profile = random_profile(self.pacer.rng)
        with self._session(proxy) as session, self._page(session, profile) as page:
            self._configure(page)
            with filtered(page, url):
                print(
                    f"[{self.name}] start ua={profile.user_agent!r} "
                    f"viewport={profile.viewport.width}x{profile.viewport.height}"
                )
                if proxy is not None:
                    self._authenticate(page, proxy)
                    self._apply_cookies(page, cookies or [])
                    self.pacer.before_navigation()

                navigation: Optional[NavigationResult] = None
                navigation_error: Optional[NavigationError] = None
                try:
                    navigation = self.navigator.navigate(page, url)
                except NavigationError as exc:
                    navigation_error = exc
                    print(f"[{self.name}] navigation error: {exc}")

                self.pacer.human_delay()
                html = page.content()

        attempt = RenderAttempt(
            content=extract(html, url),
            profile=profile,
            navigation=navigation,
            navigation_error=navigation_error,
        )
        print(
            f"[{self.name}] navigation wait_until={attempt.wait_until} "
            f"timed_out={attempt.timed_out}"
        )
        return attempt

    def _failure(self, start: float, error: str, attempts: Optional[int] = None) -> StageOutcome:
        meta = StageMeta(stage=self.name, duration_seconds=_round(self._clock() - start), attempts=attempts)
        return StageOutcome(ok=False, stage=self.name, meta=meta, error=error)

    def _success(
        self,
        start: float,
        attempt: RenderAttempt,
        proxy: Optional[ProxyPoolEntry] = None,
        attempts: Optional[int] = None,
    ) -> StageOutcome:
        meta = StageMeta(
            stage=self.name,
            duration_seconds=_round(self._clock() - start),
            user_agent=attempt.profile.user_agent,
            proxy=proxy.server if proxy is not None else None,
            attempts=attempts,
            navigation_wait_until=attempt.wait_until,
            navigation_timed_out=attempt.timed_out,
        )
        content = attempt.content
        print(f"[{self.name}] success title={content.title!r} images={len(content.images)} in {meta.duration_seconds}s")
        return StageOutcome(ok=True, stage=self.name, meta=meta, content=content)

    def _attempt_error(self, attempt: RenderAttempt) -> str:
        if attempt.navigation_error is not None:
            return str(attempt.navigation_error)
        return f"{self.name} produced no valid result"


class DirectRenderStage(RenderStage):
    """Stage 1: plain headless render."""

    @property
    def name(self) -> str:
        return STAGE1

    def run(self, url: str) -> StageOutcome:
        start = self._clock()
        try:
            attempt = self._attempt(url)
        except Exception as exc:
            print(f"[{self.name}] error: {exc!r}")
            return self._failure(start, str(exc) or exc.__class__.__name__)

        if is_valid(attempt.content):
            return self._success(start, attempt)
        return self._failure(start, self._attempt_error(attempt))


class ProxiedRenderStage(RenderStage):
    """Stage 2: render through each pooled proxy until one yields valid content."""

    def __init__(
        self,
        renderer: Renderer,
        navigator: Optional[Navigator] = None,
        pacer: Optional[Pacer] = None,
        clock: Clock = time.perf_counter,
        proxy_pool: Optional[str] = None,
        cookie_store: Optional[CookieStore] = None,
    ) -> None:
        super().__init__(renderer, navigator=navigator, pacer=pacer, clock=clock)
        self.proxy_pool = proxy_pool
        self.cookie_store = cookie_store or CookieStore()

    @property
    def name(self) -> str:
        return STAGE2

    def _pool(self) -> List[ProxyPoolEntry]:
        raw = settings.proxy_pool if self.proxy_pool is None else self.proxy_pool
        if not raw or not raw.strip():
            raise ConfigurationMissing("MOBILE_PROXY missing")
        entries = parse_proxy_pool(raw)
        if not entries:
            raise ConfigurationMissing("MOBILE_PROXY has no usable proxy entries")
        return entries

    def check_available(self) -> None:
        self._pool()

    def run(self, url: str) -> StageOutcome:
        start = self._clock()
        try:
            pool = self.pacer.shuffled(self._pool())
        except ConfigurationMissing as exc:
            return self._failure(start, str(exc))

        cookies = self.cookie_store.load(urlsplit(url).hostname)
        last_error = f"{self.name} failed"
        attempts = 0
        for index, proxy in enumerate(pool, start=1):
            attempts = index
            print(f"[{self.name}] attempt {index}/{len(pool)} via {proxy.server}")
            try:
                attempt = self._attempt(url, proxy=proxy, cookies=cookies)
            except Exception as exc:
                last_error = str(exc) or exc.__class__.__name__
                print(f"[{self.name}] attempt {index} failed: {exc!r}")
            else:
                if is_valid(attempt.content):
                    return self._success(start, attempt, proxy=proxy, attempts=index)
                last_error = self._attempt_error(attempt)
                print(f"[{self.name}] attempt {index} invalid: {last_error}")

            if index < len(pool):
                self.pacer.backoff()

        return self._failure(start, last_error, attempts=attempts)


# ---------------------------------------------------------------------------
# Remote unlocker
# ---------------------------------------------------------------------------

class UnlockerStage(Stage):
    """Stage 3: a single request to the remote unlocker."""

    def __init__(self, client: Optional[UnlockerClient] = None, clock: Clock = time.perf_counter) -> None:
        self._client = client
        self._clock = clock

    @property
    def name(self) -> str:
        return BRIGHTDATA

    @property
    def step(self) -> str:
        return STAGE3

    @property
    def client(self) -> UnlockerClient:
        if self._client is None:
            self._client = UnlockerClient.from_settings()
        return self._client

    def check_available(self) -> None:
        if not self.client.configured:
            raise ConfigurationMissing("BRIGHTDATA_API_KEY missing")

    def _failure(self, start: float, error: str, status_code: Optional[int] = None) -> StageOutcome:
        meta = StageMeta(
            stage=self.step,
            duration_seconds=_round(self._clock() - start),
            attempts=1,
            status_code=status_code,
        )
        return StageOutcome(ok=False, stage=self.step, meta=meta, error=error)

    def run(self, url: str) -> StageOutcome:
        start = self._clock()
        try:
            html = self.client.fetch_html(url)
        except RemoteCallFailure as exc:
            return self._failure(start, str(exc), status_code=exc.status_code)
        except Exception as exc:
            print(f"[unlocker] unexpected error: {exc!r}")
            return self._failure(start, str(exc) or "Unlocker request failed")

        content = extract(html, url)
        if not is_valid(content):
            print(f"[unlocker] invalid extraction length={len(html)} preview={html_preview(html)!r}")
            return self._failure(start, "Invalid unlocker extraction")

        meta = StageMeta(
            stage=self.name,
            duration_seconds=_round(self._clock() - start),
            fallback_used=True,
            attempts=1,
            cost_estimate=UNLOCKER_COST_ESTIMATE,
        )
        print(f"[unlocker] success title={content.title!r} images={len(content.images)} in {meta.duration_seconds}s")
        return StageOutcome(ok=True, stage=self.name, meta=meta, content=content)
