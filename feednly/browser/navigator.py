"""Page loading with escalating completion strategies.

Strategies are tried in order under the same time budget.  A timeout is soft
(the next, more patient strategy gets a go); any other failure is hard and
ends navigation immediately.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from feednly.browser.render import RenderPage
from feednly.config import settings
from feednly.errors import NavigationError, NavigationTimeout

BODY_WAIT_CAP = 10.0


@dataclass(frozen=True)
class LoadStrategy:
    label: str
    wait_until: str


DEFAULT_STRATEGIES = (
    LoadStrategy("domcontentloaded", "domcontentloaded"),
    LoadStrategy("load", "load"),
    LoadStrategy("networkidle", "networkidle"),
)


@dataclass
class NavigationResult:
    strategy: str
    elapsed_seconds: float
    timed_out: bool = False


class Navigator:
    """Drives one page load through :data:`DEFAULT_STRATEGIES`."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        strategies: Sequence[LoadStrategy] = DEFAULT_STRATEGIES,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.timeout = settings.navigation_timeout if timeout is None else timeout
        self.strategies = tuple(strategies)
        self._clock = clock

    def _elapsed(self, start: float) -> float:
        return round(self._clock() - start, 3)

    def _wait_for_body(self, page: RenderPage) -> None:
        try:
            page.wait_for_selector("body", timeout=min(BODY_WAIT_CAP, self.timeout))
        except NavigationTimeout:
            print("[navigator] body not found before timeout; continuing")

    def navigate(self, page: RenderPage, url: str) -> NavigationResult:
        """Load *url* in *page*.

        Returns:
            The strategy that succeeded and how long that attempt took.

        Raises:
            NavigationError: ``timed_out=True`` when every strategy timed out,
                ``timed_out=False`` on the first hard failure.
        """
        last_timeout: Optional[NavigationTimeout] = None
        last_label: Optional[str] = None
        last_elapsed = 0.0

        for strategy in self.strategies:
            start = self._clock()
            try:
                page.goto(url, wait_until=strategy.wait_until, timeout=self.timeout)
            except NavigationTimeout as exc:
                last_timeout, last_label, last_elapsed = exc, strategy.label, self._elapsed(start)
                print(f"[navigator] {strategy.label} timed out after {last_elapsed:.2f}s")
                continue
            except Exception as exc:
                elapsed = self._elapsed(start)
                print(f"[navigator] {strategy.label} failed after {elapsed:.2f}s: {exc}")
                raise NavigationError(
                    str(exc) or exc.__class__.__name__,
                    strategy=strategy.label,
                    elapsed_seconds=elapsed,
                    timed_out=False,
                ) from exc

            self._wait_for_body(page)
            return NavigationResult(strategy=strategy.label, elapsed_seconds=self._elapsed(start))

        raise NavigationError(
            str(last_timeout) if last_timeout else "Navigation failed",
            strategy=last_label,
            elapsed_seconds=last_elapsed,
            timed_out=last_timeout is not None,
        ) from last_timeout
