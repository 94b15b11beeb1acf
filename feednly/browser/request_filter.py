"""Request interception policy for render sessions.

Stylesheets, fonts and media are never needed for extraction, and images
from other hosts are almost always ads or trackers.  Dropping them makes
pages load faster and leaves a smaller fingerprint.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional
from urllib.parse import urlsplit

from feednly.browser.render import RenderPage

BLOCKED_RESOURCE_TYPES = frozenset({"stylesheet", "font", "media"})


def _hostname(url: str) -> Optional[str]:
    try:
        return urlsplit(url).hostname
    except ValueError:
        return None


class RequestFilter:
    """Decides, per request, whether to abort or continue."""

    def __init__(self, target_url: str) -> None:
        self.target_host = _hostname(target_url)

    def should_abort(self, resource_type: str, url: str) -> bool:
        if resource_type in BLOCKED_RESOURCE_TYPES:
            return True
        if resource_type == "image" and self.target_host:
            host = _hostname(url)
            return not host or host != self.target_host
        return False

    def handle(self, route: Any) -> None:
        """Playwright route handler.  Classification errors let the request through."""
        try:
            request = route.request
            abort = self.should_abort(request.resource_type, request.url)
        except Exception:
            abort = False
        try:
            if abort:
                route.abort()
            else:
                route.continue_()
        except Exception as exc:
            print(f"[filter] could not settle request: {exc}")


def install(page: RenderPage, target_url: str) -> Callable[[], None]:
    """Install the filter on *page* and return an idempotent disposer."""
    handler = RequestFilter(target_url).handle
    try:
        page.route(handler)
    except Exception as exc:
        print(f"[filter] failed to enable request interception: {exc}")
        return lambda: None

    disposed = False

    def dispose() -> None:
        nonlocal disposed
        if disposed:
            return
        disposed = True
        try:
            page.unroute(handler)
        except Exception as exc:
            print(f"[filter] failed to remove request interception: {exc}")

    return dispose


@contextmanager
def filtered(page: RenderPage, target_url: str) -> Iterator[Callable[[], None]]:
    """Keep the filter installed for the duration of the ``with`` block."""
    dispose = install(page, target_url)
    try:
        yield dispose
    finally:
        dispose()
