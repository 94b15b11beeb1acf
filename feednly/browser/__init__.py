"""Browser package: render contract, navigation and request filtering."""

from feednly.browser.navigator import Navigator, NavigationResult
from feednly.browser.profiles import BrowserProfile, Viewport, random_profile
from feednly.browser.proxies import ProxyPoolEntry, parse_proxy_pool
from feednly.browser.render import PlaywrightRenderer, RenderPage, Renderer, RenderSession
from feednly.browser.request_filter import RequestFilter, filtered, install

__all__ = [
    "Navigator",
    "NavigationResult",
    "BrowserProfile",
    "Viewport",
    "random_profile",
    "ProxyPoolEntry",
    "parse_proxy_pool",
    "PlaywrightRenderer",
    "RenderPage",
    "Renderer",
    "RenderSession",
    "RequestFilter",
    "filtered",
    "install",
]
