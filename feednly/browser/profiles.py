"""Browser fingerprint pools: user agents and viewports."""

from __future__ import annotations

import random
from dataclasses import dataclass

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 13_5) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.0 Safari/605.1.15",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
)
VIEWPORT_WIDTHS = (1280, 1366, 1440, 1536, 1680, 1920)
VIEWPORT_HEIGHTS = (720, 768, 900, 960, 1080)
WIDTH_JITTER = 40
HEIGHT_JITTER = 60
HIGH_DPI_CHANCE = 0.2


@dataclass(frozen=True)
class Viewport:
    width: int
    height: int
    device_scale_factor: int = 1


@dataclass(frozen=True)
class BrowserProfile:
    """Per-session browser identity."""

    user_agent: str
    viewport: Viewport
    javascript_enabled: bool = True


def pick_user_agent(rng: random.Random) -> str:
    return rng.choice(USER_AGENTS)


def pick_viewport(rng: random.Random) -> Viewport:
    """A common desktop size plus a little jitter; 2x scale one time in five."""
    width = rng.choice(VIEWPORT_WIDTHS) + rng.randrange(WIDTH_JITTER)
    height = rng.choice(VIEWPORT_HEIGHTS) + rng.randrange(HEIGHT_JITTER)
    scale = 2 if rng.random() < HIGH_DPI_CHANCE else 1
    return Viewport(width=width, height=height, device_scale_factor=scale)


def random_profile(rng: random.Random) -> BrowserProfile:
    return BrowserProfile(user_agent=pick_user_agent(rng), viewport=pick_viewport(rng))
