"""Exception types raised inside the acquisition pipeline.

Only :class:`ValueError` (bad top-level URL) ever escapes
:func:`feednly.acquisition.acquire`; everything defined here is caught by the
stage that raised it and folded into a ``StageOutcome``.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for all scraper errors."""


class ConfigurationMissing(ScraperError):
    """A stage's prerequisite configuration is absent; the stage is skipped."""


class NavigationTimeout(ScraperError):
    """A single page load exceeded its time budget."""


class NavigationError(ScraperError):
    """The navigator gave up on a URL.

    Attributes:
        strategy: Label of the load strategy that failed last.
        elapsed_seconds: Duration of that last attempt.
        timed_out: ``True`` when every strategy timed out, ``False`` for a
            hard failure (DNS, crash, protocol error).
    """

    def __init__(
        self,
        message: str,
        *,
        strategy: str | None,
        elapsed_seconds: float,
        timed_out: bool,
    ) -> None:
        super().__init__(message)
        self.strategy = strategy
        self.elapsed_seconds = elapsed_seconds
        self.timed_out = timed_out


class RemoteCallFailure(ScraperError):
    """The remote unlocker returned an error or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MalformedInput(ScraperError):
    """A configuration entry or embedded document could not be parsed."""


class RenderCapabilityError(ScraperError):
    """The render backend lacks a capability the current stage requires."""
