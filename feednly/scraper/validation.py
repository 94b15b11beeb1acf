"""Acceptance check that decides whether escalation can stop."""

from __future__ import annotations

from typing import Optional

from feednly.scraper.models import ExtractedContent


def is_valid(content: Optional[ExtractedContent]) -> bool:
    """A result is good enough when it has a title and at least one image.

    Description and price are useful but optional.
    """
    if content is None:
        return False
    return bool(content.title and content.title.strip()) and bool(content.images)
