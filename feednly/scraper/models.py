"""Data models for the extraction pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

# Where an image candidate was discovered.  Meta and JSON-LD images are
# curated by the page author and skip the product-keyword requirement.
SOURCE_META = "meta"
SOURCE_DOM = "dom"
SOURCE_JSONLD = "jsonld"


@dataclass
class ImageCandidate:
    """A single image URL seen while parsing a page."""

    url: str
    order: int
    width: Optional[int] = None
    height: Optional[int] = None
    density: Optional[float] = None
    source: str = SOURCE_DOM
    context: str = ""


@dataclass
class PriceEntry:
    """A raw price string plus any currency hint found next to it.

    ``trusted`` entries (meta tags, JSON-LD) may supply a bare numeral to the
    resolver; untrusted DOM text only counts when it matches a price pattern.
    """

    text: str
    currency: Optional[str] = None
    trusted: bool = False


@dataclass(frozen=True)
class ExtractedContent:
    """Structured product data extracted from one HTML document."""

    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    images: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "images": list(self.images),
        }
