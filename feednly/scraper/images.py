"""Image URL normalisation, deduplication and ranking.

Two independent scores live here and must not be mixed up:

``selection_score``
    Pixel-area driven.  Picks the survivor among size variants of the same
    image and orders fallback candidates during backfill.

``display_score``
    URL-text driven.  Orders the final list and drops obvious junk (vector
    logos, sprites, thumbnails) regardless of declared dimensions.
"""

from __future__ import annotations

import math
import posixpath
import re
from typing import Iterable, List, Optional, Tuple
from urllib.parse import parse_qsl, urljoin, urlsplit

from feednly.scraper.models import ImageCandidate

IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp", "gif", "avif"})
RASTER_EXTENSIONS = IMAGE_EXTENSIONS
VECTOR_EXTENSIONS = frozenset({"svg"})

# Declared sizes or densities beyond these are garbage, not real pixels.
MAX_DIMENSION = 100_000
MAX_DENSITY = 10.0

PRODUCT_IMAGE_KEYWORDS = (
    "product",
    "media",
    "gallery",
    "item",
    "detail",
    "zoom",
    "images",
    "photo",
    "pdp",
)
PLACEHOLDER_KEYWORDS = (
    "placeholder",
    "transparent",
    "pixel",
    "spacer",
    "blank",
    "loading",
    "spinner",
    "logo",
    "icon",
)

# Query keys that only change rendering size/cache/quality, never the image.
COSMETIC_QUERY_KEYS = frozenset(
    {
        "w", "h", "width", "height", "wid", "hei", "imwidth", "imheight",
        "sw", "sh", "size", "sz", "resize", "scale", "dpr", "fit", "crop",
        "quality", "q", "qlt", "format", "fm", "auto", "cache", "v", "ver",
        "version", "t", "ts", "timestamp",
    }
)
_WIDTH_KEYS = ("w", "width", "wid", "imwidth", "sw")
_HEIGHT_KEYS = ("h", "height", "hei", "imheight", "sh")

_LARGE_PATTERN = re.compile(r"large|hero|zoom|main|product|detail", re.IGNORECASE)

GOOD_KEYWORDS = ("meta", "og", "product", "main", "hero", "cover")
QUALITY_HINTS = ("_large", "large", "@2x", "@3x", "1200", "1600", "2000", "2048", "hires", "original")
NEGATIVE_KEYWORDS = ("logo", "icon", "nav", "sprite", "thumbnail", "avatar", "small")


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def normalize_url(value: Optional[str], base_url: str) -> Optional[str]:
    """Resolve *value* against *base_url*; return ``None`` for unusable URLs.

    Protocol-relative URLs are forced to ``https``; ``data:`` URIs and any
    non-http(s) scheme are rejected.
    """
    if not value:
        return None
    trimmed = str(value).strip()
    if not trimmed or trimmed.lower().startswith("data:"):
        return None
    if trimmed.startswith("//"):
        trimmed = f"https:{trimmed}"
    try:
        resolved = urljoin(base_url, trimmed)
        parts = urlsplit(resolved)
    except ValueError:
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.netloc:
        return None
    return resolved


def url_extension(url: str) -> str:
    """Lower-case file extension of the URL path, without the dot ('' if none)."""
    try:
        path = urlsplit(url).path
    except ValueError:
        return ""
    ext = posixpath.splitext(path)[1]
    return ext[1:].lower() if ext else ""


def has_image_extension(url: str) -> bool:
    return url_extension(url) in IMAGE_EXTENSIONS


def is_placeholder(url: str) -> bool:
    lower = url.lower()
    return any(keyword in lower for keyword in PLACEHOLDER_KEYWORDS)


def matches_product_keyword(*texts: str) -> bool:
    """``True`` if any product-image keyword appears in any of *texts*."""
    for text in texts:
        lower = (text or "").lower()
        if any(keyword in lower for keyword in PRODUCT_IMAGE_KEYWORDS):
            return True
    return False


def parse_dimension(value: object) -> Optional[int]:
    """Positive pixel size from *value*, or ``None`` if absent or implausible."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 1 or number > MAX_DIMENSION:
        return None
    return int(number)


def infer_dimensions(url: str) -> Tuple[Optional[int], Optional[int]]:
    """Read width/height from well-known sizing query parameters."""
    try:
        params = {k.lower(): v for k, v in parse_qsl(urlsplit(url).query)}
    except ValueError:
        return None, None
    width = next((parse_dimension(params[k]) for k in _WIDTH_KEYS if k in params), None)
    height = next((parse_dimension(params[k]) for k in _HEIGHT_KEYS if k in params), None)
    return width, height


def dedup_key(url: str) -> str:
    """Identity of an image: origin + path + sorted, lower-cased query params.

    Cosmetic parameters (size, cache busting, quality, format) are dropped so
    that ``img.jpg?w=100`` and ``img.jpg?w=500&v=3`` collapse to one key.
    """
    parts = urlsplit(url)
    origin = f"{parts.scheme.lower()}://{parts.netloc.lower()}"
    params = sorted(
        (key.lower(), value.lower())
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key.lower() not in COSMETIC_QUERY_KEYS
    )
    query = "&".join(f"{key}={value}" for key, value in params)
    return f"{origin}{parts.path}?{query}" if query else f"{origin}{parts.path}"


def parse_srcset(value: Optional[str]) -> List[Tuple[str, Optional[int], Optional[float]]]:
    """Split a ``srcset`` attribute into ``(url, width, density)`` triples.

    Descriptors like ``800w`` set the width and ``2x`` sets the density.
    URLs may contain commas (common on image CDNs); an entry's URL runs up to
    the next whitespace, and a trailing comma ends the entry.
    """
    if not value:
        return []
    text = value.strip()
    length = len(text)
    pos = 0
    entries: List[Tuple[str, Optional[int], Optional[float]]] = []
    while pos < length:
        while pos < length and (text[pos].isspace() or text[pos] == ","):
            pos += 1
        if pos >= length:
            break
        start = pos
        while pos < length and not text[pos].isspace():
            pos += 1
        url = text[start:pos]
        descriptors = ""
        if url.endswith(","):
            url = url.rstrip(",")
        else:
            start = pos
            while pos < length and text[pos] != ",":
                pos += 1
            descriptors = text[start:pos]
        if not url:
            continue
        width: Optional[int] = None
        density: Optional[float] = None
        for descriptor in descriptors.split():
            descriptor = descriptor.lower()
            if descriptor.endswith("w"):
                width = parse_dimension(descriptor[:-1])
            elif descriptor.endswith("x"):
                try:
                    density = float(descriptor[:-1])
                except ValueError:
                    density = None
                if density is not None and not (0 < density <= MAX_DENSITY):
                    density = None
        entries.append((url, width, density))
    return entries


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def selection_score(candidate: ImageCandidate) -> float:
    """Score used to choose between duplicates and to order backfill."""
    width, height = candidate.width, candidate.height
    if width and height:
        score = float(width * height)
    elif width:
        score = float(width * 800)
    elif height:
        score = float(height * 800)
    else:
        score = 1000.0 + min(len(candidate.url), 500)
        if _LARGE_PATTERN.search(candidate.url):
            score += 5000
    if candidate.density and candidate.density > 0:
        score *= candidate.density
    return score - candidate.order


def display_score(url: str) -> int:
    """Score used for the final presentation order; ignores pixel sizes."""
    lower = url.lower()
    ext = url_extension(url)
    if not ext:
        score = 15
    elif ext in VECTOR_EXTENSIONS:
        score = -250
    elif ext in RASTER_EXTENSIONS:
        score = 40
    else:
        score = 20
    score += 25 * sum(1 for keyword in GOOD_KEYWORDS if keyword in lower)
    score += 18 * sum(1 for hint in QUALITY_HINTS if hint in lower)
    score -= 35 * sum(1 for keyword in NEGATIVE_KEYWORDS if keyword in lower)
    return score


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def make_candidate(
    url: str,
    order: int,
    *,
    width: Optional[int] = None,
    height: Optional[int] = None,
    density: Optional[float] = None,
    source: str = "dom",
    context: str = "",
) -> ImageCandidate:
    """Build a candidate, inferring missing dimensions from the URL query."""
    if width is None or height is None:
        inferred_w, inferred_h = infer_dimensions(url)
        width = width or inferred_w
        height = height or inferred_h
    return ImageCandidate(
        url=url,
        order=order,
        width=width,
        height=height,
        density=density if density and density > 0 else None,
        source=source,
        context=context,
    )


def dedupe(candidates: Iterable[ImageCandidate]) -> List[ImageCandidate]:
    """Collapse candidates sharing a dedup key to the best-scoring one.

    Output keeps the order in which each key was first seen.  Equal scores
    keep the earlier candidate, which makes the function idempotent.
    """
    best: dict[str, ImageCandidate] = {}
    for candidate in candidates:
        key = dedup_key(candidate.url)
        current = best.get(key)
        if current is None or selection_score(candidate) > selection_score(current):
            best[key] = candidate
    return list(best.values())


def rank_for_display(urls: Iterable[str], limit: int) -> List[str]:
    """Keep positively scored URLs, best first (stable), at most *limit*."""
    scored = [(display_score(url), index, url) for index, url in enumerate(urls)]
    kept = [item for item in scored if item[0] > 0]
    kept.sort(key=lambda item: (-item[0], item[1]))
    return [url for _, _, url in kept[: max(0, limit)]]
