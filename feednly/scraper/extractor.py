"""Content extraction: turns rendered product-page HTML into :class:`ExtractedContent`."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from feednly.config import settings
from feednly.scraper.images import (
    dedup_key,
    dedupe,
    has_image_extension,
    is_placeholder,
    make_candidate,
    matches_product_keyword,
    normalize_url,
    parse_dimension,
    parse_srcset,
    rank_for_display,
    selection_score,
)
from feednly.scraper.models import (
    SOURCE_DOM,
    SOURCE_JSONLD,
    SOURCE_META,
    ExtractedContent,
    ImageCandidate,
    PriceEntry,
)
from feednly.scraper.pricing import resolve_price

TITLE_META_KEYS = ("og:title", "twitter:title", "title")
DESCRIPTION_META_KEYS = ("og:description", "description", "twitter:description")
PRICE_META_KEYS = ("product:price:amount", "og:price:amount", "price")
CURRENCY_META_KEYS = ("product:price:currency", "og:price:currency", "pricecurrency")
IMAGE_META_KEYS = (
    "og:image",
    "og:image:url",
    "og:image:secure_url",
    "twitter:image",
    "twitter:image:src",
)
IMG_URL_ATTRS = (
    "src",
    "data-src",
    "data-lazy",
    "data-original",
    "data-zoom-image",
    "data-large_image",
)
SRCSET_ATTRS = ("srcset", "data-srcset")
# Inline CSS such as `background-image: url("...")`.
STYLE_URL_PATTERN = re.compile(r"""url\(\s*(['"]?)(.*?)\1\s*\)""", re.IGNORECASE)
PRICE_SELECTOR = "[class*=price], [class*=Price], [id*=price], [itemprop=price], [data-price]"

MIN_DESCRIPTION_PARAGRAPH = 60
MAX_PRICE_TEXT = 160
BACKFILL_TARGET = 5


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _clean(value: Any) -> str:
    return " ".join(str(value).split()) if value is not None else ""


def _text(tag: Optional[Tag]) -> str:
    if tag is None:
        return ""
    return _clean(tag.get_text(" ", strip=True))


def _attr(tag: Tag, name: str) -> str:
    """String value of *name* on *tag*; multi-valued attributes are joined."""
    value = tag.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value or ""


def _meta_index(soup: BeautifulSoup) -> Dict[str, List[str]]:
    """Map lower-cased meta ``property``/``name``/``itemprop`` keys to contents."""
    index: Dict[str, List[str]] = {}
    for tag in soup.find_all("meta"):
        content = _clean(tag.get("content"))
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            key = _attr(tag, attr).strip().lower()
            if key:
                index.setdefault(key, []).append(content)
    return index


def _first_meta(index: Dict[str, List[str]], keys) -> Optional[str]:
    for key in keys:
        for value in index.get(key, []):
            if value:
                return value
    return None


def _load_json_ld(soup: BeautifulSoup) -> List[Any]:
    """Parse every JSON-LD block; malformed blocks are skipped."""
    documents: List[Any] = []
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        raw = script.string if script.string is not None else script.get_text()
        raw = (raw or "").strip()
        if not raw:
            continue
        try:
            documents.append(json.loads(raw, strict=False))
        except (ValueError, TypeError, RecursionError) as exc:
            print(f"[extract] skipping unreadable JSON-LD block: {type(exc).__name__}")
            continue
    return documents


def _walk(node: Any) -> Iterator[Dict[str, Any]]:
    """Yield every JSON object nested anywhere inside *node*."""
    stack = [node]
    while stack:
        current = stack.pop(0)
        if isinstance(current, dict):
            yield current
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)


def _context(tag: Tag) -> str:
    """Alt/title/class/id of *tag* and its parent, used for keyword matching."""
    parts = [_attr(tag, name) for name in ("alt", "title", "class", "id")]
    parent = tag.parent
    if isinstance(parent, Tag):
        parts.extend(_attr(parent, name) for name in ("class", "id"))
    return " ".join(part for part in parts if part)


# ---------------------------------------------------------------------------
# Title / description
# ---------------------------------------------------------------------------

def _extract_title(soup: BeautifulSoup, meta: Dict[str, List[str]]) -> Optional[str]:
    title = _first_meta(meta, TITLE_META_KEYS)
    if title:
        return title
    return _text(soup.find("h1")) or _text(soup.find("title")) or None


def _extract_description(soup: BeautifulSoup, meta: Dict[str, List[str]]) -> Optional[str]:
    description = _first_meta(meta, DESCRIPTION_META_KEYS)
    if description:
        return description
    for paragraph in soup.find_all("p"):
        text = _text(paragraph)
        if len(text) > MIN_DESCRIPTION_PARAGRAPH:
            return text
    return None


# ---------------------------------------------------------------------------
# Price
# ---------------------------------------------------------------------------

def _dom_currency_hint(tag: Tag) -> Optional[str]:
    for name in ("data-currency", "data-price-currency"):
        if tag.get(name):
            return _clean(tag.get(name))
    parent = tag.parent if isinstance(tag.parent, Tag) else None
    if parent is not None:
        sibling = parent.find(attrs={"itemprop": "priceCurrency"})
        if isinstance(sibling, Tag):
            return _clean(sibling.get("content")) or _text(sibling) or None
    return None


def _collect_price_entries(
    soup: BeautifulSoup,
    meta: Dict[str, List[str]],
    documents: List[Any],
) -> List[PriceEntry]:
    entries: List[PriceEntry] = []

    meta_currency = _first_meta(meta, CURRENCY_META_KEYS)
    for key in PRICE_META_KEYS:
        for value in meta.get(key, []):
            entries.append(PriceEntry(text=value, currency=meta_currency, trusted=True))

    for tag in soup.select(PRICE_SELECTOR):
        if tag.name in ("meta", "script", "style", "link"):
            continue
        structured = tag.get("content") or tag.get("data-price")
        text = _clean(structured) if structured else _text(tag)
        if not text or len(text) > MAX_PRICE_TEXT:
            continue
        entries.append(
            PriceEntry(
                text=text,
                currency=_dom_currency_hint(tag),
                trusted=bool(structured),
            )
        )

    for obj in (o for document in documents for o in _walk(document)):
        currency = obj.get("priceCurrency")
        currency = _clean(currency) if isinstance(currency, str) else None
        for key in ("price", "lowPrice", "highPrice"):
            value = obj.get(key)
            if isinstance(value, bool) or not isinstance(value, (str, int, float)):
                continue
            if _clean(value):
                entries.append(PriceEntry(text=_clean(value), currency=currency, trusted=True))

    return entries


# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

class _CandidateCollector:
    """Accumulates image candidates in discovery order."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self.candidates: List[ImageCandidate] = []

    def add(
        self,
        raw: Optional[str],
        *,
        source: str,
        width: Optional[int] = None,
        height: Optional[int] = None,
        density: Optional[float] = None,
        context: str = "",
    ) -> Optional[ImageCandidate]:
        url = normalize_url(raw, self.base_url)
        if not url:
            return None
        candidate = make_candidate(
            url,
            len(self.candidates),
            width=width,
            height=height,
            density=density,
            source=source,
            context=context,
        )
        self.candidates.append(candidate)
        return candidate

    def add_srcset(self, value: Optional[str], *, context: str) -> None:
        for url, width, density in parse_srcset(value):
            self.add(url, source=SOURCE_DOM, width=width, density=density, context=context)


def _dimension(value: Any) -> Optional[int]:
    """Width/height from an attribute, JSON number/string, or QuantitativeValue."""
    if isinstance(value, dict):
        value = value.get("value")
    if isinstance(value, bool) or value is None:
        return None
    digits = "".join(ch for ch in str(value).strip() if ch.isdigit() or ch == ".")
    return parse_dimension(digits) if digits else None


def _collect_json_ld_images(collector: _CandidateCollector, value: Any) -> None:
    stack = [value]
    while stack:
        current = stack.pop(0)
        if isinstance(current, str):
            collector.add(current, source=SOURCE_JSONLD)
        elif isinstance(current, list):
            stack[:0] = current
        elif isinstance(current, dict):
            url = current.get("url") or current.get("contentUrl")
            if isinstance(url, str):
                collector.add(
                    url,
                    source=SOURCE_JSONLD,
                    width=_dimension(current.get("width")),
                    height=_dimension(current.get("height")),
                )


def _collect_image_candidates(
    soup: BeautifulSoup,
    meta: Dict[str, List[str]],
    documents: List[Any],
    base_url: str,
) -> List[ImageCandidate]:
    collector = _CandidateCollector(base_url)

    og_width = _dimension(_first_meta(meta, ("og:image:width",)))
    og_height = _dimension(_first_meta(meta, ("og:image:height",)))
    first_meta = True
    for key in IMAGE_META_KEYS:
        for value in meta.get(key, []):
            sized = first_meta and key.startswith("og:")
            added = collector.add(
                value,
                source=SOURCE_META,
                width=og_width if sized else None,
                height=og_height if sized else None,
            )
            if added is not None:
                first_meta = False
    for link in soup.find_all("link", rel="image_src"):
        collector.add(link.get("href"), source=SOURCE_META)

    for img in soup.find_all("img"):
        context = _context(img)
        width = _dimension(img.get("width"))
        height = _dimension(img.get("height"))
        for attr in IMG_URL_ATTRS:
            collector.add(
                img.get(attr), source=SOURCE_DOM, width=width, height=height, context=context
            )
        for attr in SRCSET_ATTRS:
            collector.add_srcset(img.get(attr), context=context)

    for source_tag in soup.find_all("source"):
        context = _context(source_tag)
        for attr in SRCSET_ATTRS:
            collector.add_srcset(source_tag.get(attr), context=context)

    for styled in soup.find_all(style=STYLE_URL_PATTERN):
        context = _context(styled)
        for match in STYLE_URL_PATTERN.finditer(_attr(styled, "style")):
            collector.add(match.group(2), source=SOURCE_DOM, context=context)

    for obj in (o for document in documents for o in _walk(document)):
        if "image" in obj:
            _collect_json_ld_images(collector, obj["image"])

    return collector.candidates


def _is_primary(candidate: ImageCandidate) -> bool:
    if not has_image_extension(candidate.url) or is_placeholder(candidate.url):
        return False
    if candidate.source != SOURCE_DOM:
        return True
    return matches_product_keyword(candidate.url, candidate.context)


def _is_fallback(candidate: ImageCandidate) -> bool:
    return has_image_extension(candidate.url) and not is_placeholder(candidate.url)


def select_images(
    candidates: List[ImageCandidate],
    max_images: int,
    best_limit: int,
) -> List[str]:
    """Pick, backfill, cap and display-rank image candidates."""
    images = dedupe(c for c in candidates if _is_primary(c))

    if len(images) < BACKFILL_TARGET:
        target = min(BACKFILL_TARGET, max_images)
        seen = {dedup_key(c.url) for c in images}
        fallback = sorted(
            (c for c in candidates if _is_fallback(c)), key=selection_score, reverse=True
        )
        for candidate in fallback:
            if len(images) >= target:
                break
            key = dedup_key(candidate.url)
            if key not in seen:
                seen.add(key)
                images.append(candidate)
        images = dedupe(images)

    if not images:
        images = dedupe(c for c in candidates if c.source == SOURCE_DOM)

    capped = [c.url for c in images][:max_images]
    return rank_for_display(capped, min(best_limit, max_images))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def extract(
    html: Optional[str],
    base_url: str,
    *,
    max_images: Optional[int] = None,
    best_limit: Optional[int] = None,
) -> ExtractedContent:
    """Extract title, description, price and ranked images from *html*.

    Empty input yields an all-empty result; malformed markup or JSON-LD never
    raises.

    Args:
        html: Rendered page HTML.
        base_url: URL the HTML was loaded from; relative image URLs resolve
            against it.
        max_images: Cap applied before display ranking.  Defaults to
            ``settings.max_image_results``.
        best_limit: Final number of images kept.  Defaults to
            ``settings.best_image_limit``.
    """
    if not html or not html.strip():
        return ExtractedContent()

    max_images = settings.max_image_results if max_images is None else max_images
    best_limit = settings.best_image_limit if best_limit is None else best_limit

    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup as exc:
        print(f"[extract] parser rejected markup from {base_url}: {exc}")
        return ExtractedContent()

    meta = _meta_index(soup)
    documents = _load_json_ld(soup)

    price = resolve_price(_collect_price_entries(soup, meta, documents))
    candidates = _collect_image_candidates(soup, meta, documents, base_url)

    return ExtractedContent(
        title=_extract_title(soup, meta),
        description=_extract_description(soup, meta),
        price=price,
        images=select_images(candidates, max_images, best_limit),
    )
