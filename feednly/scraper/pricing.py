"""Price resolution: many raw price strings in, one display price out."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional

from feednly.scraper.models import PriceEntry

# Symbol for each ISO code we know; used to tell whether a numeral already
# carries its currency.
CURRENCY_SYMBOLS = {
    "USD": "$",
    "CAD": "$",
    "AUD": "$",
    "NZD": "$",
    "HKD": "$",
    "SGD": "$",
    "MXN": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "KRW": "₩",
    "RUB": "₽",
    "TRY": "₺",
    "ILS": "₪",
    "PHP": "₱",
    "VND": "₫",
    "UAH": "₴",
    "PLN": "zł",
    "BRL": "R$",
    "CHF": "CHF",
}
CURRENCY_CODES = (
    "USD", "EUR", "GBP", "JPY", "CNY", "INR", "KRW", "RUB", "CAD", "AUD",
    "NZD", "CHF", "SEK", "NOK", "DKK", "PLN", "CZK", "HUF", "BRL", "MXN",
    "HKD", "SGD", "ZAR", "TRY", "AED", "SAR", "ILS", "THB", "PHP", "VND",
    "UAH", "RON",
)

_SYMBOL = r"(?:R\$|US\$|C\$|A\$|NZ\$|HK\$|S\$|[$€£¥₹₩₽₺₪₱₫₴]|zł)"
_NUMBER = r"\d+(?:[\s,.]\d{3})*(?:[.,]\d{1,2})?"
_CODE = "(?:" + "|".join(CURRENCY_CODES) + ")"

# Tried in this order; each pattern is scanned across every text before the
# next one gets a chance.
PRICE_PATTERNS = (
    re.compile(rf"{_SYMBOL}\s?{_NUMBER}"),
    re.compile(rf"{_NUMBER}\s?{_SYMBOL}"),
    re.compile(rf"\b{_CODE}\s?{_NUMBER}"),
    re.compile(rf"{_NUMBER}\s?{_CODE}\b"),
)
SYMBOL_PATTERN = re.compile(_SYMBOL)
_DIGIT = re.compile(r"\d")
_CODE_SHAPE = re.compile(r"^[A-Za-z]{2,3}$")


def _clean(text: object) -> str:
    return " ".join(str(text).split())


def match_price(texts: Iterable[str]) -> Optional[str]:
    """Return the first pattern match, honouring pattern priority over text order."""
    cleaned = [_clean(text) for text in texts if text]
    for pattern in PRICE_PATTERNS:
        for text in cleaned:
            found = pattern.search(text)
            if found:
                return found.group(0).strip()
    return None


def combine_price(numeral: str, currency: Optional[str]) -> str:
    """Attach *currency* to a bare *numeral* unless it is already present.

    >>> combine_price("19.99", "USD")
    '19.99 USD'
    >>> combine_price("€19.99", "EUR")
    '€19.99'
    """
    numeral = _clean(numeral)
    hint = _clean(currency) if currency else ""
    if not hint:
        return numeral
    if SYMBOL_PATTERN.search(numeral) or hint.lower() in numeral.lower():
        return numeral
    symbol = CURRENCY_SYMBOLS.get(hint.upper())
    if symbol and symbol in numeral:
        return numeral
    if _CODE_SHAPE.match(hint):
        return f"{numeral} {hint.upper()}"
    return f"{hint}{numeral}"


def resolve_price(entries: Iterable[PriceEntry]) -> Optional[str]:
    """Resolve collected price entries into one trimmed price string.

    1. The first match of the ordered price patterns across all texts.
    2. Otherwise the first trusted numeral combined with the first currency
       hint (hints deduplicated by exact string equality).
    3. ``None`` when no entry carries a digit.
    """
    entries = list(entries)
    matched = match_price(entry.text for entry in entries)
    if matched:
        return matched

    hints: List[str] = []
    for entry in entries:
        if entry.currency and entry.currency not in hints:
            hints.append(entry.currency)

    numeral = next(
        (
            _clean(entry.text)
            for entry in entries
            if entry.trusted and entry.text and _DIGIT.search(str(entry.text))
        ),
        None,
    )
    if not numeral:
        return None
    return combine_price(numeral, hints[0] if hints else None) or None
