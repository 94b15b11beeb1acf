"""Scraper package: HTML extraction, image ranking and price resolution."""

from feednly.scraper.extractor import extract
from feednly.scraper.models import ExtractedContent, ImageCandidate, PriceEntry
from feednly.scraper.validation import is_valid

__all__ = ["extract", "is_valid", "ExtractedContent", "ImageCandidate", "PriceEntry"]
