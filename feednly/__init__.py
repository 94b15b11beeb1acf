"""Feednly scraper: product-page acquisition with staged escalation."""

__version__ = "1.0.0"
