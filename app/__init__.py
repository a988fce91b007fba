"""ASIN Lookup: Amazon product cache and eBay listing content back-office."""

__version__ = "1.0.0"
