"""Model and pricing catalog scraper for AI providers."""

from catalog_scraper.aggregate import merge_records
from catalog_scraper.base import BaseScraper
from catalog_scraper.extractor import ExtractionProfile, extract_models, extract_pricing
from catalog_scraper.fetcher import FetchClient, FetchError
from catalog_scraper.jsonl_writer import CatalogWriteError, write_models_jsonl
from catalog_scraper.models import CatalogModel, EnrichedRecord, PricingInfo, RawRecord
from catalog_scraper.storage import CacheEntry, HttpCache, Response
from catalog_scraper.text import IdentifierPolicy, IdentifierRule, extract_price

__all__ = [
    "BaseScraper",
    "CacheEntry",
    "CatalogModel",
    "CatalogWriteError",
    "EnrichedRecord",
    "ExtractionProfile",
    "FetchClient",
    "FetchError",
    "HttpCache",
    "IdentifierPolicy",
    "IdentifierRule",
    "PricingInfo",
    "RawRecord",
    "Response",
    "extract_models",
    "extract_price",
    "extract_pricing",
    "merge_records",
    "write_models_jsonl",
]
