"""Provider scrapers, keyed by CLI name."""

from catalog_scraper.base import BaseScraper
from catalog_scraper.providers.anthropic import AnthropicScraper
from catalog_scraper.providers.fireworks import FireworksScraper
from catalog_scraper.providers.opencode import OpencodeScraper
from catalog_scraper.providers.perplexity import PerplexityScraper

PROVIDERS: dict[str, type[BaseScraper]] = {
    "anthropic": AnthropicScraper,
    "perplexity": PerplexityScraper,
    "opencode": OpencodeScraper,
    "fireworks": FireworksScraper,
}

__all__ = [
    "AnthropicScraper",
    "FireworksScraper",
    "OpencodeScraper",
    "PROVIDERS",
    "PerplexityScraper",
]
