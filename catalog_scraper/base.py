"""Base scraper class for provider model catalogs."""

import logging
from pathlib import Path

from catalog_scraper.aggregate import merge_records
from catalog_scraper.extractor import ExtractionProfile, extract_models, extract_pricing
from catalog_scraper.fetcher import FetchClient
from catalog_scraper.jsonl_writer import write_models_jsonl, write_text_file
from catalog_scraper.models import CatalogModel, EnrichedRecord, PricingInfo, RawRecord
from catalog_scraper.storage import DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)


class BaseScraper:
    """Scrapes one provider's models and pricing pages into catalog rows.

    Subclasses are data: URLs, fetch constants, an ExtractionProfile and the
    defaults used when a page does not state a value.
    """

    # Subclasses must define these
    provider_name: str
    models_url: str
    profile: ExtractionProfile
    pricing_url: str | None = None  # Optional: separate pricing page
    openapi_url: str | None = None  # Optional: published API spec, saved as is

    TIMEOUT = 30
    MAX_RETRIES = 3
    RETRY_DELAY = 2

    # Catalog defaults
    default_context_window: int | None = None
    default_max_output_tokens: int | None = None
    model_specs: dict[str, dict[str, int]] = {}
    family_rules: tuple[tuple[str, str], ...] = ()  # (substring, family), first match wins
    max_output_rules: tuple[tuple[str, int], ...] = ()  # (substring, tokens), first match wins
    fallback_prices: dict[str, float] = {}
    cache_write_ratio: float | None = None  # cache write = input * ratio
    cache_hit_ratio: float | None = None  # cache hit = output * ratio
    input_modalities: tuple[str, ...] = ("text",)
    output_modalities: tuple[str, ...] = ("text",)
    capabilities: tuple[str, ...] = ()

    def __init__(
        self,
        client: FetchClient | None = None,
        cache_dir: Path | str | None = DEFAULT_CACHE_DIR,
    ) -> None:
        """Initialize with a fetch client built from the class constants unless one is given."""
        self.client = client or FetchClient(
            timeout=self.TIMEOUT,
            max_retries=self.MAX_RETRIES,
            retry_delay=self.RETRY_DELAY,
            cache_dir=cache_dir,
        )

    @property
    def provider_id(self) -> str:
        """Generate a safe provider ID from the name."""
        return self.provider_name.lower().replace(" ", "-")

    def fetch_models(self) -> list[RawRecord]:
        """Fetch the models page and extract unique model records."""
        doc = self.client.fetch_html(self.models_url, "models page")
        if doc is None:
            return []
        return extract_models(doc, self.profile)

    def fetch_pricing(self) -> dict[str, PricingInfo]:
        """Fetch the pricing page and extract identifier -> pricing."""
        if not self.pricing_url:
            return {}
        doc = self.client.fetch_html(self.pricing_url, "pricing page")
        if doc is None:
            return {}
        return extract_pricing(doc, self.profile)

    def fetch(self) -> list[EnrichedRecord]:
        """Fetch models and pricing and join them. Returns [] on failure."""
        try:
            models = self.fetch_models()
            if not models:
                return []
            pricing = self.fetch_pricing()
            combined = merge_records(models, pricing, self.profile.identifier.is_valid)
        except Exception as e:
            logger.error(f"Failed to fetch {self.provider_name} data: {type(e).__name__} - {e}")
            return []

        logger.info(f"Successfully fetched {len(combined)} models")
        return combined

    # --- Catalog rows ---

    def family_for(self, identifier: str) -> str:
        """Model family: first matching family rule, else the first two dash segments."""
        for needle, family in self.family_rules:
            if needle in identifier:
                return family
        return "-".join(identifier.split("-")[:2])

    def max_output_for(self, identifier: str) -> int | None:
        specs = self.model_specs.get(identifier, {})
        if "max_output_tokens" in specs:
            return specs["max_output_tokens"]
        for needle, tokens in self.max_output_rules:
            if needle in identifier:
                return tokens
        return self.default_max_output_tokens

    def catalog_id(self, identifier: str) -> str:
        """The id written to the catalog. Most providers use the identifier as is."""
        return identifier

    def complete_pricing(self, pricing: PricingInfo) -> PricingInfo:
        """Fill prices the page did not state from the provider's fallbacks."""
        prices = pricing.model_dump()
        for key, value in self.fallback_prices.items():
            if prices.get(key) is None:
                prices[key] = value

        if prices.get("cache_write_price") is None and self.cache_write_ratio is not None:
            if prices.get("input_price") is not None:
                prices["cache_write_price"] = round(prices["input_price"] * self.cache_write_ratio, 6)
        if prices.get("cache_hit_price") is None and self.cache_hit_ratio is not None:
            if prices.get("output_price") is not None:
                prices["cache_hit_price"] = round(prices["output_price"] * self.cache_hit_ratio, 6)

        return PricingInfo(**prices)

    def build_pricing(self, pricing: PricingInfo) -> dict:
        """Shape prices as the catalog's text_tokens block."""
        pricing = self.complete_pricing(pricing)
        standard = {
            "input_per_million": pricing.input_price,
            "output_per_million": pricing.output_price,
        }
        cached = {
            "input_per_million": pricing.cache_write_price,
            "output_per_million": pricing.cache_hit_price,
        }
        text_tokens = {}
        for tier, prices in (("standard", standard), ("cached", cached)):
            present = {key: value for key, value in prices.items() if value is not None}
            if present:
                text_tokens[tier] = present

        result = {"text_tokens": text_tokens} if text_tokens else {}
        extras = {key: value for key, value in (pricing.model_extra or {}).items() if value is not None}
        if extras:
            result["other"] = extras
        return result

    def catalog_entry(self, record: EnrichedRecord) -> CatalogModel:
        specs = self.model_specs.get(record.identifier, {})
        return CatalogModel(
            name=record.name or record.identifier,
            family=self.family_for(record.identifier),
            provider=self.provider_id,
            id=self.catalog_id(record.identifier),
            context_window=record.extras.get("context_window")
            or specs.get("context_window", self.default_context_window),
            max_output_tokens=self.max_output_for(record.identifier),
            modalities={"input": list(self.input_modalities), "output": list(self.output_modalities)},
            capabilities=list(self.capabilities),
            pricing=self.build_pricing(record.pricing),
        )

    def build_catalog(self) -> list[CatalogModel]:
        """Fetch and convert to catalog rows, sorted by name."""
        return [self.catalog_entry(record) for record in self.fetch()]

    def save_api_spec(self, output_base: Path) -> Path | None:
        """Download openapi_url to output_base/<provider_id>/openapi.yml.

        Returns:
            The written path, or None if the provider publishes no spec or the
            download failed.
        """
        if not self.openapi_url:
            return None

        content = self.client.fetch_text(self.openapi_url, "OpenAPI spec")
        if content is None:
            logger.error(f"Failed to download OpenAPI spec from {self.openapi_url}")
            return None

        path = Path(output_base) / self.provider_id / "openapi.yml"
        write_text_file(content, path)
        logger.info(f"Updated {self.provider_name} OpenAPI spec")
        return path

    def run(self, output_base: Path) -> Path | None:
        """Scrape and write output_base/<provider_id>/models.jsonl.

        Returns:
            The written path, or None if no models were fetched (existing
            catalog files are left untouched).

        Raises:
            CatalogWriteError: If the catalog file cannot be written.
        """
        logger.info(f"Starting scrape for {self.provider_name}")
        self.save_api_spec(output_base)

        models = self.build_catalog()
        if not models:
            logger.error(f"No models fetched for {self.provider_name}, skipping update")
            return None

        path = Path(output_base) / self.provider_id / "models.jsonl"
        write_models_jsonl(models, path)
        logger.info(f"Wrote {len(models)} models to {path}")
        return path

    def close(self) -> None:
        self.client.close()
