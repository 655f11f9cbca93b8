"""Perplexity (Sonar) models and pricing pages."""

from catalog_scraper.base import BaseScraper
from catalog_scraper.extractor import ExtractionProfile
from catalog_scraper.models import CatalogModel, EnrichedRecord, PricingInfo
from catalog_scraper.text import IdentifierPolicy, IdentifierRule

IDENTIFIER_RULES = (
    IdentifierRule(r"sonar deep research", "sonar-deep-research"),
    IdentifierRule(r"sonar reasoning pro", "sonar-reasoning-pro"),
    IdentifierRule(r"sonar reasoning", "sonar-reasoning"),
    IdentifierRule(r"sonar pro", "sonar-pro"),
    IdentifierRule(r"sonar", "sonar"),
)

PRICE_HEADER_RULES = (
    (r"input", "input_price"),
    (r"output", "output_price"),
    (r"citation", "citation_price"),
    (r"search.*quer", "search_query_price"),
    (r"reasoning", "reasoning_price"),
)

# Deep research bills citations, reasoning and searches on top of tokens
DEEP_RESEARCH_FALLBACKS = {
    "citation_price": 2.0,
    "reasoning_price": 3.0,
    "search_query_price": 5.0,
}


class PerplexityScraper(BaseScraper):
    provider_name = "Perplexity"
    models_url = "https://docs.perplexity.ai/getting-started/models"
    pricing_url = "https://docs.perplexity.ai/getting-started/pricing"

    profile = ExtractionProfile(
        identifier=IdentifierPolicy(r"sonar[\w-]*"),
        identifier_rules=IDENTIFIER_RULES,
        header_keywords=("model",),
        model_tables=False,
        pricing_table_pattern=r"model|input|output|token",
        price_header_rules=PRICE_HEADER_RULES,
        positional_keys={
            1: "input_price",
            2: "output_price",
            3: "citation_price",
            4: "search_query_price",
            5: "reasoning_price",
        },
        heading_tags=(),
        link_href_pattern=r"models/(sonar[-\w]*)",
        link_name_selectors=('div[class*="font-semibold"]',),
    )

    default_context_window = 127_072
    default_max_output_tokens = 4096
    model_specs = {
        "sonar": {"context_window": 127_072, "max_output_tokens": 4096},
        "sonar-pro": {"context_window": 200_000, "max_output_tokens": 8000},
        "sonar-reasoning": {"context_window": 127_072, "max_output_tokens": 4096},
        "sonar-reasoning-pro": {"context_window": 127_072, "max_output_tokens": 4096},
        "sonar-deep-research": {"context_window": 127_072, "max_output_tokens": 4096},
    }
    capabilities = ("search_grounding",)
    fallback_prices = {"input_price": 1.0, "output_price": 1.0}

    def family_for(self, identifier: str) -> str:
        return identifier

    def build_pricing(self, pricing: PricingInfo) -> dict:
        result = super().build_pricing(pricing)
        extras = result.pop("other", {})

        citation = extras.get("citation_price")
        reasoning = extras.get("reasoning_price")
        search = extras.get("search_query_price")
        if citation is not None:
            result["citation_tokens"] = {"standard": {"input_per_million": citation}}
        if reasoning is not None:
            result["reasoning_tokens"] = {"standard": {"input_per_million": reasoning}}
        if search is not None:
            result["search_queries"] = {"per_thousand": search}
        return result

    def catalog_entry(self, record: EnrichedRecord) -> CatalogModel:
        if record.identifier == "sonar-deep-research":
            prices = record.pricing.model_dump()
            for key, value in DEEP_RESEARCH_FALLBACKS.items():
                if prices.get(key) is None:
                    prices[key] = value
            record = record.model_copy(update={"pricing": PricingInfo(**prices)})
        return super().catalog_entry(record)
