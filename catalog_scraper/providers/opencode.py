"""OpenCode Zen gateway docs page (models and pricing on one page)."""

from catalog_scraper.base import BaseScraper
from catalog_scraper.extractor import ExtractionProfile
from catalog_scraper.models import CatalogModel, EnrichedRecord
from catalog_scraper.text import IdentifierPolicy, IdentifierRule

ZEN_URL = "https://opencode.ai/docs/zen/"

# Display names used in the pricing table; anything else is slugified
IDENTIFIER_RULES = (
    IdentifierRule(r"^GPT 5$", "gpt-5"),
    IdentifierRule(r"^GPT 5 Codex$", "gpt-5-codex"),
    IdentifierRule(r"^Claude Sonnet 4\.5$", "claude-sonnet-4-5"),
    IdentifierRule(r"^Claude Sonnet 4$", "claude-sonnet-4"),
    IdentifierRule(r"^Claude Haiku 3\.5$", "claude-3-5-haiku"),
    IdentifierRule(r"^Claude Opus 4\.1$", "claude-opus-4-1"),
    IdentifierRule(r"^Qwen3 Coder 480B$", "qwen3-coder"),
    IdentifierRule(r"^Grok Code Fast 1$", "grok-code"),
    IdentifierRule(r"^Kimi K2$", "kimi-k2"),
)

_CLAUDE = {"context_window": 200_000}


class OpencodeScraper(BaseScraper):
    provider_name = "OpenCode Zen"
    models_url = ZEN_URL
    pricing_url = ZEN_URL

    profile = ExtractionProfile(
        identifier=IdentifierPolicy(r"[a-z0-9][a-z0-9._-]*"),
        identifier_rules=IDENTIFIER_RULES,
        slug_fallback=True,
        header_keywords=("model id",),
        model_table_pattern=r"model id|endpoint",
        pricing_table_pattern=r"input|output",
        # Model, Input, Output, Cached Read, Cached Write
        positional_keys={
            1: "input_price",
            2: "output_price",
            3: "cache_hit_price",
            4: "cache_write_price",
        },
        free_is_zero=True,
        heading_tags=(),
    )

    default_context_window = 128_000
    default_max_output_tokens = 4096
    model_specs = {
        "gpt-5": {"context_window": 128_000, "max_output_tokens": 16_384},
        "gpt-5-codex": {"context_window": 128_000, "max_output_tokens": 16_384},
        "claude-sonnet-4-5": {**_CLAUDE, "max_output_tokens": 8192},
        "claude-sonnet-4": {**_CLAUDE, "max_output_tokens": 8192},
        "claude-3-5-haiku": {**_CLAUDE, "max_output_tokens": 8192},
        "claude-opus-4-1": {**_CLAUDE, "max_output_tokens": 32_000},
        "qwen3-coder": {"context_window": 128_000, "max_output_tokens": 4096},
        "grok-code": {"context_window": 128_000, "max_output_tokens": 4096},
        "kimi-k2": {"context_window": 128_000, "max_output_tokens": 4096},
    }
    family_rules = (
        ("qwen3-coder", "qwen3"),
        ("grok-code", "grok"),
        ("kimi-k2", "kimi"),
    )
    capabilities = ("function_calling",)

    fallback_prices = {"input_price": 1.0, "output_price": 5.0}
    cache_write_ratio = 1.25
    cache_hit_ratio = 0.1

    def family_for(self, identifier: str) -> str:
        if identifier.startswith("gpt-"):
            return "gpt"
        if identifier.startswith("claude-"):
            return "-".join(identifier.split("-")[:3])
        for needle, family in self.family_rules:
            if identifier == needle:
                return family
        return identifier.split("-")[0]

    def catalog_entry(self, record: EnrichedRecord) -> CatalogModel:
        entry = super().catalog_entry(record)
        if record.identifier.startswith("claude-"):
            entry.modalities["input"] = ["text", "image"]
        return entry
