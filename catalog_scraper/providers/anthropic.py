"""Anthropic (Claude) models overview and pricing pages."""

from catalog_scraper.base import BaseScraper
from catalog_scraper.extractor import ExtractionProfile
from catalog_scraper.text import IdentifierPolicy, IdentifierRule

_FAMILY = r"(?P<family>opus|sonnet|haiku)"
_NEW = "claude-{family}-{major}-{minor}"
_NEW_MAJOR = "claude-{family}-{major}"
_OLD = "claude-3-{minor}-{family}"
_OLD_MAJOR = "claude-3-{family}"

# Pricing rows say "Claude Opus 4.1" or "Claude 3.5 Haiku"; Claude 4+ names put
# the family first in the id, Claude 3.x names put the version first.
IDENTIFIER_RULES = (
    IdentifierRule(_FAMILY + r"\D*?(?<![\d.])(?P<major>[4-9])\.(?P<minor>[1-9])", _NEW),
    IdentifierRule(r"(?<![\d.])(?P<major>[4-9])\.(?P<minor>[1-9])\s*" + _FAMILY, _NEW),
    IdentifierRule(_FAMILY + r"\D*?(?<![\d.])(?P<major>[4-9])(?:\.0)?\b", _NEW_MAJOR),
    IdentifierRule(r"(?<![\d.])(?P<major>[4-9])(?:\.0)?\s*" + _FAMILY, _NEW_MAJOR),
    IdentifierRule(_FAMILY + r"\D*?3\.(?P<minor>[1-9])", _OLD),
    IdentifierRule(r"(?<![\d.])3\.(?P<minor>[1-9])\s*" + _FAMILY, _OLD),
    IdentifierRule(_FAMILY + r"\D*?3\b", _OLD_MAJOR),
    IdentifierRule(r"(?<![\d.])3(?:\.0)?\s*" + _FAMILY, _OLD_MAJOR),
)


class AnthropicScraper(BaseScraper):
    provider_name = "Anthropic"
    models_url = "https://docs.claude.com/en/docs/about-claude/models/overview"
    pricing_url = "https://docs.claude.com/en/docs/about-claude/pricing"
    openapi_url = (
        "https://storage.googleapis.com/stainless-sdk-openapi-specs/"
        "anthropic%2Fanthropic-9c7d1ea59095c76b24f14fe279825c2b0dc10f165a973a46b8a548af9aeda62e.yml"
    )

    profile = ExtractionProfile(
        identifier=IdentifierPolicy(r"claude-[\w-]+", min_length=8),
        identifier_rules=IDENTIFIER_RULES,
        heading_pattern=r"claude.*\d",
    )

    default_context_window = 200_000
    default_max_output_tokens = 4096
    model_specs = {
        "claude-opus-4-1-20250805": {"context_window": 200_000, "max_output_tokens": 32_000},
        "claude-opus-4-20250514": {"context_window": 200_000, "max_output_tokens": 32_000},
        "claude-sonnet-4-20250514": {"context_window": 200_000, "max_output_tokens": 64_000},
        "claude-3-7-sonnet-20250219": {"context_window": 200_000, "max_output_tokens": 64_000},
        "claude-3-5-haiku-20241022": {"context_window": 200_000, "max_output_tokens": 8192},
        "claude-3-haiku-20240307": {"context_window": 200_000, "max_output_tokens": 4096},
    }
    family_rules = (
        ("opus-4-1", "claude-opus-4-1"),
        ("opus-4", "claude-opus-4"),
        ("sonnet-4", "claude-sonnet-4"),
        ("3-7-sonnet", "claude-3-7-sonnet"),
        ("3-5-haiku", "claude-3-5-haiku"),
        ("3-haiku", "claude-3-haiku"),
    )
    input_modalities = ("text", "image")
    capabilities = ("function_calling",)

    fallback_prices = {"input_price": 3.0, "output_price": 15.0}
    cache_write_ratio = 1.25
    cache_hit_ratio = 1.0
