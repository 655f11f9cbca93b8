"""Fireworks AI model library (cards with inline prices)."""

from catalog_scraper.base import BaseScraper
from catalog_scraper.extractor import ExtractionProfile
from catalog_scraper.models import PricingInfo
from catalog_scraper.text import IdentifierPolicy

MODELS_URL = "https://app.fireworks.ai/models"

# Non-token models are billed per unit; the unit price stands in for both sides
_UNIT_PRICES = ("step_price", "image_price", "minute_price")


class FireworksScraper(BaseScraper):
    provider_name = "Fireworks AI"
    models_url = MODELS_URL
    pricing_url = MODELS_URL

    profile = ExtractionProfile(
        identifier=IdentifierPolicy(r"[a-z0-9]+(?:-[a-z0-9]+)*"),
        model_tables=False,
        heading_tags=(),
        link_href_pattern=r"/models/fireworks/([^/?#]+)",
    )

    default_context_window = 128_000
    default_max_output_tokens = 4096
    max_output_rules = (
        ("asr", 16_000),
        ("whisper", 16_000),
        ("flux", 4096),
        ("deepseek", 20_000),
        ("kimi", 20_000),
    )
    family_rules = (
        ("deepseek", "deepseek-v3"),
        ("kimi", "kimi-k2"),
        ("gpt-oss", "gpt-oss"),
        ("qwen3-coder", "qwen3-coder"),
        ("qwen3", "qwen3"),
        ("qwen2p5", "qwen2p5-vl"),
        ("llama4-maverick", "llama4-maverick"),
        ("llama4-scout", "llama4-scout"),
        ("llama4", "llama4"),
        ("glm", "glm-4p5v"),
        ("flux-kontext", "flux-kontext"),
        ("flux", "flux-1"),
    )

    def catalog_id(self, identifier: str) -> str:
        return f"accounts/fireworks/models/{identifier}"

    def family_for(self, identifier: str) -> str:
        if "asr" in identifier or "whisper" in identifier:
            return identifier
        return super().family_for(identifier)

    def complete_pricing(self, pricing: PricingInfo) -> PricingInfo:
        if pricing.input_price is not None and pricing.output_price is not None:
            return pricing

        extras = pricing.model_extra or {}
        for key in _UNIT_PRICES:
            if extras.get(key) is not None:
                return PricingInfo(input_price=extras[key], output_price=extras[key])

        return PricingInfo(input_price=0.5, output_price=1.5)
