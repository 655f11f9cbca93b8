"""Tests for merging records with pricing."""

from catalog_scraper.aggregate import merge_records, pricing_for
from catalog_scraper.models import PricingInfo, RawRecord
from catalog_scraper.text import IdentifierPolicy

POLICY = IdentifierPolicy(r"claude-[\w-]+", min_length=8)


def records(*pairs: tuple[str, str]) -> list[RawRecord]:
    return [RawRecord(name=name, identifier=identifier) for name, identifier in pairs]


class TestMergeRecords:
    """Tests for merge_records."""

    def test_attaches_pricing(self):
        pricing = {"claude-opus-4": PricingInfo(input_price=15.0, output_price=75.0)}
        merged = merge_records(records(("Claude Opus 4", "claude-opus-4")), pricing, POLICY.is_valid)

        assert len(merged) == 1
        assert merged[0].pricing.input_price == 15.0
        assert merged[0].name == "Claude Opus 4"

    def test_missing_pricing_is_empty(self):
        merged = merge_records(records(("Claude Opus 4", "claude-opus-4")), {}, POLICY.is_valid)
        assert merged[0].pricing.is_empty()

    def test_invalid_identifiers_dropped(self):
        merged = merge_records(
            records(("Bad", "opus"), ("Claude Opus 4", "claude-opus-4")),
            {},
            POLICY.is_valid,
        )
        assert [r.identifier for r in merged] == ["claude-opus-4"]

    def test_duplicates_first_wins(self):
        """Verify the first record for an identifier keeps its fields."""
        merged = merge_records(
            records(("Claude Opus 4", "claude-opus-4"), ("Opus (again)", "claude-opus-4")),
            {},
            POLICY.is_valid,
        )
        assert [r.name for r in merged] == ["Claude Opus 4"]

    def test_sorted_by_name_case_sensitive(self):
        merged = merge_records(
            records(
                ("claude lowercase", "claude-low-1"),
                ("Claude Sonnet 4", "claude-sonnet-4"),
                ("Claude Haiku 3", "claude-3-haiku"),
            ),
            {},
            POLICY.is_valid,
        )
        assert [r.name for r in merged] == ["Claude Haiku 3", "Claude Sonnet 4", "claude lowercase"]

    def test_does_not_mutate_inputs(self):
        source = records(("Claude Opus 4", "claude-opus-4"))
        pricing = {"claude-opus-4": PricingInfo(input_price=15.0)}
        merge_records(source, pricing, POLICY.is_valid)
        assert not hasattr(source[0], "pricing")

    def test_empty(self):
        assert merge_records([], {}, POLICY.is_valid) == []


class TestPricingFor:
    """Tests for snapshot alias lookup."""

    def test_exact_match_preferred(self):
        pricing = {
            "claude-opus-4-20250514": PricingInfo(input_price=1.0),
            "claude-opus-4": PricingInfo(input_price=15.0),
        }
        assert pricing_for("claude-opus-4-20250514", pricing).input_price == 1.0

    def test_dated_snapshot_uses_alias(self):
        pricing = {"claude-opus-4-1": PricingInfo(input_price=15.0)}
        assert pricing_for("claude-opus-4-1-20250805", pricing).input_price == 15.0

    def test_alias_is_not_a_prefix_match(self):
        """Verify claude-opus-4 prices are not applied to claude-opus-4-1 snapshots."""
        pricing = {"claude-opus-4": PricingInfo(input_price=15.0)}
        assert pricing_for("claude-opus-4-1-20250805", pricing) is None

    def test_missing(self):
        assert pricing_for("claude-opus-4", {}) is None
