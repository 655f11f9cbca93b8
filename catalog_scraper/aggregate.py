"""Join model records with pricing maps."""

import re
from collections.abc import Callable, Iterable, Mapping

from catalog_scraper.models import EnrichedRecord, PricingInfo, RawRecord

# Snapshot ids such as claude-opus-4-1-20250805 are priced under their alias
_SNAPSHOT_DATE = re.compile(r"-\d{8}$")


def pricing_for(identifier: str, pricing: Mapping[str, PricingInfo]) -> PricingInfo | None:
    """Look up an identifier, falling back to its alias without a date suffix."""
    if identifier in pricing:
        return pricing[identifier]
    alias = _SNAPSHOT_DATE.sub("", identifier)
    if alias != identifier:
        return pricing.get(alias)
    return None


def merge_records(
    records: Iterable[RawRecord],
    pricing: Mapping[str, PricingInfo],
    is_valid: Callable[[str], bool],
) -> list[EnrichedRecord]:
    """Attach pricing to each valid record, dedupe and sort by name.

    Args:
        records: Records from one or more extraction passes.
        pricing: identifier -> PricingInfo from the pricing pass.
        is_valid: Identifier format check; failing records are dropped.

    Returns:
        EnrichedRecords sorted by display name (case-sensitive), one per
        identifier, first occurrence wins.
    """
    merged: list[EnrichedRecord] = []
    seen: set[str] = set()

    for record in records:
        if record.identifier in seen or not is_valid(record.identifier):
            continue
        seen.add(record.identifier)
        merged.append(
            EnrichedRecord(
                **record.model_dump(),
                pricing=pricing_for(record.identifier, pricing) or PricingInfo(),
            )
        )

    merged.sort(key=lambda record: record.name)
    return merged
