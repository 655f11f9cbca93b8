"""Heuristic extraction of model records and pricing from provider pages.

Three strategies produce RawRecords from one parsed page:

- table scan: rows of model tables, header rows skipped by keyword;
- heading scan: h2/h3 headings followed by a <code> identifier, used when the
  table scan finds nothing;
- link scan: model cards linked by an href that carries the identifier.

A bad row is logged and skipped. A failure at the page level is logged and
yields an empty result.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalog_scraper.models import PricingInfo, RawRecord
from catalog_scraper.text import (
    IdentifierPolicy,
    IdentifierRule,
    extract_context_window,
    extract_identifier,
    extract_inline_pricing,
    extract_price,
    safe_text,
)

if TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

MAX_SIBLING_DEPTH = 10

DEFAULT_HEADER_KEYWORDS = ("model", "name", "api")
DEFAULT_PRICE_HEADER_RULES: tuple[tuple[str, str], ...] = (
    (r"cache.*write|write.*cache", "cache_write_price"),
    (r"cache.*(hit|read)|(hit|read).*cache|refresh", "cache_hit_price"),
    (r"input", "input_price"),
    (r"output", "output_price"),
)
DEFAULT_NAME_SELECTORS = (
    "h3",
    "h4",
    ".font-bold",
    ".font-semibold",
    "strong",
    '[class*="font-bold"]',
    '[class*="font-semibold"]',
)
# Card text that is metadata rather than a model name
_CARD_NOISE = re.compile(r"^\$[\d.]+|Context|Input|Output|Serverless|Tunable", re.IGNORECASE)
_HEADING = re.compile(r"^h([1-6])$", re.IGNORECASE)


@dataclass(frozen=True)
class ExtractionProfile:
    """Everything provider-specific about reading a provider's pages."""

    identifier: IdentifierPolicy
    identifier_rules: tuple[IdentifierRule, ...] = ()
    slug_fallback: bool = False

    # Header row detection
    header_keywords: tuple[str, ...] = DEFAULT_HEADER_KEYWORDS
    header_exact: tuple[str, ...] = ("feature",)

    # Table scan
    model_tables: bool = True
    model_table_pattern: str | None = None
    name_column: int = 0
    identifier_column: int = 1

    # Pricing tables
    pricing_table_pattern: str = r"model|price|token"
    price_header_rules: tuple[tuple[str, str], ...] = DEFAULT_PRICE_HEADER_RULES
    positional_keys: Mapping[int, str] | None = None
    free_is_zero: bool = False

    # Heading scan
    heading_tags: tuple[str, ...] = ("h2", "h3")
    heading_pattern: str | None = None
    max_sibling_depth: int = MAX_SIBLING_DEPTH

    # Link scan
    link_href_pattern: str | None = None
    link_name_selectors: tuple[str, ...] = DEFAULT_NAME_SELECTORS

    def identifier_from_text(self, text: str) -> str | None:
        return extract_identifier(text, self.identifier, self.identifier_rules, self.slug_fallback)


def is_header_row(text: str, profile: ExtractionProfile) -> bool:
    """Whether a row's first cell is a column title rather than data."""
    lowered = text.lower()
    if lowered in profile.header_exact:
        return True
    return any(keyword in lowered for keyword in profile.header_keywords)


def dedupe_by_identifier(records: Iterable[RawRecord]) -> list[RawRecord]:
    """Drop repeated identifiers, keeping the first record seen."""
    seen: set[str] = set()
    unique = []
    for record in records:
        if record.identifier in seen:
            continue
        seen.add(record.identifier)
        unique.append(record)
    return unique


# --- Table scan ---


def _row_cells(row: Tag) -> list[str]:
    return [safe_text(cell) for cell in row.find_all("td")]


def _header_texts(row: Tag) -> list[str]:
    return [safe_text(cell).lower() for cell in row.find_all(["th", "td"])]


def scan_model_tables(doc: BeautifulSoup, profile: ExtractionProfile) -> list[RawRecord]:
    """Read model rows from every table on the page.

    With a model_table_pattern, only tables whose first row matches it are
    read and that first row is skipped. Without one, every row is a candidate
    and header rows are recognized by keyword.
    """
    records: list[RawRecord] = []
    if not profile.model_tables:
        return records

    for table in doc.find_all("table"):
        rows = table.find_all("tr")
        if not rows:
            continue

        if profile.model_table_pattern:
            headers = _header_texts(rows[0])
            if not any(re.search(profile.model_table_pattern, h) for h in headers):
                continue
            rows = rows[1:]

        for row in rows:
            try:
                record = _model_from_row(row, profile)
            except Exception as e:
                logger.warning(f"Error parsing model row: {e}")
                continue
            if record is not None:
                records.append(record)

    return records


def _model_from_row(row: Tag, profile: ExtractionProfile) -> RawRecord | None:
    cells = _row_cells(row)
    if len(cells) < 2 or len(cells) <= max(profile.name_column, profile.identifier_column):
        return None

    name = cells[profile.name_column]
    identifier = cells[profile.identifier_column]
    if not name or not identifier or is_header_row(name, profile):
        return None
    if not profile.identifier.is_valid(identifier):
        return None

    used = {profile.name_column, profile.identifier_column}
    others = [text for index, text in enumerate(cells) if index not in used]
    return RawRecord(name=name, identifier=identifier, cells=others)


def determine_price_key(
    header: str, index: int, total_cells: int, profile: ExtractionProfile
) -> str | None:
    """Map a pricing column to a PricingInfo field.

    Column titles are matched against the profile's header rules first. If none
    match, the column position decides: the first data column is input, the
    last is output, and interior columns are cache write then cache hit.
    """
    for pattern, key in profile.price_header_rules:
        if header and re.search(pattern, header, re.IGNORECASE):
            return key

    if profile.positional_keys is not None:
        return profile.positional_keys.get(index)

    if index == 1:
        return "input_price"
    if index == total_cells - 1:
        return "output_price"
    if index == 2:
        return "cache_write_price"
    if index == total_cells - 2:
        return "cache_hit_price"
    return None


def extract_pricing_info(
    cells: list[str], headers: list[str], profile: ExtractionProfile
) -> PricingInfo:
    """Build PricingInfo from one pricing row. Column 0 is the model name."""
    prices: dict[str, float] = {}
    for index, text in enumerate(cells):
        if index == 0:
            continue
        price = extract_price(text, free_is_zero=profile.free_is_zero)
        if price is None:
            continue
        header = headers[index] if index < len(headers) else ""
        key = determine_price_key(header, index, len(cells), profile)
        if key:
            prices.setdefault(key, price)
    return PricingInfo(**prices)


def scan_pricing_tables(doc: BeautifulSoup, profile: ExtractionProfile) -> dict[str, PricingInfo]:
    """Read identifier -> pricing from tables whose header looks like pricing."""
    pricing: dict[str, PricingInfo] = {}

    for table in doc.find_all("table"):
        rows = table.find_all("tr")
        if not rows:
            continue

        headers = _header_texts(rows[0])
        if not headers or not any(re.search(profile.pricing_table_pattern, h) for h in headers):
            continue

        for row in rows[1:]:
            try:
                cells = _row_cells(row)
                if not cells:
                    continue

                name = cells[0]
                if not name or is_header_row(name, profile):
                    continue

                identifier = profile.identifier_from_text(name)
                if identifier is None or identifier in pricing:
                    continue

                info = extract_pricing_info(cells, headers, profile)
                if not info.is_empty():
                    pricing[identifier] = info
            except Exception as e:
                logger.warning(f"Error parsing pricing row: {e}")
                continue

    return pricing


# --- Heading scan ---


def _heading_level(element: Tag) -> int | None:
    match = _HEADING.match(element.name or "")
    return int(match.group(1)) if match else None


def find_identifier_near(heading: Tag, profile: ExtractionProfile) -> str | None:
    """Look for a <code> identifier in the siblings that follow a heading.

    Stops after max_sibling_depth siblings or at a heading of the same or a
    higher level.
    """
    level = _heading_level(heading) or 6
    sibling = heading.find_next_sibling()
    depth = 0

    while sibling is not None and depth < profile.max_sibling_depth:
        try:
            sibling_level = _heading_level(sibling)
            if sibling_level is not None and sibling_level <= level:
                return None

            codes = [sibling] if sibling.name == "code" else sibling.find_all("code")
            for code in codes:
                token = safe_text(code)
                if profile.identifier.is_valid(token):
                    return token

            sibling = sibling.find_next_sibling()
            depth += 1
        except Exception as e:
            logger.warning(f"Error traversing siblings: {e}")
            return None

    return None


def scan_headings(doc: BeautifulSoup, profile: ExtractionProfile) -> list[RawRecord]:
    """Pair headings with the identifier printed below them."""
    records: list[RawRecord] = []

    for heading in doc.find_all(list(profile.heading_tags)):
        try:
            text = safe_text(heading)
            if not text:
                continue
            if profile.heading_pattern and not re.search(profile.heading_pattern, text, re.IGNORECASE):
                continue

            identifier = find_identifier_near(heading, profile)
            if identifier is None:
                continue
            records.append(RawRecord(name=text, identifier=identifier))
        except Exception as e:
            logger.warning(f"Error parsing heading: {e}")
            continue

    return records


# --- Link scan ---


def _card_name(link: Tag, profile: ExtractionProfile) -> str | None:
    for selector in profile.link_name_selectors:
        text = safe_text(link.select_one(selector))
        if not text or _CARD_NOISE.search(text):
            continue
        if len(text) > 3:
            return text
    return None


def _model_links(doc: BeautifulSoup, profile: ExtractionProfile) -> Iterable[tuple[Tag, str]]:
    """Yield (anchor, identifier candidate) for anchors matching the href pattern."""
    for link in doc.find_all("a", href=True):
        match = re.search(profile.link_href_pattern, link["href"])
        if match:
            yield link, match.group(1)


def scan_links(doc: BeautifulSoup, profile: ExtractionProfile) -> list[RawRecord]:
    """Read model cards whose link carries the identifier."""
    records: list[RawRecord] = []
    if not profile.link_href_pattern:
        return records

    for link, identifier in _model_links(doc, profile):
        try:
            if not profile.identifier.is_valid(identifier):
                continue
            name = _card_name(link, profile)
            if name is None:
                continue

            extras = {}
            context_window = extract_context_window(safe_text(link))
            if context_window:
                extras["context_window"] = context_window
            records.append(RawRecord(name=name, identifier=identifier, extras=extras))
        except Exception as e:
            logger.warning(f"Error parsing model card: {e}")
            continue

    return records


def scan_card_pricing(doc: BeautifulSoup, profile: ExtractionProfile) -> dict[str, PricingInfo]:
    """Read prices written inline on model cards."""
    pricing: dict[str, PricingInfo] = {}
    if not profile.link_href_pattern:
        return pricing

    for link, identifier in _model_links(doc, profile):
        try:
            if identifier in pricing or not profile.identifier.is_valid(identifier):
                continue
            prices = extract_inline_pricing(safe_text(link))
            if prices:
                pricing[identifier] = PricingInfo(**prices)
        except Exception as e:
            logger.warning(f"Error parsing card pricing: {e}")
            continue

    return pricing


# --- Extraction passes ---


def extract_models(doc: BeautifulSoup, profile: ExtractionProfile) -> list[RawRecord]:
    """Run one model extraction pass over a page. Never raises."""
    try:
        records = scan_model_tables(doc, profile)
        if not records and profile.heading_tags:
            records = scan_headings(doc, profile)
        records.extend(scan_links(doc, profile))
    except Exception as e:
        logger.error(f"Error in fetch_models: {type(e).__name__} - {e}")
        return []

    unique = dedupe_by_identifier(records)
    logger.info(f"Extracted {len(unique)} unique models")
    return unique


def extract_pricing(doc: BeautifulSoup, profile: ExtractionProfile) -> dict[str, PricingInfo]:
    """Run one pricing extraction pass over a page. Never raises."""
    try:
        pricing = scan_pricing_tables(doc, profile)
        for identifier, info in scan_card_pricing(doc, profile).items():
            pricing.setdefault(identifier, info)
    except Exception as e:
        logger.error(f"Error in fetch_pricing: {type(e).__name__} - {e}")
        return {}

    logger.info(f"Extracted pricing for {len(pricing)} models")
    return pricing
