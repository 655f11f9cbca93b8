"""Text, price and identifier normalization for scraped pages."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_PRICE_NOISE = re.compile(r"[\s,$€£]")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")
_MAGNITUDES = {"k": 1_000, "m": 1_000_000}
_LABELLED_CONTEXT = re.compile(r"(\d+(?:\.\d+)?)\s*([km])\s+context", re.IGNORECASE)
_LEADING_CONTEXT = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([km])\b", re.IGNORECASE)

# Card prices such as "$0.56/M Input • $1.68/M Output" or "$0.0005/step"
INLINE_PRICE_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (r"\$([\d.]+)/M Input", ("input_price",)),
    (r"\$([\d.]+)/M Output", ("output_price",)),
    (r"\$([\d.]+)/M Tokens", ("input_price", "output_price")),
    (r"\$([\d.]+)/step", ("step_price",)),
    (r"\$([\d.]+)/minute", ("minute_price",)),
    (r"\$([\d.]+)/ea", ("image_price",)),
)


def clean_text(text: str) -> str:
    """Collapse runs of whitespace and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def safe_text(element: Any) -> str:
    """Return the normalized text of a parsed element, or "" if there is none."""
    if element is None:
        return ""
    try:
        text = element.get_text() if hasattr(element, "get_text") else str(element)
        return clean_text(text)
    except (AttributeError, TypeError, ValueError) as e:
        logger.warning(f"Error extracting text: {e}")
        return ""


def extract_price(text: str | None, free_is_zero: bool = False) -> float | None:
    """Parse a price string such as "$1,500" or "$15 / MTok".

    Zero, negative and non-numeric values mean "no price". The literal word
    "free" is also no price unless free_is_zero is set, in which case it is 0.0.

    Returns:
        The first number in the text, or None.
    """
    if text is None:
        return None
    try:
        cleaned = _PRICE_NOISE.sub("", str(text))
        if not cleaned or cleaned == "-":
            return None
        if cleaned.lower() == "free":
            return 0.0 if free_is_zero else None

        match = _NUMBER.search(cleaned)
        if not match:
            return None
        price = float(match.group(0))
    except (TypeError, ValueError) as e:
        logger.warning(f"Error extracting price from {text!r}: {e}")
        return None

    return price if price > 0 else None


def extract_context_window(text: str | None) -> int | None:
    """Parse "128k", "1M" or "160k Context" into a token count."""
    if not text:
        return None
    match = _LABELLED_CONTEXT.search(text) or _LEADING_CONTEXT.search(text)
    if not match:
        return None
    return int(round(float(match.group(1)) * _MAGNITUDES[match.group(2).lower()]))


def extract_inline_pricing(text: str | None) -> dict[str, float]:
    """Collect prices written inline on a model card."""
    pricing: dict[str, float] = {}
    if not text:
        return pricing
    for pattern, keys in INLINE_PRICE_PATTERNS:
        match = re.search(pattern, text)
        if not match:
            continue
        price = extract_price(match.group(1))
        if price is None:
            continue
        for key in keys:
            pricing.setdefault(key, price)
    return pricing


def slugify(text: str) -> str:
    """Lowercase, spaces to hyphens, drop everything but word chars, dots and hyphens."""
    slug = _WHITESPACE.sub("-", text.strip().lower())
    return re.sub(r"[^\w.-]", "", slug)


@dataclass(frozen=True)
class IdentifierPolicy:
    """Format rule for a provider's API identifiers."""

    pattern: str
    min_length: int = 1

    def is_valid(self, identifier: str | None) -> bool:
        if not identifier or not isinstance(identifier, str):
            return False
        if len(identifier) < self.min_length or _WHITESPACE.search(identifier):
            return False
        return re.fullmatch(self.pattern, identifier) is not None


@dataclass(frozen=True)
class IdentifierRule:
    """Maps free text to a canonical identifier.

    The pattern is searched case-insensitively and the template is formatted
    with the lower-cased named groups of the match.
    """

    pattern: str
    template: str

    def apply(self, text: str) -> str | None:
        match = re.search(self.pattern, text, re.IGNORECASE)
        if not match:
            return None
        groups = {name: value.lower() for name, value in match.groupdict().items() if value is not None}
        try:
            return self.template.format(**groups)
        except (KeyError, IndexError):
            return None


def extract_identifier(
    text: str | None,
    policy: IdentifierPolicy,
    rules: Sequence[IdentifierRule] = (),
    slug_fallback: bool = False,
) -> str | None:
    """Turn display text into an identifier.

    Text that already satisfies the policy is returned unchanged. Otherwise the
    rules are tried in order and the first valid result wins.

    Args:
        text: Display text, e.g. a table cell.
        policy: Identifier format rule.
        rules: Ordered (pattern, template) rules.
        slug_fallback: If no rule matches, try the slugified text.

    Returns:
        The identifier, or None if nothing valid could be derived.
    """
    if not text:
        return None
    candidate = text.strip()
    if policy.is_valid(candidate):
        return candidate

    for rule in rules:
        identifier = rule.apply(candidate)
        if identifier and policy.is_valid(identifier):
            return identifier

    if slug_fallback:
        slug = slugify(candidate)
        if policy.is_valid(slug):
            return slug

    return None
