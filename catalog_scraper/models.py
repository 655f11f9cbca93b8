"""Record and catalog models shared by extraction, aggregation and output."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PricingInfo(BaseModel):
    """Per-model prices in USD per million tokens.

    Providers publish extra price columns (citations, search queries, images);
    those are kept as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    input_price: float | None = Field(default=None, ge=0)
    output_price: float | None = Field(default=None, ge=0)
    cache_write_price: float | None = Field(default=None, ge=0)
    cache_hit_price: float | None = Field(default=None, ge=0)

    def as_dict(self) -> dict[str, float]:
        """Return only the prices that were found."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.as_dict()


class RawRecord(BaseModel):
    """One model entry found during a single extraction pass."""

    name: str = Field(description="Display text (table cell, heading or card title)")
    identifier: str = Field(description="Candidate API identifier")
    cells: list[str] = Field(default_factory=list, description="Remaining cell texts of the row")
    extras: dict[str, Any] = Field(default_factory=dict, description="Card metadata such as context window")


class EnrichedRecord(RawRecord):
    """A RawRecord joined with its pricing-map entry."""

    pricing: PricingInfo = Field(default_factory=PricingInfo)


class CatalogModel(BaseModel):
    """One line of catalog/<provider>/models.jsonl."""

    name: str
    family: str
    provider: str
    id: str
    context_window: int | None = Field(default=None, ge=0)
    max_output_tokens: int | None = Field(default=None, ge=0)
    modalities: dict[str, list[str]] = Field(
        default_factory=lambda: {"input": ["text"], "output": ["text"]}
    )
    capabilities: list[str] = Field(default_factory=list)
    pricing: dict[str, Any] = Field(default_factory=dict)
