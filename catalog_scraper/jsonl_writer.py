"""JSONL writer for catalog/<provider>/models.jsonl."""

import json
from pathlib import Path

from catalog_scraper.models import CatalogModel


class CatalogWriteError(Exception):
    """Raised when a catalog file cannot be written."""


def model_to_line(model: CatalogModel) -> str:
    """Serialize one model as a single JSON line, without unset optionals."""
    return json.dumps(model.model_dump(exclude_none=True), ensure_ascii=False)


def models_to_jsonl_string(models: list[CatalogModel]) -> str:
    """Convert models to JSONL text (one object per line, trailing newline)."""
    if not models:
        return ""
    return "\n".join(model_to_line(model) for model in models) + "\n"


def write_models_jsonl(models: list[CatalogModel], path: Path) -> None:
    """Write models to a JSONL file, creating parent directories.

    Raises:
        CatalogWriteError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(models_to_jsonl_string(models), encoding="utf-8")
    except OSError as e:
        raise CatalogWriteError(f"Failed to write {path}: {e}") from e


def write_text_file(content: str, path: Path) -> None:
    """Write a downloaded document (e.g. an OpenAPI spec) next to the catalog.

    Raises:
        CatalogWriteError: If the file cannot be written.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise CatalogWriteError(f"Failed to write {path}: {e}") from e
