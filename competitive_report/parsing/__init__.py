"""Parsing helpers for LLM response text."""

from competitive_report.parsing.json_extraction import (
    ExtractionLevel,
    ExtractionResult,
    balanced_object_span,
    extract_json,
    scrape_fields,
)

__all__ = [
    "ExtractionLevel",
    "ExtractionResult",
    "balanced_object_span",
    "extract_json",
    "scrape_fields",
]
