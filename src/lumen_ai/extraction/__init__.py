"""Structured-data extraction from unreliable model output."""

from __future__ import annotations

from lumen_ai.extraction.json_extractor import (
    ExtractedRecord,
    extract_double_encoded,
    extract_json,
    extract_structured,
    has_parse_error,
)

__all__ = [
    "ExtractedRecord",
    "extract_double_encoded",
    "extract_json",
    "extract_structured",
    "has_parse_error",
]
