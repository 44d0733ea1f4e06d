"""Proper-noun scanning of generated text."""

from canonforge.scanning.classify import guess_entity_type
from canonforge.scanning.mentions import extract_proper_nouns
from canonforge.scanning.scan import (
    CanonScore,
    ScanOptions,
    ScanResult,
    calculate_canon_score,
    contains_discoveries,
    extract_text_for_scanning,
    inhabitant_discoveries,
    scan_generated_content,
)
from canonforge.scanning.vocab import should_ignore_term

__all__ = [
    "CanonScore",
    "ScanOptions",
    "ScanResult",
    "calculate_canon_score",
    "contains_discoveries",
    "extract_proper_nouns",
    "extract_text_for_scanning",
    "guess_entity_type",
    "inhabitant_discoveries",
    "scan_generated_content",
    "should_ignore_term",
]
