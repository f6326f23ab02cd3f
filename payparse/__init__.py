"""
Payment Message Extractor

Pulls structured payment records out of exported chat transcripts and OCR'd
receipt text, tolerating multiple timestamp grammars, currency notations,
scripts and digit systems.
"""

__version__ = "1.0.0"
__author__ = "payparse Team"

from .core.runner import parse_chat, build_ocr_records, merge_records, summarize_by_currency
from .core.attachments import scan_attachments, match_image_reference
from .core.config import ExtractionConfig, load_config, default_config
from .models.schema import (
    ChatParseResult, CurrencyCode, CurrencyDefinition, CurrencyTotal,
    LineOutcome, OCRInput, PaymentRecord, RecordOrigin, SkipReason,
)

__all__ = [
    "parse_chat",
    "build_ocr_records",
    "merge_records",
    "summarize_by_currency",
    "scan_attachments",
    "match_image_reference",
    "ExtractionConfig",
    "load_config",
    "default_config",
    "ChatParseResult",
    "CurrencyCode",
    "CurrencyDefinition",
    "CurrencyTotal",
    "LineOutcome",
    "OCRInput",
    "PaymentRecord",
    "RecordOrigin",
    "SkipReason",
]
