"""
Payment records from OCR'd receipt text.

OCR output has no dependable structure, so every line is handled on its own
and item names are guessed from nearby text. The aim is usually-right and
never-crashing rather than complete.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple
import logging

from ..models.schema import CurrencyCode, PaymentRecord, RecordOrigin
from .amounts import (
    AmountMatch, MatchStrategy, find_all, find_code_amounts, mentions_currency,
)
from .config import ExtractionConfig, default_config
from .normalize import normalize_text, strip_leading_punctuation

logger = logging.getLogger(__name__)

QUANTITY_ITEM = re.compile(r'(\d+)\s*[x×]\s*([^\W\d_].+?)(?=\s*\d|\s*$)', re.IGNORECASE)
_NUMERIC_ONLY = re.compile(r'[\d\s.,]+')

# Matches whose currency word follows the number; text after the word may name the item
_TRAILING_ITEM = (MatchStrategy.ALIAS_SUFFIX, MatchStrategy.CODE_SUFFIX)


@dataclass(frozen=True)
class DetectedAmount:
    """An amount found on a receipt line, with its inferred item."""
    amount: Decimal
    currency: CurrencyCode
    item: Optional[str] = None


def normalize_confidence(confidence: Optional[float]) -> Optional[float]:
    """Map an OCR engine score in [0, 100] onto [0, 1]."""
    if confidence is None:
        return None
    return min(max(float(confidence) / 100.0, 0.0), 1.0)


def _overlaps(match: AmountMatch, claimed: List[Tuple[int, int]]) -> bool:
    return any(match.start < end and start < match.end for start, end in claimed)


class OCRRecordBuilder:
    """Builds payment records from the text an OCR engine produced for one image."""

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 now: Optional[Callable[[], datetime]] = None):
        self.config = config or default_config()
        self.registry = self.config.registry
        self.settings = self.config.ocr
        self.now = now or datetime.now

    def _accept_item(self, candidate: str) -> Optional[str]:
        item = strip_leading_punctuation(candidate).rstrip(" :-=*").strip()
        if len(item) < 2 or _NUMERIC_ONLY.fullmatch(item):
            return None
        return item

    def _is_total_label(self, text: str) -> bool:
        # whole words only: "Coffee" is not a "fee" label
        return any(
            re.search(rf'(?<!\w){re.escape(label)}(?!\w)', text, re.IGNORECASE)
            for label in self.settings.total_labels
        )

    def _has_currency(self, text: str) -> bool:
        return any(mentions_currency(text, currency) for currency in self.registry)

    def _previous_line_item(self, lines: List[str], index: int) -> Optional[str]:
        if index == 0:
            return None

        previous = lines[index - 1].strip()
        if not previous or len(previous) >= self.settings.max_context_length:
            return None
        if self._has_currency(previous) or self._is_total_label(previous):
            return None
        return self._accept_item(previous)

    def infer_item(self, lines: List[str], index: int, match: AmountMatch) -> Optional[str]:
        """
        Guess the item an amount belongs to.

        Priority: text before the amount on the same line, then the previous
        line, then a ``<qty> x <item>`` pattern on the same line. Amounts
        written as ``100 USD item`` or ``3 euros item`` use the text after the
        currency word first.

        Args:
            lines: All OCR lines
            index: Index of the line holding the match
            match: The amount match

        Returns:
            Item label, or None
        """
        line = lines[index]

        if match.strategy in _TRAILING_ITEM:
            item = self._accept_item(line[match.end:])
            if item:
                return item

        item = self._accept_item(line[:match.start])
        if item:
            return item

        item = self._previous_line_item(lines, index)
        if item:
            return item

        remainder = line[:match.start] + ' ' + line[match.end:]
        quantity = QUANTITY_ITEM.search(remainder)
        if quantity:
            return normalize_text(quantity.group(2))

        return None

    def detect(self, ocr_text: str) -> List[DetectedAmount]:
        """
        Find every amount in OCR text.

        Every matcher of every currency (symbol and alias, prefix and suffix)
        runs in registry order, then the scan for amounts written with an
        alphabetic code. A span claimed by one
        match is never claimed again on the same line.

        Args:
            ocr_text: Text blob produced by the OCR engine

        Returns:
            List of detected amounts in line order
        """
        if not ocr_text or not ocr_text.strip():
            return []

        lines = ocr_text.splitlines()
        detected = []

        for index, line in enumerate(lines):
            if not line.strip():
                continue

            claimed: List[Tuple[int, int]] = []
            candidates = []
            for currency in self.registry:
                candidates.extend(find_all(line, currency))
            for currency in self.registry:
                candidates.extend(find_code_amounts(line, currency))

            for match in candidates:
                if _overlaps(match, claimed):
                    continue
                claimed.append((match.start, match.end))
                detected.append(DetectedAmount(
                    amount=match.amount,
                    currency=match.currency,
                    item=self.infer_item(lines, index, match),
                ))

        logger.debug(f"Detected {len(detected)} amounts in {len(lines)} OCR lines")
        return detected

    def build(self, ocr_text: str, image_ref: Optional[str],
              confidence: Optional[float] = None) -> List[PaymentRecord]:
        """
        Turn OCR text into payment records.

        Args:
            ocr_text: Text blob produced by the OCR engine
            image_ref: Filename of the source image
            confidence: Engine confidence score in [0, 100]

        Returns:
            List of records, unsorted, timestamped at processing time
        """
        processed_at = self.now()
        score = normalize_confidence(confidence)

        records = [
            PaymentRecord(
                timestamp=processed_at,
                origin=RecordOrigin.OCR,
                counterparty=self.settings.counterparty_label,
                description=detection.item or self.settings.placeholder_description,
                amount=detection.amount,
                currency=detection.currency,
                source_image_ref=image_ref,
                confidence=score,
            )
            for detection in self.detect(ocr_text)
        ]

        logger.info(f"Extracted {len(records)} records from {image_ref or 'OCR text'}")
        return records
