"""
End-to-end extraction orchestration.
"""
from collections import Counter
from datetime import datetime
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional
import logging

from ..models.schema import ChatParseResult, CurrencyTotal, PaymentRecord, SkipReason
from .attachments import AttachmentScanner
from .classifier import LineClassifier
from .config import ExtractionConfig, default_config
from .ocr import OCRRecordBuilder

logger = logging.getLogger(__name__)


def sort_records(records: Iterable[PaymentRecord]) -> List[PaymentRecord]:
    """Newest first; records with equal timestamps keep their input order."""
    return sorted(records, key=lambda record: record.timestamp, reverse=True)


class ChatParser:
    """Main parser class that runs a transcript through the line classifier."""

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 now: Optional[Callable[[], datetime]] = None, verbose: bool = False):
        self.config = config or default_config()
        self.classifier = LineClassifier(self.config, now)
        self.scanner = AttachmentScanner(self.config.image_extensions)

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def parse(self, transcript: str) -> ChatParseResult:
        """
        Extract payment records and attachment references from a transcript.

        Bad lines never abort the document: each line yields either a record
        or a skip reason.

        Args:
            transcript: Full chat export text

        Returns:
            ChatParseResult with records sorted newest first
        """
        if not transcript or not transcript.strip():
            logger.info("Empty transcript, nothing to parse")
            return ChatParseResult(records=[], attachments=[])

        lines = transcript.splitlines()
        logger.info(f"Parsing {len(lines)} transcript lines")

        records = []
        reasons: Counter = Counter()
        for line_number, line in enumerate(lines, 1):
            outcome = self.classifier.process(line, line_number)
            if outcome.matched:
                records.append(outcome.record)
            else:
                reasons[outcome.skip_reason] += 1

        attachments = self.scanner.scan(transcript)
        skipped = sum(reasons.values())
        logger.info(
            f"Found {len(records)} payment messages and {len(attachments)} attachments. "
            f"Skipped {skipped} lines."
        )

        return ChatParseResult(
            records=sort_records(records),
            attachments=attachments,
            lines_total=len(lines),
            skipped=skipped,
            skip_reasons={reason: reasons[reason] for reason in SkipReason if reasons[reason]},
        )


def parse_chat(transcript: str, config: Optional[ExtractionConfig] = None,
               now: Optional[Callable[[], datetime]] = None,
               verbose: bool = False) -> ChatParseResult:
    """
    Parse a chat export.

    Args:
        transcript: Full chat export text
        config: Extraction configuration (default: packaged configuration)
        now: Clock for records whose timestamp cannot be parsed
        verbose: Enable verbose logging

    Returns:
        ChatParseResult
    """
    parser = ChatParser(config, now, verbose)
    return parser.parse(transcript)


def build_ocr_records(ocr_text: str, image_ref: Optional[str] = None,
                      confidence: Optional[float] = None,
                      config: Optional[ExtractionConfig] = None,
                      now: Optional[Callable[[], datetime]] = None) -> List[PaymentRecord]:
    """
    Extract payment records from one image's OCR text.

    Args:
        ocr_text: Text produced by the OCR engine
        image_ref: Filename of the source image
        confidence: Engine confidence in [0, 100]
        config: Extraction configuration
        now: Clock used as the records' timestamp

    Returns:
        Unsorted list of OCR records
    """
    builder = OCRRecordBuilder(config, now)
    return builder.build(ocr_text, image_ref, confidence)


def merge_records(*batches: Iterable[PaymentRecord]) -> List[PaymentRecord]:
    """Concatenate record batches (chat and per-image OCR) and sort once."""
    merged = []
    for batch in batches:
        merged.extend(batch)
    return sort_records(merged)


def summarize_by_currency(records: Iterable[PaymentRecord],
                          config: Optional[ExtractionConfig] = None) -> List[CurrencyTotal]:
    """
    Total the amounts per currency.

    Args:
        records: Records to total
        config: Configuration whose registry supplies order, symbols and names

    Returns:
        One CurrencyTotal per currency present, in registry order
    """
    config = config or default_config()
    totals: Dict = {}
    counts: Counter = Counter()
    for record in records:
        totals[record.currency] = totals.get(record.currency, Decimal('0')) + record.amount
        counts[record.currency] += 1

    summary = []
    for currency in config.registry:
        if currency.code in totals:
            summary.append(CurrencyTotal(
                currency=currency.code,
                symbol=currency.symbol,
                name=currency.name,
                total=totals[currency.code],
                count=counts[currency.code],
            ))
    return summary
