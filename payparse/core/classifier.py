"""
Chat line classification and per-line payment extraction.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, Pattern, Tuple
import logging

from ..models.schema import LineOutcome, PaymentRecord, RecordOrigin, SkipReason
from .amounts import AmountMatch, MatchStrategy, extract_first, first_standalone_number, infer_currency
from .attachments import AttachmentScanner
from .config import ExtractionConfig, default_config
from .normalize import contains_numeral, normalize_text, strip_leading_punctuation
from .timestamps import normalize_timestamp

logger = logging.getLogger(__name__)

_MERIDIEM = r"(?:\s*[AaPp]\.?\s?[Mm]\.?)?"
_SENDER_CONTENT = r"(?P<sender>[^:]+?):\s+(?P<content>.+)"

# Tried in order; the first grammar that matches the whole line wins.
ENVELOPE_GRAMMARS: Tuple[Tuple[str, Pattern], ...] = (
    ("dash_ymd", re.compile(
        rf"(?P<timestamp>\d{{4}}/\d{{1,2}}/\d{{1,2}},\s*\d{{1,2}}:\d{{2}})\s+-\s+{_SENDER_CONTENT}"
    )),
    ("bracketed", re.compile(
        rf"\[(?P<timestamp>\d{{1,2}}[/.\-]\d{{1,2}}[/.\-]\d{{2,4}},?\s+\d{{1,2}}:\d{{2}}:\d{{2}}{_MERIDIEM})\]"
        rf"\s*{_SENDER_CONTENT}"
    )),
    ("dash_dmy", re.compile(
        rf"(?P<timestamp>\d{{1,2}}[/.\-]\d{{1,2}}[/.\-]\d{{2,4}},?\s+\d{{1,2}}:\d{{2}}(?::\d{{2}})?{_MERIDIEM})"
        rf"\s+-\s+{_SENDER_CONTENT}"
    )),
)

# Direction marks and BOMs that chat exports sprinkle into lines
_INVISIBLE = re.compile(r'[\u200e\u200f\u202a-\u202e\ufeff]')


@dataclass(frozen=True)
class Envelope:
    """The timestamp, sender and body of a chat line."""
    timestamp: str
    counterparty: str
    content: str
    grammar: str


def clean_line(line: str) -> str:
    return _INVISIBLE.sub('', line or "").strip()


def compile_keywords(keywords: Iterable[str]) -> Optional[Pattern]:
    """Whole-word, case-insensitive pattern for payment-intent keywords."""
    ordered = sorted({k.strip() for k in keywords if k and k.strip()}, key=len, reverse=True)
    if not ordered:
        return None
    alternation = "|".join(re.escape(keyword) for keyword in ordered)
    return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)


def classify(line: str) -> Optional[Envelope]:
    """
    Split a chat line into its envelope parts.

    Args:
        line: Raw transcript line

    Returns:
        Envelope, or None if the line is not a chat message
    """
    cleaned = clean_line(line)
    if not cleaned:
        return None

    for name, grammar in ENVELOPE_GRAMMARS:
        match = grammar.fullmatch(cleaned)
        if match:
            sender = match.group('sender').strip().lstrip('~').strip()
            return Envelope(
                timestamp=match.group('timestamp'),
                counterparty=sender,
                content=match.group('content').strip(),
                grammar=name,
            )
    return None


class LineClassifier:
    """Turns transcript lines into payment records or skip reasons."""

    def __init__(self, config: Optional[ExtractionConfig] = None,
                 now: Optional[Callable[[], datetime]] = None):
        self.config = config or default_config()
        self.registry = self.config.registry
        self.now = now or datetime.now
        self.keywords = compile_keywords(self.config.payment_keywords)
        self.attachments = AttachmentScanner(self.config.image_extensions)

    def has_payment_intent(self, content: str) -> bool:
        return bool(self.keywords and self.keywords.search(content))

    def keyword_match(self, text: str) -> Optional[AmountMatch]:
        """Bare number plus a payment keyword, with the currency guessed from context."""
        if not self.has_payment_intent(text) or not contains_numeral(text):
            return None

        number = first_standalone_number(text)
        if number is None:
            return None

        amount, start, end = number
        currency = infer_currency(text, self.registry, self.config.fallback_currency)
        logger.debug(f"Keyword fallback: {amount} {currency.value} from {text!r}")
        return AmountMatch(
            currency=currency,
            amount=amount,
            raw=text[start:end],
            start=start,
            end=end,
            strategy=MatchStrategy.KEYWORD,
        )

    @staticmethod
    def _describe(text: str, start: int, end: int) -> str:
        description = normalize_text(text[:start] + ' ' + text[end:])
        if not strip_leading_punctuation(description):
            return normalize_text(text)
        return description

    def process(self, line: str, line_number: int = 0) -> LineOutcome:
        """
        Classify one line and extract its payment, if any.

        Args:
            line: Raw transcript line
            line_number: 1-based position in the transcript

        Returns:
            LineOutcome carrying either a record or a skip reason
        """
        if not clean_line(line):
            return LineOutcome(line_number=line_number, skip_reason=SkipReason.BLANK)

        envelope = classify(line)
        if envelope is None:
            logger.debug(f"Line {line_number}: no envelope grammar matched")
            return LineOutcome(line_number=line_number, skip_reason=SkipReason.NO_ENVELOPE)

        # Attachment filenames carry digits that must not be read as amounts
        text = normalize_text(self.attachments.strip(envelope.content))

        found = extract_first(text, self.registry) or self.keyword_match(text)
        if found is None:
            logger.debug(f"Line {line_number}: no amount in message from {envelope.counterparty}")
            return LineOutcome(line_number=line_number, skip_reason=SkipReason.NO_AMOUNT)

        record = PaymentRecord(
            timestamp=normalize_timestamp(envelope.timestamp, self.now),
            origin=RecordOrigin.CHAT,
            counterparty=envelope.counterparty,
            description=self._describe(text, found.start, found.end),
            amount=found.amount,
            currency=found.currency,
            source_image_ref=self.attachments.first_in(envelope.content),
        )
        logger.debug(f"Line {line_number}: {record.amount} {record.currency.value} from {record.counterparty}")
        return LineOutcome(line_number=line_number, record=record)
