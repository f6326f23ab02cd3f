"""
Pydantic models for extracted payment data.
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class CurrencyCode(str, Enum):
    """Closed set of currencies a record can carry."""
    ZAR = "ZAR"
    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    AUD = "AUD"
    INR = "INR"
    BRL = "BRL"
    JPY = "JPY"
    CNY = "CNY"
    NGN = "NGN"
    RUB = "RUB"
    SAR = "SAR"


class RecordOrigin(str, Enum):
    CHAT = "chat"
    OCR = "ocr"


class SkipReason(str, Enum):
    """Why a transcript line produced no record."""
    BLANK = "blank"
    NO_ENVELOPE = "no_envelope"
    NO_AMOUNT = "no_amount"


class CurrencyDefinition(BaseModel):
    """One registry entry: symbol, display name and textual aliases."""
    model_config = ConfigDict(frozen=True)

    code: CurrencyCode
    symbol: str = Field(min_length=1)
    name: str
    aliases: tuple[str, ...] = ()

    @field_validator('aliases', mode='before')
    @classmethod
    def drop_blank_aliases(cls, v):
        if v is None:
            return ()
        return tuple(str(alias).strip() for alias in v if str(alias).strip())


class PaymentRecord(BaseModel):
    """A single extracted payment."""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    origin: RecordOrigin
    counterparty: str
    description: str
    amount: Decimal = Field(ge=0)
    currency: CurrencyCode
    source_image_ref: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    @field_validator('amount')
    @classmethod
    def amount_must_be_finite(cls, v: Decimal) -> Decimal:
        if not v.is_finite():
            raise ValueError(f"Amount must be a finite number: {v}")
        return v

    @model_validator(mode='after')
    def confidence_only_for_ocr(self):
        if self.confidence is not None and self.origin != RecordOrigin.OCR:
            raise ValueError("Only OCR records carry a confidence score")
        return self


class LineOutcome(BaseModel):
    """Result of classifying one transcript line: a record or a skip reason."""
    model_config = ConfigDict(frozen=True)

    line_number: int
    record: Optional[PaymentRecord] = None
    skip_reason: Optional[SkipReason] = None

    @model_validator(mode='after')
    def exactly_one_outcome(self):
        if (self.record is None) == (self.skip_reason is None):
            raise ValueError("A line outcome is either matched or skipped")
        return self

    @property
    def matched(self) -> bool:
        return self.record is not None


class ChatParseResult(BaseModel):
    """Everything extracted from one chat transcript."""
    records: List[PaymentRecord]
    attachments: List[str]
    lines_total: int = 0
    skipped: int = 0
    skip_reasons: Dict[SkipReason, int] = Field(default_factory=dict)


class CurrencyTotal(BaseModel):
    """Sum of record amounts for one currency."""
    currency: CurrencyCode
    symbol: str
    name: str
    total: Decimal
    count: int


class OCRInput(BaseModel):
    """Text and score produced by the OCR engine for one image."""
    text: str
    image_ref: Optional[str] = None
    confidence: Optional[float] = Field(default=None, ge=0.0, le=100.0)
