"""
Currency amount extraction with ordered matcher strategies.

Each currency gets a fixed list of matchers, tried in order with early exit:
symbol before the number, symbol after it, alias before, alias after. Every
form exists once for Latin digits and once for Arabic-Indic digits.
"""
import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Iterable, Iterator, List, Optional, Pattern, Tuple
import logging

from ..models.schema import CurrencyCode, CurrencyDefinition
from .normalize import normalize_money

logger = logging.getLogger(__name__)


class MatchStrategy(str, Enum):
    SYMBOL_PREFIX = "symbol_prefix"
    SYMBOL_SUFFIX = "symbol_suffix"
    ALIAS_PREFIX = "alias_prefix"
    ALIAS_SUFFIX = "alias_suffix"
    CODE_PREFIX = "code_prefix"
    CODE_SUFFIX = "code_suffix"
    KEYWORD = "keyword"


def _number_pattern(digit: str, group_sep: str, fraction_sep: str) -> str:
    grouped = rf"{digit}{{1,3}}(?:{group_sep}{digit}{{3}})+(?:{fraction_sep}{digit}{{1,2}})?"
    plain = rf"{digit}+(?:{fraction_sep}{digit}{{1,2}})?"
    return f"(?:{grouped}|{plain})"


LATIN_NUMBER = _number_pattern(r"[0-9]", r"[.,\u0020\u00a0\u202f]", r"[.,]")
ARABIC_NUMBER = _number_pattern(r"[٠-٩]", r"[.,٬\u0020\u00a0\u202f]", r"[.,٫]")

DIGIT_FORMS: Tuple[Tuple[str, str], ...] = (
    ("latin", LATIN_NUMBER),
    ("arabic", ARABIC_NUMBER),
)

# A currency token must not run into a letter or another currency sign on its
# outer side, so "SR" never fires "R" and "A$" never fires "$".
_OTHER_SIGN = r"[^\W\d_]|[$\u00a2-\u00a5\u20a0-\u20bf]"
_TOKEN_BEFORE = rf"(?<!{_OTHER_SIGN})"
_TOKEN_AFTER = rf"(?!{_OTHER_SIGN})"
_NUMBER_START = r"(?<![0-9٠-٩.,])"
_NUMBER_END = r"(?![0-9٠-٩])"

STANDALONE_NUMBER = re.compile(
    rf"(?<![\w.,])(?P<number>{LATIN_NUMBER}|{ARABIC_NUMBER})(?!\w)"
)


@dataclass(frozen=True)
class AmountMatch:
    """A parsed amount together with where it was found."""
    currency: CurrencyCode
    amount: Decimal
    raw: str
    start: int
    end: int
    strategy: MatchStrategy


@dataclass(frozen=True)
class AmountMatcher:
    """One compiled pattern for one currency, strategy and digit form."""
    currency: CurrencyCode
    strategy: MatchStrategy
    digits: str
    pattern: Pattern

    def finditer(self, text: str) -> Iterator[AmountMatch]:
        for match in self.pattern.finditer(text):
            amount = normalize_money(match.group('number'))
            if amount is None:
                continue
            yield AmountMatch(
                currency=self.currency,
                amount=amount,
                raw=match.group(0),
                start=match.start(),
                end=match.end(),
                strategy=self.strategy,
            )

    def search(self, text: str) -> Optional[AmountMatch]:
        return next(self.finditer(text), None)


def _token_alternation(tokens: Iterable[str]) -> str:
    ordered = sorted({token for token in tokens if token}, key=len, reverse=True)
    return "|".join(re.escape(token) for token in ordered)


def _prefix(token: str, number: str) -> str:
    return rf"{_TOKEN_BEFORE}(?:{token})\s*(?P<number>{number}){_NUMBER_END}"


def _suffix(token: str, number: str) -> str:
    return rf"{_NUMBER_START}(?P<number>{number})\s*(?:{token}){_TOKEN_AFTER}"


@lru_cache(maxsize=None)
def build_matchers(currency: CurrencyDefinition) -> Tuple[AmountMatcher, ...]:
    """
    Build the ordered matcher list for a currency.

    Symbols are matched case-sensitively, aliases case-insensitively.
    """
    symbol = _token_alternation([currency.symbol])
    aliases = _token_alternation(currency.aliases)

    plan = [
        (MatchStrategy.SYMBOL_PREFIX, symbol, _prefix, 0),
        (MatchStrategy.SYMBOL_SUFFIX, symbol, _suffix, 0),
    ]
    if aliases:
        plan += [
            (MatchStrategy.ALIAS_PREFIX, aliases, _prefix, re.IGNORECASE),
            (MatchStrategy.ALIAS_SUFFIX, aliases, _suffix, re.IGNORECASE),
        ]

    matchers = []
    for strategy, token, build, flags in plan:
        for digits, number in DIGIT_FORMS:
            matchers.append(AmountMatcher(
                currency=currency.code,
                strategy=strategy,
                digits=digits,
                pattern=re.compile(build(token, number), flags),
            ))
    return tuple(matchers)


@lru_cache(maxsize=None)
def build_code_matchers(currency: CurrencyDefinition) -> Tuple[AmountMatcher, ...]:
    """Matchers for the bare alphabetic code, e.g. ``USD 100`` or ``100 USD``."""
    code = re.escape(currency.code.value)
    matchers = []
    for strategy, build in ((MatchStrategy.CODE_PREFIX, _prefix), (MatchStrategy.CODE_SUFFIX, _suffix)):
        for digits, number in DIGIT_FORMS:
            matchers.append(AmountMatcher(
                currency=currency.code,
                strategy=strategy,
                digits=digits,
                pattern=re.compile(build(code, number), re.IGNORECASE),
            ))
    return tuple(matchers)


def extract(text: str, currency: CurrencyDefinition) -> Optional[AmountMatch]:
    """
    Extract the first amount for a single currency.

    Matchers are tried in order and the first one that yields a parsable
    number wins.

    Args:
        text: Text to search
        currency: Currency definition

    Returns:
        AmountMatch, or None if no matcher fires
    """
    if not text:
        return None

    for matcher in build_matchers(currency):
        found = matcher.search(text)
        if found is not None:
            logger.debug(
                f"{currency.code.value} {matcher.strategy.value}/{matcher.digits} "
                f"matched {found.raw!r}"
            )
            return found
    return None


def extract_first(text: str, currencies: Iterable[CurrencyDefinition]) -> Optional[AmountMatch]:
    """
    Try currencies in registry order and return the first match.

    This is first-match-wins, not best-match: a text mentioning two currencies
    resolves to whichever is listed first.
    """
    for currency in currencies:
        found = extract(text, currency)
        if found is not None:
            return found
    return None


def find_all(text: str, currency: CurrencyDefinition,
             strategies: Optional[Iterable[MatchStrategy]] = None) -> List[AmountMatch]:
    """
    Every amount for a currency in the text, in matcher order.

    Args:
        text: Text to search
        currency: Currency definition
        strategies: Restrict to these strategies (default: all)

    Returns:
        List of matches; overlapping spans from different matchers are kept
    """
    if not text:
        return []

    allowed = set(strategies) if strategies is not None else None
    found = []
    for matcher in build_matchers(currency):
        if allowed is not None and matcher.strategy not in allowed:
            continue
        found.extend(matcher.finditer(text))
    return found


def find_code_amounts(text: str, currency: CurrencyDefinition) -> List[AmountMatch]:
    """Amounts written with the currency's alphabetic code."""
    if not text:
        return []

    found = []
    for matcher in build_code_matchers(currency):
        found.extend(matcher.finditer(text))
    return found


def first_standalone_number(text: str) -> Optional[Tuple[Decimal, int, int]]:
    """
    First number in the text that is not glued to a word.

    Returns:
        (amount, start, end) or None
    """
    for match in STANDALONE_NUMBER.finditer(text or ""):
        amount = normalize_money(match.group('number'))
        if amount is not None:
            return amount, match.start(), match.end()
    return None


@lru_cache(maxsize=None)
def _clue_patterns(currency: CurrencyDefinition) -> Tuple[Pattern, Pattern]:
    symbol = re.compile(
        rf"{_TOKEN_BEFORE}(?:{_token_alternation([currency.symbol])}){_TOKEN_AFTER}"
    )
    words = _token_alternation((currency.name,) + currency.aliases)
    names = re.compile(rf"{_TOKEN_BEFORE}(?:{words}){_TOKEN_AFTER}", re.IGNORECASE)
    return symbol, names


def mentions_currency(text: str, currency: CurrencyDefinition) -> bool:
    """True if the text carries the currency's symbol, name or an alias."""
    if not text:
        return False
    symbol, names = _clue_patterns(currency)
    return bool(symbol.search(text) or names.search(text))


def infer_currency(text: str, currencies: Iterable[CurrencyDefinition],
                   fallback: CurrencyCode) -> CurrencyCode:
    """
    Guess the currency of a message that has no formal amount notation.

    The first currency in registry order whose symbol, name or alias appears
    in the text wins; otherwise ``fallback``.
    """
    for currency in currencies:
        if mentions_currency(text, currency):
            return currency.code
    return fallback
