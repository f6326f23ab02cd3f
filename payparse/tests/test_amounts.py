"""
Tests for amount normalization and currency matching.
"""
from decimal import Decimal

import pytest

from ..core.amounts import (
    MatchStrategy, extract, extract_first, find_all,
    find_code_amounts, first_standalone_number, infer_currency,
)
from ..core.normalize import contains_numeral, normalize_money, transliterate_digits
from ..models.schema import CurrencyCode


class TestNormalizeMoney:
    """Separator disambiguation and digit transliteration."""

    @pytest.mark.parametrize("raw, expected", [
        ("250.00", Decimal("250.00")),
        ("1,234.56", Decimal("1234.56")),
        ("1.234,56", Decimal("1234.56")),
        ("1 234", Decimal("1234")),
        ("12,5", Decimal("12.5")),
        ("1,234", Decimal("1234")),
        ("1.500", Decimal("1500")),
        ("1,234,567.89", Decimal("1234567.89")),
        ("١٥٠", Decimal("150")),
        ("١٢٣٫٤٥", Decimal("123.45")),
    ])
    def test_normalizes(self, raw, expected):
        assert normalize_money(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "...", ",", "abc"])
    def test_malformed_is_none(self, raw):
        assert normalize_money(raw) is None

    def test_transliterate_digits(self):
        assert transliterate_digits("R ٠١٢٣٤٥٦٧٨٩") == "R 0123456789"

    def test_contains_numeral(self):
        assert contains_numeral("sent ٥")
        assert contains_numeral("sent 5")
        assert not contains_numeral("sent five")


class TestAmountExtractor:
    """Matcher strategies for a single currency."""

    @pytest.fixture
    def zar(self, config):
        return config.registry.get("ZAR")

    @pytest.fixture
    def usd(self, config):
        return config.registry.get("USD")

    def test_symbol_prefix(self, zar):
        match = extract("Lunch R250.00", zar)
        assert match.amount == Decimal("250.00")
        assert match.currency == CurrencyCode.ZAR
        assert match.strategy == MatchStrategy.SYMBOL_PREFIX
        assert match.raw == "R250.00"

    def test_symbol_prefix_with_space(self, zar):
        assert extract("Lunch R 250", zar).amount == Decimal("250")

    def test_symbol_suffix(self, zar):
        match = extract("that was 250.00 R", zar)
        assert match.amount == Decimal("250.00")
        assert match.strategy == MatchStrategy.SYMBOL_SUFFIX

    def test_alias_prefix_and_suffix(self, zar):
        assert extract("ZAR 99", zar).strategy == MatchStrategy.ALIAS_PREFIX
        suffix = extract("owe you 99 rand", zar)
        assert suffix.amount == Decimal("99")
        assert suffix.strategy == MatchStrategy.ALIAS_SUFFIX

    def test_alias_is_case_insensitive(self, usd):
        assert extract("usd 12", usd).amount == Decimal("12")

    def test_arabic_indic_digits_match_latin(self, zar):
        assert extract("R ١٥٠", zar).amount == extract("R 150", zar).amount == Decimal("150")

    def test_symbol_does_not_fire_inside_words(self, zar):
        assert extract("SR 50", zar) is None
        assert extract("R$ 50", zar) is None
        assert extract("Rs 50", zar) is None
        assert extract("50 Rands later", zar) is None

    def test_dollar_not_taken_from_other_dollars(self, usd):
        assert extract("A$20", usd) is None
        assert extract("R$20", usd) is None

    def test_no_match(self, usd):
        assert extract("see you tomorrow", usd) is None
        assert extract("", usd) is None

    def test_grouping_is_not_fraction(self, usd):
        assert extract("$1,500", usd).amount == Decimal("1500")
        assert extract("$1.500,25", usd).amount == Decimal("1500.25")


class TestRegistryOrder:
    """First-match-wins across currencies."""

    def test_first_currency_in_registry_wins(self, config):
        match = extract_first("Paid €10 and then R20", config.registry)
        assert match.currency == CurrencyCode.ZAR
        assert match.amount == Decimal("20")

    def test_shared_symbol_resolves_to_first(self, config):
        assert extract_first("¥500", config.registry).currency == CurrencyCode.JPY

    @pytest.mark.parametrize("text, currency", [
        ("A$30", CurrencyCode.AUD),
        ("R$30", CurrencyCode.BRL),
        ("SR30", CurrencyCode.SAR),
        ("Rs 30", CurrencyCode.INR),
        ("30 euros", CurrencyCode.EUR),
        ("30 рублей", CurrencyCode.RUB),
        ("٣٠ ريال", CurrencyCode.SAR),
    ])
    def test_overlapping_notations(self, config, text, currency):
        match = extract_first(text, config.registry)
        assert match.currency == currency
        assert match.amount == Decimal("30")


class TestFindAll:
    """Multi-match helpers used for receipts."""

    def test_find_all_symbol_only(self, config):
        usd = config.registry.get("USD")
        matches = find_all(
            "Coffee $4.50 Muffin $3.00 USD 1", usd,
            (MatchStrategy.SYMBOL_PREFIX, MatchStrategy.SYMBOL_SUFFIX),
        )
        assert [m.amount for m in matches] == [Decimal("4.50"), Decimal("3.00")]

    def test_find_code_amounts(self, config):
        eur = config.registry.get("EUR")
        prefix, = find_code_amounts("EUR 12,50", eur)
        assert prefix.amount == Decimal("12.50")
        assert prefix.strategy == MatchStrategy.CODE_PREFIX

        suffix, = find_code_amounts("12 eur dinner", eur)
        assert suffix.strategy == MatchStrategy.CODE_SUFFIX

    def test_first_standalone_number(self):
        amount, start, end = first_standalone_number("sent 2x pizza, 300 total")
        assert amount == Decimal("300")
        assert (start, end) == (15, 18)
        assert first_standalone_number("no digits") is None

    def test_space_grouping_joins_adjacent_numbers(self, config):
        match = extract_first("Paid R100 200 of it back later", config.registry)
        assert match.amount == Decimal("100200")
        assert match.raw == "R100 200"

    def test_infer_currency(self, config):
        fallback = config.fallback_currency
        assert infer_currency("paid 50 in dollars", config.registry, fallback) == CurrencyCode.USD
        assert infer_currency("paid 50 pounds", config.registry, fallback) == CurrencyCode.GBP
        assert infer_currency("paid 50", config.registry, fallback) == fallback
