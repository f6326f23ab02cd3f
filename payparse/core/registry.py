"""
Ordered, read-only table of supported currencies.
"""
from typing import Iterable, Iterator, List, Optional, Tuple

from ..models.schema import CurrencyCode, CurrencyDefinition


class CurrencyRegistry:
    """
    Currencies in matching priority order.

    The order is significant: when a text could match several currencies the
    one listed first wins.
    """

    def __init__(self, currencies: Iterable[CurrencyDefinition]):
        self._currencies: Tuple[CurrencyDefinition, ...] = tuple(currencies)
        self._by_code = {currency.code: currency for currency in self._currencies}

    def __iter__(self) -> Iterator[CurrencyDefinition]:
        return iter(self._currencies)

    def __len__(self) -> int:
        return len(self._currencies)

    def __contains__(self, code) -> bool:
        try:
            return CurrencyCode(code) in self._by_code
        except ValueError:
            return False

    def __repr__(self):
        return f"CurrencyRegistry({', '.join(self.codes())})"

    def get(self, code) -> Optional[CurrencyDefinition]:
        """Look up a currency by code; unknown codes return None."""
        try:
            return self._by_code.get(CurrencyCode(code))
        except ValueError:
            return None

    def codes(self) -> List[str]:
        return [currency.code.value for currency in self._currencies]
