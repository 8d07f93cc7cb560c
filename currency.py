from typing import Dict, NamedTuple


class CurrencyInfo(NamedTuple):
    code: str
    name: str
    symbol: str


CURRENCIES = [
    CurrencyInfo("USD", "US Dollar", "$"),
    CurrencyInfo("EUR", "Euro", "€"),
    CurrencyInfo("INR", "Indian Rupee", "₹"),
    CurrencyInfo("GBP", "British Pound", "£"),
    CurrencyInfo("AUD", "Australian Dollar", "A$"),
    CurrencyInfo("CAD", "Canadian Dollar", "C$"),
    CurrencyInfo("CHF", "Swiss Franc", "Fr"),
    CurrencyInfo("JPY", "Japanese Yen", "¥"),
    CurrencyInfo("CNY", "Chinese Yuan", "¥"),
    CurrencyInfo("NZD", "New Zealand Dollar", "NZ$"),
]

_BY_CODE: Dict[str, CurrencyInfo] = {c.code: c for c in CURRENCIES}

DEFAULT_CURRENCY = "USD"


def normalize_currency(value: str) -> str:
    normalized = value.strip().upper()
    if len(normalized) != 3 or not normalized.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code.")
    return normalized


def currency_symbol(code: str) -> str:
    info = _BY_CODE.get(code.upper())
    return info.symbol if info else f"{code.upper()} "


def format_amount(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Display form of an amount, e.g. ``$1,234.50`` or ``-€3.00``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(amount):,.2f}"
