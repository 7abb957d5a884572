"""Fixed-point money helpers.

Amounts are `Decimal` values quantized to the currency's minor unit. Floats
coming off the wire are converted through their decimal string form so that
`0.1 + 0.2` style drift never enters a total.
"""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")

# Number of minor-unit digits per ISO currency code
_MINOR_DIGITS = {
    "VND": 0,
    "JPY": 0,
    "KRW": 0,
    "USD": 2,
    "EUR": 2,
    "GBP": 2,
}

_SYMBOLS = {"VND": "₫", "USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "KRW": "₩"}


def minor_digits(currency: str) -> int:
    return _MINOR_DIGITS.get(currency.upper(), 2)


def to_money(value) -> Decimal:
    """Coerce a wire value (str, int, float, Decimal or None) to a Decimal."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(repr(value))
    return Decimal(str(value))


def quantize(amount, currency: str = "VND") -> Decimal:
    """Round an amount to the currency's minor unit (half-up)."""
    exponent = Decimal(1).scaleb(-minor_digits(currency))
    return to_money(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def to_minor_units(amount, currency: str = "VND") -> int:
    """Express an amount as an integer count of minor units."""
    return int(quantize(amount, currency).scaleb(minor_digits(currency)))


def from_minor_units(units: int, currency: str = "VND") -> Decimal:
    return quantize(Decimal(units).scaleb(-minor_digits(currency)), currency)


def format_price(amount, currency: str = "VND") -> str:
    """Format an amount the way the storefront displays prices.

    VND uses dot thousands separators and a trailing symbol ("135.000 ₫");
    other currencies use a leading symbol with comma separators ("$12.50").
    """
    value = quantize(amount, currency)
    currency = currency.upper()
    symbol = _SYMBOLS.get(currency, currency)
    digits = minor_digits(currency)

    if currency == "VND":
        text = f"{value:,.{digits}f}".replace(",", ".")
        return f"{text} {symbol}"
    return f"{symbol}{value:,.{digits}f}"
