"""
Currency display helpers.

Regulatory amounts are defined in EUR; other currencies are shown with a
fixed approximate rate. Service fees are stored in minor units (cents).
"""

SUPPORTED_CURRENCIES = ("USD", "EUR", "GBP")

SERVICE_FEES = {
    "USD": 4900,
    "EUR": 4500,
    "GBP": 3900,
}

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
}

# Display only, not live rates. 1 EUR = x
APPROX_CONVERSION_RATES = {
    "EUR": 1.0,
    "USD": 1.08,
    "GBP": 0.86,
}

EU_COMPENSATION_AMOUNTS = {"SHORT": 250, "MEDIUM": 400, "LONG": 600}


def _check(currency):
    code = (currency or "").upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValueError(f"Unsupported currency: {currency}")
    return code


def get_currency_symbol(currency):
    return CURRENCY_SYMBOLS[_check(currency)]


def get_service_fee(currency):
    """Service fee in cents."""
    return SERVICE_FEES[_check(currency)]


def format_currency(amount, currency):
    """Whole units with thousands separators: 1550 USD -> '$1,550'."""
    symbol = get_currency_symbol(currency)
    value = int(amount + 0.5) if amount >= 0 else -int(-amount + 0.5)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,}"


def get_service_fee_formatted(currency):
    return format_currency(get_service_fee(currency) / 100, currency)


def convert_compensation_amount(eur_amount, target_currency):
    target = _check(target_currency)
    if target == "EUR":
        return eur_amount
    return int(eur_amount * APPROX_CONVERSION_RATES[target] + 0.5)


def format_compensation_amount(eur_amount, display_currency, is_eu_region=False):
    """EU visitors always see EUR; everyone else sees the converted local amount."""
    if is_eu_region or _check(display_currency) == "EUR":
        return format_currency(eur_amount, "EUR")
    return format_currency(convert_compensation_amount(eur_amount, display_currency), display_currency)


def format_compensation_range(min_eur, max_eur, display_currency, is_eu_region=False):
    low = format_compensation_amount(min_eur, display_currency, is_eu_region)
    high = format_compensation_amount(max_eur, display_currency, is_eu_region)
    return f"{low}-{high}"


def get_compensation_display(eur_amount, display_currency, is_eu_region=False):
    return {"primary": format_compensation_amount(eur_amount, display_currency, is_eu_region)}
