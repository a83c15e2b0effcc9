"""Listing size and quote currency rules for the upstream markets endpoint.

Kept free of package imports so both the settings layer and the fetcher
can use it.
"""

import re

# CoinGecko caps per_page at 250
MAX_LIMIT = 250

# Three-letter quote currencies accepted by /coins/markets (vs_currency)
SUPPORTED_CURRENCIES: frozenset[str] = frozenset({
    "usd", "eur", "gbp", "jpy", "chf", "cad", "aud", "nzd", "cny", "hkd",
    "sgd", "krw", "inr", "idr", "myr", "php", "thb", "twd", "vnd", "pkr",
    "bdt", "lkr", "mmk", "aed", "sar", "kwd", "bhd", "ils", "try", "rub",
    "uah", "pln", "czk", "huf", "sek", "nok", "dkk", "brl", "mxn", "ars",
    "clp", "zar", "ngn", "gel", "vef",
    "btc", "eth", "ltc", "bch", "bnb", "eos", "xrp", "xlm", "xag", "xau",
})

_CURRENCY_RE = re.compile(r"^[a-z]{3}$")


def normalize_currency(currency: str) -> str:
    """Return the lowercase code, or raise ValueError if it is not supported."""
    code = currency.strip().lower()
    if not _CURRENCY_RE.match(code) or code not in SUPPORTED_CURRENCIES:
        raise ValueError(f"unsupported quote currency: {currency!r}")
    return code


def validate_request(limit: int, currency: str) -> str:
    """Check fetch arguments and return the normalized currency code.

    Raises:
        ValueError: If limit is outside 1..MAX_LIMIT or the currency is not
            a recognized three-letter code.
    """
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise ValueError(f"limit must be an integer, got {limit!r}")
    if not 1 <= limit <= MAX_LIMIT:
        raise ValueError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
    return normalize_currency(currency)
