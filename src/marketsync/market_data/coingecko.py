"""CoinGecko market listing fetcher.

Performs a single ``GET /coins/markets`` call via httpx and translates the
response into RawMarketRecord objects, or raises the matching FetchError.
Unknown fields in each item are ignored. A missing or null
``price_change_percentage_24h`` is passed through as None; the ranking step
defaults it to zero.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from marketsync.config import CoinGeckoSettings
from marketsync.currencies import MAX_LIMIT, SUPPORTED_CURRENCIES, validate_request
from marketsync.exceptions import (
    DecodeError,
    EmptyResultError,
    HttpStatusError,
    NetworkError,
)
from marketsync.logging import get_logger
from marketsync.market_data.source import MarketDataSource
from marketsync.models import RawMarketRecord

logger = get_logger(__name__)

__all__ = [
    "MAX_LIMIT",
    "SUPPORTED_CURRENCIES",
    "CoinGeckoFetcher",
    "parse_market_item",
    "parse_markets_payload",
    "validate_request",
]


def _parse_decimal(item: dict[str, Any], key: str) -> Decimal | None:
    """Read an optional numeric field as Decimal; raises DecodeError on bad input."""
    raw = item.get(key)
    if raw is None:
        return None
    # bool is an int subclass; JSON true/false is never a valid number here
    if isinstance(raw, bool) or not isinstance(raw, (int, float, str)):
        raise DecodeError(f"market item field {key!r} is not numeric: {raw!r}")
    try:
        value = Decimal(str(raw))
    except InvalidOperation as exc:
        raise DecodeError(f"market item field {key!r} is not numeric: {raw!r}") from exc
    if not value.is_finite():
        raise DecodeError(f"market item field {key!r} is not finite: {raw!r}")
    return value


def parse_market_item(item: Any) -> RawMarketRecord:
    """Convert one upstream JSON object into a RawMarketRecord."""
    if not isinstance(item, dict):
        raise DecodeError(f"market item is not an object: {type(item).__name__}")

    symbol = item.get("symbol")
    name = item.get("name")
    if not isinstance(symbol, str) or not symbol.strip():
        raise DecodeError(f"market item has invalid symbol: {symbol!r}")
    if not isinstance(name, str):
        raise DecodeError(f"market item {symbol!r} has invalid name: {name!r}")

    price = _parse_decimal(item, "current_price")
    if price is None:
        raise DecodeError(f"market item {symbol!r} is missing current_price")
    if price < 0:
        raise DecodeError(f"market item {symbol!r} has negative price: {price}")

    return RawMarketRecord(
        symbol=symbol.strip(),
        name=name,
        current_price=price,
        change_24h_percent=_parse_decimal(item, "price_change_percentage_24h"),
    )


def parse_markets_payload(payload: Any) -> list[RawMarketRecord]:
    """Validate a decoded /coins/markets body, preserving upstream order."""
    if not isinstance(payload, list):
        raise DecodeError(
            f"expected a list of markets, got {type(payload).__name__}"
        )
    if not payload:
        raise EmptyResultError("upstream returned zero market records")
    return [parse_market_item(item) for item in payload]


class CoinGeckoFetcher(MarketDataSource):
    """Fetches the top-N coins by market cap from the CoinGecko REST API.

    Args:
        settings: Endpoint, timeout and listing parameters.
        client: Optional pre-configured :class:`httpx.AsyncClient` (e.g. one
            built on ``httpx.MockTransport`` in tests). When omitted the
            fetcher creates and owns its own client.
    """

    def __init__(
        self,
        settings: CoinGeckoSettings,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings
        self._markets_url = f"{settings.base_url.rstrip('/')}/coins/markets"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=settings.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": self._settings.user_agent,
        }
        api_key = self._settings.api_key.get_secret_value()
        if api_key:
            headers["x-cg-demo-api-key"] = api_key
        return headers

    def _params(self, limit: int, currency: str) -> dict[str, str | int]:
        return {
            "vs_currency": currency,
            "order": self._settings.order,
            "per_page": limit,
            "page": self._settings.page,
            "sparkline": "false",
        }

    async def fetch(self, limit: int, currency: str) -> list[RawMarketRecord]:
        """Fetch one page of ranked markets. No retries."""
        code = validate_request(limit, currency)

        try:
            response = await self._client.get(
                self._markets_url,
                params=self._params(limit, code),
                headers=self._headers(),
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc
        except httpx.RequestError as exc:
            # Response arrived but could not be read (bad Content-Encoding,
            # redirect loop)
            raise DecodeError(f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise HttpStatusError(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"response body is not valid JSON: {exc}") from exc

        records = parse_markets_payload(payload)
        logger.debug(
            "coingecko_markets_fetched",
            count=len(records),
            currency=code,
            limit=limit,
        )
        return records

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()
