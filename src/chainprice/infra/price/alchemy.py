"""Alchemy price provider — historical token prices and token creation time."""

import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from chainprice.domain.models import ProviderPrice
from chainprice.exceptions import (
    PriceNotAvailableError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
)
from chainprice.infra.http.rate_limited_client import RateLimitedClient
from chainprice.infra.price.base import PriceProvider
from chainprice.infra.retry import DEFAULT_RETRY_POLICY, RetryPolicy

logger = logging.getLogger(__name__)

PRICES_BASE_URL = "https://api.g.alchemy.com/prices/v1"

# Network → Alchemy network slug (used by both the Prices API and RPC hostnames)
NETWORK_SLUGS: dict[str, str] = {
    "ethereum": "eth-mainnet",
    "polygon": "polygon-mainnet",
    "arbitrum": "arb-mainnet",
    "optimism": "opt-mainnet",
    "base": "base-mainnet",
}

PRICE_WINDOW_SECONDS = 3600  # Search +/- 1h around the requested timestamp


def _parse_iso(value: str) -> int:
    """Parse an Alchemy ISO-8601 timestamp ('2024-01-01T00:00:00.000Z') to unix seconds."""
    return int(datetime.fromisoformat(value.replace("Z", "+00:00")).timestamp())


def _to_decimal(value: Any) -> Decimal | None:
    if value is None:
        return None
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def _check_status(response: httpx.Response, what: str) -> None:
    if response.status_code == 429:
        raise RateLimitedError(f"Alchemy rate limit on {what}")
    if response.status_code >= 500:
        raise TransientProviderError(f"Alchemy returned {response.status_code} on {what}")
    if response.status_code == 404:
        raise PriceNotAvailableError(f"Alchemy has no data for {what}")
    if response.status_code != 200:
        raise ProviderError(f"Alchemy returned {response.status_code} on {what}")


def _price_points(data: dict) -> list[tuple[int, Decimal, dict]]:
    """(unix ts, price, raw item) for every usable point in a historical prices payload."""
    points = []
    for item in data.get("data") or []:
        value = _to_decimal(item.get("value"))
        raw_ts = item.get("timestamp")
        if value is None or value <= 0 or not raw_ts:
            continue
        points.append((_parse_iso(raw_ts), value, item))
    return points


def _first_block_time(data: dict, what: str) -> int:
    error = data.get("error")
    if error:
        if isinstance(error, dict) and error.get("code") == 429:
            raise RateLimitedError(f"Alchemy rate limit on {what}")
        logger.warning("Alchemy RPC error on %s: %s", what, error)
        message = error.get("message") if isinstance(error, dict) else error
        raise ProviderError(f"Alchemy RPC error on {what}: {message}")

    transfers = (data.get("result") or {}).get("transfers") or []
    if not transfers:
        raise PriceNotAvailableError(f"No transfers found for {what}")

    block_time = (transfers[0].get("metadata") or {}).get("blockTimestamp")
    if not block_time:
        raise ProviderError(f"Transfer without block timestamp for {what}")
    return _parse_iso(block_time)


class AlchemyProvider(PriceProvider):
    """Fetch historical USD prices from the Alchemy Prices API with rate-limit retry."""

    def __init__(
        self,
        http_client: RateLimitedClient,
        api_key: str,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        chunk_delay: float | None = None,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._retry = retry_policy
        if chunk_delay is not None:
            self.chunk_delay = chunk_delay

    @staticmethod
    def _slug(network: str) -> str:
        slug = NETWORK_SLUGS.get(network)
        if slug is None:
            raise PriceNotAvailableError(f"Alchemy does not serve network {network!r}")
        return slug

    async def get_price(self, token_address: str, network: str, timestamp: int) -> ProviderPrice:
        return await self._retry.call(self._fetch_price, token_address, network, timestamp)

    async def get_creation_timestamp(self, token_address: str, network: str) -> int:
        return await self._retry.call(self._fetch_first_transfer_time, token_address, network)

    async def _post(self, url: str, payload: dict, what: str) -> dict:
        try:
            response = await self._http.post(url, json=payload)
        except (httpx.TimeoutException, httpx.TransportError) as e:
            raise TransientProviderError(f"Alchemy request failed on {what}: {e}") from e
        _check_status(response, what)
        try:
            return response.json()
        except ValueError as e:
            raise TransientProviderError(f"Alchemy sent malformed JSON on {what}") from e

    async def _fetch_price(self, token_address: str, network: str, timestamp: int) -> ProviderPrice:
        what = f"price {network}:{token_address}@{timestamp}"
        payload = {
            "network": self._slug(network),
            "address": token_address,
            "startTime": timestamp - PRICE_WINDOW_SECONDS,
            "endTime": timestamp + PRICE_WINDOW_SECONDS,
            "interval": "1h",
            "withMarketData": True,
        }
        data = await self._post(f"{PRICES_BASE_URL}/{self._api_key}/tokens/historical", payload, what)

        try:
            points = _price_points(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed Alchemy response on {what}: {e}") from e

        if not points:
            raise PriceNotAvailableError(f"Alchemy has no data for {what}")

        _, value, item = min(points, key=lambda p: abs(p[0] - timestamp))
        return ProviderPrice(
            price=value,
            timestamp=timestamp,
            market_cap=_to_decimal(item.get("marketCap")),
            volume=_to_decimal(item.get("totalVolume")),
        )

    async def _fetch_first_transfer_time(self, token_address: str, network: str) -> int:
        what = f"creation time {network}:{token_address}"
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "alchemy_getAssetTransfers",
            "params": [
                {
                    "fromBlock": "0x0",
                    "toBlock": "latest",
                    "contractAddresses": [token_address],
                    "category": ["erc20"],
                    "order": "asc",
                    "maxCount": "0x1",
                    "withMetadata": True,
                    "excludeZeroValue": False,
                }
            ],
        }
        url = f"https://{self._slug(network)}.g.alchemy.com/v2/{self._api_key}"
        data = await self._post(url, payload, what)

        try:
            return _first_block_time(data, what)
        except (AttributeError, TypeError, ValueError) as e:
            raise ProviderError(f"Malformed Alchemy response on {what}: {e}") from e
