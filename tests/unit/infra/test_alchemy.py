"""Tests for AlchemyProvider with mocked HTTP."""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from chainprice.db.memory_store import MemoryPriceStore
from chainprice.domain.enums import PriceSource
from chainprice.domain.models import PricePoint
from chainprice.exceptions import (
    PriceNotAvailableError,
    PriceNotFoundError,
    ProviderError,
    RateLimitedError,
    TransientProviderError,
)
from chainprice.infra.cache import InMemoryPriceCache
from chainprice.infra.http.rate_limited_client import RateLimitedClient
from chainprice.infra.price.alchemy import AlchemyProvider, NETWORK_SLUGS
from chainprice.infra.retry import RetryPolicy
from chainprice.services.price_resolver import PriceResolver

TOKEN = "0x" + "b" * 40
NO_WAIT = RetryPolicy(attempts=3, initial_wait=0, max_wait=0)


def _response(status_code: int, payload: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return response


def _provider(*responses) -> tuple[AlchemyProvider, MagicMock]:
    http = MagicMock()
    http.post = AsyncMock(side_effect=list(responses))
    return AlchemyProvider(http, api_key="key", retry_policy=NO_WAIT, chunk_delay=0), http


class TestNetworkSlugs:
    def test_supported_networks(self):
        assert NETWORK_SLUGS["ethereum"] == "eth-mainnet"
        assert NETWORK_SLUGS["polygon"] == "polygon-mainnet"


class TestGetPrice:
    async def test_picks_closest_point(self):
        payload = {
            "data": [
                {"value": "2000.5", "timestamp": "2023-11-14T21:00:00Z", "marketCap": "240000000000", "totalVolume": "9000000"},
                {"value": "2010.25", "timestamp": "2023-11-14T22:00:00Z", "marketCap": "241000000000", "totalVolume": "9100000"},
            ]
        }
        provider, http = _provider(_response(200, payload))

        # 2023-11-14T22:13:20Z
        price = await provider.get_price(TOKEN, "ethereum", 1700000000)

        assert price.price == Decimal("2010.25")
        assert price.market_cap == Decimal("241000000000")
        assert price.volume == Decimal("9100000")
        assert price.timestamp == 1700000000

        url = http.post.call_args.args[0]
        body = http.post.call_args.kwargs["json"]
        assert url.endswith("/key/tokens/historical")
        assert body["network"] == "eth-mainnet"
        assert body["address"] == TOKEN
        assert body["startTime"] == 1700000000 - 3600
        assert body["endTime"] == 1700000000 + 3600

    async def test_empty_data_is_not_available(self):
        provider, http = _provider(_response(200, {"data": []}))

        with pytest.raises(PriceNotAvailableError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 1  # not retried

    async def test_rate_limit_retried_then_succeeds(self):
        payload = {"data": [{"value": "1.5", "timestamp": "2023-11-14T22:00:00Z"}]}
        provider, http = _provider(_response(429), _response(200, payload))

        price = await provider.get_price(TOKEN, "ethereum", 1700000000)

        assert price.price == Decimal("1.5")
        assert price.market_cap is None
        assert http.post.await_count == 2

    async def test_persistent_rate_limit_raises_after_three_tries(self):
        provider, http = _provider(_response(429), _response(429), _response(429))

        with pytest.raises(RateLimitedError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 3

    async def test_server_errors_exhaust_retries(self):
        provider, http = _provider(_response(503), _response(502), _response(500))

        with pytest.raises(TransientProviderError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 3

    async def test_timeout_is_transient(self):
        http = MagicMock()
        http.post = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        provider = AlchemyProvider(http, api_key="key", retry_policy=NO_WAIT)

        with pytest.raises(TransientProviderError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 3

    async def test_client_error_not_retried(self):
        provider, http = _provider(_response(400))

        with pytest.raises(ProviderError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 1

    async def test_unknown_network(self):
        provider, http = _provider()

        with pytest.raises(PriceNotAvailableError):
            await provider.get_price(TOKEN, "solana", 1700000000)
        http.post.assert_not_called()


class TestGetCreationTimestamp:
    async def test_first_transfer_block_time(self):
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "result": {"transfers": [{"blockNum": "0xa", "metadata": {"blockTimestamp": "2020-09-14T00:00:00.000Z"}}]},
        }
        provider, http = _provider(_response(200, payload))

        ts = await provider.get_creation_timestamp(TOKEN, "polygon")

        assert ts == 1600041600
        url = http.post.call_args.args[0]
        body = http.post.call_args.kwargs["json"]
        assert url == "https://polygon-mainnet.g.alchemy.com/v2/key"
        assert body["method"] == "alchemy_getAssetTransfers"
        assert body["params"][0]["contractAddresses"] == [TOKEN]
        assert body["params"][0]["order"] == "asc"

    async def test_no_transfers(self):
        provider, _ = _provider(_response(200, {"result": {"transfers": []}}))

        with pytest.raises(PriceNotAvailableError):
            await provider.get_creation_timestamp(TOKEN, "ethereum")

    async def test_rpc_rate_limit_retried(self):
        limited = _response(200, {"error": {"code": 429, "message": "Too many requests"}})
        ok = _response(200, {"result": {"transfers": [{"metadata": {"blockTimestamp": "2020-09-14T00:00:00Z"}}]}})
        provider, http = _provider(limited, ok)

        assert await provider.get_creation_timestamp(TOKEN, "ethereum") == 1600041600
        assert http.post.await_count == 2

    async def test_rpc_error_raises(self):
        provider, _ = _provider(_response(200, {"error": {"code": -32602, "message": "invalid params"}}))

        with pytest.raises(ProviderError):
            await provider.get_creation_timestamp(TOKEN, "ethereum")


class TestMalformedPayloads:
    @pytest.mark.parametrize(
        "payload",
        [
            {"data": [{"value": "1.5", "timestamp": "garbage"}]},
            {"data": ["not-a-dict"]},
            {"data": [{"value": "1.5", "timestamp": 1700000000}]},
            ["unexpected", "list"],
        ],
    )
    async def test_price_payload_becomes_provider_error(self, payload):
        provider, http = _provider(_response(200, payload))

        with pytest.raises(ProviderError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)
        assert http.post.await_count == 1

    async def test_non_finite_value_is_skipped(self):
        payload = {"data": [{"value": "NaN", "timestamp": "2023-11-14T22:00:00Z"}]}
        provider, _ = _provider(_response(200, payload))

        with pytest.raises(PriceNotAvailableError):
            await provider.get_price(TOKEN, "ethereum", 1700000000)

    @pytest.mark.parametrize(
        "payload",
        [
            {"error": "boom"},
            {"result": {"transfers": [{"metadata": {"blockTimestamp": "yesterday"}}]}},
            {"result": "nope"},
        ],
    )
    async def test_transfer_payload_becomes_provider_error(self, payload):
        provider, _ = _provider(_response(200, payload))

        with pytest.raises(ProviderError):
            await provider.get_creation_timestamp(TOKEN, "ethereum")

    async def test_resolver_treats_malformed_payload_as_miss(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"value": "1.5", "timestamp": "garbage"}]})

        store = MemoryPriceStore()
        async with RateLimitedClient(rate_per_second=1000, transport=httpx.MockTransport(handler)) as client:
            provider = AlchemyProvider(client, api_key="key", retry_policy=NO_WAIT)
            resolver = PriceResolver(InMemoryPriceCache(), store, provider)

            with pytest.raises(PriceNotFoundError):
                await resolver.resolve(TOKEN, "ethereum", 1700000000)

            await store.save_price(
                PricePoint(token_address=TOKEN, network="ethereum", timestamp=1699990000, price=Decimal("10"))
            )
            await store.save_price(
                PricePoint(token_address=TOKEN, network="ethereum", timestamp=1700010000, price=Decimal("12"))
            )
            result = await resolver.resolve(TOKEN, "ethereum", 1700000000)

        assert result.source == PriceSource.INTERPOLATED
        assert result.price == Decimal("11")
