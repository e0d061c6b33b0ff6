import httpx

from chainprice.infra.http.rate_limited_client import RateLimitedClient


def _echo(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"method": request.method, "path": request.url.path})


class TestRateLimitedClient:
    async def test_post_and_get(self):
        async with RateLimitedClient(rate_per_second=1000, transport=httpx.MockTransport(_echo)) as client:
            post = await client.post("https://example.test/v1/prices", json={"a": 1})
            get = await client.get("https://example.test/v1/status", params={"q": "x"})

        assert post.json() == {"method": "POST", "path": "/v1/prices"}
        assert get.json() == {"method": "GET", "path": "/v1/status"}

    async def test_sends_json_accept_header(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["accept"] = request.headers["accept"]
            return httpx.Response(200, json={})

        async with RateLimitedClient(rate_per_second=1000, transport=httpx.MockTransport(handler)) as client:
            await client.get("https://example.test/")

        assert seen["accept"] == "application/json"
