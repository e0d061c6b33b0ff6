"""Contract tests run against both SqlPriceStore and MemoryPriceStore."""

from decimal import Decimal

from chainprice.domain.enums import JobStatus, PriceSource
from chainprice.domain.models import PricePoint, PriceQuery

TOKEN = "0x" + "a" * 40
OTHER = "0x" + "b" * 40


def _point(ts: int, price: str = "2000.5", token: str = TOKEN, network: str = "ethereum", **kw) -> PricePoint:
    return PricePoint(token_address=token, network=network, timestamp=ts, price=Decimal(price), **kw)


def _query(source: PriceSource, ms: float | None = 10.0, ts: int = 1700000000) -> PriceQuery:
    return PriceQuery(
        token_address=TOKEN,
        network="ethereum",
        timestamp=ts,
        price=Decimal("1.5"),
        source=source,
        response_time_ms=ms,
    )


class TestPricePoints:
    async def test_save_and_get_exact(self, store):
        assert await store.save_price(
            _point(1700000000, market_cap=Decimal("1000000.25"), volume=Decimal("5000.5"))
        ) is True

        found = await store.get_price(TOKEN, "ethereum", 1700000000)

        assert found is not None
        assert found.price == Decimal("2000.5")
        assert found.market_cap == Decimal("1000000.25")
        assert found.volume == Decimal("5000.5")

    async def test_round_trip_keeps_every_digit(self, store):
        await store.save_price(
            _point(
                1700000000,
                "0.000000000000000000123456789",
                market_cap=Decimal("1000000.257"),
                volume=Decimal("5000.123"),
            )
        )

        found = await store.get_price(TOKEN, "ethereum", 1700000000)

        assert found.price == Decimal("0.000000000000000000123456789")
        assert found.market_cap == Decimal("1000000.257")
        assert found.volume == Decimal("5000.123")

    async def test_nearest_prices_keep_precision(self, store):
        await store.save_price(_point(100, "1234.5678901234567890123"))
        await store.save_price(_point(300, "0.1"))

        before, after = await store.get_nearest_prices(TOKEN, "ethereum", 200)

        assert before.price == Decimal("1234.5678901234567890123")
        assert after.price == Decimal("0.1")

    async def test_missing_point(self, store):
        assert await store.get_price(TOKEN, "ethereum", 1700000000) is None

    async def test_identity_includes_network(self, store):
        await store.save_price(_point(1700000000))
        assert await store.get_price(TOKEN, "polygon", 1700000000) is None

    async def test_save_is_write_once(self, store):
        assert await store.save_price(_point(1700000000, "2000.5")) is True
        assert await store.save_price(_point(1700000000, "15.25")) is False

        found = await store.get_price(TOKEN, "ethereum", 1700000000)
        assert found.price == Decimal("2000.5")

    async def test_nearest_prices_are_strict(self, store):
        for ts, price in [(100, "1"), (200, "2"), (300, "3"), (400, "4")]:
            await store.save_price(_point(ts, price))

        before, after = await store.get_nearest_prices(TOKEN, "ethereum", 250)
        assert (before.timestamp, after.timestamp) == (200, 300)

        before, after = await store.get_nearest_prices(TOKEN, "ethereum", 300)
        assert (before.timestamp, after.timestamp) == (200, 400)

    async def test_nearest_prices_open_ended(self, store):
        await store.save_price(_point(100))

        before, after = await store.get_nearest_prices(TOKEN, "ethereum", 50)
        assert before is None
        assert after.timestamp == 100

        before, after = await store.get_nearest_prices(TOKEN, "ethereum", 150)
        assert before.timestamp == 100
        assert after is None

    async def test_nearest_prices_scoped_to_token(self, store):
        await store.save_price(_point(100, token=OTHER))
        await store.save_price(_point(300, token=OTHER))

        assert await store.get_nearest_prices(TOKEN, "ethereum", 200) == (None, None)


class TestQueryLog:
    async def test_record_assigns_id(self, store):
        stored = await store.record_query(_query(PriceSource.PROVIDER))

        assert stored.id is not None
        assert stored.source == PriceSource.PROVIDER

    async def test_recorded_price_keeps_precision(self, store):
        query = _query(PriceSource.INTERPOLATED).model_copy(update={"price": Decimal("15.123456789012345678901")})

        await store.record_query(query)

        [recent] = await store.get_recent_queries()
        assert recent.price == Decimal("15.123456789012345678901")

    async def test_recent_queries_most_recent_first(self, store):
        for ts in (1, 2, 3):
            await store.record_query(_query(PriceSource.CACHE, ts=ts))

        recent = await store.get_recent_queries(limit=2)

        assert [q.timestamp for q in recent] == [3, 2]

    async def test_stats(self, store):
        await store.record_query(_query(PriceSource.CACHE, ms=10.0))
        await store.record_query(_query(PriceSource.INTERPOLATED, ms=20.0))
        await store.record_query(_query(PriceSource.INTERPOLATED, ms=30.0))

        stats = await store.get_query_stats()

        assert stats.total_queries == 3
        assert stats.interpolated_count == 2
        assert stats.avg_response_time_ms == 20.0
        assert stats.by_source == {"cache": 1, "interpolated": 2}

    async def test_stats_empty(self, store):
        stats = await store.get_query_stats()

        assert stats.total_queries == 0
        assert stats.interpolated_count == 0
        assert stats.avg_response_time_ms is None


class TestJobs:
    async def test_create_is_pending(self, store):
        job = await store.create_job(TOKEN, "ethereum")

        assert job.status == JobStatus.PENDING
        assert job.progress == 0
        assert job.total_days is None
        assert (await store.get_job(job.id)).status == JobStatus.PENDING

    async def test_unknown_job(self, store):
        assert await store.get_job(999) is None

    async def test_claim_only_once(self, store):
        job = await store.create_job(TOKEN, "ethereum")

        assert await store.claim_job(job.id) is True
        assert await store.claim_job(job.id) is False
        assert (await store.get_job(job.id)).status == JobStatus.PROCESSING

    async def test_updates_require_processing(self, store):
        job = await store.create_job(TOKEN, "ethereum")

        await store.update_job(job.id, progress=50)
        assert (await store.get_job(job.id)).progress == 0

        await store.claim_job(job.id)
        await store.update_job(job.id, progress=50, total_days=10)
        updated = await store.get_job(job.id)
        assert (updated.progress, updated.total_days) == (50, 10)

    async def test_complete(self, store):
        job = await store.create_job(TOKEN, "ethereum")
        await store.claim_job(job.id)

        await store.complete_job(job.id)

        done = await store.get_job(job.id)
        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100
        assert done.completed_at is not None

    async def test_terminal_jobs_are_frozen(self, store):
        job = await store.create_job(TOKEN, "ethereum")
        await store.claim_job(job.id)
        await store.complete_job(job.id)

        await store.update_job(job.id, progress=10)
        await store.fail_job(job.id, "late failure")

        done = await store.get_job(job.id)
        assert done.status == JobStatus.COMPLETED
        assert done.progress == 100
        assert done.error_message is None

    async def test_fail_keeps_progress(self, store):
        job = await store.create_job(TOKEN, "ethereum")
        await store.claim_job(job.id)
        await store.update_job(job.id, progress=40)

        await store.fail_job(job.id, "provider down")

        failed = await store.get_job(job.id)
        assert failed.status == JobStatus.FAILED
        assert failed.progress == 40
        assert failed.error_message == "provider down"

    async def test_fail_from_pending(self, store):
        job = await store.create_job(TOKEN, "ethereum")

        await store.fail_job(job.id, "never started")

        assert (await store.get_job(job.id)).status == JobStatus.FAILED
        assert await store.claim_job(job.id) is False

    async def test_active_and_pending(self, store):
        pending = await store.create_job(TOKEN, "ethereum")
        running = await store.create_job(TOKEN, "polygon")
        done = await store.create_job(OTHER, "ethereum")
        await store.claim_job(running.id)
        await store.claim_job(done.id)
        await store.complete_job(done.id)

        active = await store.get_active_jobs()

        assert [j.id for j in active] == [pending.id, running.id]
        assert await store.get_pending_job_ids() == [pending.id]
