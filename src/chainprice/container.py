from dependency_injector import containers, providers

from chainprice.config import Settings
from chainprice.db.session import build_engine, build_session_factory
from chainprice.db.store import SqlPriceStore
from chainprice.infra.cache import InMemoryPriceCache, RedisPriceCache
from chainprice.infra.http.rate_limited_client import RateLimitedClient
from chainprice.infra.price.alchemy import AlchemyProvider
from chainprice.infra.retry import RetryPolicy
from chainprice.services.backfill import BackfillJobManager
from chainprice.services.price_resolver import PriceResolver
from chainprice.workers.pool import BackfillWorkerPool
from chainprice.workers.tasks import CeleryJobQueue


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["chainprice.api.deps"])

    settings = providers.Singleton(Settings)

    engine = providers.Singleton(
        build_engine,
        database_url=settings.provided.database_url,
        echo=settings.provided.debug,
    )

    session_factory = providers.Singleton(
        build_session_factory,
        engine=engine,
    )

    store = providers.Singleton(SqlPriceStore, session_factory=session_factory)

    cache = providers.Selector(
        settings.provided.cache_backend,
        redis=providers.Singleton(RedisPriceCache.from_url, url=settings.provided.redis_url),
        memory=providers.Singleton(InMemoryPriceCache),
    )

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.provider_rate_per_second,
        timeout=settings.provided.provider_timeout,
    )

    retry_policy = providers.Singleton(RetryPolicy.from_settings, settings)

    price_provider = providers.Singleton(
        AlchemyProvider,
        http_client=http_client,
        api_key=settings.provided.alchemy_api_key,
        retry_policy=retry_policy,
        chunk_delay=settings.provided.provider_batch_delay,
    )

    price_resolver = providers.Singleton(
        PriceResolver,
        cache=cache,
        store=store,
        provider=price_provider,
        cache_ttl_seconds=settings.provided.cache_ttl_seconds,
    )

    job_manager = providers.Singleton(
        BackfillJobManager,
        store=store,
        provider=price_provider,
        batch_size=settings.provided.backfill_batch_size,
    )

    worker_pool = providers.Singleton(
        BackfillWorkerPool,
        manager=job_manager,
        concurrency=settings.provided.worker_concurrency,
        poll_interval=settings.provided.job_poll_interval,
    )

    celery_queue = providers.Singleton(CeleryJobQueue)
