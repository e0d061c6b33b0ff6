import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from chainprice.db.session import Base
from chainprice.db.memory_store import MemoryPriceStore
from chainprice.db.store import SqlPriceStore
from chainprice.infra.cache import InMemoryPriceCache
import chainprice.db.models  # noqa: F401


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture()
async def engine():
    eng = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await eng.dispose()


@pytest.fixture()
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture()
async def session(session_factory) -> AsyncSession:
    async with session_factory() as sess:
        yield sess


@pytest.fixture()
def sql_store(session_factory) -> SqlPriceStore:
    return SqlPriceStore(session_factory)


@pytest.fixture()
def memory_store() -> MemoryPriceStore:
    return MemoryPriceStore()


@pytest.fixture(params=["sql", "memory"])
def store(request, sql_store, memory_store):
    """Both PriceStore engines must honour the same contract."""
    return sql_store if request.param == "sql" else memory_store


@pytest.fixture()
def cache() -> InMemoryPriceCache:
    return InMemoryPriceCache()
