import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from chainprice.api.jobs import router as jobs_router
from chainprice.api.prices import router as prices_router
from chainprice.container import Container
from chainprice.exceptions import BackendUnavailableError, InvalidRequestError
from chainprice.infra.cache import RedisPriceCache

logger = logging.getLogger("chainprice.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    settings = container.settings()
    manager = container.job_manager()

    pool = None
    if settings.job_queue_backend == "celery":
        manager.attach_queue(container.celery_queue())
    else:
        pool = container.worker_pool()
        manager.attach_queue(pool)
        await pool.start()

    yield

    if pool is not None:
        await pool.stop()
    await container.http_client().close()
    cache = container.cache()
    if isinstance(cache, RedisPriceCache):
        await cache.close()
    engine = container.engine()
    await engine.dispose()


app = FastAPI(title="chainprice", version="0.1.0", lifespan=lifespan)


@app.exception_handler(InvalidRequestError)
async def invalid_request_handler(request: Request, exc: InvalidRequestError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(BackendUnavailableError)
async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError):
    logger.error("Backend unavailable on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage backend unavailable"})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)
app.include_router(jobs_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
