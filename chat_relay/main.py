import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from psycopg_pool import AsyncConnectionPool

from chat_relay.api.errors import build_error_response, register_exception_handlers
from chat_relay.api.routes import router
from chat_relay.settings import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    app.state.dbpool = None
    app.state.inmem_repo = None

    if settings.USE_INMEMORY_REPO:
        from chat_relay.adapters.repositories.memory import InMemoryMessageRepo

        app.state.inmem_repo = InMemoryMessageRepo()

    if not settings.DISABLE_DB_POOL and settings.DATABASE_URL is not None:
        app.state.dbpool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL.encoded_string(),
            min_size=settings.POOL_MIN,
            max_size=settings.POOL_MAX,
            timeout=5,  # wait at most 5s when borrowing from the pool
            open=False,
        )
        await app.state.dbpool.open()
    try:
        yield
    finally:
        pool = getattr(app.state, 'dbpool', None)
        if pool is not None:
            await pool.close()


app = FastAPI(lifespan=lifespan)

app.include_router(router)

register_exception_handlers(app)


@app.middleware('http')
async def correlate_requests(request: Request, call_next):
    request.state.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex[:12]
    request.state.started_at = time.monotonic()
    try:
        response = await call_next(request)
    except Exception as exc:
        # anything the handlers did not classify still gets the error shape
        return build_error_response(request, exc)
    response.headers['X-Request-ID'] = request.state.request_id
    return response


@app.get('/', tags=['health'])
async def healthcheck():
    return {'Welcome to chat relay': 'POST /api/chat to start a conversation'}
