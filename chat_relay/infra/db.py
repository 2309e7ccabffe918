from fastapi import Request
from psycopg_pool import AsyncConnectionPool

from chat_relay.adapters.repositories.memory import InMemoryMessageRepo
from chat_relay.adapters.repositories.pg import PgMessageRepo
from chat_relay.domain.errors import ConfigError
from chat_relay.domain.ports.message_repo import MessageRepoPort
from chat_relay.settings import settings


def get_pool(request: Request) -> AsyncConnectionPool:
    return request.app.state.dbpool


def get_repo(request: Request) -> MessageRepoPort:
    if settings.USE_INMEMORY_REPO:
        # Reuse the single instance created in lifespan
        repo = getattr(request.app.state, 'inmem_repo', None)
        if repo is None:
            repo = request.app.state.inmem_repo = InMemoryMessageRepo()
        return repo

    pool = getattr(request.app.state, 'dbpool', None)
    if pool is None:
        raise ConfigError('database pool is not open; set DATABASE_URL or USE_INMEMORY_REPO')
    return PgMessageRepo(pool=pool)
