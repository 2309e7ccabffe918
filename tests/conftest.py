# conftest.py
import os

import pytest
from fastapi.testclient import TestClient

# Set env flags BEFORE chat_relay.settings is imported anywhere (so lifespan won't open a DB pool)
os.environ.setdefault('DISABLE_DB_POOL', 'true')
os.environ.setdefault('USE_INMEMORY_REPO', 'true')
os.environ.setdefault('LLM_PROVIDER', 'dummy')
os.environ.setdefault('ENVIRONMENT', 'production')


@pytest.fixture()
def clock():
    from tests.fakes import FakeClock

    return FakeClock()


@pytest.fixture()
def cache(clock):
    from chat_relay.adapters.cache.memory import InMemoryResponseCache

    return InMemoryResponseCache(max_entries=100, ttl_s=300, clock=clock)


@pytest.fixture()
def repo():
    from tests.fakes import FlakyRepo

    return FlakyRepo()


@pytest.fixture()
def llm():
    from tests.fakes import ScriptedLLM

    return ScriptedLLM()


@pytest.fixture()
def service(repo, llm, cache):
    """
    Build a fresh MessageService and dependencies for EACH TEST.
    This prevents cross-test leakage of conversations and cached replies.
    """
    from chat_relay.services.message_service import MessageService

    return MessageService(repo=repo, llm=llm, cache=cache, model_timeout_s=1, request_timeout_s=1)


@pytest.fixture()
def client(service):
    """
    A TestClient using a per-test service via FastAPI dependency override.
    """
    from chat_relay.infra.service import get_history_service, get_service
    from chat_relay.main import app
    from chat_relay.services.history_service import HistoryService

    app.dependency_overrides[get_service] = lambda: service
    app.dependency_overrides[get_history_service] = lambda: HistoryService(repo=service.repo)
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
