from fastapi import Depends

from chat_relay.domain.ports.llm import LLMPort
from chat_relay.domain.ports.message_repo import MessageRepoPort
from chat_relay.domain.ports.response_cache import ResponseCachePort
from chat_relay.infra.cache import get_response_cache
from chat_relay.infra.db import get_repo
from chat_relay.infra.llm import get_llm_singleton
from chat_relay.services.history_service import HistoryService
from chat_relay.services.message_service import MessageService
from chat_relay.settings import settings


def get_service(
    repo: MessageRepoPort = Depends(get_repo),
    llm: LLMPort = Depends(get_llm_singleton),
    cache: ResponseCachePort = Depends(get_response_cache),
) -> MessageService:
    return MessageService(
        repo=repo,
        llm=llm,
        cache=cache,
        system_prompt=settings.SYSTEM_PROMPT,
        history_cap=settings.HISTORY_CAP,
        model_timeout_s=settings.MODEL_TIMEOUT_S,
        request_timeout_s=settings.REQUEST_TIMEOUT_S,
    )


def get_history_service(repo: MessageRepoPort = Depends(get_repo)) -> HistoryService:
    return HistoryService(repo=repo)
