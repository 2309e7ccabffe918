import asyncio
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from chat_relay.adapters.llm.constants import SYSTEM_PROMPT
from chat_relay.domain.errors import (DomainError, InvalidMessage,
                                      ModelServiceError, ModelTimeout,
                                      RequestTimeout)
from chat_relay.domain.models import ANONYMOUS_USER, HistoryTurn
from chat_relay.domain.ports.llm import LLMPort
from chat_relay.domain.ports.message_repo import MessageRepoPort
from chat_relay.domain.ports.response_cache import ResponseCachePort
from chat_relay.domain.turns import (HISTORY_CAP, build_model_request,
                                     cache_key_for, clean_message)
from chat_relay.services.conversation_resolver import resolve_conversation

logger = logging.getLogger(__name__)


class MessageService(object):
    """
    Relays one chat turn:
      validate -> resolve conversation -> persist user message -> cache lookup
      -> (hit: persist cached reply) | (miss: model under timeout -> cache
      -> persist reply).

    Nothing is retried here; every failure surfaces as a DomainError.
    """

    def __init__(
        self,
        repo: MessageRepoPort,
        llm: LLMPort,
        cache: ResponseCachePort,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        history_cap: int = HISTORY_CAP,
        model_timeout_s: float = 30,
        request_timeout_s: Optional[float] = 10,
    ):
        self.repo = repo
        self.llm = llm
        self.cache = cache
        self.system_prompt = system_prompt
        self.history_cap = history_cap
        self.model_timeout_s = model_timeout_s
        self.request_timeout_s = request_timeout_s

    async def handle(
        self,
        message: Any,
        history: Optional[Sequence[Any]] = None,
        user_id: Optional[str] = None,
        conversation_id: Optional[str] = None,
        request_id: str = '-',
    ) -> Dict[str, str]:
        started = time.monotonic()
        text = clean_message(message)
        turns = self._coerce_history(history)
        user_id = user_id or ANONYMOUS_USER

        logger.info(
            '[turn] rid=%s user=%s conversation=%s len=%d history=%d',
            request_id, user_id, conversation_id or 'new', len(text), len(turns),
        )

        cid = await self._open_turn(text, user_id, conversation_id, request_id)

        key = cache_key_for(text, turns)
        cached = self.cache.get(key)
        if cached is not None:
            logger.info('[turn] rid=%s cache hit', request_id)
            await self.repo.append_message(cid, content=cached, sender_type='bot')
            return {'reply': cached, 'conversation_id': cid}

        request = build_model_request(
            self.system_prompt, text, turns, cap=self.history_cap
        )
        if len(turns) + 2 > len(request):
            logger.warning(
                '[turn] rid=%s history truncated to %d entries', request_id, len(request)
            )

        reply = await self._invoke_model(request, request_id)

        self.cache.set(key, reply)
        await self.repo.append_message(cid, content=reply, sender_type='bot')

        logger.info(
            '[turn] rid=%s done in %.0fms', request_id, (time.monotonic() - started) * 1000
        )
        return {'reply': reply, 'conversation_id': cid}

    @staticmethod
    def _coerce_history(history: Optional[Sequence[Any]]) -> List[HistoryTurn]:
        if history is None:
            return []
        if not isinstance(history, (list, tuple)):
            raise InvalidMessage('history must be a list of {role, content} items')
        try:
            return [HistoryTurn.model_validate(t) for t in history]
        except ValidationError as e:
            raise InvalidMessage(f'invalid history entry: {e.errors()[0]["msg"]}') from e

    async def _open_turn(
        self, text: str, user_id: str, conversation_id: Optional[str], request_id: str
    ) -> str:
        """Resolve the conversation and record the user message, bounded by the request timeout."""

        async def _steps() -> str:
            resolution = await resolve_conversation(
                self.repo,
                user_id=user_id,
                conversation_id=conversation_id,
                request_id=request_id,
            )
            cid = resolution.conversation_id
            await self.repo.append_message(cid, content=text, sender_type='user')
            return cid

        if self.request_timeout_s is None:
            return await _steps()
        try:
            return await asyncio.wait_for(_steps(), timeout=self.request_timeout_s)
        except asyncio.TimeoutError:
            raise RequestTimeout(
                f'request timed out after {self.request_timeout_s:.2f}s before reaching the model'
            )

    async def _invoke_model(self, request: List[Dict[str, str]], request_id: str) -> str:
        """
        Race the model call against the deadline. When both settle at the
        same time the deadline wins. On timeout the call is cancelled.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.model_timeout_s
        task = asyncio.ensure_future(self.llm.generate(request))

        try:
            done, _ = await asyncio.wait({task}, timeout=self.model_timeout_s)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task not in done or loop.time() >= deadline:
            task.cancel()
            # reap the task so the cancellation reaches the HTTP client
            await asyncio.gather(task, return_exceptions=True)
            logger.error(
                '[model] rid=%s timed out after %.2fs (%d entries)',
                request_id, self.model_timeout_s, len(request),
            )
            raise ModelTimeout(f'model timed out after {self.model_timeout_s:.2f}s')

        try:
            reply = task.result()
        except DomainError:
            raise
        except Exception as e:
            logger.error('[model] rid=%s failed: %s: %s', request_id, type(e).__name__, e)
            raise ModelServiceError(f'model call failed: {type(e).__name__}: {e}') from e

        if not isinstance(reply, str) or not reply.strip():
            logger.error('[model] rid=%s returned an empty reply', request_id)
            raise ModelServiceError('model returned an empty reply')
        return reply
